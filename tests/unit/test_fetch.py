"""Tests for the page fetcher."""

import httpx
import pytest

from show_pipeline.errors import NetworkError
from show_pipeline.extractors import fetch_document

PAGE = "<html><body>" + "<p>Aug 2 - Lafayette, Elks Lodge - 3131 Teal Rd</p>" * 5 + "</body></html>"


def client_for(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestFetchDocument:
    @pytest.mark.asyncio
    async def test_returns_body_with_browser_headers(self, settings):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["ua"] = request.headers["User-Agent"]
            return httpx.Response(200, text=PAGE)

        async with client_for(handler) as client:
            html = await fetch_document("https://example.com/shows", settings, client)

        assert html == PAGE
        assert seen["ua"] == settings.user_agent

    @pytest.mark.asyncio
    async def test_http_error(self, settings):
        async with client_for(lambda request: httpx.Response(404, text="gone")) as client:
            with pytest.raises(NetworkError) as exc_info:
                await fetch_document("https://example.com/missing", settings, client)

        assert exc_info.value.status_code == 404
        assert exc_info.value.url == "https://example.com/missing"
        assert str(exc_info.value) == "HTTP 404 for https://example.com/missing"

    @pytest.mark.asyncio
    async def test_short_body_counts_as_empty(self, settings):
        async with client_for(lambda request: httpx.Response(200, text="<html></html>")) as client:
            with pytest.raises(NetworkError, match="Empty page"):
                await fetch_document("https://example.com/blank", settings, client)

    @pytest.mark.asyncio
    async def test_timeout(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        async with client_for(handler) as client:
            with pytest.raises(NetworkError, match="Timeout after 25s"):
                await fetch_document("https://example.com/slow", settings, client)

    @pytest.mark.asyncio
    async def test_connection_error(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with client_for(handler) as client:
            with pytest.raises(NetworkError, match="Connection error: ConnectError"):
                await fetch_document("https://example.com/down", settings, client)
