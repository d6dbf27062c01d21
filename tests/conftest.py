"""Shared test fixtures and configuration."""

import json
from datetime import date
from typing import Callable

import httpx
import pytest

from show_pipeline.config import Settings
from show_pipeline.models import NormalizedShow, RawCandidate
from show_pipeline.stores import ProductionStore, SourceScoreStore, StagingStore

TODAY = date(2026, 6, 15)

DPMS_URL = "https://www.dpmsportcards.com/indiana-card-shows/"

DPMS_HTML = """<html><head><title>Indiana Card Shows</title>
<script>var tracking = "Aug 1 - Nowhere, Fake - 1 Script St";</script></head>
<body>
<h2>Indiana Card Shows</h2>
<p>Aug 2 - Lafayette, Elks Lodge - 3131 Teal Rd (9am-2pm) Mike Hanson (765) 555-0100</p>
<p>Aug 2 - Lafayette, Elks Lodge - 3131 Teal Rd (9am-2pm) Mike Hanson (765) 555-0100</p>
<p>Sept 13th-14th &ndash; Fort Wayne, &ldquo;Coliseum&rdquo; &ndash; 4000 Parnell Ave &ndash; Hall B (8-3)</p>
<p>Oct 5 - Kokomo, Howard County Fairgrounds - 1500 N Reed Rd (Sun 9-2) 765-555-0142</p>
<p>Contact us - we love cards, really</p>
</body></html>
"""


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings with credentials and no waiting."""
    return Settings(
        google_ai_key="test-ai-key",
        google_maps_api_key="test-maps-key",
        ai_request_delay=0,
        ai_retry_delay=0,
        geocode_request_delay=0,
        url_delay=0,
        data_dir=tmp_path,
    )


@pytest.fixture
def staging(tmp_path) -> StagingStore:
    return StagingStore(tmp_path)


@pytest.fixture
def production(tmp_path) -> ProductionStore:
    return ProductionStore(tmp_path)


@pytest.fixture
def scores(tmp_path) -> SourceScoreStore:
    return SourceScoreStore(tmp_path)


@pytest.fixture
def sample_raw() -> RawCandidate:
    """A typical AI-extracted candidate."""
    return RawCandidate(
        name="Springfield Sports Card Show",
        startDate="Aug 2",
        venueName="Elks Lodge",
        address="123 Main St",
        city="Springfield",
        state="IL",
        zipCode="62701",
        entryFee="$5",
        description="Over 60 tables. Food and refreshments available.",
        contactInfo="John Smith 214-555-0123",
        showHours="9am-3pm",
    )


@pytest.fixture
def sample_show() -> NormalizedShow:
    return NormalizedShow(
        name="Springfield Sports Card Show",
        description="Free admission! Autograph guest at noon.",
        start_date="2026-08-02",
        end_date="2026-08-02",
        venue_name="Elks Lodge",
        address="123 Main St",
        city="Springfield",
        state="IL",
        zip_code="62701",
        entry_fee="Free admission",
        entry_fee_amount=0,
        start_time="9:00am",
        end_time="3:00pm",
        source_url="https://example.com/shows",
    )


def gemini_reply(text: str) -> httpx.Response:
    """A generateContent response carrying `text`."""
    return httpx.Response(200, json={
        "candidates": [{"content": {"parts": [{"text": text}]}}],
    })


def geocode_reply(lat: float, lng: float, formatted_address: str) -> httpx.Response:
    return httpx.Response(200, json={
        "status": "OK",
        "results": [{
            "geometry": {"location": {"lat": lat, "lng": lng}},
            "formatted_address": formatted_address,
            "place_id": "place-123",
        }],
    })


class Router:
    """httpx.MockTransport handler dispatching on URL substrings, recording calls."""

    def __init__(self, routes: dict[str, Callable[[httpx.Request], httpx.Response]]):
        self.routes = routes
        self.calls: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        for marker, responder in self.routes.items():
            if marker in str(request.url):
                return responder(request)
        return httpx.Response(404, text="not found")

    def calls_to(self, marker: str) -> list[httpx.Request]:
        return [r for r in self.calls if marker in str(r.url)]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def prompt_of(request: httpx.Request) -> str:
    body = json.loads(request.content)
    return body["contents"][0]["parts"][0]["text"]
