"""Tests for AI extraction: response parsing, overload retry and budgets."""

import json

import httpx
import pytest

from show_pipeline.errors import ExtractionError, OverloadError
from show_pipeline.extractors import AIExtractor, ChunkExtraction, parse_candidates, retry_on_overload
from show_pipeline.extractors.llm import build_prompt, prompt_for
from show_pipeline.ratelimit import RequestBudget
from tests.conftest import TODAY, Router, gemini_reply, prompt_of

SHOWS_JSON = json.dumps([
    {"name": "Springfield Card Show", "startDate": "Aug 2", "city": "Springfield", "state": "IL"},
    {"name": "Peoria Card Show", "startDate": "Sep 6", "city": "Peoria", "state": "IL"},
])


class TestParseCandidates:
    """Tests for turning model replies into candidates."""

    def test_plain_array(self):
        candidates = parse_candidates(SHOWS_JSON)
        assert [c.name for c in candidates] == ["Springfield Card Show", "Peoria Card Show"]

    def test_fenced_array(self):
        candidates = parse_candidates(f"```json\n{SHOWS_JSON}\n```")
        assert len(candidates) == 2

    def test_array_inside_prose(self):
        candidates = parse_candidates(f"Here are the shows:\n{SHOWS_JSON}\nHope this helps!")
        assert len(candidates) == 2

    def test_empty_array_is_not_an_error(self):
        assert parse_candidates("[]") == []

    def test_non_object_items_dropped(self):
        candidates = parse_candidates('[{"name": "A"}, "junk", 3, null]')
        assert [c.name for c in candidates] == ["A"]

    def test_items_with_wrong_field_types_skipped(self):
        candidates = parse_candidates(json.dumps([
            {"name": "Listed Hours", "startDate": "Aug 2", "showHours": ["9am-3pm"]},
            {"name": "Nested Venue", "venueName": {"name": "Elks"}},
            {"name": "Flag", "entryFee": True},
            {"name": "Good Show", "startDate": "Aug 9"},
        ]))
        assert [c.name for c in candidates] == ["Good Show"]

    @pytest.mark.parametrize("text,message", [
        ("", "Empty response"),
        ("   ", "Empty response"),
        ("I could not find any shows.", "No JSON array"),
        ("[{'name': 'single quotes'}]", "Invalid JSON"),
    ])
    def test_errors(self, text, message):
        with pytest.raises(ExtractionError, match=message):
            parse_candidates(text)


class TestRetryOnOverload:
    @pytest.mark.asyncio
    async def test_succeeds_after_overloads(self):
        calls = []

        async def operation():
            calls.append(1)
            if len(calls) < 3:
                raise OverloadError("HTTP 503")
            return "ok"

        assert await retry_on_overload(operation, max_attempts=3, delay=0) == "ok"
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self):
        calls = []

        async def operation():
            calls.append(1)
            raise OverloadError("HTTP 503")

        with pytest.raises(OverloadError):
            await retry_on_overload(operation, max_attempts=3, delay=0)
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_other_errors_not_retried(self):
        calls = []

        async def operation():
            calls.append(1)
            raise ExtractionError("HTTP 500")

        with pytest.raises(ExtractionError, match="HTTP 500"):
            await retry_on_overload(operation, max_attempts=3, delay=0)
        assert len(calls) == 1


class TestPrompts:
    def test_generic_prompt(self):
        prompt = prompt_for("PAGE", "https://example.com/shows", TODAY)
        assert prompt == build_prompt("PAGE", "https://example.com/shows", TODAY)
        assert "TODAY = 2026-06-15" in prompt
        assert "https://example.com/shows" in prompt
        assert prompt.rstrip().endswith("PAGE")

    def test_calendar_prompt(self):
        prompt = prompt_for("PAGE", "https://sportscollectorsdigest.com/show-calendar", TODAY)
        assert "UPPERCASE state headings" in prompt
        assert "use 2027" in prompt


class TestAIExtractor:
    """Tests for per-chunk extraction against a mocked generateContent endpoint."""

    async def _extract(self, settings, router: Router, chunks: list[str], limit: int = 10):
        budget = RequestBudget("AI", limit)
        async with httpx.AsyncClient(transport=router.transport()) as client:
            extractor = AIExtractor(settings, budget, client, today=TODAY)
            return await extractor.extract(chunks, "https://example.com/shows"), budget

    @pytest.mark.asyncio
    async def test_overload_then_success(self, settings):
        replies = iter([httpx.Response(503), httpx.Response(503), gemini_reply(SHOWS_JSON)])
        router = Router({"generativelanguage": lambda request: next(replies)})

        candidates, budget = await self._extract(settings, router, ["chunk one"])

        assert len(router.calls) == 3
        assert budget.used == 1
        assert [c.name for c in candidates] == ["Springfield Card Show", "Peoria Card Show"]
        assert all(c.sourceUrl == "https://example.com/shows" for c in candidates)
        assert router.calls[0].url.params["key"] == "test-ai-key"
        assert "chunk one" in prompt_of(router.calls[0])

    @pytest.mark.asyncio
    async def test_overload_exhausted_yields_nothing(self, settings):
        router = Router({"generativelanguage": lambda request: httpx.Response(503)})
        candidates, _ = await self._extract(settings, router, ["chunk"])
        assert candidates == []
        assert len(router.calls) == settings.ai_max_retries

    @pytest.mark.asyncio
    async def test_server_error_not_retried(self, settings):
        router = Router({"generativelanguage": lambda request: httpx.Response(500)})
        budget = RequestBudget("AI", 10)
        async with httpx.AsyncClient(transport=router.transport()) as client:
            result = await AIExtractor(settings, budget, client, today=TODAY).extract_chunk(
                "chunk", "https://example.com/shows"
            )
        assert isinstance(result, ChunkExtraction)
        assert not result.is_ok
        assert result.error == "HTTP 500"
        assert len(router.calls) == 1

    @pytest.mark.asyncio
    async def test_malformed_chunk_does_not_stop_others(self, settings):
        replies = iter([gemini_reply("no shows here, sorry"), gemini_reply(SHOWS_JSON)])
        router = Router({"generativelanguage": lambda request: next(replies)})

        candidates, _ = await self._extract(settings, router, ["first", "second"])

        assert len(router.calls) == 2
        assert len(candidates) == 2

    @pytest.mark.asyncio
    async def test_budget_caps_chunks(self, settings):
        router = Router({"generativelanguage": lambda request: gemini_reply(SHOWS_JSON)})

        candidates, budget = await self._extract(settings, router, ["a", "b", "c"], limit=2)

        assert len(router.calls) == 2
        assert budget.exhausted
        assert len(candidates) == 4
