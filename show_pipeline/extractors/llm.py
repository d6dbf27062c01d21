"""AI extraction of show listings using the Gemini generateContent API.

Each chunk of page text gets its own prompt. Calls are:
- capped per run by a shared RequestBudget
- spaced by a fixed delay
- retried a fixed number of times, only when the service reports overload (503)

Malformed responses are expected; they turn into a failed ChunkExtraction
for that chunk and the run moves on.
"""

import asyncio
import json
import re
from datetime import date
from typing import Awaitable, Callable, Optional, TypeVar

import httpx
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console

from show_pipeline.config import Settings
from show_pipeline.errors import ExtractionError, OverloadError
from show_pipeline.models import RawCandidate
from show_pipeline.ratelimit import RequestBudget

console = Console()

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
GENERATION_CONFIG = {"temperature": 0.2, "topP": 0.8, "topK": 40}

SCD_MARKER = "sportscollectorsdigest"

CANDIDATE_KEYS = """{
  "name": "Full event name/title",
  "startDate": "Start date as written",
  "endDate": "End date if multi-day, otherwise same as start date",
  "venueName": "Venue name ONLY (not the address)",
  "address": "Street address ONLY",
  "city": "City ONLY",
  "state": "Two-letter state code ONLY",
  "zipCode": "ZIP code if available",
  "entryFee": "Admission / entry fee text",
  "description": "Event description if available",
  "url": "Link to event details, otherwise the source URL",
  "contactName": "Promoter or contact name",
  "contactPhone": "Contact phone number",
  "contactEmail": "Contact email",
  "showHours": "Hours, e.g. '9am-3pm'"
}"""

T = TypeVar("T")


class ChunkExtraction:
    """Outcome of extracting one chunk: candidates, or the reason there are none."""

    def __init__(
        self,
        candidates: Optional[list[RawCandidate]] = None,
        error: Optional[str] = None,
    ):
        self.candidates = candidates or []
        self.error = error

    @classmethod
    def ok(cls, candidates: list[RawCandidate]) -> "ChunkExtraction":
        return cls(candidates=candidates)

    @classmethod
    def err(cls, reason: str) -> "ChunkExtraction":
        return cls(error=reason)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def __repr__(self) -> str:
        if self.is_ok:
            return f"ChunkExtraction.ok({len(self.candidates)} candidates)"
        return f"ChunkExtraction.err({self.error!r})"


# =============================================================================
# Prompts
# =============================================================================

def build_prompt(chunk: str, source_url: str, today: date) -> str:
    """Generic listing-page prompt."""
    return f"""You extract card show events from web pages. The text below comes from {source_url}.

TODAY = {today.isoformat()}

Return a JSON array. Each event object MUST have these keys (null when unknown):
{CANDIDATE_KEYS}

RULES:
1. ONLY include shows dated on or after {today.isoformat()}. Skip past events.
2. Skip archive sections, comments, reviews and testimonials.
3. If a date is ambiguous, or you can't tell whether it is past or future, skip the show.
4. Remove state codes that appear inside dates ("Aug 2 AL" -> "Aug 2").
5. Separate venue name from street address, and contact name from phone and email.
6. The same venue on different dates is one entry per date.
7. A range like "January 5-6" is one event with a start and end date.
8. ONLY output the JSON array. No explanations, no markdown.

PAGE TEXT:
{chunk}
"""


def build_scd_prompt(chunk: str, today: date) -> str:
    """Sports Collectors Digest calendar: state headings, dates without years."""
    next_year = today.year + 1
    return f"""You extract card show events from the Sports Collectors Digest show calendar.

TODAY = {today.isoformat()}

The calendar is grouped under UPPERCASE state headings (ALABAMA, ARIZONA, ...).
Extract EVERY show listed beneath those headings. Use the heading for "state"
when a listing doesn't name one.

Return a JSON array. Each event object MUST have these keys (null when unknown):
{CANDIDATE_KEYS}

DATES:
- This calendar is current: treat every listed show as upcoming.
- When the year is missing and the month has already passed this year, use {next_year}; otherwise use {today.year}.
- Never assign old years (2001, 2010, ...). Ignore archived sections.
- If a date is still ambiguous, skip the show.

CLEAN-UP:
- Remove state codes that appear inside dates ("Aug 2 AL" -> "Aug 2").
- Separate venue name from address, and contact name from phone and email.
- One bullet or paragraph is one event.

ONLY output the JSON array. No explanations, no markdown.

PAGE TEXT:
{chunk}
"""


def prompt_for(chunk: str, source_url: str, today: date) -> str:
    if SCD_MARKER in source_url:
        return build_scd_prompt(chunk, today)
    return build_prompt(chunk, source_url, today)


# =============================================================================
# Response parsing
# =============================================================================

def parse_candidates(text: Optional[str]) -> list[RawCandidate]:
    """Parse the model's reply into candidates.

    Raises:
        ExtractionError: empty reply, no JSON array, or invalid JSON.
    """
    if not text or not text.strip():
        raise ExtractionError("Empty response")

    text = text.strip()
    if text.startswith("```"):
        text = re.sub(r"```[a-z]*\n?|```", "", text).strip()

    if not text.startswith("["):
        first, last = text.find("["), text.rfind("]")
        if first == -1 or last <= first:
            raise ExtractionError("No JSON array in response")
        text = text[first:last + 1]

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ExtractionError(f"Invalid JSON: {e}") from e

    if not isinstance(data, list):
        raise ExtractionError(f"Expected a JSON array, got {type(data).__name__}")

    candidates = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            continue
        try:
            candidates.append(RawCandidate.model_validate(item))
        except PydanticValidationError as e:
            console.print(f"[yellow]Skipping malformed item {i}: {e.error_count()} field error(s)[/yellow]")
    return candidates


# =============================================================================
# Calls
# =============================================================================

async def retry_on_overload(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int,
    delay: float,
    label: str = "request",
) -> T:
    """Run `operation`, retrying only on OverloadError.

    Gives up after `max_attempts` and re-raises the last OverloadError.
    Any other exception propagates on the first attempt.
    """
    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except OverloadError:
            if attempt >= max_attempts:
                raise
            console.print(
                f"[yellow]{label}: service overloaded, retry {attempt}/{max_attempts - 1} "
                f"in {delay:g}s[/yellow]"
            )
            await asyncio.sleep(delay)
    raise OverloadError(f"{label}: no attempts made")


async def call_gemini(prompt: str, settings: Settings, client: httpx.AsyncClient) -> str:
    """Single generateContent call. Returns the reply text.

    Raises:
        OverloadError: HTTP 503.
        ExtractionError: other HTTP errors, timeouts, replies without text.
    """
    api_key = settings.require_ai_key()
    try:
        response = await client.post(
            GEMINI_URL.format(model=settings.ai_model),
            params={"key": api_key},
            json={
                "contents": [{"parts": [{"text": prompt}]}],
                "generationConfig": GENERATION_CONFIG,
            },
            timeout=settings.ai_timeout,
        )
    except httpx.TimeoutException as e:
        raise ExtractionError(f"Timeout after {settings.ai_timeout:g}s") from e
    except httpx.RequestError as e:
        raise ExtractionError(f"Connection error: {type(e).__name__}") from e

    if response.status_code == 503:
        raise OverloadError("HTTP 503")
    if not response.is_success:
        raise ExtractionError(f"HTTP {response.status_code}")

    try:
        payload = response.json()
        return payload["candidates"][0]["content"]["parts"][0]["text"].strip()
    except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
        raise ExtractionError("No text in response") from e


class AIExtractor:
    """Turns chunks of page text into raw candidates, one AI call per chunk."""

    def __init__(
        self,
        settings: Settings,
        budget: RequestBudget,
        client: httpx.AsyncClient,
        today: Optional[date] = None,
    ):
        self.settings = settings
        self.budget = budget
        self.client = client
        self.today = today

    async def extract_chunk(self, chunk: str, source_url: str, label: str = "chunk") -> ChunkExtraction:
        """Extract one chunk. Never raises for AI-side failures."""
        prompt = prompt_for(chunk, source_url, self.today or date.today())
        try:
            text = await retry_on_overload(
                lambda: call_gemini(prompt, self.settings, self.client),
                max_attempts=self.settings.ai_max_retries,
                delay=self.settings.ai_retry_delay,
                label=label,
            )
            candidates = parse_candidates(text)
        except ExtractionError as e:
            return ChunkExtraction.err(str(e))

        for candidate in candidates:
            candidate.sourceUrl = candidate.sourceUrl or source_url
        return ChunkExtraction.ok(candidates)

    async def extract(self, chunks: list[str], source_url: str) -> list[RawCandidate]:
        """Extract every chunk the run budget allows, in order."""
        candidates: list[RawCandidate] = []

        for i, chunk in enumerate(chunks, start=1):
            if not await self.budget.acquire():
                console.print(
                    f"[yellow]AI request budget spent ({self.budget.limit}); "
                    f"skipping {len(chunks) - i + 1} chunk(s) of {source_url}[/yellow]"
                )
                break

            result = await self.extract_chunk(chunk, source_url, label=f"Chunk {i}/{len(chunks)}")
            if result.is_ok:
                console.print(f"[dim]Chunk {i}/{len(chunks)} => {len(result.candidates)} shows[/dim]")
                candidates.extend(result.candidates)
            else:
                console.print(f"[yellow]Chunk {i}/{len(chunks)} failed: {result.error}[/yellow]")

        return candidates
