"""Geocode show addresses with the Google Geocoding API.

Soft by design: any failure means "no coordinates", never an exception to
the caller. Calls are capped and spaced per run by a RequestBudget.
"""

import re
from datetime import datetime, timezone
from typing import Optional

import httpx
from pydantic import BaseModel, ValidationError
from rich.console import Console

from show_pipeline.config import Settings
from show_pipeline.errors import GeocodingError
from show_pipeline.models import Coordinates, GeocodedPayload, NormalizedShow
from show_pipeline.ratelimit import RequestBudget

console = Console()

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
STATE_ZIP_RE = re.compile(r"^(?P<state>[A-Z]{2})(?:\s+(?P<zip>\d{5}(?:-\d{4})?))?$")


class GeocodeResult(BaseModel):
    latitude: float
    longitude: float
    formatted_address: Optional[str] = None
    place_id: Optional[str] = None


def build_query(address: Optional[str], city: Optional[str], state: Optional[str]) -> str:
    return ", ".join(part.strip() for part in (address, city, state) if part and part.strip())


async def _request(query: str, settings: Settings, client: httpx.AsyncClient) -> GeocodeResult:
    try:
        response = await client.get(
            GEOCODE_URL,
            params={"address": query, "key": settings.google_maps_api_key},
            timeout=settings.geocode_timeout,
        )
    except httpx.TimeoutException as e:
        raise GeocodingError(f"Timeout after {settings.geocode_timeout:g}s") from e
    except httpx.RequestError as e:
        raise GeocodingError(f"Connection error: {type(e).__name__}") from e

    if not response.is_success:
        raise GeocodingError(f"HTTP {response.status_code}")

    try:
        data = response.json()
    except ValueError as e:
        raise GeocodingError("Response is not JSON") from e
    if not isinstance(data, dict):
        raise GeocodingError(f"Unexpected response: {type(data).__name__}")

    status = data.get("status")
    results = data.get("results") or []
    if status != "OK" or not results:
        raise GeocodingError(f"Status {status}")

    top = results[0]
    try:
        location = top["geometry"]["location"]
        return GeocodeResult(
            latitude=location["lat"],
            longitude=location["lng"],
            formatted_address=top.get("formatted_address"),
            place_id=top.get("place_id"),
        )
    except (KeyError, TypeError, ValidationError) as e:
        raise GeocodingError("Result has no usable geometry") from e


async def geocode_address(
    address: Optional[str],
    city: Optional[str],
    state: Optional[str],
    settings: Settings,
    client: httpx.AsyncClient,
) -> Optional[GeocodeResult]:
    """Resolve an address to coordinates, or None."""
    query = build_query(address, city, state)
    if not query or not settings.geocoding_enabled:
        return None

    try:
        return await _request(query, settings, client)
    except GeocodingError as e:
        console.print(f"[yellow]Geocoding failed for {query!r}: {e}[/yellow]")
        return None


def backfill_address(show: NormalizedShow, formatted_address: Optional[str]) -> None:
    """Fill missing street/city/state/zip from '123 Main St, Springfield, IL 62701, USA'."""
    if not formatted_address:
        return
    parts = [p.strip() for p in formatted_address.split(",")]
    if len(parts) < 3:
        return

    state_zip = STATE_ZIP_RE.match(parts[-2])
    if state_zip:
        if not show.state:
            show.state = state_zip.group("state")
        if not show.zip_code and state_zip.group("zip"):
            show.zip_code = state_zip.group("zip")

    if not show.city:
        show.city = parts[-3]
    if not show.address and len(parts) >= 4:
        show.address = parts[0]


class Geocoder:
    """Geocodes shows under the run's geocoding budget."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient, budget: RequestBudget):
        self.settings = settings
        self.client = client
        self.budget = budget
        self.skipped = 0
        self._warned_budget = False

    @property
    def enabled(self) -> bool:
        return self.settings.geocoding_enabled

    async def geocode_show(self, show: NormalizedShow) -> Optional[GeocodedPayload]:
        """Attach coordinates to `show` (in place) and backfill address parts.

        Returns the payload to stage, or None when the show wasn't geocoded.
        """
        if not self.enabled or not show.geocodable:
            return None

        if not await self.budget.acquire():
            self.skipped += 1
            if not self._warned_budget:
                console.print(
                    f"[yellow]Geocoding budget spent ({self.budget.limit}); "
                    f"remaining shows are staged without coordinates[/yellow]"
                )
                self._warned_budget = True
            return None

        result = await geocode_address(show.address, show.city, show.state, self.settings, self.client)
        if result is None:
            return None

        show.coordinates = Coordinates(latitude=result.latitude, longitude=result.longitude)
        backfill_address(show, result.formatted_address)
        return GeocodedPayload(
            coordinates=show.coordinates,
            geocoded_at=datetime.now(timezone.utc),
            formatted_address=result.formatted_address,
            place_id=result.place_id,
        )
