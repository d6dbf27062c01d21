"""Persisted records: staging rows, production shows and source scores."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from show_pipeline.models.show import Coordinates, NormalizedShow

DEFAULT_PRIORITY = 50
MIN_PRIORITY = 0
MAX_PRIORITY = 100


class StagingStatus(str, Enum):
    PENDING = "PENDING"
    TRANSFERRED = "TRANSFERRED"


class GeocodedPayload(BaseModel):
    """Geocoding outcome attached to a staging record."""

    coordinates: Coordinates
    geocoded_at: datetime
    formatted_address: Optional[str] = None
    place_id: Optional[str] = None


class StagingRecord(BaseModel):
    """Interim row holding raw + normalized + geocoded data before promotion."""

    id: str
    source_url: str
    raw_payload: dict[str, Any] = Field(default_factory=dict)
    normalized_json: Optional[NormalizedShow] = None  # None until normalized
    geocoded_json: Optional[GeocodedPayload] = None
    status: StagingStatus = StagingStatus.PENDING
    transfer_error: Optional[str] = None  # Last failed promotion attempt
    created_at: datetime
    updated_at: datetime

    class Config:
        extra = "ignore"


class ProductionShowRecord(BaseModel):
    """A show in the live catalog."""

    id: str
    title: str
    description: str = ""
    location: Optional[str] = None  # Venue name, or "city, state"
    address: Optional[str] = None
    start_date: str  # ISO
    end_date: str  # ISO
    entry_fee: Optional[float] = None  # None = unannounced, 0 = free
    coordinates: Optional[Coordinates] = None
    features: dict[str, bool] = Field(default_factory=dict)  # freeAdmission, foodAvailable, autographs
    categories: list[str] = Field(default_factory=list)
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    status: str = "ACTIVE"
    website_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        extra = "ignore"

    @property
    def dedup_key(self) -> tuple[str, str, Optional[str]]:
        return (self.title, self.start_date, self.location)


class SourceScore(BaseModel):
    """Per-URL reliability signal, updated once per processed URL per run."""

    url: str
    state: Optional[str] = None  # Two-letter code the source covers
    enabled: bool = True
    priority_score: int = DEFAULT_PRIORITY
    error_streak: int = 0
    last_success_at: Optional[datetime] = None
    last_error_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        extra = "ignore"
