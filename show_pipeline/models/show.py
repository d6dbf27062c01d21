"""Show listing models: raw candidates and their normalized form."""

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class RawCandidate(BaseModel):
    """A show listing exactly as a source emitted it.

    Field names follow the JSON keys the extraction prompt asks for.
    """

    name: Optional[str] = None
    startDate: Optional[str] = None  # Free text: "Aug 2", "March 5th, 2026"
    endDate: Optional[str] = None
    venueName: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipCode: Optional[str] = None
    entryFee: Optional[str] = None  # "free", "$5", "donation"
    description: Optional[str] = None
    url: Optional[str] = None
    showHours: Optional[str] = None

    # Contact: either split fields or one blob
    contactName: Optional[str] = None
    contactPhone: Optional[str] = None
    contactEmail: Optional[str] = None
    contactInfo: Optional[str] = None

    # Combined "venue, address, city, ST 12345" when fields aren't split
    location: Optional[str] = None

    sourceUrl: Optional[str] = None

    class Config:
        extra = "ignore"  # Models invent extra keys

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_scalar(cls, value: Any) -> Any:
        """Numbers become strings, blanks become None."""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value


class DateInfo(BaseModel):
    """Result of resolving a free-text date."""

    original: Optional[str] = None
    normalized: Optional[str] = None  # "August 2, 2026"
    iso: Optional[str] = None  # "2026-08-02"
    valid: bool = False

    def as_date(self) -> Optional[date]:
        return date.fromisoformat(self.iso) if self.iso else None


class LocationParts(BaseModel):
    """Decomposed location."""

    venue_name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None  # Two-letter code
    zip_code: Optional[str] = None


class ContactInfo(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class EntryFee(BaseModel):
    amount: Optional[float] = None  # None = not announced
    currency: str = "USD"
    description: Optional[str] = None
    original: Optional[str] = None


class ShowHours(BaseModel):
    start_time: Optional[str] = None  # "9:00am"
    end_time: Optional[str] = None  # "3:00pm"


class Coordinates(BaseModel):
    latitude: float
    longitude: float


class NormalizedShow(BaseModel):
    """A candidate in canonical form, ready for validation and staging."""

    name: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None  # Show page, falls back to source URL

    # Dates
    start_date: Optional[str] = None  # ISO
    end_date: Optional[str] = None  # ISO, defaults to start_date
    start_date_display: Optional[str] = None  # "August 2, 2026"
    end_date_display: Optional[str] = None
    start_date_raw: Optional[str] = None  # What the source said

    # Location
    venue_name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    coordinates: Optional[Coordinates] = None

    # Contact
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None

    # Admission
    entry_fee: Optional[str] = None  # Human description
    entry_fee_amount: Optional[float] = None

    # Hours
    show_hours: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    # Provenance
    source_url: Optional[str] = None
    extracted_at: Optional[str] = None
    normalized_at: Optional[str] = None
    original: dict[str, Any] = Field(default_factory=dict)

    class Config:
        extra = "ignore"

    @property
    def start(self) -> Optional[date]:
        return date.fromisoformat(self.start_date) if self.start_date else None

    @property
    def end(self) -> Optional[date]:
        return date.fromisoformat(self.end_date) if self.end_date else None

    @property
    def geocodable(self) -> bool:
        """Worth a geocoding call: has a street address, or both city and state."""
        return bool(self.address or (self.city and self.state))
