"""Data models for the show pipeline."""

from show_pipeline.models.show import (
    RawCandidate,
    DateInfo,
    LocationParts,
    ContactInfo,
    EntryFee,
    ShowHours,
    Coordinates,
    NormalizedShow,
)
from show_pipeline.models.records import (
    StagingStatus,
    GeocodedPayload,
    StagingRecord,
    ProductionShowRecord,
    SourceScore,
    DEFAULT_PRIORITY,
    MIN_PRIORITY,
    MAX_PRIORITY,
)

__all__ = [
    "RawCandidate",
    "DateInfo",
    "LocationParts",
    "ContactInfo",
    "EntryFee",
    "ShowHours",
    "Coordinates",
    "NormalizedShow",
    "StagingStatus",
    "GeocodedPayload",
    "StagingRecord",
    "ProductionShowRecord",
    "SourceScore",
    "DEFAULT_PRIORITY",
    "MIN_PRIORITY",
    "MAX_PRIORITY",
]
