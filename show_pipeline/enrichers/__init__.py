"""Enrichers that add data from external services."""

from show_pipeline.enrichers.geocoder import (
    GeocodeResult,
    Geocoder,
    backfill_address,
    geocode_address,
)

__all__ = ["GeocodeResult", "Geocoder", "backfill_address", "geocode_address"]
