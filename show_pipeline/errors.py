"""Exception taxonomy for the ingestion pipeline.

Failures are isolated to the smallest unit of work:
- NetworkError: one URL
- ExtractionError / OverloadError: one chunk
- ValidationError: one candidate
- GeocodingError: never leaves the geocoder
- PersistenceError: one record
- ConfigurationError: the whole run, raised before processing starts
"""

from typing import Optional


class ShowPipelineError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(ShowPipelineError):
    """Missing credentials or unusable settings."""


class NetworkError(ShowPipelineError):
    """Fetch failed: bad status, timeout, transport error or empty page."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"{reason} for {url}")


class ExtractionError(ShowPipelineError):
    """A chunk yielded no usable candidate array."""


class OverloadError(ExtractionError):
    """Extraction service reported it is overloaded (retryable)."""


class ValidationError(ShowPipelineError):
    """A normalized candidate failed validation."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


class GeocodingError(ShowPipelineError):
    """Geocoding call failed. Always handled inside the geocoder."""


class PersistenceError(ShowPipelineError):
    """Staging or production store write failed."""
