"""Pipeline settings.

Defaults are tuned for the free tiers of the extraction and geocoding APIs.
Credentials and a few knobs can be overridden from the environment (.env is
loaded by the CLI).
"""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from show_pipeline.errors import ConfigurationError

DEFAULT_DATA_DIR = Path(__file__).parent.parent / ".cache"

# Desktop Chrome - some show listing sites refuse obvious bots
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


class Settings(BaseModel):
    """Timeouts, budgets and credentials for one pipeline run."""

    # Credentials
    google_ai_key: Optional[str] = None
    google_maps_api_key: Optional[str] = None
    ai_model: str = "gemini-1.5-flash"

    # Fetch
    fetch_timeout: float = 25.0  # seconds
    min_document_length: int = 100  # smaller bodies count as empty pages
    user_agent: str = USER_AGENT

    # Chunking
    max_chunk_size: int = 8000
    max_chunks: int = 5

    # AI extraction
    ai_timeout: float = 10.0
    ai_request_delay: float = 2.0  # between extraction calls
    max_ai_requests: int = 10  # per run, across all URLs
    ai_max_retries: int = 3  # attempts on overload
    ai_retry_delay: float = 5.0

    # Geocoding
    geocode_timeout: float = 5.0
    geocode_request_delay: float = 1.0
    max_geocode_requests: int = 20  # per run

    # Run loop
    url_delay: float = 2.0  # between URLs
    source_batch_size: int = 7

    # Storage
    data_dir: Path = DEFAULT_DATA_DIR

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        """Build settings from environment variables plus explicit overrides."""
        values: dict = {
            "google_ai_key": os.environ.get("GOOGLE_AI_KEY") or None,
            "google_maps_api_key": os.environ.get("GOOGLE_MAPS_API_KEY") or None,
        }
        if os.environ.get("SHOW_PIPELINE_DATA_DIR"):
            values["data_dir"] = Path(os.environ["SHOW_PIPELINE_DATA_DIR"])
        if os.environ.get("SHOW_PIPELINE_AI_MODEL"):
            values["ai_model"] = os.environ["SHOW_PIPELINE_AI_MODEL"]
        if os.environ.get("SHOW_PIPELINE_MAX_AI_REQUESTS"):
            values["max_ai_requests"] = os.environ["SHOW_PIPELINE_MAX_AI_REQUESTS"]
        if os.environ.get("SHOW_PIPELINE_MAX_GEOCODE_REQUESTS"):
            values["max_geocode_requests"] = os.environ["SHOW_PIPELINE_MAX_GEOCODE_REQUESTS"]
        values.update(overrides)
        return cls.model_validate(values)

    def require_ai_key(self) -> str:
        """Return the extraction API key or fail the run before it starts."""
        if not self.google_ai_key:
            raise ConfigurationError("GOOGLE_AI_KEY environment variable not set")
        return self.google_ai_key

    @property
    def geocoding_enabled(self) -> bool:
        return bool(self.google_maps_api_key)
