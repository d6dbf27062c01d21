"""Page -> raw show candidates.

1. Fetch the page
2. Pick a strategy for the URL:
   - Deterministic parser for known page templates (no AI calls)
   - Otherwise chunk the page text and run AI extraction per chunk
3. CSV exports go through the same interface as a third source
"""

from show_pipeline.extractors.fetch import fetch_document
from show_pipeline.extractors.chunker import chunk_document
from show_pipeline.extractors.dpms import parse_dpms_indiana
from show_pipeline.extractors.llm import AIExtractor, ChunkExtraction, parse_candidates, retry_on_overload
from show_pipeline.extractors.csv_rows import CsvRowError, parse_csv
from show_pipeline.extractors.sources import (
    CandidateSource,
    DeterministicSource,
    AISource,
    CsvSource,
    needs_ai,
    select_source,
)

__all__ = [
    "fetch_document",
    "chunk_document",
    "parse_dpms_indiana",
    "AIExtractor",
    "ChunkExtraction",
    "parse_candidates",
    "retry_on_overload",
    "CsvRowError",
    "parse_csv",
    "CandidateSource",
    "DeterministicSource",
    "AISource",
    "CsvSource",
    "needs_ai",
    "select_source",
]
