"""Candidate sources: one interface over the different extraction strategies.

Downstream code (normalize, validate, geocode, stage) only ever sees
RawCandidates, whichever source produced them.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Callable, Optional

from bs4 import BeautifulSoup
from rich.console import Console

from show_pipeline.config import Settings
from show_pipeline.extractors import dpms
from show_pipeline.extractors.chunker import chunk_document
from show_pipeline.extractors.csv_rows import CsvRowError, parse_csv
from show_pipeline.extractors.llm import AIExtractor
from show_pipeline.models import RawCandidate

console = Console()

ParserFn = Callable[[str, str, Optional[date]], list[RawCandidate]]

# URL marker -> rule-based parser for that page template
DETERMINISTIC_PARSERS: dict[str, ParserFn] = {
    dpms.URL_MARKER: dpms.parse_dpms_indiana,
}


class CandidateSource(ABC):
    """Turns one document into raw candidates."""

    name: str = "source"
    uses_ai: bool = False

    @abstractmethod
    async def extract(self, document: str, source_url: str) -> list[RawCandidate]:
        ...


class DeterministicSource(CandidateSource):
    """Rule-based parser for a known page template. No AI calls."""

    name = "deterministic"

    def __init__(self, parser: ParserFn, today: Optional[date] = None):
        self.parser = parser
        self.today = today

    async def extract(self, document: str, source_url: str) -> list[RawCandidate]:
        return self.parser(document, source_url, self.today)


def html_to_text(html: str) -> str:
    """Visible page text, one block per line."""
    soup = BeautifulSoup(html, "lxml")
    for tag in soup(["script", "style", "noscript", "svg"]):
        tag.decompose()
    return soup.get_text(separator="\n", strip=True)


class AISource(CandidateSource):
    """Chunk the page text and send each chunk to the AI extractor."""

    name = "ai"
    uses_ai = True

    def __init__(self, extractor: AIExtractor, settings: Settings):
        self.extractor = extractor
        self.settings = settings

    async def extract(self, document: str, source_url: str) -> list[RawCandidate]:
        text = html_to_text(document)
        chunks = chunk_document(text, self.settings.max_chunk_size, self.settings.max_chunks)
        console.print(f"[dim]{source_url}: {len(text):,} chars of text, {len(chunks)} chunk(s)[/dim]")
        return await self.extractor.extract(chunks, source_url)


class CsvSource(CandidateSource):
    """Rows of a CSV export. Rejected rows are kept for reporting."""

    name = "csv"

    def __init__(self, today: Optional[date] = None):
        self.today = today
        self.rejected: list[CsvRowError] = []

    async def extract(self, document: str, source_url: str) -> list[RawCandidate]:
        candidates, rejected = parse_csv(document, source_url, today=self.today)
        self.rejected.extend(rejected)
        for row_error in rejected:
            console.print(f"[yellow]{row_error}[/yellow]")
        return candidates


def deterministic_parser_for(url: str) -> Optional[ParserFn]:
    for marker, parser in DETERMINISTIC_PARSERS.items():
        if marker in url:
            return parser
    return None


def needs_ai(url: str) -> bool:
    return deterministic_parser_for(url) is None


def select_source(url: str, ai_source: Optional[AISource], today: Optional[date] = None) -> CandidateSource:
    """Deterministic parser when one matches the URL, otherwise AI extraction."""
    parser = deterministic_parser_for(url)
    if parser is not None:
        return DeterministicSource(parser, today=today)
    if ai_source is None:
        raise ValueError(f"No deterministic parser for {url} and AI extraction is unavailable")
    return ai_source
