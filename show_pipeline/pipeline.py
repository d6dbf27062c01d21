"""Main pipeline orchestration.

Per URL, strictly one after another:
1. Fetch the page
2. Deterministic parser or chunked AI extraction -> raw candidates
3. Normalize, validate, geocode (budgeted)
4. Stage as PENDING
5. Update the source score

Promotion to production is a separate step (see promoters.transfer).
"""

import asyncio
from datetime import date
from pathlib import Path
from typing import Optional

import httpx
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from show_pipeline.config import Settings
from show_pipeline.enrichers import Geocoder
from show_pipeline.errors import NetworkError, PersistenceError
from show_pipeline.extractors import (
    AIExtractor,
    AISource,
    CsvSource,
    fetch_document,
    needs_ai,
    select_source,
)
from show_pipeline.models import GeocodedPayload, RawCandidate, StagingRecord
from show_pipeline.normalizers import normalize
from show_pipeline.ratelimit import RequestBudget
from show_pipeline.scoring import SourceScorer
from show_pipeline.stores import StagingStore
from show_pipeline.validators import ValidationResult, validate_show

console = Console()


class UrlResult:
    """Outcome of processing one source."""

    def __init__(self, url: str):
        self.url = url
        self.success = False
        self.candidates = 0
        self.staged = 0
        self.invalid = 0
        self.warned = 0
        self.geocoded = 0
        self.stage_errors = 0
        self.error: Optional[str] = None


class RunSummary:
    """Counts for a whole run."""

    def __init__(self):
        self.results: list[UrlResult] = []
        self.ai_requests = 0
        self.geocode_requests = 0
        self.geocode_skipped = 0

    def _sum(self, attr: str) -> int:
        return sum(getattr(r, attr) for r in self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def candidates(self) -> int:
        return self._sum("candidates")

    @property
    def staged(self) -> int:
        return self._sum("staged")

    @property
    def invalid(self) -> int:
        return self._sum("invalid")

    @property
    def warned(self) -> int:
        return self._sum("warned")

    @property
    def geocoded(self) -> int:
        return self._sum("geocoded")

    @property
    def stage_errors(self) -> int:
        return self._sum("stage_errors")


class ScrapePipeline:
    """One run: shared HTTP client, shared AI and geocoding budgets."""

    def __init__(
        self,
        settings: Settings,
        staging: StagingStore,
        client: httpx.AsyncClient,
        scorer: Optional[SourceScorer] = None,
        geocode: bool = True,
        dry_run: bool = False,
        today: Optional[date] = None,
    ):
        self.settings = settings
        self.staging = staging
        self.client = client
        self.scorer = scorer
        self.dry_run = dry_run
        self.today = today

        self.ai_budget = RequestBudget("AI", settings.max_ai_requests, settings.ai_request_delay)
        self.geocode_budget = RequestBudget(
            "geocoding", settings.max_geocode_requests, settings.geocode_request_delay
        )
        self.geocoder = Geocoder(settings, client, self.geocode_budget) if geocode else None

        self.ai_source: Optional[AISource] = None
        if settings.google_ai_key:
            extractor = AIExtractor(settings, self.ai_budget, client, today=today)
            self.ai_source = AISource(extractor, settings)

    def check_configuration(self, urls: list[str]) -> None:
        """Fail before any work if a URL needs AI extraction and there's no key.

        Raises:
            ConfigurationError
        """
        if any(needs_ai(url) for url in urls):
            self.settings.require_ai_key()
        if self.geocoder is not None and not self.geocoder.enabled:
            console.print("[yellow]GOOGLE_MAPS_API_KEY not set - geocoding disabled[/yellow]")

    async def process_candidate(self, raw: RawCandidate, source_url: str, result: UrlResult) -> None:
        show = normalize(raw, source_url=source_url, today=self.today)
        validation = validate_show(show, today=self.today)

        if not validation.is_valid:
            result.invalid += 1
            console.print(f"[dim]Rejected {show.name or '(unnamed)'}: {'; '.join(validation.errors)}[/dim]")
            return
        if validation.has_warnings:
            result.warned += 1
            console.print(f"[dim]Warning {show.name}: {'; '.join(validation.warnings)}[/dim]")

        geocoded: Optional[GeocodedPayload] = None
        if self.geocoder is not None:
            geocoded = await self.geocoder.geocode_show(show)
            if geocoded is not None:
                result.geocoded += 1

        if self.dry_run:
            result.staged += 1
            return

        try:
            self.staging.insert(
                source_url=source_url,
                raw_payload=raw.model_dump(exclude_none=True),
                normalized=show,
                geocoded=geocoded,
            )
            result.staged += 1
        except PersistenceError as e:
            result.stage_errors += 1
            console.print(f"[red]Error staging {show.name}: {e}[/red]")

    async def process_candidates(self, candidates: list[RawCandidate], source_url: str, result: UrlResult) -> None:
        result.candidates = len(candidates)
        for raw in candidates:
            await self.process_candidate(raw, source_url, result)

    async def process_url(self, url: str) -> UrlResult:
        """Fetch, extract and stage one URL. Never raises for URL-level failures."""
        result = UrlResult(url)
        console.print(f"\n[bold cyan]Processing {url}[/bold cyan]")

        try:
            html = await fetch_document(url, self.settings, self.client)
            source = select_source(url, self.ai_source, today=self.today)
            candidates = await source.extract(html, url)
        except NetworkError as e:
            result.error = str(e)
            console.print(f"[red]Error processing {url}: {e}[/red]")
            if self.scorer is not None:
                self.scorer.record_failure(url)
            return result

        await self.process_candidates(candidates, url, result)
        result.success = True
        console.print(
            f"[green]{url}: {result.staged} staged[/green] "
            f"[dim]({result.candidates} found, {result.invalid} invalid, {result.warned} warned)[/dim]"
        )
        if self.scorer is not None:
            self.scorer.record_success(url, result.staged)
        return result

    def _finish(self, summary: RunSummary) -> RunSummary:
        summary.ai_requests = self.ai_budget.used
        summary.geocode_requests = self.geocode_budget.used
        summary.geocode_skipped = self.geocoder.skipped if self.geocoder else 0
        return summary

    async def run(self, urls: list[str]) -> RunSummary:
        """Process URLs sequentially with a fixed pause between them."""
        self.check_configuration(urls)
        summary = RunSummary()

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Scraping...", total=len(urls))
            for i, url in enumerate(urls):
                if i > 0 and self.settings.url_delay > 0:
                    await asyncio.sleep(self.settings.url_delay)
                progress.update(task, description=f"[{i + 1}/{len(urls)}] {url[:60]}")
                summary.results.append(await self.process_url(url))
                progress.advance(task)

        return self._finish(summary)

    async def run_csv(self, path: Path) -> tuple[RunSummary, CsvSource]:
        """Stage the rows of a CSV export. CSV files are not source-scored.

        Raises:
            ExtractionError: the file lacks required columns.
        """
        source = CsvSource(today=self.today)
        source_url = f"csv://{path.name}"
        summary = RunSummary()
        result = UrlResult(source_url)

        candidates = await source.extract(path.read_text(encoding="utf-8-sig"), source_url)
        await self.process_candidates(candidates, source_url, result)
        result.success = True
        summary.results.append(result)
        return self._finish(summary), source


async def run_scrape(
    urls: list[str],
    settings: Settings,
    staging: StagingStore,
    scorer: Optional[SourceScorer] = None,
    geocode: bool = True,
    dry_run: bool = False,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> RunSummary:
    """Run the scrape pipeline over `urls` with a fresh client and budgets."""
    async with httpx.AsyncClient(follow_redirects=True, transport=transport) as client:
        pipeline = ScrapePipeline(
            settings, staging, client, scorer=scorer, geocode=geocode, dry_run=dry_run
        )
        return await pipeline.run(urls)


async def import_csv(
    path: Path,
    settings: Settings,
    staging: StagingStore,
    geocode: bool = True,
    dry_run: bool = False,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> tuple[RunSummary, CsvSource]:
    async with httpx.AsyncClient(follow_redirects=True, transport=transport) as client:
        pipeline = ScrapePipeline(settings, staging, client, geocode=geocode, dry_run=dry_run)
        return await pipeline.run_csv(path)


async def renormalize_record(
    record_id: str,
    settings: Settings,
    staging: StagingStore,
    geocode: bool = True,
    today: Optional[date] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> tuple[StagingRecord, ValidationResult]:
    """Re-run normalization (and optionally geocoding) on a staged record.

    Raises:
        KeyError: unknown record id.
        PersistenceError: the update could not be written.
    """
    record = staging.get(record_id)
    if record is None:
        raise KeyError(f"No staging record {record_id}")

    raw = RawCandidate.model_validate(record.raw_payload)
    extracted_at = record.created_at
    show = normalize(raw, source_url=record.source_url, today=today, extracted_at=extracted_at)
    validation = validate_show(show, today=today)

    geocoded: Optional[GeocodedPayload] = None
    if geocode and settings.geocoding_enabled:
        budget = RequestBudget("geocoding", 1)
        async with httpx.AsyncClient(follow_redirects=True, transport=transport) as client:
            geocoded = await Geocoder(settings, client, budget).geocode_show(show)
    if geocoded is None and record.geocoded_json is not None:
        show.coordinates = record.geocoded_json.coordinates

    updated = staging.update_normalized(record_id, show, geocoded)
    return updated, validation


# =============================================================================
# Reporting
# =============================================================================

def print_run_summary(summary: RunSummary) -> None:
    """Per-URL table plus totals."""
    table = Table(title=f"Scrape Summary ({len(summary.results)} sources)")
    table.add_column("Source", style="cyan", max_width=50)
    table.add_column("Status")
    table.add_column("Found", justify="right")
    table.add_column("Staged", style="green", justify="right")
    table.add_column("Invalid", style="red", justify="right")
    table.add_column("Warned", style="yellow", justify="right")
    table.add_column("Geocoded", style="blue", justify="right")

    for r in summary.results:
        status = "[green]ok[/green]" if r.success else f"[red]{r.error or 'failed'}[/red]"
        table.add_row(
            r.url[:50], status, str(r.candidates), str(r.staged),
            str(r.invalid), str(r.warned), str(r.geocoded),
        )

    console.print(table)
    console.print(
        f"[bold]Totals:[/bold] {summary.succeeded} ok, {summary.failed} failed, "
        f"{summary.staged} staged, {summary.invalid} invalid, {summary.warned} warned, "
        f"{summary.stage_errors} staging errors"
    )
    console.print(
        f"[dim]AI requests: {summary.ai_requests}, geocoding requests: {summary.geocode_requests}"
        f" (skipped over budget: {summary.geocode_skipped})[/dim]"
    )


def print_validation(result: ValidationResult) -> None:
    if result.is_valid and not result.has_warnings:
        console.print("[green]Valid[/green]")
    for error in result.errors:
        console.print(f"[red]  error: {error}[/red]")
    for warning in result.warnings:
        console.print(f"[yellow]  warning: {warning}[/yellow]")
