"""CLI for the card show pipeline."""

import asyncio
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from show_pipeline.config import Settings
from show_pipeline.errors import ConfigurationError, ExtractionError, PersistenceError
from show_pipeline.pipeline import (
    import_csv as run_csv_import,
    print_run_summary,
    print_validation,
    renormalize_record,
    run_scrape,
)
from show_pipeline.promoters import Promoter, print_transfer_summary
from show_pipeline.scoring import SourceScorer
from show_pipeline.stores import ProductionStore, SourceScoreStore, StagingStore

# Load environment variables (override=True to beat shell env vars)
load_dotenv(override=True)

app = typer.Typer(
    name="show-pipeline",
    help="Card show listing ingestion pipeline",
    add_completion=False,
)
sources_app = typer.Typer(help="Manage scraping sources and their scores")
app.add_typer(sources_app, name="sources")
console = Console()


def load_settings(data_dir: Optional[Path] = None) -> Settings:
    overrides = {"data_dir": data_dir} if data_dir else {}
    return Settings.from_env(**overrides)


def open_store(store_cls, settings: Settings):
    try:
        return store_cls(settings.data_dir)
    except PersistenceError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def scrape(
    urls: Optional[List[str]] = typer.Option(None, "--url", "-u", help="Source URL (repeatable)"),
    from_sources: bool = typer.Option(False, "--from-sources", help="Pick sources from the score table"),
    state: Optional[str] = typer.Option(None, "--state", "-s", help="Only sources for this state (implies --from-sources)"),
    limit: int = typer.Option(0, "--limit", "-l", help="Max sources (0 = batch size from settings)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Normalize and validate without staging"),
    geocode: bool = typer.Option(True, "--geocode/--no-geocode", help="Geocode staged shows"),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", help="Store directory"),
):
    """Scrape show listings and stage them as PENDING."""
    settings = load_settings(data_dir)
    staging = open_store(StagingStore, settings)
    scores = open_store(SourceScoreStore, settings)

    targets = list(urls or [])
    if from_sources or state:
        batch = scores.select_batch(state=state, limit=limit or settings.source_batch_size)
        targets.extend(s.url for s in batch if s.url not in targets)
    elif limit > 0:
        targets = targets[:limit]

    if not targets:
        console.print("[yellow]No URLs to scrape. Use --url or add sources with 'sources add'.[/yellow]")
        raise typer.Exit(0)

    try:
        summary = asyncio.run(run_scrape(
            targets,
            settings,
            staging,
            scorer=None if dry_run else SourceScorer(scores),
            geocode=geocode,
            dry_run=dry_run,
        ))
    except ConfigurationError as e:
        console.print(f"[red]Error: {e}[/red]")
        console.print("[dim]Set GOOGLE_AI_KEY in .env (GOOGLE_MAPS_API_KEY enables geocoding)[/dim]")
        raise typer.Exit(1)

    print_run_summary(summary)
    if dry_run:
        console.print("[yellow]Dry run: nothing was staged[/yellow]")


@app.command()
def transfer(
    source_url: Optional[str] = typer.Option(None, "--source-url", help="Only records whose source URL contains this"),
    start_date: Optional[datetime] = typer.Option(
        None, "--start-date", formats=["%Y-%m-%d"], help="Only shows starting on/after this date"
    ),
    end_date: Optional[datetime] = typer.Option(
        None, "--end-date", formats=["%Y-%m-%d"], help="Only records staged on/before this date"
    ),
    limit: int = typer.Option(100, "--limit", "-l", help="Max records to transfer"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be transferred"),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", help="Store directory"),
):
    """Promote PENDING staged shows into the production catalog."""
    settings = load_settings(data_dir)
    promoter = Promoter(open_store(StagingStore, settings), open_store(ProductionStore, settings))

    summary = promoter.run(
        source_url=source_url,
        start_on_or_after=start_date.date() if start_date else None,
        created_on_or_before=end_date.date() if end_date else None,
        limit=limit or None,
        dry_run=dry_run,
    )
    print_transfer_summary(summary)
    if summary.failed:
        raise typer.Exit(1)


@app.command()
def inspect(
    record_id: str = typer.Argument(..., help="Staging record id"),
    geocode: bool = typer.Option(True, "--geocode/--no-geocode", help="Geocode again"),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", help="Store directory"),
):
    """Re-normalize a staged record and show the result."""
    settings = load_settings(data_dir)
    staging = open_store(StagingStore, settings)

    try:
        record, validation = asyncio.run(renormalize_record(record_id, settings, staging, geocode=geocode))
    except KeyError:
        console.print(f"[red]No staging record {record_id}[/red]")
        raise typer.Exit(1)
    except PersistenceError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    show = record.normalized_json
    table = Table(title=f"Record {record.id} ({record.status.value})")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    for field, value in show.model_dump(exclude={"original"}).items():
        if value is not None:
            table.add_row(field, str(value))
    console.print(table)
    print_validation(validation)


@app.command("import-csv")
def import_csv(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV file"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Validate rows without staging"),
    geocode: bool = typer.Option(True, "--geocode/--no-geocode", help="Geocode staged shows"),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", help="Store directory"),
):
    """Stage shows from a CSV export."""
    settings = load_settings(data_dir)
    staging = open_store(StagingStore, settings)

    try:
        summary, source = asyncio.run(run_csv_import(path, settings, staging, geocode=geocode, dry_run=dry_run))
    except ExtractionError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    print_run_summary(summary)
    if source.rejected:
        console.print(f"[yellow]{len(source.rejected)} rows rejected[/yellow]")


@app.command()
def stats(
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", help="Store directory"),
):
    """Show staging and production counts."""
    settings = load_settings(data_dir)
    staging = open_store(StagingStore, settings)
    production = open_store(ProductionStore, settings)

    table = Table(title="Store Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green", justify="right")
    for metric, count in staging.stats().items():
        table.add_row(f"Staging {metric.replace('_', ' ')}", str(count))
    table.add_row("Production shows", str(len(production)))
    console.print(table)


@sources_app.callback(invoke_without_command=True)
def sources_list(
    ctx: typer.Context,
    state: Optional[str] = typer.Option(None, "--state", "-s", help="Filter by state"),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", help="Store directory"),
):
    """List sources by priority."""
    if ctx.invoked_subcommand is not None:
        return
    settings = load_settings(data_dir)
    scores = open_store(SourceScoreStore, settings)

    rows = scores.select_batch(state=state, limit=len(scores)) if state else sorted(
        scores.all(), key=lambda s: -s.priority_score
    )
    table = Table(title=f"Sources ({len(rows)})")
    table.add_column("URL", style="cyan", max_width=60)
    table.add_column("State")
    table.add_column("Priority", style="green", justify="right")
    table.add_column("Errors", style="red", justify="right")
    table.add_column("Last success", style="dim")
    table.add_column("Enabled")
    for s in rows:
        table.add_row(
            s.url,
            s.state or "-",
            str(s.priority_score),
            str(s.error_streak),
            s.last_success_at.strftime("%Y-%m-%d %H:%M") if s.last_success_at else "never",
            "yes" if s.enabled else "[red]no[/red]",
        )
    console.print(table)


@sources_app.command("add")
def sources_add(
    url: str = typer.Argument(..., help="Source URL"),
    state: Optional[str] = typer.Option(None, "--state", "-s", help="Two-letter state code"),
    notes: Optional[str] = typer.Option(None, "--notes", help="Free-text notes"),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", help="Store directory"),
):
    """Register a source URL."""
    scores = open_store(SourceScoreStore, load_settings(data_dir))
    _, created = scores.add(url, state=state, notes=notes)
    if created:
        console.print(f"[green]Added {url}[/green]")
    else:
        console.print(f"[yellow]{url} already registered[/yellow]")


def _set_enabled(url: str, enabled: bool, data_dir: Optional[Path]) -> None:
    scores = open_store(SourceScoreStore, load_settings(data_dir))
    try:
        scores.set_enabled(url, enabled)
    except KeyError:
        console.print(f"[red]Unknown source {url}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]{'Enabled' if enabled else 'Disabled'} {url}[/green]")


@sources_app.command("enable")
def sources_enable(
    url: str = typer.Argument(..., help="Source URL"),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", help="Store directory"),
):
    """Enable a source."""
    _set_enabled(url, True, data_dir)


@sources_app.command("disable")
def sources_disable(
    url: str = typer.Argument(..., help="Source URL"),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", help="Store directory"),
):
    """Disable a source."""
    _set_enabled(url, False, data_dir)


if __name__ == "__main__":
    app()
