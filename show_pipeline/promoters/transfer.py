"""Promote staged shows into the production catalog.

Idempotent: only PENDING records are selected, each one is upserted on
(title, start_date, venue), and the staging record is then flipped to
TRANSFERRED. A failed production write leaves the record PENDING so the next
run picks it up again.
"""

import re
from datetime import date
from typing import Any, Optional

from rich.console import Console
from rich.table import Table

from show_pipeline.errors import PersistenceError
from show_pipeline.models import Coordinates, StagingRecord
from show_pipeline.stores import ProductionStore, StagingStore

console = Console()

UNNAMED_TITLE = "Unnamed Card Show"
ZIP_RE = re.compile(r"\b\d{5}(?:-\d{4})?\b")

FEATURE_PATTERNS = {
    "freeAdmission": re.compile(r"free admission|no admission|no entry fee", re.IGNORECASE),
    "foodAvailable": re.compile(r"food|refreshment|concession", re.IGNORECASE),
    "autographs": re.compile(r"autograph|signing", re.IGNORECASE),
}


def detect_features(description: Optional[str]) -> dict[str, bool]:
    if not description:
        return {}
    return {name: True for name, pattern in FEATURE_PATTERNS.items() if pattern.search(description)}


def record_coordinates(record: StagingRecord) -> Optional[Coordinates]:
    if record.geocoded_json is not None:
        return record.geocoded_json.coordinates
    if record.normalized_json is not None:
        return record.normalized_json.coordinates
    return None


def map_to_show_schema(record: StagingRecord) -> dict[str, Any]:
    """Staging record -> production show fields (without id/timestamps)."""
    show = record.normalized_json
    if show is None:
        raise ValueError(f"Staging record {record.id} has no normalized data")

    location = show.venue_name
    if not location and show.city:
        location = f"{show.city}, {show.state}" if show.state else show.city

    address = show.address or ""
    if show.zip_code and not ZIP_RE.search(address):
        address = f"{address} {show.zip_code}".strip()

    coordinates = record_coordinates(record)

    return {
        "title": show.name or UNNAMED_TITLE,
        "description": show.description or "",
        "location": location or None,
        "address": address or None,
        "start_date": show.start_date,
        "end_date": show.end_date or show.start_date,
        "entry_fee": show.entry_fee_amount,  # None when unannounced
        "coordinates": coordinates.model_dump() if coordinates else None,
        "features": detect_features(show.description),
        "categories": [],
        "start_time": show.start_time,
        "end_time": show.end_time,
        "status": "ACTIVE",
        "website_url": show.url or record.source_url,
    }


class TransferSummary:
    """Counts for one promotion run."""

    def __init__(self):
        self.total = 0
        self.inserted = 0
        self.updated = 0
        self.skipped = 0
        self.failed = 0
        self.dry_run = 0
        self.errors: list[tuple[str, str]] = []  # (record id, message)

    @property
    def transferred(self) -> int:
        return self.inserted + self.updated

    def as_dict(self) -> dict:
        return {
            "total": self.total,
            "transferred": self.transferred,
            "inserted": self.inserted,
            "updated": self.updated,
            "skipped": self.skipped,
            "failed": self.failed,
            "dry_run": self.dry_run,
        }


class Promoter:
    """Moves PENDING staging records into the production store."""

    def __init__(self, staging: StagingStore, production: ProductionStore):
        self.staging = staging
        self.production = production

    def upsert(self, fields: dict[str, Any]) -> str:
        """Insert or update by dedup key. Returns 'inserted' or 'updated'."""
        existing = self.production.find_by_key(fields["title"], fields["start_date"], fields["location"])
        if existing is not None:
            # An ungeocoded re-scrape keeps the coordinates already on the row
            if fields.get("coordinates") is None:
                fields = {k: v for k, v in fields.items() if k != "coordinates"}
            self.production.update(existing.id, fields)
            return "updated"

        coordinates = fields.get("coordinates")
        if coordinates:
            self.production.insert_with_coordinates(
                {k: v for k, v in fields.items() if k != "coordinates"},
                Coordinates.model_validate(coordinates),
            )
        else:
            self.production.insert(fields)
        return "inserted"

    def promote(self, record: StagingRecord, summary: TransferSummary, dry_run: bool = False) -> None:
        show = record.normalized_json
        if show is None or not show.start_date:
            console.print(f"[dim]Skipping {record.id}: no start date[/dim]")
            summary.skipped += 1
            return

        fields = map_to_show_schema(record)
        if dry_run:
            console.print(f"[dim]Would transfer {fields['title']} ({fields['start_date']})[/dim]")
            summary.dry_run += 1
            return

        try:
            outcome = self.upsert(fields)
        except PersistenceError as e:
            console.print(f"[red]Error transferring {record.id}: {e}[/red]")
            summary.failed += 1
            summary.errors.append((record.id, str(e)))
            try:
                self.staging.record_transfer_error(record.id, str(e))
            except PersistenceError as inner:
                console.print(f"[red]Could not record transfer error for {record.id}: {inner}[/red]")
            return

        try:
            self.staging.mark_transferred(record.id)
        except PersistenceError as e:
            # Production row exists; the next run updates it by dedup key
            console.print(f"[red]Transferred {record.id} but could not update its status: {e}[/red]")
            summary.failed += 1
            summary.errors.append((record.id, str(e)))
            return

        if outcome == "inserted":
            summary.inserted += 1
        else:
            summary.updated += 1

    def run(
        self,
        source_url: Optional[str] = None,
        start_on_or_after: Optional[date] = None,
        created_on_or_before: Optional[date] = None,
        limit: Optional[int] = 100,
        dry_run: bool = False,
    ) -> TransferSummary:
        """Promote every eligible record, oldest first."""
        summary = TransferSummary()
        records = self.staging.pending_for_transfer(
            source_url=source_url,
            start_on_or_after=start_on_or_after,
            created_on_or_before=created_on_or_before,
            limit=limit,
        )
        summary.total = len(records)
        console.print(f"[dim]Found {len(records)} pending records to transfer[/dim]")

        for record in records:
            self.promote(record, summary, dry_run=dry_run)

        return summary


def print_transfer_summary(summary: TransferSummary) -> None:
    table = Table(title="Transfer Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green", justify="right")

    for metric, count in summary.as_dict().items():
        table.add_row(metric.replace("_", " ").title(), str(count))
    console.print(table)

    for record_id, message in summary.errors:
        console.print(f"[red]  {record_id}: {message}[/red]")
