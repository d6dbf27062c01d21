"""Show listings from a CSV export.

Required columns: name, date, venue, address, city, state, zip
Optional columns: website, description, admission, hours, tables, contact, phone, email
"""

import csv
import io
import re
from datetime import date
from typing import Optional

from rich.console import Console

from show_pipeline.errors import ExtractionError
from show_pipeline.models import RawCandidate
from show_pipeline.normalizers.dates import normalize_date

console = Console()

REQUIRED_COLUMNS = ["name", "date", "venue", "address", "city", "state", "zip"]
OPTIONAL_COLUMNS = ["website", "description", "admission", "hours", "tables", "contact", "phone", "email"]
ZIP_RE = re.compile(r"^\d{5}(?:-\d{4})?$")


class CsvRowError:
    """A row that was skipped, with 1-based line number (header is line 1)."""

    def __init__(self, line: int, errors: list[str]):
        self.line = line
        self.errors = errors

    def __str__(self) -> str:
        return f"Row {self.line}: {'; '.join(self.errors)}"


def validate_row(row: dict[str, str], today: Optional[date] = None) -> list[str]:
    errors = []
    for column in REQUIRED_COLUMNS:
        if not row.get(column):
            errors.append(f"Missing {column}")

    if row.get("date") and not normalize_date(row["date"], today=today).valid:
        errors.append(f"Invalid date: {row['date']!r}")
    if row.get("state") and not re.fullmatch(r"[A-Za-z]{2}", row["state"]):
        errors.append(f"State must be a 2-letter code: {row['state']!r}")
    if row.get("zip") and not ZIP_RE.match(row["zip"]):
        errors.append(f"Invalid ZIP: {row['zip']!r}")
    return errors


def row_to_candidate(row: dict[str, str], source_url: str) -> RawCandidate:
    description = row.get("description") or None
    if row.get("tables"):
        tables = f"{row['tables']} dealer tables"
        description = f"{description} ({tables})" if description else tables

    return RawCandidate(
        name=row.get("name"),
        startDate=row.get("date"),
        venueName=row.get("venue"),
        address=row.get("address"),
        city=row.get("city"),
        state=row.get("state", "").upper() or None,
        zipCode=row.get("zip"),
        url=row.get("website") or None,
        description=description,
        entryFee=row.get("admission") or None,
        showHours=row.get("hours") or None,
        contactName=row.get("contact") or None,
        contactPhone=row.get("phone") or None,
        contactEmail=row.get("email") or None,
        sourceUrl=source_url,
    )


def parse_csv(
    text: str,
    source_url: str,
    today: Optional[date] = None,
) -> tuple[list[RawCandidate], list[CsvRowError]]:
    """Parse CSV text into candidates plus the rows that were rejected.

    Raises:
        ExtractionError: the header lacks required columns.
    """
    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames:
        raise ExtractionError("CSV file is empty")

    reader.fieldnames = [name.strip().lower() for name in reader.fieldnames]
    missing = [c for c in REQUIRED_COLUMNS if c not in reader.fieldnames]
    if missing:
        raise ExtractionError(f"CSV is missing required columns: {', '.join(missing)}")

    candidates: list[RawCandidate] = []
    rejected: list[CsvRowError] = []

    for line, row in enumerate(reader, start=2):
        row = {k: (v or "").strip() for k, v in row.items() if k}
        if not any(row.values()):
            continue
        errors = validate_row(row, today=today)
        if errors:
            rejected.append(CsvRowError(line, errors))
            continue
        candidates.append(row_to_candidate(row, source_url))

    console.print(
        f"[dim]CSV {source_url}: {len(candidates)} rows accepted, {len(rejected)} rejected[/dim]"
    )
    return candidates, rejected
