"""Validate normalized shows before staging."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from show_pipeline.errors import ValidationError
from show_pipeline.models import NormalizedShow


class ValidationResult(BaseModel):
    """Errors reject the show; warnings keep it but flag it."""

    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def raise_for_errors(self) -> None:
        if self.errors:
            raise ValidationError(self.errors)


def validate_show(show: NormalizedShow, today: Optional[date] = None) -> ValidationResult:
    """Classify a normalized show as valid, invalid or warned."""
    today = today or date.today()
    result = ValidationResult()

    if not show.name:
        result.errors.append("Missing show name")

    start = show.start
    if start is None:
        if show.start_date_raw:
            result.errors.append(f"Invalid start date: {show.start_date_raw!r}")
        else:
            result.errors.append("Missing start date")
    elif start < today:
        result.errors.append(f"Start date {show.start_date} is in the past")

    if not show.venue_name:
        result.warnings.append("Missing venue name")
    if not show.city and not show.state:
        result.warnings.append("Missing both city and state")

    end = show.end
    if start and end and end < start:
        result.warnings.append(f"End date {show.end_date} is before start date {show.start_date}")

    return result
