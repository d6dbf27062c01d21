"""Free-text date resolution.

Show listings rarely carry a year ("Aug 2", "Saturday, March 5th"), so the
current year is tried when the text alone doesn't parse. A date whose month
has already passed this year is assumed to be next year's occurrence.
"""

import re
from datetime import date, datetime
from typing import Optional

from show_pipeline.models import DateInfo
from show_pipeline.normalizers.location import US_STATES

# Trailing region token, e.g. "Aug 2 AL"
REGION_SUFFIX = re.compile(
    r"\s+(?:" + "|".join(US_STATES) + r")\.?\s*$",
    re.IGNORECASE,
)
ORDINAL_SUFFIX = re.compile(r"(\d+)(?:st|nd|rd|th)\b", re.IGNORECASE)
WEEKDAY_PREFIX = re.compile(
    r"^(?:mon|tue|tues|wed|thu|thur|thurs|fri|sat|sun)(?:day|nesday|sday|urday)?\.?,?\s+",
    re.IGNORECASE,
)

DATE_FORMATS = [
    "%Y-%m-%d",       # 2026-08-02
    "%B %d, %Y",      # August 2, 2026
    "%b %d, %Y",      # Aug 2, 2026
    "%B %d %Y",       # August 2 2026
    "%b %d %Y",       # Aug 2 2026
    "%d %B %Y",       # 2 August 2026
    "%d %b %Y",       # 2 Aug 2026
    "%m/%d/%Y",       # 08/02/2026
    "%m/%d/%y",       # 08/02/26
    "%m/%d, %Y",      # 8/2, 2026
    "%m/%d %Y",       # 8/2 2026
    "%m-%d-%Y",       # 08-02-2026
]


def clean_date_text(text: str) -> str:
    """Strip region code, weekday, ordinals and extra whitespace."""
    cleaned = REGION_SUFFIX.sub("", text.strip())
    cleaned = ORDINAL_SUFFIX.sub(r"\1", cleaned)
    cleaned = WEEKDAY_PREFIX.sub("", cleaned)
    cleaned = re.sub(r"\bsept\b", "Sep", cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r"\b([A-Za-z]{3,4})\.", r"\1", cleaned)  # "Aug." -> "Aug"
    return re.sub(r"\s+", " ", cleaned).strip()


def _strptime(text: str) -> Optional[date]:
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def format_display_date(value: date) -> str:
    """'August 2, 2026'."""
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def normalize_date(text: Optional[str], today: Optional[date] = None) -> DateInfo:
    """Resolve a free-text date to ISO.

    Tries the text as given, then "text, YEAR", then "text YEAR". When the
    year had to be supplied and the month is already behind us, the date
    rolls into next year. Explicit years are kept as written.
    """
    if not text or not text.strip():
        return DateInfo(original=text)

    today = today or date.today()
    cleaned = clean_date_text(text)

    parsed = _strptime(cleaned)
    year_inferred = False
    if parsed is None:
        parsed = _strptime(f"{cleaned}, {today.year}") or _strptime(f"{cleaned} {today.year}")
        year_inferred = parsed is not None

    if parsed is None:
        return DateInfo(original=text)

    if year_inferred and parsed < today and parsed.month < today.month:
        try:
            parsed = parsed.replace(year=today.year + 1)
        except ValueError:  # Feb 29 -> non-leap year
            parsed = parsed.replace(year=today.year + 1, day=28)

    return DateInfo(
        original=text,
        normalized=format_display_date(parsed),
        iso=parsed.isoformat(),
        valid=True,
    )
