"""Location normalizer: split merged venue/address/city/state/zip strings."""

import re
from types import MappingProxyType
from typing import Optional

from show_pipeline.models import LocationParts, RawCandidate

# US state abbreviations to full names
US_STATES = MappingProxyType({
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas",
    "CA": "California", "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware",
    "FL": "Florida", "GA": "Georgia", "HI": "Hawaii", "ID": "Idaho",
    "IL": "Illinois", "IN": "Indiana", "IA": "Iowa", "KS": "Kansas",
    "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine", "MD": "Maryland",
    "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota", "MS": "Mississippi",
    "MO": "Missouri", "MT": "Montana", "NE": "Nebraska", "NV": "Nevada",
    "NH": "New Hampshire", "NJ": "New Jersey", "NM": "New Mexico", "NY": "New York",
    "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio", "OK": "Oklahoma",
    "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island", "SC": "South Carolina",
    "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas", "UT": "Utah",
    "VT": "Vermont", "VA": "Virginia", "WA": "Washington", "WV": "West Virginia",
    "WI": "Wisconsin", "WY": "Wyoming", "DC": "District of Columbia",
})
US_STATE_CODES = MappingProxyType({name.lower(): code for code, name in US_STATES.items()})

ZIP_PATTERN = re.compile(r"\b\d{5}(?:-\d{4})?\b")
# Codes must be upper-case tokens ("IN", "OR" are common words otherwise).
# Longest names first so "West Virginia" wins over "Virginia".
STATE_PATTERN = re.compile(
    r"\b(?:(?P<code>" + "|".join(US_STATES) + r")|(?P<name>(?i:"
    + "|".join(sorted((re.escape(n) for n in US_STATES.values()), key=len, reverse=True))
    + r")))\b"
)


def state_code(value: Optional[str]) -> Optional[str]:
    """Map 'Indiana', 'indiana', 'IN' or 'in' to 'IN'. Unknown values pass through."""
    if not value:
        return None
    value = value.strip().rstrip(".")
    if value.upper() in US_STATES:
        return value.upper()
    return US_STATE_CODES.get(value.lower(), value)


def _tidy(text: str) -> str:
    text = re.sub(r"\s+", " ", text)
    text = re.sub(r"\s+,", ",", text)
    return text.strip(" ,")


def parse_location(location_str: Optional[str]) -> LocationParts:
    """Parse a combined location string.

    Handles formats like:
    - "Elks Lodge, 123 Main St, Springfield, IL"
    - "Holiday Inn, 100 Oak Ave, Fort Wayne, Indiana 46805"
    - "VFW Post 1234"
    """
    if not location_str or not location_str.strip():
        return LocationParts()

    raw = location_str.strip()
    remaining = raw
    parts = LocationParts()

    zip_matches = list(ZIP_PATTERN.finditer(remaining))
    if zip_matches:
        last = zip_matches[-1]
        parts.zip_code = last.group(0)
        remaining = remaining[:last.start()] + remaining[last.end():]

    # Rightmost state mention is the one next to city/zip
    state_matches = list(STATE_PATTERN.finditer(remaining))
    if state_matches:
        last = state_matches[-1]
        parts.state = state_code(last.group("code") or last.group("name"))
        remaining = remaining[:last.start()] + remaining[last.end():]

    segments = [s for s in (_tidy(seg) for seg in remaining.split(",")) if s]

    if len(segments) >= 3:
        parts.city = segments.pop()

    if len(segments) >= 2:
        parts.venue_name = segments[0]
        parts.address = ", ".join(segments[1:])
    elif len(segments) == 1:
        parts.venue_name = segments[0]

    if not parts.venue_name:
        parts.venue_name = raw

    return parts


def resolve_location(raw: RawCandidate) -> LocationParts:
    """Explicit fields win; the combined `location` blob fills the rest."""
    explicit = LocationParts(
        venue_name=raw.venueName,
        address=raw.address,
        city=raw.city,
        state=state_code(raw.state),
        zip_code=raw.zipCode,
    )
    has_explicit = any([raw.venueName, raw.address, raw.city, raw.state])
    if has_explicit or not raw.location:
        return explicit

    parsed = parse_location(raw.location)
    return LocationParts(
        venue_name=parsed.venue_name,
        address=parsed.address,
        city=parsed.city,
        state=parsed.state,
        zip_code=explicit.zip_code or parsed.zip_code,
    )
