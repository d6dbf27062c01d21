"""Show hours parsing ("9am-3pm", "8-2", "9:30 - 2:30")."""

import re
from typing import Optional

from show_pipeline.models import ShowHours

TIME_RANGE = re.compile(
    r"\b(1[0-2]|[1-9])(:[0-5][0-9])?\s*(am|pm)?\s*(?:-|–|—|to)\s*(1[0-2]|[1-9])(:[0-5][0-9])?\s*(am|pm)?\b",
    re.IGNORECASE,
)
DAY_AND_TIME = re.compile(
    r"\b(mon|tue|wed|thu|fri|sat|sun|monday|tuesday|wednesday|thursday|friday|saturday|sunday)\s+\d",
    re.IGNORECASE,
)
AMPM_RANGE = re.compile(
    r"\b(\d{1,2}(?::\d{2})?\s*(?:am|pm))\s*(?:-|to|until)\s*(\d{1,2}(?::\d{2})?\s*(?:am|pm))\b"
)
BARE_RANGE = re.compile(r"\b(\d{1,2}(?::\d{2})?)\s*-\s*(\d{1,2}(?::\d{2})?)\b")


def is_likely_hours(text: Optional[str]) -> bool:
    """True for hour ranges ("9-3", "9am to 2pm") or "Sat 9..." style text."""
    if not text:
        return False
    return bool(TIME_RANGE.search(text) or DAY_AND_TIME.search(text))


def _canonical(time_str: str) -> str:
    """'9 am' -> '9:00am', '12:30pm' stays."""
    match = re.match(r"(\d{1,2})(?::(\d{2}))?\s*(am|pm)", time_str.strip())
    hour, minutes, meridiem = match.group(1), match.group(2) or "00", match.group(3)
    return f"{int(hour)}:{minutes}{meridiem}"


def _infer_meridiem(time_str: str, is_end: bool) -> str:
    hour_str, _, minute_str = time_str.partition(":")
    hour, minutes = int(hour_str), int(minute_str or 0)
    if 1 <= hour <= 11:
        meridiem = "pm" if is_end else "am"
    elif hour == 12:
        meridiem = "pm"
    else:
        meridiem = "am"
    return f"{hour}:{minutes:02d}{meridiem}"


def parse_show_hours(text: Optional[str]) -> ShowHours:
    """Extract a single start/end time pair.

    Multi-range text (commas or semicolons) is ambiguous and rejected.
    Bare ranges assume a morning start and an afternoon finish.
    """
    if not text or re.search(r"[,;]", text):
        return ShowHours()

    norm = re.sub(r"[–—]", "-", text).lower().strip()

    match = AMPM_RANGE.search(norm)
    if match:
        return ShowHours(start_time=_canonical(match.group(1)), end_time=_canonical(match.group(2)))

    match = BARE_RANGE.search(norm)
    if not match:
        return ShowHours()

    return ShowHours(
        start_time=_infer_meridiem(match.group(1), is_end=False),
        end_time=_infer_meridiem(match.group(2), is_end=True),
    )
