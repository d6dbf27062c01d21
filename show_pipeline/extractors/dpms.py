"""Rule-based parser for the DPM Sports Cards Indiana show calendar.

The page is a long hand-edited list, one show per line:

    Jan 5 - Lafayette, Elks Lodge - 3131 Teal Rd (9am-2pm) Mike Hanson (765) 555-0100
    Feb 1st-2nd - Fort Wayne, "Coliseum" - 4000 Parnell Ave - Hall B (8-3)

Stable enough that regexes beat paying for AI extraction.
"""

import re
from datetime import date
from typing import Optional

from bs4 import BeautifulSoup
from rich.console import Console

from show_pipeline.models import RawCandidate
from show_pipeline.normalizers.dates import normalize_date
from show_pipeline.normalizers.hours import is_likely_hours

console = Console()

URL_MARKER = "dpmsportcards.com/indiana-card-shows"

MONTH = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sept?|Oct|Nov|Dec)[a-z]*"
LISTING_START = re.compile(r"^" + MONTH, re.IGNORECASE)
DATE_RANGE = re.compile(
    r"^\s*(?P<month>" + MONTH + r")\.?\s+(?P<day>\d{1,2})(?:st|nd|rd|th)?"
    r"(?:\s*(?:-|to)\s*(?:(?P<end_month>" + MONTH + r")\.?\s+)?(?P<end_day>\d{1,2})(?:st|nd|rd|th)?)?",
    re.IGNORECASE,
)
PARENTHETICAL = re.compile(r"\(([^)]+)\)")
PHONE = re.compile(r"\(?\s*(\d{3})\s*\)?[-\s]?(\d{3})[-\s]?(\d{4})")
NAME_BEFORE_PHONE = re.compile(r"([A-Z][a-zA-Z.'-]{2,}(?:\s+[A-Z][a-zA-Z.'-]{2,}){0,2})\s*$")
NAME_WINDOW = 60  # chars scanned before the phone number

# Capitalized words near phone numbers that are street names, not people
STREET_WORDS = frozenset({
    "Street", "St", "St.", "Drive", "Dr", "Dr.", "Road", "Rd", "Rd.",
    "Avenue", "Ave", "Ave.", "Boulevard", "Blvd", "Blvd.", "Way", "Lane", "Ln", "Ln.",
    "Court", "Ct", "Ct.", "East", "West", "North", "South", "E", "W", "N", "S",
    "Main", "Division", "Taylor", "Carroll", "Hunter", "Wabash", "Victory", "Field",
    "Bronco", "Votaw", "Sample", "Jefferson", "Robbins",
})


def handles(url: str) -> bool:
    return URL_MARKER in url


def html_to_lines(html: str) -> list[str]:
    """Visible text, one line per <br>/<p>/<div>/<li>."""
    soup = BeautifulSoup(html, "lxml")
    for tag in soup(["script", "style"]):
        tag.decompose()
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for block in soup.find_all(["p", "div", "li"]):
        block.append("\n")

    text = soup.get_text()
    text = re.sub(r"[–—]", "-", text)
    text = re.sub(r"[“”]", '"', text)
    text = re.sub(r"[‘’]", "'", text)
    text = text.replace("\xa0", " ").replace("\r", "")

    return [re.sub(r"[ \t]+", " ", line).strip() for line in text.split("\n") if line.strip()]


def is_listing_line(line: str) -> bool:
    return bool(LISTING_START.match(line)) and "-" in line and "," in line


def _split_location(remaining: str) -> tuple[str, str, str]:
    """'Lafayette, Elks Lodge - 3131 Teal Rd (9-2)' -> (city, venue, address)."""
    paren = remaining.find("(")
    loc_part = remaining[:paren] if paren > -1 else remaining
    loc_part = re.sub(r"^-\s*", "", loc_part).strip()
    segments = [s.strip() for s in re.split(r"\s-\s", loc_part)]

    city = venue = address = ""
    if len(segments) >= 2:
        city_venue = segments[0]
        address = " - ".join(s for s in segments[1:] if s)
        if "," in city_venue:
            city, _, venue = city_venue.partition(",")
            city = city.strip()
            venue = venue.strip().strip("\"'")
        else:
            city = city_venue.strip()

    if not city and "," in loc_part:
        city = loc_part.split(",")[0].strip()

    return city, venue, address


def _extract_hours(remaining: str) -> Optional[str]:
    tokens = [
        re.sub(r"\s+", " ", token).strip()
        for token in PARENTHETICAL.findall(remaining)
        if is_likely_hours(token)
    ]
    return ", ".join(tokens) or None


def extract_contact(remaining: str) -> Optional[str]:
    """'Mike Hanson (765) 555-0100' -> 'Mike Hanson (765) 555-0100', normalized."""
    match = PHONE.search(remaining)
    if not match:
        return None
    phone = f"({match.group(1)}) {match.group(2)}-{match.group(3)}"

    window = remaining[max(0, match.start() - NAME_WINDOW):match.start()]
    name_match = NAME_BEFORE_PHONE.search(window)
    name = ""
    if name_match:
        words = [w for w in name_match.group(1).split() if w not in STREET_WORDS]
        name = " ".join(words[-2:])

    return f"{name} {phone}" if name else phone


def parse_listing_line(line: str, source_url: str, today: Optional[date] = None) -> Optional[RawCandidate]:
    """Parse a single listing line, or None if the date can't be resolved."""
    match = DATE_RANGE.match(line)
    if not match:
        return None

    start = normalize_date(f"{match.group('month')} {match.group('day')}", today=today)
    if not start.valid:
        return None
    end = start
    if match.group("end_day"):
        end_month = match.group("end_month") or match.group("month")
        end = normalize_date(f"{end_month} {match.group('end_day')}", today=today)
        if not end.valid:
            end = start

    remaining = line[match.end():].strip()
    city, venue, address = _split_location(remaining)

    return RawCandidate(
        name=f"{city} Card Show" if city else None,
        startDate=start.iso,
        endDate=end.iso,
        venueName=venue or None,
        address=address or None,
        city=city or None,
        state="IN",
        showHours=_extract_hours(remaining),
        contactInfo=extract_contact(remaining),
        entryFee="free",
        url=source_url,
        sourceUrl=source_url,
    )


def parse_dpms_indiana(html: str, source_url: str, today: Optional[date] = None) -> list[RawCandidate]:
    """Parse every listing line on the page, deduplicated by city|address|start."""
    candidates = []
    seen: set[str] = set()

    for line in html_to_lines(html):
        if not is_listing_line(line):
            continue
        candidate = parse_listing_line(line, source_url, today=today)
        if candidate is None:
            continue

        key = f"{candidate.city or ''}|{candidate.address or ''}|{candidate.startDate}"
        if key in seen:
            continue
        seen.add(key)
        candidates.append(candidate)

    console.print(f"[dim]Deterministic parser found {len(candidates)} shows on {source_url}[/dim]")
    return candidates
