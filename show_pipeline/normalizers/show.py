"""Raw candidate -> NormalizedShow. Pure: no I/O, `today` is injectable."""

from datetime import date, datetime, timezone
from typing import Optional

from show_pipeline.models import NormalizedShow, RawCandidate
from show_pipeline.normalizers.contact import extract_contact_info
from show_pipeline.normalizers.dates import normalize_date
from show_pipeline.normalizers.fees import parse_entry_fee
from show_pipeline.normalizers.hours import is_likely_hours, parse_show_hours
from show_pipeline.normalizers.location import resolve_location


def normalize(
    raw: RawCandidate,
    source_url: Optional[str] = None,
    today: Optional[date] = None,
    extracted_at: Optional[datetime] = None,
) -> NormalizedShow:
    """Convert a raw candidate into canonical form."""
    now = datetime.now(timezone.utc).isoformat()
    source_url = source_url or raw.sourceUrl

    show = NormalizedShow(
        name=raw.name,
        description=raw.description,
        url=raw.url or source_url,
        start_date_raw=raw.startDate,
        source_url=source_url,
        extracted_at=extracted_at.isoformat() if extracted_at else now,
        normalized_at=now,
        original=raw.model_dump(exclude_none=True),
    )

    # Dates
    start = normalize_date(raw.startDate, today=today)
    if start.valid:
        show.start_date = start.iso
        show.start_date_display = start.normalized
    end = normalize_date(raw.endDate, today=today)
    if end.valid:
        show.end_date = end.iso
        show.end_date_display = end.normalized
    if show.start_date and not show.end_date:
        show.end_date = show.start_date
        show.end_date_display = show.start_date_display

    # Location
    location = resolve_location(raw)
    show.venue_name = location.venue_name
    show.address = location.address
    show.city = location.city
    show.state = location.state
    show.zip_code = location.zip_code

    # Contact: split fields win over the blob
    if raw.contactName or raw.contactPhone or raw.contactEmail:
        show.contact_name = raw.contactName
        show.contact_phone = raw.contactPhone
        show.contact_email = raw.contactEmail
    elif raw.contactInfo:
        contact = extract_contact_info(raw.contactInfo)
        show.contact_name = contact.name
        show.contact_phone = contact.phone
        show.contact_email = contact.email

    # Admission
    fee = parse_entry_fee(raw.entryFee)
    show.entry_fee = fee.description
    show.entry_fee_amount = fee.amount

    # Hours, falling back to the description when it looks like it has them
    show.show_hours = raw.showHours
    hours_text = raw.showHours
    if not hours_text and is_likely_hours(raw.description):
        hours_text = raw.description
    hours = parse_show_hours(hours_text)
    show.start_time = hours.start_time
    show.end_time = hours.end_time

    return show
