"""Normalizers for raw show fields."""

from show_pipeline.normalizers.contact import extract_contact_info
from show_pipeline.normalizers.dates import normalize_date
from show_pipeline.normalizers.fees import parse_entry_fee
from show_pipeline.normalizers.hours import is_likely_hours, parse_show_hours
from show_pipeline.normalizers.location import parse_location, resolve_location, state_code
from show_pipeline.normalizers.show import normalize

__all__ = [
    "extract_contact_info",
    "normalize_date",
    "parse_entry_fee",
    "is_likely_hours",
    "parse_show_hours",
    "parse_location",
    "resolve_location",
    "state_code",
    "normalize",
]
