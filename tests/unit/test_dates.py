"""Tests for free-text date resolution."""

from datetime import date

import pytest

from show_pipeline.normalizers.dates import clean_date_text, format_display_date, normalize_date

TODAY = date(2026, 6, 15)


class TestNormalizeDate:
    """Tests for normalize_date with a fixed 'today'."""

    @pytest.mark.parametrize("text,iso", [
        ("Aug 2 AL", "2026-08-02"),
        ("August 2", "2026-08-02"),
        ("Sept 6", "2026-09-06"),
        ("Aug. 2nd", "2026-08-02"),
        ("Saturday, Aug 8th", "2026-08-08"),
        ("8/2", "2026-08-02"),
        ("2026-08-02", "2026-08-02"),
        ("August 2, 2026", "2026-08-02"),
    ])
    def test_resolves_current_year(self, text, iso):
        info = normalize_date(text, today=TODAY)
        assert info.valid
        assert info.iso == iso
        assert info.original == text

    def test_passed_month_rolls_to_next_year(self):
        info = normalize_date("Jan 10", today=TODAY)
        assert info.iso == "2027-01-10"
        assert info.normalized == "January 10, 2027"

    def test_same_month_does_not_roll(self):
        # Earlier this month stays this year; validation rejects it as past
        assert normalize_date("Jun 1", today=TODAY).iso == "2026-06-01"

    def test_explicit_year_is_kept(self):
        assert normalize_date("March 5, 2025", today=TODAY).iso == "2025-03-05"

    def test_feb_29_rolls_to_28(self):
        info = normalize_date("Feb 29", today=date(2028, 6, 15))
        assert info.iso == "2029-02-28"

    @pytest.mark.parametrize("text", ["TBA", "sometime soon", "", None])
    def test_invalid(self, text):
        info = normalize_date(text, today=TODAY)
        assert not info.valid
        assert info.iso is None
        assert info.normalized is None

    @pytest.mark.parametrize("text", [
        "Aug 2 AL",
        "Jan 10",
        "Jun 1",
        "Sept 6",
        "Saturday, Aug 8th",
        "8/2",
        "12/31/26",
        "March 5, 2025",
        "2 August 2026",
    ])
    def test_iso_round_trip(self, text):
        first = normalize_date(text, today=TODAY)
        again = normalize_date(first.iso, today=TODAY)
        assert again.valid
        assert again.iso == first.iso
        assert again.as_date() == first.as_date()

    def test_as_date(self):
        assert normalize_date("Aug 2", today=TODAY).as_date() == date(2026, 8, 2)


class TestDateHelpers:
    @pytest.mark.parametrize("text,expected", [
        ("Aug 2 AL", "Aug 2"),
        ("Sunday, March 5th", "March 5"),
        ("Sept 13", "Sep 13"),
        ("  Aug.   2 ", "Aug 2"),
    ])
    def test_clean_date_text(self, text, expected):
        assert clean_date_text(text) == expected

    def test_format_display_date(self):
        assert format_display_date(date(2026, 8, 2)) == "August 2, 2026"
