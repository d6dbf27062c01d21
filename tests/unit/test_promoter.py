"""Tests for promoting staged shows into production."""

from datetime import datetime, timezone

import pytest

from show_pipeline.errors import PersistenceError
from show_pipeline.models import Coordinates, GeocodedPayload, StagingStatus
from show_pipeline.promoters import Promoter
from show_pipeline.promoters.transfer import detect_features, map_to_show_schema


def fail_save():
    raise PersistenceError("disk full")


@pytest.fixture
def promoter(staging, production) -> Promoter:
    return Promoter(staging, production)


class TestMapping:
    def test_map_to_show_schema(self, staging, sample_show):
        record = staging.insert("https://example.com/shows", {}, normalized=sample_show)
        fields = map_to_show_schema(record)

        assert fields["title"] == "Springfield Sports Card Show"
        assert fields["location"] == "Elks Lodge"
        assert fields["address"] == "123 Main St 62701"
        assert fields["start_date"] == "2026-08-02"
        assert fields["end_date"] == "2026-08-02"
        assert fields["entry_fee"] == 0
        assert fields["coordinates"] is None
        assert fields["features"] == {"freeAdmission": True, "autographs": True}
        assert fields["start_time"] == "9:00am"
        assert fields["status"] == "ACTIVE"
        assert fields["website_url"] == "https://example.com/shows"

    def test_location_falls_back_to_city_state(self, staging, sample_show):
        show = sample_show.model_copy(update={"venue_name": None})
        fields = map_to_show_schema(staging.insert("https://a.com", {}, normalized=show))
        assert fields["location"] == "Springfield, IL"

    def test_unannounced_fee_stays_none(self, staging, sample_show):
        show = sample_show.model_copy(update={"entry_fee": None, "entry_fee_amount": None})
        fields = map_to_show_schema(staging.insert("https://a.com", {}, normalized=show))
        assert fields["entry_fee"] is None

    def test_geocoded_coordinates_used(self, staging, sample_show):
        geocoded = GeocodedPayload(
            coordinates=Coordinates(latitude=39.78, longitude=-89.65),
            geocoded_at=datetime.now(timezone.utc),
        )
        record = staging.insert("https://a.com", {}, normalized=sample_show, geocoded=geocoded)
        assert map_to_show_schema(record)["coordinates"] == {"latitude": 39.78, "longitude": -89.65}

    @pytest.mark.parametrize("description,expected", [
        ("Food and refreshments available", {"foodAvailable": True}),
        ("Autograph signing with a local legend", {"autographs": True}),
        ("No entry fee!", {"freeAdmission": True}),
        ("", {}),
        (None, {}),
    ])
    def test_detect_features(self, description, expected):
        assert detect_features(description) == expected


class TestPromoter:
    """Tests for idempotent transfer runs."""

    def test_transfers_and_marks(self, promoter, staging, production, sample_show):
        record = staging.insert("https://a.com", {}, normalized=sample_show)

        summary = promoter.run()

        assert summary.total == 1
        assert summary.inserted == 1
        assert len(production) == 1
        assert staging.get(record.id).status == StagingStatus.TRANSFERRED

    def test_rerun_is_noop(self, promoter, staging, production, sample_show):
        staging.insert("https://a.com", {}, normalized=sample_show)
        promoter.run()
        first = production.all()[0]

        summary = promoter.run()

        assert summary.total == 0
        assert summary.transferred == 0
        assert production.all() == [first]

    def test_same_key_updates_existing_show(self, promoter, staging, production, sample_show):
        staging.insert("https://a.com", {}, normalized=sample_show)
        promoter.run()

        changed = sample_show.model_copy(update={"description": "Now with food trucks"})
        staging.insert("https://b.com", {}, normalized=changed)
        summary = promoter.run()

        assert summary.updated == 1
        assert len(production) == 1
        assert production.all()[0].description == "Now with food trucks"
        assert production.all()[0].features == {"foodAvailable": True}

    def test_ungeocoded_update_keeps_coordinates(self, promoter, staging, production, sample_show):
        geocoded = GeocodedPayload(
            coordinates=Coordinates(latitude=1.0, longitude=2.0),
            geocoded_at=datetime.now(timezone.utc),
        )
        staging.insert("https://a.com", {}, normalized=sample_show, geocoded=geocoded)
        promoter.run()

        changed = sample_show.model_copy(update={"description": "Updated listing"})
        staging.insert("https://b.com", {}, normalized=changed)
        summary = promoter.run()

        assert summary.updated == 1
        show = production.all()[0]
        assert show.description == "Updated listing"
        assert show.coordinates == Coordinates(latitude=1.0, longitude=2.0)

    def test_geocoded_insert(self, promoter, staging, production, sample_show):
        geocoded = GeocodedPayload(
            coordinates=Coordinates(latitude=39.78, longitude=-89.65),
            geocoded_at=datetime.now(timezone.utc),
        )
        staging.insert("https://a.com", {}, normalized=sample_show, geocoded=geocoded)
        promoter.run()
        assert production.all()[0].coordinates == Coordinates(latitude=39.78, longitude=-89.65)

    def test_skips_without_start_date(self, promoter, staging, production, sample_show):
        show = sample_show.model_copy(update={"start_date": None})
        record = staging.insert("https://a.com", {}, normalized=show)

        summary = promoter.run()

        assert summary.skipped == 1
        assert len(production) == 0
        assert staging.get(record.id).status == StagingStatus.PENDING

    def test_failure_leaves_pending_then_recovers(self, promoter, staging, production, sample_show, monkeypatch):
        record = staging.insert("https://a.com", {}, normalized=sample_show)
        monkeypatch.setattr(production, "_save", fail_save)

        summary = promoter.run()

        assert summary.failed == 1
        assert summary.errors[0][0] == record.id
        assert len(production) == 0
        after = staging.get(record.id)
        assert after.status == StagingStatus.PENDING
        assert "disk full" in after.transfer_error

        monkeypatch.undo()
        summary = promoter.run()

        assert summary.inserted == 1
        assert staging.get(record.id).status == StagingStatus.TRANSFERRED
        assert staging.get(record.id).transfer_error is None

    def test_dry_run_writes_nothing(self, promoter, staging, production, sample_show):
        record = staging.insert("https://a.com", {}, normalized=sample_show)

        summary = promoter.run(dry_run=True)

        assert summary.dry_run == 1
        assert len(production) == 0
        assert staging.get(record.id).status == StagingStatus.PENDING

    def test_source_filter(self, promoter, staging, sample_show):
        staging.insert("https://a.com", {}, normalized=sample_show)
        staging.insert("https://b.com", {}, normalized=sample_show.model_copy(update={"name": "Other"}))

        summary = promoter.run(source_url="b.com")

        assert summary.total == 1
        assert summary.as_dict()["transferred"] == 1
