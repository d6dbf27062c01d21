"""Staging table: raw + normalized + geocoded payloads awaiting promotion."""

import uuid
from datetime import date, datetime, timezone
from typing import Any, Optional

from show_pipeline.models import (
    GeocodedPayload,
    NormalizedShow,
    StagingRecord,
    StagingStatus,
)
from show_pipeline.stores.base import JsonTable


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StagingStore(JsonTable[StagingRecord]):
    """Staging rows keyed by surrogate id."""

    file_name = "staging.json"
    model = StagingRecord
    label = "staging records"

    def insert(
        self,
        source_url: str,
        raw_payload: dict[str, Any],
        normalized: Optional[NormalizedShow] = None,
        geocoded: Optional[GeocodedPayload] = None,
    ) -> StagingRecord:
        """Stage one candidate as PENDING.

        Raises:
            PersistenceError: the write failed; nothing was staged.
        """
        now = utcnow()
        record = StagingRecord(
            id=uuid.uuid4().hex,
            source_url=source_url,
            raw_payload=raw_payload,
            normalized_json=normalized,
            geocoded_json=geocoded,
            status=StagingStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        return self._put(record)

    def pending_for_transfer(
        self,
        source_url: Optional[str] = None,
        start_on_or_after: Optional[date] = None,
        created_on_or_before: Optional[date] = None,
        limit: Optional[int] = 100,
    ) -> list[StagingRecord]:
        """PENDING records with normalized data, oldest first.

        TRANSFERRED records never come back from here, which is what makes
        promotion safe to re-run.
        """
        records = []
        for record in self._rows.values():
            if record.status != StagingStatus.PENDING or record.normalized_json is None:
                continue
            if source_url and source_url not in record.source_url:
                continue
            if start_on_or_after:
                start = record.normalized_json.start
                if start is not None and start < start_on_or_after:
                    continue
            if created_on_or_before and record.created_at.date() > created_on_or_before:
                continue
            records.append(record)

        records.sort(key=lambda r: r.created_at)  # stable: ties keep insertion order
        if limit:
            records = records[:limit]
        return records

    def mark_transferred(self, record_id: str) -> StagingRecord:
        record = self._require(record_id)
        return self._put(record.model_copy(update={
            "status": StagingStatus.TRANSFERRED,
            "transfer_error": None,
            "updated_at": utcnow(),
        }))

    def record_transfer_error(self, record_id: str, error: str) -> StagingRecord:
        """Keep the record PENDING but remember why promotion failed."""
        record = self._require(record_id)
        return self._put(record.model_copy(update={
            "transfer_error": error,
            "updated_at": utcnow(),
        }))

    def update_normalized(
        self,
        record_id: str,
        normalized: NormalizedShow,
        geocoded: Optional[GeocodedPayload] = None,
    ) -> StagingRecord:
        """Overwrite normalized/geocoded payloads after re-normalization."""
        record = self._require(record_id)
        return self._put(record.model_copy(update={
            "normalized_json": normalized,
            "geocoded_json": geocoded if geocoded is not None else record.geocoded_json,
            "updated_at": utcnow(),
        }))

    def _require(self, record_id: str) -> StagingRecord:
        record = self.get(record_id)
        if record is None:
            raise KeyError(f"No staging record {record_id}")
        return record

    def stats(self) -> dict:
        """Counts by status."""
        records = self.all()
        return {
            "total": len(records),
            "pending": sum(1 for r in records if r.status == StagingStatus.PENDING),
            "transferred": sum(1 for r in records if r.status == StagingStatus.TRANSFERRED),
            "with_coordinates": sum(1 for r in records if r.geocoded_json is not None),
            "with_errors": sum(1 for r in records if r.transfer_error),
        }
