"""Production catalog of shows."""

import uuid
from typing import Any, Optional

from show_pipeline.models import Coordinates, ProductionShowRecord
from show_pipeline.stores.base import JsonTable
from show_pipeline.stores.staging import utcnow


class ProductionStore(JsonTable[ProductionShowRecord]):
    """Live shows. Rows are created and updated, never deleted here."""

    file_name = "shows.json"
    model = ProductionShowRecord
    label = "shows"

    def find_by_key(self, title: str, start_date: str, location: Optional[str]) -> Optional[ProductionShowRecord]:
        """Look up a show by (title, start_date, venue)."""
        for show in self._rows.values():
            if show.dedup_key == (title, start_date, location):
                return show
        return None

    def insert(self, fields: dict[str, Any]) -> ProductionShowRecord:
        now = utcnow()
        record = ProductionShowRecord.model_validate({
            **fields,
            "id": uuid.uuid4().hex,
            "created_at": now,
            "updated_at": now,
        })
        return self._put(record)

    def insert_with_coordinates(self, fields: dict[str, Any], coordinates: Coordinates) -> ProductionShowRecord:
        """Geocoded insert path."""
        return self.insert({**fields, "coordinates": coordinates.model_dump()})

    def update(self, show_id: str, fields: dict[str, Any]) -> ProductionShowRecord:
        existing = self.get(show_id)
        if existing is None:
            raise KeyError(f"No show {show_id}")
        merged = {**existing.model_dump(), **fields, "id": existing.id, "created_at": existing.created_at}
        merged["updated_at"] = utcnow()
        return self._put(ProductionShowRecord.model_validate(merged))
