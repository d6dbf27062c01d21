"""Source score table: per-URL priority and error streak."""

from typing import Optional

from show_pipeline.models import SourceScore
from show_pipeline.stores.base import JsonTable
from show_pipeline.stores.staging import utcnow


class SourceScoreStore(JsonTable[SourceScore]):
    """Scraping sources keyed by URL."""

    file_name = "sources.json"
    model = SourceScore
    label = "sources"

    def key_of(self, row: SourceScore) -> str:
        return row.url

    def get_or_default(self, url: str) -> SourceScore:
        """Existing score, or a fresh default one (not saved)."""
        existing = self.get(url)
        if existing is not None:
            return existing
        now = utcnow()
        return SourceScore(url=url, created_at=now, updated_at=now)

    def upsert(self, score: SourceScore) -> SourceScore:
        return self._put(score.model_copy(update={"updated_at": utcnow()}))

    def add(self, url: str, state: Optional[str] = None, notes: Optional[str] = None) -> tuple[SourceScore, bool]:
        """Register a source. Returns (score, created)."""
        existing = self.get(url)
        if existing is not None:
            return existing, False
        score = self.get_or_default(url).model_copy(update={
            "state": state.upper() if state else None,
            "notes": notes,
        })
        return self.upsert(score), True

    def set_enabled(self, url: str, enabled: bool) -> SourceScore:
        existing = self.get(url)
        if existing is None:
            raise KeyError(f"Unknown source {url}")
        return self.upsert(existing.model_copy(update={"enabled": enabled}))

    def select_batch(self, state: Optional[str] = None, limit: int = 7) -> list[SourceScore]:
        """Enabled sources, highest priority first, stalest success first on ties."""
        candidates = [
            s for s in self._rows.values()
            if s.enabled and (not state or (s.state or "").upper() == state.upper())
        ]
        candidates.sort(key=lambda s: (
            -s.priority_score,
            s.last_success_at is not None,  # never-succeeded first
            s.last_success_at.timestamp() if s.last_success_at else 0.0,
        ))
        return candidates[:limit]
