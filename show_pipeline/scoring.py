"""Source scoring: nudge per-URL priority after every processed URL."""

from rich.console import Console

from show_pipeline.errors import PersistenceError
from show_pipeline.models import MAX_PRIORITY, MIN_PRIORITY, SourceScore
from show_pipeline.stores import SourceScoreStore
from show_pipeline.stores.staging import utcnow

console = Console()

MAX_SUCCESS_BONUS = 5
FAILURE_PENALTY = 1


def clamp_priority(value: int) -> int:
    return max(MIN_PRIORITY, min(MAX_PRIORITY, value))


def apply_success(score: SourceScore, staged_count: int) -> SourceScore:
    """Reset the error streak; reward up to +5 for staged shows."""
    bonus = min(staged_count, MAX_SUCCESS_BONUS) if staged_count > 0 else 0
    return score.model_copy(update={
        "last_success_at": utcnow(),
        "error_streak": 0,
        "priority_score": clamp_priority(score.priority_score + bonus),
    })


def apply_failure(score: SourceScore) -> SourceScore:
    return score.model_copy(update={
        "last_error_at": utcnow(),
        "error_streak": score.error_streak + 1,
        "priority_score": clamp_priority(score.priority_score - FAILURE_PENALTY),
    })


class SourceScorer:
    """Records URL outcomes. Never lets a scoring failure affect the run."""

    def __init__(self, store: SourceScoreStore):
        self.store = store

    def record_success(self, url: str, staged_count: int) -> None:
        self._update(url, lambda score: apply_success(score, staged_count))

    def record_failure(self, url: str) -> None:
        self._update(url, apply_failure)

    def _update(self, url: str, change) -> None:
        try:
            self.store.upsert(change(self.store.get_or_default(url)))
        except PersistenceError as e:
            console.print(f"[yellow]Could not update score for {url}: {e}[/yellow]")
