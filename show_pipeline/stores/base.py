"""JSON-file tables backed by pydantic models."""

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Generic, Iterator, Optional, TypeVar

from pydantic import BaseModel
from rich.console import Console

from show_pipeline.config import DEFAULT_DATA_DIR
from show_pipeline.errors import PersistenceError

console = Console()

M = TypeVar("M", bound=BaseModel)


class JsonTable(Generic[M]):
    """A keyed table persisted as one JSON file.

    Every mutation is written through. A failed write restores the previous
    in-memory row and raises PersistenceError.
    """

    file_name: str = "table.json"
    model: type[BaseModel] = BaseModel
    label: str = "rows"

    def __init__(self, data_dir: Optional[Path] = None):
        self.data_dir = Path(data_dir) if data_dir else DEFAULT_DATA_DIR
        self.path = self.data_dir / self.file_name
        self._rows: dict[str, M] = {}
        self._load()

    def key_of(self, row: M) -> str:
        return row.id  # type: ignore[attr-defined]

    def _load(self) -> None:
        """Load table from disk."""
        if not self.path.exists():
            return
        try:
            with open(self.path) as f:
                data = json.load(f)
            for item in data.get("rows", []):
                row = self.model.model_validate(item)
                self._rows[self.key_of(row)] = row
        except (OSError, ValueError, AttributeError) as e:
            # Refuse to continue rather than overwrite a table we couldn't read
            raise PersistenceError(f"Failed to load {self.path}: {e}") from e
        console.print(f"[dim]Loaded {len(self._rows)} {self.label} from {self.path.name}[/dim]")

    def _save(self) -> None:
        """Save table to disk (write-then-rename)."""
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(".json.tmp")
            with open(tmp_path, "w") as f:
                json.dump({
                    "updated_at": datetime.now().timestamp(),
                    "rows": [row.model_dump(mode="json") for row in self._rows.values()],
                }, f, indent=2)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to write {self.path}: {e}") from e

    def _put(self, row: M) -> M:
        key = self.key_of(row)
        previous = self._rows.get(key)
        self._rows[key] = row
        try:
            self._save()
        except PersistenceError:
            if previous is None:
                del self._rows[key]
            else:
                self._rows[key] = previous
            raise
        return row

    def get(self, key: str) -> Optional[M]:
        return self._rows.get(key)

    def all(self) -> list[M]:
        return list(self._rows.values())

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[M]:
        return iter(list(self._rows.values()))
