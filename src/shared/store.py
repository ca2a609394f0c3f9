"""JSON-file document collections shared by every hackfeed store.

Each collection persists its records in a single JSON file, loaded on
init and saved after every write.  Reads hand out deep copies so callers
only change stored state through the write methods, the way a document
database would behave.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel

from hackfeed.errors import InvalidArgumentError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

# Alias to avoid shadowing by collection methods named ``list``
_list = list


def sort_records(
    records: Iterable[T],
    sort_by: str | Sequence[str],
    key_for: Callable[[T, str], Any],
) -> _list[T]:
    """Sort records by one or more field names.

    A leading ``-`` sorts that field descending.  ``None`` values sort
    before everything else ascending (and after everything descending).
    """
    keys = [sort_by] if isinstance(sort_by, str) else _list(sort_by)
    result = _list(records)
    # Stable sort, least-significant key first
    for raw in reversed(keys):
        descending = raw.startswith("-")
        name = raw.lstrip("-")

        def _key(record: T, name: str = name) -> tuple[bool, Any]:
            value = key_for(record, name)
            return (value is not None, value if value is not None else 0)

        result.sort(key=_key, reverse=descending)
    return result


class JsonCollection(Generic[T]):
    """A keyed collection of pydantic records stored in one JSON file."""

    filename: ClassVar[str]
    model_class: ClassVar[type[BaseModel]]
    id_field: ClassVar[str] = "id"

    def __init__(self, directory: Path) -> None:
        self._path = Path(directory) / self.filename
        self._records: dict[str, T] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    # ── Private helpers ──────────────────────────────────────────

    def _load(self) -> dict[str, T]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            records = [self.model_class.model_validate(r) for r in raw.get("records", [])]
        except (json.JSONDecodeError, ValueError, KeyError, AttributeError):
            logger.warning("Corrupt collection at %s, starting fresh", self._path)
            return {}
        return {getattr(r, self.id_field): r for r in records}  # type: ignore[misc]

    def _save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"records": [r.model_dump(mode="json") for r in self._records.values()]}
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        tmp_path.replace(self._path)

    def _all(self) -> _list[T]:
        return _list(self._records.values())

    @staticmethod
    def _copy(record: T) -> T:
        return record.model_copy(deep=True)

    # ── Generic operations ───────────────────────────────────────

    def find_by_id(self, record_id: str) -> T | None:
        """Return a copy of the record, or None if not found."""
        record = self._records.get(record_id)
        return self._copy(record) if record is not None else None

    def exists(self, record_id: str) -> bool:
        return record_id in self._records

    def insert(self, record: T) -> T:
        """Insert a new record.

        Raises InvalidArgumentError if the id is already taken.
        """
        record_id = getattr(record, self.id_field)
        if record_id in self._records:
            raise InvalidArgumentError(f"{self.filename}: id {record_id} already exists")
        self._records[record_id] = self._copy(record)
        self._save()
        return self._copy(record)

    def replace(self, record: T) -> T:
        """Insert or replace a record by id."""
        self._records[getattr(record, self.id_field)] = self._copy(record)
        self._save()
        return self._copy(record)

    def delete_by_id(self, record_id: str) -> bool:
        """Remove a record. Returns False when it was not present."""
        if self._records.pop(record_id, None) is None:
            return False
        self._save()
        return True

    def __len__(self) -> int:
        return len(self._records)
