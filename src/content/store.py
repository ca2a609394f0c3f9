"""JSON-backed content and archive stores.

``ContentStore`` holds the live collection; ``ArchiveStore`` holds
DeletedContentRecords.  Each individual write is atomic at the file
level, but nothing spans both files — moving a record between them is
the job of :func:`hackfeed.content.services.archive_and_remove`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any

from hackfeed.content.models import (
    ContentRecord,
    ContentStatus,
    ContentType,
    DeletedContentRecord,
    DeletionReason,
    Pool,
)
from hackfeed.shared.store import JsonCollection, sort_records

logger = logging.getLogger(__name__)

CONTENT_FILENAME = "content.json"
ARCHIVE_FILENAME = "deleted_content.json"

_STAT_FIELDS = {"views", "likes", "dislikes", "shares", "saves"}

_list = list


def _content_key(record: ContentRecord, name: str) -> Any:
    if name in _STAT_FIELDS:
        return getattr(record.stats, name)
    return getattr(record, name)


class ContentStore(JsonCollection[ContentRecord]):
    """CRUD store for live content records."""

    filename = CONTENT_FILENAME
    model_class = ContentRecord

    def _matching(
        self,
        *,
        category_id: str | None = None,
        status: ContentStatus | None = None,
        pool: Pool | None = None,
        content_type: ContentType | None = None,
        where: Callable[[ContentRecord], bool] | None = None,
    ) -> _list[ContentRecord]:
        results = self._all()
        if category_id is not None:
            results = [r for r in results if r.category_id == category_id]
        if status is not None:
            results = [r for r in results if r.status == status]
        if pool is not None:
            results = [r for r in results if r.pool == pool]
        if content_type is not None:
            results = [r for r in results if r.content_type == content_type]
        if where is not None:
            results = [r for r in results if where(r)]
        return results

    def find(
        self,
        *,
        category_id: str | None = None,
        status: ContentStatus | None = None,
        pool: Pool | None = None,
        content_type: ContentType | None = None,
        where: Callable[[ContentRecord], bool] | None = None,
        sort_by: str | Sequence[str] | None = None,
        limit: int | None = None,
    ) -> _list[ContentRecord]:
        """Return copies of matching records.

        ``sort_by`` accepts field names (``created_at``, ``publish_date``,
        ``likes``, ``views`` ...), ``-`` prefixed for descending order.
        """
        results = self._matching(
            category_id=category_id,
            status=status,
            pool=pool,
            content_type=content_type,
            where=where,
        )
        if sort_by:
            results = sort_records(results, sort_by, _content_key)
        if limit is not None:
            results = results[:limit]
        return [self._copy(r) for r in results]

    def count(
        self,
        *,
        category_id: str | None = None,
        status: ContentStatus | None = None,
        pool: Pool | None = None,
        content_type: ContentType | None = None,
    ) -> int:
        return len(
            self._matching(
                category_id=category_id, status=status, pool=pool, content_type=content_type
            )
        )

    def update_by_id(
        self,
        record_id: str,
        patch: dict[str, Any],
        *,
        now: datetime | None = None,
    ) -> ContentRecord | None:
        """Apply a field patch and bump ``updated_at``.

        Returns the updated record, or None if the id does not exist.
        Raises pydantic.ValidationError when the patch breaks an invariant.
        """
        current = self._records.get(record_id)
        if current is None:
            return None
        updated = current.with_patch(patch, now=now)
        self._records[record_id] = updated
        self._save()
        return self._copy(updated)

    def save(self, record: ContentRecord) -> ContentRecord:
        """Write back a record mutated through its own methods (e.g. ``record_like``)."""
        if record.id not in self._records:
            raise KeyError(record.id)
        return self.replace(record)


class ArchiveStore(JsonCollection[DeletedContentRecord]):
    """Store for archived (DeletedContent) records."""

    filename = ARCHIVE_FILENAME
    model_class = DeletedContentRecord

    def find(
        self,
        *,
        category_id: str | None = None,
        reason: DeletionReason | None = None,
        original_content_id: str | None = None,
        sort_by: str | Sequence[str] | None = "-deleted_at",
        limit: int | None = None,
    ) -> _list[DeletedContentRecord]:
        """Return copies of matching archive records, newest first by default."""
        results = self._all()
        if category_id is not None:
            results = [r for r in results if r.category_id == category_id]
        if reason is not None:
            results = [r for r in results if r.reason == reason]
        if original_content_id is not None:
            results = [r for r in results if r.original_content_id == original_content_id]
        if sort_by:
            results = sort_records(results, sort_by, getattr)
        if limit is not None:
            results = results[:limit]
        return [self._copy(r) for r in results]

    def find_by_reason(self, reason: DeletionReason) -> _list[DeletedContentRecord]:
        return self.find(reason=reason)

    def find_by_original_id(self, original_content_id: str) -> DeletedContentRecord | None:
        """Return the archive record for a former content id, if any."""
        matches = self.find(original_content_id=original_content_id, sort_by=None)
        return matches[0] if matches else None

    def count(
        self,
        *,
        category_id: str | None = None,
        reason: DeletionReason | None = None,
    ) -> int:
        return len(self.find(category_id=category_id, reason=reason, sort_by=None))
