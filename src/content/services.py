"""Content lifecycle services.

The content → archive move lives here as one operation,
:func:`archive_and_remove`, so callers never observe a half-applied
transition.  The surrounding helpers cover the other mutation sources:
user ratings and views, moderator decisions, restore/purge from the
archive, and recycling of proven high performers.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timedelta

from hackfeed.config import RecycleConfig
from hackfeed.content.models import (
    ContentRecord,
    ContentStatus,
    DeletedContentRecord,
    DeletionReason,
    Pool,
    new_id,
    utcnow,
)
from hackfeed.content.store import ArchiveStore, ContentStore
from hackfeed.errors import InvalidArgumentError, NotFoundError, TransitionError

logger = logging.getLogger(__name__)


# ===========================================================================
# Archive transition
# ===========================================================================


def archive_and_remove(
    content_store: ContentStore,
    archive_store: ArchiveStore,
    content_id: str,
    reason: DeletionReason,
    *,
    metadata: dict[str, str] | None = None,
    snapshot_updates: dict[str, object] | None = None,
    now: datetime | None = None,
) -> DeletedContentRecord | None:
    """Move a content record into the archive.

    Returns the archive record, or None when ``content_id`` is no longer
    in the content store (already transitioned).  Re-running against an
    id whose archive copy exists but whose source survived a failed
    delete finishes the move without inserting a second archive copy.

    Raises:
        TransitionError: The archive insert failed (source untouched), or
            the source delete failed and the archive copy was rolled back.
    """
    record = content_store.find_by_id(content_id)
    if record is None:
        logger.debug("Content %s already gone, nothing to archive", content_id)
        return None

    existing = archive_store.find_by_original_id(content_id)
    if existing is not None:
        logger.warning(
            "Content %s already has archive copy %s, completing move",
            content_id,
            existing.id,
        )
        _delete_source(content_store, archive_store, existing, compensate=False)
        return existing

    if snapshot_updates:
        record = record.model_copy(update=snapshot_updates)
    archived = DeletedContentRecord.from_content(
        record, reason, deleted_at=now, metadata=metadata
    )

    try:
        archive_store.insert(archived)
    except Exception as exc:
        raise TransitionError(
            "Failed to write archive copy",
            content_id=content_id,
            reason=reason.value,
            phase="archive",
        ) from exc

    if not _delete_source(content_store, archive_store, archived, compensate=True):
        return None

    logger.info(
        "Archived content %s as %s (reason=%s)", content_id, archived.id, reason.value
    )
    return archived


def _delete_source(
    content_store: ContentStore,
    archive_store: ArchiveStore,
    archived: DeletedContentRecord,
    *,
    compensate: bool,
) -> bool:
    content_id = archived.original_content_id
    try:
        removed = content_store.delete_by_id(content_id)
    except Exception as exc:
        if compensate:
            _rollback_archive_copy(archive_store, archived)
        raise TransitionError(
            "Failed to delete source after archiving",
            content_id=content_id,
            reason=archived.reason.value,
            phase="delete",
        ) from exc

    if not removed and compensate:
        # Someone else removed the source between our read and delete.
        _rollback_archive_copy(archive_store, archived)
        return False
    return True


def _rollback_archive_copy(archive_store: ArchiveStore, archived: DeletedContentRecord) -> None:
    try:
        archive_store.delete_by_id(archived.id)
    except Exception:
        logger.error(
            "Could not roll back archive copy %s of content %s (reason=%s); "
            "reconcile_archive will finish the move",
            archived.id,
            archived.original_content_id,
            archived.reason.value,
            exc_info=True,
        )


def reconcile_archive(content_store: ContentStore, archive_store: ArchiveStore) -> int:
    """Finish transitions whose archive copy was written but whose source survived.

    Returns the number of records reconciled.
    """
    reconciled = 0
    for archived in archive_store.find(sort_by=None):
        if not content_store.exists(archived.original_content_id):
            continue
        try:
            content_store.delete_by_id(archived.original_content_id)
        except Exception:
            logger.warning(
                "Reconcile failed for content %s (archive %s, reason=%s)",
                archived.original_content_id,
                archived.id,
                archived.reason.value,
                exc_info=True,
            )
            continue
        reconciled += 1
        logger.info(
            "Reconciled half-archived content %s (archive %s)",
            archived.original_content_id,
            archived.id,
        )
    return reconciled


def restore_deleted(
    content_store: ContentStore,
    archive_store: ArchiveStore,
    archive_id: str,
) -> ContentRecord:
    """Copy an archived record back into the content store under a fresh id.

    Raises NotFoundError if the archive record does not exist.
    """
    archived = archive_store.find_by_id(archive_id)
    if archived is None:
        raise NotFoundError(f"Deleted content {archive_id} not found")

    restored = archived.content.model_copy(update={"id": new_id(), "updated_at": utcnow()})
    content_store.insert(restored)
    archive_store.delete_by_id(archive_id)
    logger.info("Restored archive %s as content %s", archive_id, restored.id)
    return restored


def purge_deleted(archive_store: ArchiveStore, archive_id: str) -> bool:
    """Permanently remove an archive record.

    Raises NotFoundError if the archive record does not exist.
    """
    if not archive_store.delete_by_id(archive_id):
        raise NotFoundError(f"Deleted content {archive_id} not found")
    logger.info("Purged archive record %s", archive_id)
    return True


# ===========================================================================
# User and moderator actions
# ===========================================================================


def _require(content_store: ContentStore, content_id: str) -> ContentRecord:
    record = content_store.find_by_id(content_id)
    if record is None:
        raise NotFoundError(f"Content {content_id} not found")
    return record


def rate_content(content_store: ContentStore, content_id: str, rating: str) -> ContentRecord:
    """Apply a like or dislike and recompute the pool."""
    if rating not in ("like", "dislike"):
        raise InvalidArgumentError("Rating must be like or dislike")
    record = _require(content_store, content_id)
    if rating == "like":
        record.record_like()
    else:
        record.record_dislike()
    return content_store.save(record)


def record_view(
    content_store: ContentStore, content_id: str, *, now: datetime | None = None
) -> ContentRecord:
    """Count a view. A viewed item counts as having been published."""
    record = _require(content_store, content_id)
    record.record_view()
    record.has_been_published = True
    record.usage_count += 1
    record.last_used_date = now or utcnow()
    return content_store.save(record)


def moderate_content(
    content_store: ContentStore,
    content_id: str,
    action: str,
    *,
    moderator_id: str,
    notes: str | None = None,
    now: datetime | None = None,
) -> ContentRecord:
    """Approve (publish) or reject a content item."""
    if action not in ("approve", "reject"):
        raise InvalidArgumentError("Action must be either approve or reject")
    _require(content_store, content_id)

    patch: dict[str, object] = {"moderator_id": moderator_id, "moderation_notes": notes}
    if action == "approve":
        patch.update(
            status=ContentStatus.PUBLISHED,
            has_been_published=True,
            publish_date=now or utcnow(),
        )
    else:
        patch.update(status=ContentStatus.REJECTED, publish_date=None)

    updated = content_store.update_by_id(content_id, patch, now=now)
    if updated is None:
        raise NotFoundError(f"Content {content_id} not found")
    logger.info("Content %s %sd by %s", content_id, action, moderator_id)
    return updated


def pool_stats(content_store: ContentStore, category_id: str | None = None) -> dict[Pool, int]:
    """Count published content per pool."""
    published = content_store.find(category_id=category_id, status=ContentStatus.PUBLISHED)
    counts = Counter(r.pool for r in published)
    return {pool: counts.get(pool, 0) for pool in Pool}


# ===========================================================================
# Recycling
# ===========================================================================


def find_recyclable_content(
    content_store: ContentStore,
    config: RecycleConfig,
    *,
    now: datetime | None = None,
) -> list[ContentRecord]:
    """Published items older than ``min_age_days`` that keep performing well."""
    cutoff = (now or utcnow()) - timedelta(days=config.min_age_days)

    def _eligible(record: ContentRecord) -> bool:
        stats = record.stats
        return (
            record.publish_date is not None
            and record.publish_date < cutoff
            and stats.likes > config.min_likes
            and stats.views > config.min_views
            and stats.likes > config.like_ratio * stats.dislikes
        )

    return content_store.find(
        status=ContentStatus.PUBLISHED,
        where=_eligible,
        sort_by=["-likes", "-views"],
        limit=config.limit,
    )


def recycle_content(
    content_store: ContentStore,
    content_ids: list[str],
    *,
    now: datetime | None = None,
) -> int:
    """Refresh the publish date of each item and bump its recycle count."""
    now = now or utcnow()
    recycled = 0
    for content_id in content_ids:
        record = content_store.find_by_id(content_id)
        if record is None:
            logger.debug("Recycle skipped, content %s is gone", content_id)
            continue
        content_store.update_by_id(
            content_id,
            {
                "publish_date": now,
                "recycle_count": record.recycle_count + 1,
                "last_recycle_date": now,
            },
            now=now,
        )
        recycled += 1
    return recycled
