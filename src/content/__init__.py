"""Content domain — lifecycle models, pool classifier, stores and services."""

from hackfeed.content.models import (
    ContentRecord,
    ContentSource,
    ContentStats,
    ContentStatus,
    ContentType,
    DeletedContentRecord,
    DeletionReason,
    Difficulty,
    Pool,
)
from hackfeed.content.pools import classify_pool, next_pool
from hackfeed.content.services import (
    archive_and_remove,
    find_recyclable_content,
    moderate_content,
    pool_stats,
    purge_deleted,
    rate_content,
    reconcile_archive,
    record_view,
    recycle_content,
    restore_deleted,
)
from hackfeed.content.store import ArchiveStore, ContentStore

__all__ = [
    "ArchiveStore",
    "ContentRecord",
    "ContentSource",
    "ContentStats",
    "ContentStatus",
    "ContentStore",
    "ContentType",
    "DeletedContentRecord",
    "DeletionReason",
    "Difficulty",
    "Pool",
    "archive_and_remove",
    "classify_pool",
    "find_recyclable_content",
    "moderate_content",
    "next_pool",
    "pool_stats",
    "purge_deleted",
    "rate_content",
    "reconcile_archive",
    "record_view",
    "recycle_content",
    "restore_deleted",
]
