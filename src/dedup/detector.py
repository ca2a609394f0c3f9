"""Duplicate detection over the content store.

Two scoring policies live side by side and do not agree with each other:

* the per-item query (:meth:`DuplicateDetector.find_potential_duplicates`)
  uses Levenshtein-based title/body similarity weighted 0.4/0.6 behind a
  0.8 title pre-filter;
* the corpus sweep (:meth:`DuplicateDetector.sweep`) uses Jaccard word
  overlap weighted 0.7 body / 0.3 title with a 0.7 threshold.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime

from pydantic import BaseModel

from hackfeed.config import DuplicatesConfig
from hackfeed.content.models import ContentRecord, DeletedContentRecord, DeletionReason
from hackfeed.content.services import archive_and_remove
from hackfeed.content.store import ArchiveStore, ContentStore
from hackfeed.dedup.similarity import (
    body_similarity,
    jaccard_word_similarity,
    title_similarity,
)
from hackfeed.errors import HackfeedError, InvalidArgumentError, NotFoundError

logger = logging.getLogger(__name__)


class DuplicateCandidate(BaseModel):
    """One potential duplicate of a target item."""

    id: str
    title: str
    category_id: str
    title_similarity: float
    body_similarity: float
    overall_similarity: float


class ResolveResult(BaseModel):
    kept: str
    marked_as_duplicates: list[str]


class SweepResult(BaseModel):
    """Counters from one corpus-wide sweep."""

    processed: int = 0
    detected: int = 0
    archived: int = 0
    failed: int = 0


class DuplicateDetector:
    """Finds and archives near-duplicate content."""

    def __init__(
        self,
        content_store: ContentStore,
        archive_store: ArchiveStore,
        config: DuplicatesConfig | None = None,
    ) -> None:
        self._content = content_store
        self._archive = archive_store
        self._config = config or DuplicatesConfig()

    # ── Per-item operations ──────────────────────────────────────

    def find_potential_duplicates(
        self,
        target_id: str,
        category_id: str | None = None,
    ) -> list[DuplicateCandidate]:
        """Rank live content by similarity to ``target_id``.

        Raises NotFoundError if the target does not exist.
        """
        target = self._content.find_by_id(target_id)
        if target is None:
            raise NotFoundError(f"Content {target_id} not found")

        candidates = self._content.find(
            category_id=category_id,
            where=lambda r: r.id != target_id,
        )

        results: list[DuplicateCandidate] = []
        for item in candidates:
            t_sim = title_similarity(target.title, item.title)
            if t_sim <= self._config.title_prefilter:
                continue
            b_sim = body_similarity(target.body, item.body)
            overall = t_sim * self._config.title_weight + b_sim * self._config.body_weight
            results.append(
                DuplicateCandidate(
                    id=item.id,
                    title=item.title,
                    category_id=item.category_id,
                    title_similarity=t_sim,
                    body_similarity=b_sim,
                    overall_similarity=overall,
                )
            )

        results.sort(key=lambda c: c.overall_similarity, reverse=True)
        return results

    def mark_as_duplicate(
        self,
        content_id: str,
        original_content_id: str | None = None,
        *,
        now: datetime | None = None,
    ) -> DeletedContentRecord | None:
        """Archive ``content_id`` with reason ``duplicate``.

        Returns None if the item is already gone.  An unresolvable
        ``original_content_id`` is logged and dropped.
        """
        if original_content_id is not None and original_content_id == content_id:
            raise InvalidArgumentError(f"Content {content_id} cannot duplicate itself")

        if not self._content.exists(content_id):
            logger.info("Duplicate mark skipped, content %s not found", content_id)
            return None

        if original_content_id is not None and not self._content.exists(original_content_id):
            logger.warning(
                "Original content %s not found for duplicate marking of %s",
                original_content_id,
                content_id,
            )
            original_content_id = None

        metadata: dict[str, str] = {}
        snapshot: dict[str, object] = {"is_duplicate": True}
        if original_content_id is not None:
            metadata["duplicate_of"] = original_content_id
            snapshot["original_content_id"] = original_content_id

        archived = archive_and_remove(
            self._content,
            self._archive,
            content_id,
            DeletionReason.DUPLICATE,
            metadata=metadata,
            snapshot_updates=snapshot,
            now=now,
        )
        if archived is not None:
            logger.info(
                "Content %s marked as duplicate%s and moved to archive",
                content_id,
                f" of {original_content_id}" if original_content_id else "",
            )
        return archived

    def resolve_duplicates(self, ids_ordered_by_quality: list[str]) -> ResolveResult:
        """Keep the first id and archive every other one as its duplicate."""
        if not ids_ordered_by_quality or len(ids_ordered_by_quality) < 2:
            raise InvalidArgumentError("At least two content IDs are required")

        kept, *others = ids_ordered_by_quality
        if kept in others:
            raise InvalidArgumentError(f"Content {kept} cannot duplicate itself")

        marked: list[str] = []
        for duplicate_id in others:
            archived = self.mark_as_duplicate(duplicate_id, kept)
            if archived is not None:
                marked.append(archived.original_content_id)
        return ResolveResult(kept=kept, marked_as_duplicates=marked)

    # ── Corpus sweep ─────────────────────────────────────────────

    def sweep_similarity(self, a: ContentRecord, b: ContentRecord) -> float:
        """Weighted Jaccard score used by :meth:`sweep`."""
        body = jaccard_word_similarity(a.body.strip().lower(), b.body.strip().lower())
        title = jaccard_word_similarity(a.title.strip().lower(), b.title.strip().lower())
        return body * self._config.sweep_body_weight + title * self._config.sweep_title_weight

    def sweep(self, *, now: datetime | None = None) -> SweepResult:
        """Compare every pair within each category and archive duplicates.

        Of a duplicate pair the later-created item is archived.  Items
        archived during this pass are never compared again.
        """
        result = SweepResult()
        by_category: dict[str, list[ContentRecord]] = defaultdict(list)
        for record in self._content.find(sort_by=["created_at", "id"]):
            by_category[record.category_id].append(record)

        archived_ids: set[str] = set()

        for category_id, items in by_category.items():
            if len(items) < 2:
                result.processed += len(items)
                continue
            logger.debug("Sweeping %d items in category %s", len(items), category_id)

            for i, keeper in enumerate(items):
                if keeper.id in archived_ids:
                    continue
                result.processed += 1
                if not keeper.body.strip() or not keeper.title.strip():
                    continue

                for later in items[i + 1 :]:
                    if later.id in archived_ids:
                        continue
                    score = self.sweep_similarity(keeper, later)
                    if score <= self._config.sweep_threshold:
                        continue

                    result.detected += 1
                    archived_ids.add(later.id)
                    try:
                        archived = self.mark_as_duplicate(later.id, keeper.id, now=now)
                    except HackfeedError:
                        result.failed += 1
                        logger.warning(
                            "Failed to archive duplicate %s of %s",
                            later.id,
                            keeper.id,
                            exc_info=True,
                        )
                        continue
                    if archived is not None:
                        result.archived += 1
                        logger.info(
                            "Moved duplicate %r to archive (similarity: %d%%)",
                            later.title[:30],
                            round(score * 100),
                        )

        return result
