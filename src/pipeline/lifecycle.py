"""Lifecycle pipeline — daily refresh of every active category.

Per category, in this order: generate drafts, retire what is currently
published into the archive, promote a random subset of drafts.  Once all
categories are done, one corpus-wide duplicate sweep runs.

Failures inside one category are logged and counted and the run moves
on; only a missing category list or admin identity aborts the run.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime

from pydantic import BaseModel, Field

from hackfeed.categories.models import Category
from hackfeed.categories.store import CategoryStore
from hackfeed.config import HackfeedConfig
from hackfeed.content.models import (
    ContentRecord,
    ContentSource,
    ContentStatus,
    DeletionReason,
    Difficulty,
    utcnow,
)
from hackfeed.content.services import (
    archive_and_remove,
    find_recyclable_content,
    reconcile_archive,
    recycle_content,
)
from hackfeed.content.store import ArchiveStore, ContentStore
from hackfeed.dedup.detector import DuplicateDetector, SweepResult
from hackfeed.errors import (
    GenerationError,
    NotFoundError,
    PipelineReport,
    SchedulerAbort,
    TransitionError,
)
from hackfeed.generation.generator import ContentGenerator
from hackfeed.users.services import expire_subscriptions, reset_inactive_streaks, resolve_admin_id
from hackfeed.users.store import UserStore

logger = logging.getLogger(__name__)


@dataclass
class JobContext:
    """Per-scheduler state passed to every run instead of process globals.

    ``last_runs`` is written only by :class:`~hackfeed.pipeline.schedule.JobScheduler`,
    keyed by job name, holding the local date of the last run.
    """

    clock: Callable[[], datetime] = utcnow
    rng: random.Random = field(default_factory=random.Random)
    admin_id: str | None = None
    last_runs: dict[str, date] = field(default_factory=dict)
    manual_runs: list[datetime] = field(default_factory=list)

    def now(self) -> datetime:
        return self.clock()


class FailureCounts(BaseModel):
    generation: int = 0
    retire: int = 0
    promote: int = 0
    category: int = 0
    sweep: int = 0

    @property
    def total(self) -> int:
        return self.generation + self.retire + self.promote + self.category + self.sweep


class RefreshSummary(BaseModel):
    """Outcome of one daily refresh run."""

    categories: int = 0
    generated: int = 0
    retired: int = 0
    published: int = 0
    duplicates: SweepResult = Field(default_factory=SweepResult)
    failures: FailureCounts = Field(default_factory=FailureCounts)
    started_at: datetime | None = None
    finished_at: datetime | None = None
    manual: bool = False


def difficulty_plan(count: int, split: tuple[float, float] | list[float] = (0.6, 0.9)) -> list[Difficulty]:
    """Contiguous difficulty blocks for ``count`` generation calls.

    The default split gives 60% beginner, 30% intermediate, 10% advanced.
    """
    beginner_cut, intermediate_cut = split
    plan: list[Difficulty] = []
    for i in range(count):
        if i < count * beginner_cut:
            plan.append(Difficulty.BEGINNER)
        elif i < count * intermediate_cut:
            plan.append(Difficulty.INTERMEDIATE)
        else:
            plan.append(Difficulty.ADVANCED)
    return plan


class LifecycleScheduler:
    """Runs the daily refresh and the independent maintenance jobs."""

    def __init__(
        self,
        config: HackfeedConfig,
        *,
        content_store: ContentStore,
        archive_store: ArchiveStore,
        category_store: CategoryStore,
        user_store: UserStore,
        generator: ContentGenerator,
        detector: DuplicateDetector | None = None,
        context: JobContext | None = None,
    ) -> None:
        self.config = config
        self.content_store = content_store
        self.archive_store = archive_store
        self.category_store = category_store
        self.user_store = user_store
        self.generator = generator
        self.detector = detector or DuplicateDetector(
            content_store, archive_store, config.duplicates
        )
        self.context = context or JobContext()
        self.report = PipelineReport()

    @classmethod
    def from_config(
        cls,
        config: HackfeedConfig,
        *,
        generator: ContentGenerator | None = None,
        context: JobContext | None = None,
    ) -> LifecycleScheduler:
        """Build a scheduler over the JSON stores in ``config.store.directory``."""
        data_dir = config.data_dir
        content_store = ContentStore(data_dir)
        archive_store = ArchiveStore(data_dir)
        return cls(
            config,
            content_store=content_store,
            archive_store=archive_store,
            category_store=CategoryStore(data_dir),
            user_store=UserStore(data_dir),
            generator=generator or ContentGenerator(config.generation),
            detector=DuplicateDetector(content_store, archive_store, config.duplicates),
            context=context,
        )

    # ── Daily refresh ────────────────────────────────────────────

    def run_manual_refresh(self) -> RefreshSummary:
        """Admin-triggered refresh. Same sequence as the scheduled run."""
        self.context.manual_runs.append(self.context.now())
        summary = self.run_daily_refresh()
        summary.manual = True
        return summary

    def run_daily_refresh(self) -> RefreshSummary:
        """Generate → retire → promote per category, then sweep duplicates.

        Raises:
            SchedulerAbort: No active categories, or no admin identity.
        """
        self.report = PipelineReport()
        summary = RefreshSummary(started_at=self.context.now())

        categories = self.category_store.list_active()
        if not categories:
            raise SchedulerAbort("No active categories to refresh")
        try:
            admin_id = resolve_admin_id(self.user_store, self.config.users.admin_user_id)
        except NotFoundError as exc:
            raise SchedulerAbort(str(exc)) from exc
        self.context.admin_id = admin_id

        logger.info("Starting content refresh for %d categories", len(categories))

        for category in categories:
            summary.categories += 1
            logger.info("Processing category: %s", category.name)
            try:
                self._refresh_category(category, admin_id, summary)
            except Exception as exc:
                summary.failures.category += 1
                logger.warning("Refresh failed for category %s", category.name, exc_info=True)
                self.report.add_error(
                    "refresh", str(exc), source=category.id, error_type="category_error"
                )

        logger.info("Checking for duplicate content")
        try:
            summary.duplicates = self.detector.sweep(now=self.context.now())
            summary.failures.sweep += summary.duplicates.failed
        except Exception as exc:
            summary.failures.sweep += 1
            logger.error("Duplicate sweep failed", exc_info=True)
            self.report.add_error("sweep", str(exc), source="detector", error_type="sweep_error")

        summary.finished_at = self.context.now()
        logger.info(
            "Content refresh completed: %d categories, %d generated, %d retired, "
            "%d published, %d duplicates detected, %d archived",
            summary.categories,
            summary.generated,
            summary.retired,
            summary.published,
            summary.duplicates.detected,
            summary.duplicates.archived,
        )
        return summary

    def _refresh_category(self, category: Category, admin_id: str, summary: RefreshSummary) -> None:
        summary.generated += self.generate_for_category(category, admin_id, summary)
        summary.retired += self.retire_published(category, summary)
        summary.published += self.promote_drafts(category, summary)

    def generate_for_category(
        self,
        category: Category,
        admin_id: str,
        summary: RefreshSummary | None = None,
    ) -> int:
        """Create new drafts for ``category``. Returns how many were inserted."""
        plan = difficulty_plan(
            self.config.generation.per_category, self.config.generation.difficulty_split
        )
        logger.info("Generating %d new content items for %s", len(plan), category.name)

        created = 0
        for difficulty in plan:
            try:
                generated = self.generator.generate(category, difficulty)
                record = ContentRecord(
                    title=generated.title,
                    body=generated.body,
                    summary=generated.summary_or_title(),
                    category_id=category.id,
                    content_type=category.content_type,
                    difficulty=difficulty,
                    status=ContentStatus.DRAFT,
                    source=ContentSource.AI,
                    author_id=admin_id,
                    tags=generated.tags,
                    has_been_published=False,
                    publish_date=None,
                    created_at=self.context.now(),
                    updated_at=self.context.now(),
                )
                self.content_store.insert(record)
            except GenerationError as exc:
                self._count_failure(summary, "generation")
                logger.warning("Generation failed for %s (%s): %s", category.name, difficulty, exc)
                self.report.add_error(
                    "generate", str(exc), source=category.id, error_type="generation_error"
                )
                continue
            except Exception as exc:
                self._count_failure(summary, "generation")
                logger.warning("Could not store generated content for %s", category.name, exc_info=True)
                self.report.add_error(
                    "generate", str(exc), source=category.id, error_type="store_error"
                )
                continue
            created += 1
            logger.info("Generated content: %r (%s)", record.title[:30], difficulty.value)
        return created

    def retire_published(self, category: Category, summary: RefreshSummary | None = None) -> int:
        """Move all published content of ``category`` into the archive."""
        published = self.content_store.find(
            category_id=category.id, status=ContentStatus.PUBLISHED
        )
        logger.info("Retiring %d published items for %s", len(published), category.name)

        retired = 0
        for record in published:
            try:
                archived = archive_and_remove(
                    self.content_store,
                    self.archive_store,
                    record.id,
                    DeletionReason.AUTO_DELETE,
                    now=self.context.now(),
                )
            except TransitionError as exc:
                self._count_failure(summary, "retire")
                logger.warning("Could not retire %s: %s", record.id, exc)
                self.report.add_error(
                    "retire", str(exc), source=record.id, error_type="transition_error"
                )
                continue
            if archived is not None:
                retired += 1
        return retired

    def promote_drafts(self, category: Category, summary: RefreshSummary | None = None) -> int:
        """Publish a random subset of the category's drafts."""
        drafts = self.content_store.find(
            category_id=category.id,
            status=ContentStatus.DRAFT,
            sort_by=["created_at", "id"],
        )
        if not drafts:
            logger.info("No draft contents found for category: %s", category.name)
            return 0

        count = min(self.config.refresh.publish_per_category, len(drafts))
        selected = self.context.rng.sample(drafts, count)

        published = 0
        for draft in selected:
            now = self.context.now()
            try:
                updated = self.content_store.update_by_id(
                    draft.id,
                    {
                        "status": ContentStatus.PUBLISHED,
                        "publish_date": now,
                        "has_been_published": True,
                    },
                    now=now,
                )
            except Exception as exc:
                self._count_failure(summary, "promote")
                logger.warning("Error publishing draft %s", draft.id, exc_info=True)
                self.report.add_error(
                    "promote", str(exc), source=draft.id, error_type="store_error"
                )
                continue
            if updated is None:
                logger.debug("Draft %s disappeared before promotion", draft.id)
                continue
            published += 1
            logger.info("Published draft content: %r", draft.title[:30])
        return published

    @staticmethod
    def _count_failure(summary: RefreshSummary | None, phase: str) -> None:
        if summary is not None:
            setattr(summary.failures, phase, getattr(summary.failures, phase) + 1)

    # ── Independent jobs ─────────────────────────────────────────

    def recycle_popular_content(self) -> int:
        """Refresh the publish date of proven high performers."""
        now = self.context.now()
        recyclable = find_recyclable_content(self.content_store, self.config.recycle, now=now)
        if not recyclable:
            return 0
        count = recycle_content(self.content_store, [r.id for r in recyclable], now=now)
        logger.info("Content recycling completed: %d items recycled", count)
        return count

    def check_user_streaks(self) -> int:
        return reset_inactive_streaks(
            self.user_store,
            inactive_days=self.config.users.streak_inactive_days,
            now=self.context.now(),
        )

    def check_expired_subscriptions(self) -> int:
        return expire_subscriptions(self.user_store, now=self.context.now())

    def reconcile_archive(self) -> int:
        return reconcile_archive(self.content_store, self.archive_store)
