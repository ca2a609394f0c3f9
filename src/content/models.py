"""Content domain models — pure Pydantic v2 data types.

A ContentRecord moves draft → published and is eventually retired into
the archive as a DeletedContentRecord.  Engagement counters only ever
grow, the pool is derived from them, and ``has_been_published`` never
flips back once set.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


class ContentStatus(StrEnum):
    """Lifecycle status of a content record."""

    DRAFT = "draft"
    PENDING = "pending"
    PUBLISHED = "published"
    REJECTED = "rejected"
    ARCHIVED = "archived"


class ContentType(StrEnum):
    """Presentation tag of a content item."""

    HACK = "hack"
    TIP = "tip"
    HACK2 = "hack2"
    TIP2 = "tip2"
    QUOTE = "quote"


class Difficulty(StrEnum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class ContentSource(StrEnum):
    AI = "ai"
    HUMAN = "human"
    IMPORTED = "imported"


class Pool(StrEnum):
    """Derived quality bucket for published content."""

    REGULAR = "regular"
    ACCEPTED = "accepted"
    HIGHLY_LIKED = "highly_liked"
    DISLIKED = "disliked"
    PREMIUM = "premium"


class DeletionReason(StrEnum):
    """Why a record was moved into the archive."""

    MANUAL_DELETE = "manual_delete"
    AUTO_DELETE = "auto_delete"
    DUPLICATE = "duplicate"
    CATEGORY_DELETED = "category_deleted"
    OTHER = "other"


class ContentStats(BaseModel):
    """Engagement counters. Increment-only."""

    views: int = Field(default=0, ge=0)
    likes: int = Field(default=0, ge=0)
    dislikes: int = Field(default=0, ge=0)
    shares: int = Field(default=0, ge=0)
    saves: int = Field(default=0, ge=0)


# Fields a patch may never set directly.
_UNPATCHABLE = frozenset({"id", "created_at", "stats", "pool"})


class ContentRecord(BaseModel):
    """A unit of user-facing material in the live content collection."""

    id: str = Field(default_factory=new_id)
    title: str
    body: str
    summary: str
    category_id: str
    content_type: ContentType = ContentType.HACK
    difficulty: Difficulty = Difficulty.BEGINNER
    status: ContentStatus = ContentStatus.DRAFT
    tags: list[str] = Field(default_factory=list)
    source: ContentSource = ContentSource.HUMAN
    author_id: str = ""
    moderator_id: str | None = None
    moderation_notes: str | None = None
    stats: ContentStats = Field(default_factory=ContentStats)
    pool: Pool = Pool.REGULAR
    premium: bool = False
    time_to_complete: int = 5  # minutes
    has_been_published: bool = False
    publish_date: datetime | None = None
    expiry_date: datetime | None = None
    usage_count: int = Field(default=0, ge=0)
    last_used_date: datetime | None = None
    recycle_count: int = Field(default=0, ge=0)
    last_recycle_date: datetime | None = None
    is_duplicate: bool = False
    original_content_id: str | None = None
    metadata: dict[str, str] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("title", "body", "summary")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value.strip()

    @model_validator(mode="after")
    def _published_invariant(self) -> ContentRecord:
        if self.status == ContentStatus.PUBLISHED:
            if self.publish_date is None or not self.has_been_published:
                raise ValueError(
                    "published content needs publish_date and has_been_published=True"
                )
        return self

    @property
    def rating(self) -> float:
        """Likes share of all ratings on a 0–5 scale (0 when unrated)."""
        total = self.stats.likes + self.stats.dislikes
        if total == 0:
            return 0.0
        return self.stats.likes / total * 5

    # ── Mutations ────────────────────────────────────────────────

    def touch(self, now: datetime | None = None) -> None:
        self.updated_at = now or utcnow()

    def refresh_pool(self) -> Pool:
        """Recompute the pool from current stats. Premium is left alone."""
        from hackfeed.content.pools import next_pool

        self.pool = next_pool(self.pool, self.stats.likes, self.stats.dislikes)
        return self.pool

    def record_like(self) -> None:
        self.stats.likes += 1
        self.refresh_pool()
        self.touch()

    def record_dislike(self) -> None:
        self.stats.dislikes += 1
        self.refresh_pool()
        self.touch()

    def record_view(self) -> None:
        self.stats.views += 1
        self.touch()

    def record_share(self) -> None:
        self.stats.shares += 1
        self.touch()

    def record_save(self) -> None:
        self.stats.saves += 1
        self.touch()

    def with_patch(self, patch: dict[str, Any], now: datetime | None = None) -> ContentRecord:
        """Return a validated copy with ``patch`` applied.

        ``id`` and ``created_at`` are immutable and ``has_been_published``
        cannot be reset once true.  ``stats`` only change through the
        ``record_*`` methods and ``pool`` only through :meth:`refresh_pool`.
        Such keys are dropped.
        """
        data = self.model_dump()
        for key, value in patch.items():
            if key in _UNPATCHABLE:
                continue
            if key == "has_been_published" and self.has_been_published and not value:
                continue
            data[key] = value
        data["updated_at"] = now or utcnow()
        return ContentRecord.model_validate(data)


class DeletedContentRecord(BaseModel):
    """Archived snapshot of a content record plus provenance."""

    id: str = Field(default_factory=new_id)
    content: ContentRecord
    deleted_at: datetime = Field(default_factory=utcnow)
    original_content_id: str
    reason: DeletionReason = DeletionReason.MANUAL_DELETE
    metadata: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_content(
        cls,
        record: ContentRecord,
        reason: DeletionReason,
        *,
        deleted_at: datetime | None = None,
        metadata: dict[str, str] | None = None,
    ) -> DeletedContentRecord:
        return cls(
            content=record.model_copy(deep=True),
            deleted_at=deleted_at or utcnow(),
            original_content_id=record.id,
            reason=reason,
            metadata=dict(metadata or {}),
        )

    @property
    def category_id(self) -> str:
        return self.content.category_id

    @property
    def title(self) -> str:
        return self.content.title
