"""Category model."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from hackfeed.content.models import ContentType, new_id, utcnow


class Category(BaseModel):
    """A feed category. Only active categories take part in the daily refresh."""

    id: str = Field(default_factory=new_id)
    name: str
    slug: str
    description: str = ""
    active: bool = True
    priority: int = 0
    content_type: ContentType = ContentType.HACK
    content_count: int = 0
    # Optional custom generation prompt for this category
    prompt: str | None = None
    last_generated: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
