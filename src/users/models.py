"""User models — only the fields the scheduled sweeps touch."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from hackfeed.content.models import new_id, utcnow


class UserRole(StrEnum):
    USER = "user"
    ADMIN = "admin"


class SubscriptionTier(StrEnum):
    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


class SubscriptionStatus(StrEnum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class Subscription(BaseModel):
    tier: SubscriptionTier = SubscriptionTier.FREE
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    end_date: datetime | None = None


class Streak(BaseModel):
    current: int = Field(default=0, ge=0)
    longest: int = Field(default=0, ge=0)
    last_activity: datetime | None = None


class UserRecord(BaseModel):
    """A feed user or administrator."""

    id: str = Field(default_factory=new_id)
    name: str
    email: str
    role: UserRole = UserRole.USER
    last_login: datetime | None = None
    streak: Streak = Field(default_factory=Streak)
    subscription: Subscription = Field(default_factory=Subscription)
    created_at: datetime = Field(default_factory=utcnow)
