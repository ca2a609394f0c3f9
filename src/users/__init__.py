"""Users — the records touched by the streak and subscription sweeps."""

from hackfeed.users.models import (
    Streak,
    Subscription,
    SubscriptionStatus,
    SubscriptionTier,
    UserRecord,
    UserRole,
)
from hackfeed.users.services import (
    expire_subscriptions,
    reset_inactive_streaks,
    resolve_admin_id,
)
from hackfeed.users.store import UserStore

__all__ = [
    "Streak",
    "Subscription",
    "SubscriptionStatus",
    "SubscriptionTier",
    "UserRecord",
    "UserRole",
    "UserStore",
    "expire_subscriptions",
    "reset_inactive_streaks",
    "resolve_admin_id",
]
