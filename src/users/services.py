"""Scheduled user sweeps and batch identity lookup."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from hackfeed.content.models import utcnow
from hackfeed.errors import NotFoundError
from hackfeed.users.models import SubscriptionStatus, SubscriptionTier, UserRole
from hackfeed.users.store import UserStore

logger = logging.getLogger(__name__)


def resolve_admin_id(user_store: UserStore, configured_id: str = "") -> str:
    """Return the identity generated content is attributed to.

    Uses ``configured_id`` when set (it must exist and be an admin),
    otherwise the first admin in the store.

    Raises NotFoundError if no usable admin identity exists.
    """
    if configured_id:
        user = user_store.find_by_id(configured_id)
        if user is None or user.role != UserRole.ADMIN:
            raise NotFoundError(f"Configured admin user {configured_id} not found")
        return user.id

    admin = user_store.find_admin()
    if admin is None:
        raise NotFoundError("No admin user found to assign as content creator")
    return admin.id


def reset_inactive_streaks(
    user_store: UserStore,
    *,
    inactive_days: int = 2,
    now: datetime | None = None,
) -> int:
    """Zero the current streak of users who have not logged in recently.

    Returns the number of users updated.
    """
    cutoff = (now or utcnow()) - timedelta(days=inactive_days)
    updated = 0
    for user in user_store.list_all():
        if user.streak.current <= 0:
            continue
        if user.last_login is None or user.last_login >= cutoff:
            continue
        user.streak.current = 0
        user_store.replace(user)
        updated += 1
    if updated:
        logger.info("Reset streaks for %d inactive users", updated)
    return updated


def expire_subscriptions(user_store: UserStore, *, now: datetime | None = None) -> int:
    """Downgrade paid subscriptions whose end date has passed.

    Active or cancelled subscriptions past ``end_date`` become
    ``expired`` on the free tier.  Returns the number of users updated.
    """
    now = now or utcnow()
    updated = 0
    for user in user_store.list_all():
        sub = user.subscription
        if sub.end_date is None or sub.end_date >= now:
            continue
        if sub.status not in (SubscriptionStatus.ACTIVE, SubscriptionStatus.CANCELLED):
            continue
        if sub.tier == SubscriptionTier.FREE:
            continue
        sub.status = SubscriptionStatus.EXPIRED
        sub.tier = SubscriptionTier.FREE
        user_store.replace(user)
        updated += 1
    if updated:
        logger.info("Expired %d subscriptions", updated)
    return updated
