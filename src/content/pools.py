"""Pool classifier — derives a quality pool from like/dislike counts."""

from __future__ import annotations

from hackfeed.content.models import Pool

MIN_RATINGS = 10
HIGHLY_LIKED_RATING = 0.9
ACCEPTED_RATING = 0.8
DISLIKED_RATING = 0.4


def classify_pool(likes: int, dislikes: int) -> Pool | None:
    """Return the pool implied by the ratings, or None when there is too little signal.

    None means the caller must leave the current pool untouched.  Never
    returns ``Pool.PREMIUM``; that pool is assigned by subscription rules.
    """
    if likes is None or dislikes is None:
        raise TypeError("likes and dislikes are required")
    total = likes + dislikes
    if total < MIN_RATINGS:
        return None

    rating = likes / total
    if rating >= HIGHLY_LIKED_RATING:
        return Pool.HIGHLY_LIKED
    if rating >= ACCEPTED_RATING:
        return Pool.ACCEPTED
    if rating <= DISLIKED_RATING:
        return Pool.DISLIKED
    return Pool.REGULAR


def next_pool(current: Pool, likes: int, dislikes: int) -> Pool:
    """Apply :func:`classify_pool` to a stored pool value."""
    if current == Pool.PREMIUM:
        return current
    classified = classify_pool(likes, dislikes)
    return current if classified is None else classified
