"""Categories — the unit the daily refresh iterates over."""

from hackfeed.categories.models import Category
from hackfeed.categories.store import CategoryStore

__all__ = ["Category", "CategoryStore"]
