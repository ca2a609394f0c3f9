"""JSON-backed category store."""

from __future__ import annotations

from hackfeed.categories.models import Category
from hackfeed.shared.store import JsonCollection, sort_records

CATEGORIES_FILENAME = "categories.json"


class CategoryStore(JsonCollection[Category]):
    """CRUD store for categories."""

    filename = CATEGORIES_FILENAME
    model_class = Category

    def list_all(self) -> list[Category]:
        """Return all categories ordered by priority, then name."""
        ordered = sort_records(self._all(), ["-priority", "name"], getattr)
        return [self._copy(c) for c in ordered]

    def list_active(self) -> list[Category]:
        return [c for c in self.list_all() if c.active]

    def find_by_slug(self, slug: str) -> Category | None:
        for category in self._all():
            if category.slug == slug:
                return self._copy(category)
        return None
