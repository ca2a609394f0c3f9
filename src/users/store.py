"""JSON-backed user store."""

from __future__ import annotations

from hackfeed.shared.store import JsonCollection, sort_records
from hackfeed.users.models import UserRecord, UserRole

USERS_FILENAME = "users.json"


class UserStore(JsonCollection[UserRecord]):
    """CRUD store for user records."""

    filename = USERS_FILENAME
    model_class = UserRecord

    def list_all(self) -> list[UserRecord]:
        return [self._copy(u) for u in sort_records(self._all(), "created_at", getattr)]

    def find_admin(self) -> UserRecord | None:
        """Return the earliest-created admin, if any."""
        for user in self.list_all():
            if user.role == UserRole.ADMIN:
                return user
        return None
