"""User directory lookups for human-readable participant labels."""

import logging
from abc import ABC, abstractmethod

from apwf.domain.constants import UNRESOLVED_USER_TEMPLATE
from apwf.domain.models.user import DirectoryUser
from apwf.domain.store.approval_store import ApprovalStore

logger = logging.getLogger(__name__)


class UserDirectory(ABC):
    """Pure lookup from user id to display name.

    ``name`` never fails: unknown ids resolve to ``#<id>``.
    """

    async def load(self) -> None:
        """Refresh the directory contents. No-op unless overridden."""
        return None

    @abstractmethod
    def get(self, user_id: int) -> DirectoryUser | None:
        ...

    @abstractmethod
    def all(self) -> list[DirectoryUser]:
        ...

    def name(self, user_id: int | None) -> str:
        if user_id is None:
            return "-"
        user = self.get(user_id)
        if user is not None and user.display_name:
            return user.display_name
        return UNRESOLVED_USER_TEMPLATE.format(user_id=user_id)


class StaticUserDirectory(UserDirectory):
    """Directory backed by a fixed list of users."""

    def __init__(self, users: list[DirectoryUser] | None = None) -> None:
        self._users: dict[int, DirectoryUser] = {u.id: u for u in users or []}

    def get(self, user_id: int) -> DirectoryUser | None:
        return self._users.get(user_id)

    def all(self) -> list[DirectoryUser]:
        return list(self._users.values())


class HttpUserDirectory(StaticUserDirectory):
    """Directory loaded from the store's account listing on ``load()``."""

    def __init__(self, store: ApprovalStore) -> None:
        super().__init__()
        self._store = store

    async def load(self) -> None:
        users = await self._store.list_users()
        self._users = {u.id: u for u in users}
        logger.debug(f"Loaded {len(self._users)} directory users")
