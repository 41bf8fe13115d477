import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeAlias

import structlog

from recordcomments.core.core import Service
from recordcomments.core.modules.sync.queue import SyncQueue
from recordcomments.core.modules.user.models import UserInfo
from recordcomments.errors import NotFoundError, UserSourceError

logger = structlog.get_logger(__name__)

UserSource: TypeAlias = Callable[[], Awaitable[list[UserInfo]]]


class UserService(Service):
    """Mentionable users merged from several sources, with in-memory cache."""

    def __init__(self, queue: SyncQueue) -> None:
        super().__init__(queue)
        self._users: dict[str, UserInfo] = {}

    def get_user(self, user_id: str) -> UserInfo:
        """Get user by ID from cache."""
        if user_id not in self._users:
            raise NotFoundError(f"User '{user_id}' not found")
        return self._users[user_id]

    def get_user_by_email(self, email: str) -> UserInfo | None:
        return next((u for u in self._users.values() if u.email == email), None)

    def get_all_users(self) -> list[UserInfo]:
        """Get all users from cache."""
        return list(self._users.values())

    async def load_users(self, *sources: UserSource) -> list[UserInfo]:
        """Load every source concurrently and merge the ones that succeeded.

        Users are deduplicated by id, first occurrence in source order wins. A failing
        source is logged and skipped; UserSourceError is raised only when all fail.
        """
        results = await asyncio.gather(*(source() for source in sources), return_exceptions=True)

        users: dict[str, UserInfo] = {}
        failures = 0
        for index, result in enumerate(results):
            if isinstance(result, BaseException):
                failures += 1
                logger.warning("user_source_failed", source_index=index, error_type=type(result).__name__)
                continue
            for user in result:
                users.setdefault(user.id, user)

        if sources and failures == len(sources):
            raise UserSourceError

        self._users = users
        logger.debug("users_loaded", user_count=len(users), failed_sources=failures)
        return list(users.values())
