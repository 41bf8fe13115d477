from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, cast

import structlog

from recordcomments.config import Config
from recordcomments.core.modules.comment.models import Person
from recordcomments.core.modules.sync.queue import ConflictHandler, FailureHandler, OrphanedDraftHandler, SyncQueue
from recordcomments.core.modules.sync.store import CommentStore, Conversation, Unsubscribe
from recordcomments.logging import setup_logging

if TYPE_CHECKING:
    from recordcomments.core.modules.comment.service import CommentService
    from recordcomments.core.modules.user.service import UserService

logger = structlog.get_logger(__name__)


class Service:
    """Base class for services working on the conversation's sync queue."""

    def __init__(self, queue: SyncQueue) -> None:
        self.queue = queue
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service once the conversation is loaded."""

    async def on_stop(self) -> None:
        """Cleanup service on shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    user: UserService
    comment: CommentService

    def __init__(self, queue: SyncQueue) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []

        # Service configuration: (attribute_name, module_path, class_name)
        service_configs = [
            ("user", "recordcomments.core.modules.user.service", "UserService"),
            ("comment", "recordcomments.core.modules.comment.service", "CommentService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(queue)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        for service in self._services:
            await service.on_stop()


class Core:
    """Container providing config, the conversation's sync queue and all service instances."""

    config: Config
    store: CommentStore
    conversation: Conversation
    current_user: Person
    queue: SyncQueue
    services: Services

    def __init__(
        self,
        config: Config,
        store: CommentStore,
        conversation: Conversation,
        current_user: Person,
        on_conflict: ConflictHandler | None = None,
        on_failure: FailureHandler | None = None,
        on_orphaned_draft: OrphanedDraftHandler | None = None,
        configure_logging: bool = False,
    ) -> None:
        if configure_logging:
            setup_logging(config.debug)
        self.config = config
        self.store = store
        self.conversation = conversation
        self.current_user = current_user
        self.queue = SyncQueue(
            store,
            conversation,
            config,
            current_user.email,
            on_conflict=on_conflict,
            on_failure=on_failure,
            on_orphaned_draft=on_orphaned_draft,
        )
        self.services = Services(self.queue)
        self.services.set_core(self)
        self._unsubscribe: Unsubscribe | None = None

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Load and subscribe on entry; unsubscribe and drain pending writes on exit."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        await self.queue.load()
        self._unsubscribe = self.store.subscribe(self.conversation, self.queue.handle_remote)
        await self.services.start_all()
        logger.debug("core_started", record_id=self.queue.record_id, comment_count=len(self.queue.comments))

    async def on_stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self.queue.drain()
        await self.services.stop_all()
