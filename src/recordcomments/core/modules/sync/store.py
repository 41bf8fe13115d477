"""Remote conversation record interface and an in-memory implementation."""

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeAlias

import structlog
from pydantic import BaseModel, Field

from recordcomments.errors import NotFoundError, StaleVersionError
from recordcomments.utils import new_id

logger = structlog.get_logger(__name__)


class Conversation(BaseModel):
    """Identifies the record a conversation is attached to."""

    model_id: str
    record_id: str


class StoredRecord(BaseModel):
    """Conversation record as held by the store: serialized comments plus a version for optimistic locking."""

    id: str
    content: Any = Field(None, description="Serialized comment array (JSON string, decoded list or None)")
    version: int = 1


RecordListener: TypeAlias = Callable[[StoredRecord], Awaitable[Any]]
Unsubscribe: TypeAlias = Callable[[], None]


class CommentStore(Protocol):
    """Fetch/create/update/subscribe access to conversation records.

    The store has no partial update: every write replaces the whole content.
    """

    async def find(self, conversation: Conversation) -> StoredRecord | None: ...

    async def get(self, record_id: str) -> StoredRecord: ...

    async def create(self, conversation: Conversation, content: str) -> StoredRecord: ...

    async def update(self, record_id: str, content: str, current_version: int) -> StoredRecord:
        """Replace content; raises StaleVersionError when `current_version` is outdated."""
        ...

    def subscribe(self, conversation: Conversation, listener: RecordListener) -> Unsubscribe: ...


class InMemoryCommentStore:
    """Process-local store; every write is pushed to all subscribers, including the writer."""

    def __init__(self) -> None:
        self._records: dict[str, StoredRecord] = {}
        self._conversations: dict[tuple[str, str], str] = {}
        self._owners: dict[str, Conversation] = {}
        self._listeners: dict[tuple[str, str], list[RecordListener]] = {}

    @staticmethod
    def _key(conversation: Conversation) -> tuple[str, str]:
        return (conversation.model_id, conversation.record_id)

    async def find(self, conversation: Conversation) -> StoredRecord | None:
        record_id = self._conversations.get(self._key(conversation))
        return self._records[record_id] if record_id else None

    async def get(self, record_id: str) -> StoredRecord:
        if record_id not in self._records:
            raise NotFoundError(f"Record '{record_id}' not found")
        return self._records[record_id]

    async def create(self, conversation: Conversation, content: str) -> StoredRecord:
        record = StoredRecord(id=new_id(), content=content, version=1)
        self._records[record.id] = record
        self._conversations[self._key(conversation)] = record.id
        self._owners[record.id] = conversation
        logger.debug("record_created", record_id=record.id, model_id=conversation.model_id)
        await self._notify(conversation, record)
        return record

    async def update(self, record_id: str, content: str, current_version: int) -> StoredRecord:
        existing = await self.get(record_id)
        if existing.version != current_version:
            raise StaleVersionError(record_id, current_version, existing.version)
        record = StoredRecord(id=record_id, content=content, version=existing.version + 1)
        self._records[record_id] = record
        await self._notify(self._owners[record_id], record)
        return record

    def subscribe(self, conversation: Conversation, listener: RecordListener) -> Unsubscribe:
        key = self._key(conversation)
        self._listeners.setdefault(key, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(key, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    async def _notify(self, conversation: Conversation, record: StoredRecord) -> None:
        for listener in list(self._listeners.get(self._key(conversation), [])):
            await listener(record)
