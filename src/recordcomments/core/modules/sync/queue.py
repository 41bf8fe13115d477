"""Sequencing of comment operations against the remote conversation record.

Operations are applied optimistically to the local tree, then persisted in FIFO
order by a single worker. Each persist re-applies the operation to freshly fetched
server state and writes the whole tree with the fetched version as an optimistic
lock, so concurrent writers never lose each other's changes.
"""

import asyncio
import time
from collections import deque
from collections.abc import Awaitable, Callable
from typing import TypeAlias

import structlog

from recordcomments.config import Config
from recordcomments.core.modules.comment.models import Comment, parse_comments, serialize_comments
from recordcomments.core.modules.operation.applicators import apply_operation
from recordcomments.core.modules.operation.models import Operation, OperationResult, OperationStatus
from recordcomments.core.modules.sync.drafts import Draft, extract_drafts, merge_with_drafts
from recordcomments.core.modules.sync.status import SyncErrorInfo, SyncState, categorize_sync_error
from recordcomments.core.modules.sync.store import CommentStore, Conversation, StoredRecord
from recordcomments.errors import StaleVersionError, StoreError, TransportError

logger = structlog.get_logger(__name__)

ConflictHandler: TypeAlias = Callable[[Operation, OperationResult], None]
FailureHandler: TypeAlias = Callable[[Operation, SyncErrorInfo], None]
OrphanedDraftHandler: TypeAlias = Callable[[list[Draft]], None]


def backoff_delay(attempt: int, base: float, maximum: float) -> float:
    """Exponential backoff: base, 2*base, 4*base... capped at maximum."""
    return min(base * 2**attempt, maximum)


class SyncQueue:
    """Owns the local comment tree of one conversation and keeps it in sync with the store."""

    def __init__(
        self,
        store: CommentStore,
        conversation: Conversation,
        config: Config,
        current_user_email: str,
        on_conflict: ConflictHandler | None = None,
        on_failure: FailureHandler | None = None,
        on_orphaned_draft: OrphanedDraftHandler | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._conversation = conversation
        self._config = config
        self._current_user_email = current_user_email
        self._on_conflict = on_conflict
        self._on_failure = on_failure
        self._on_orphaned_draft = on_orphaned_draft
        self._clock = clock
        self._sleep = sleep

        self._comments: list[Comment] = []
        self._record_id: str | None = None
        self._queue: deque[Operation] = deque()
        self._failed: list[Operation] = []
        self._worker: asyncio.Task[None] | None = None
        # Bumped on every local tree change; async completions compare against it
        self._sequence = 0
        self._last_write_at: float | None = None
        self._state = SyncState.IDLE
        self._error_info: SyncErrorInfo | None = None

    @property
    def comments(self) -> list[Comment]:
        return self._comments

    @property
    def record_id(self) -> str | None:
        """Id of the conversation record, None until it has been found or created."""
        return self._record_id

    @property
    def status(self) -> SyncState:
        return self._state

    @property
    def pending_count(self) -> int:
        return len(self._queue)

    @property
    def failed_count(self) -> int:
        return len(self._failed)

    @property
    def error_info(self) -> SyncErrorInfo | None:
        return self._error_info

    def is_in_cooldown(self) -> bool:
        if self._last_write_at is None:
            return False
        return self._clock() - self._last_write_at < self._config.sync_cooldown_seconds

    def is_sync_allowed(self) -> bool:
        """Inbound updates may replace local state only when nothing is pending and no recent write could echo."""
        return not self._queue and not self.is_in_cooldown()

    def set_local(self, comments: list[Comment]) -> None:
        """Replace the local tree without persisting (e.g. to show a draft)."""
        self._comments = comments
        self._sequence += 1

    def enqueue(self, op: Operation) -> OperationResult:
        """Apply an operation locally and schedule its persist.

        Operations that fail or change nothing locally are not persisted.
        """
        result = apply_operation(self._comments, op)
        if result.status is not OperationStatus.APPLIED:
            logger.debug("operation_not_enqueued", operation=op.type, status=result.status)
            return result

        self.set_local(result.comments)
        self._queue.append(op)
        logger.debug("operation_enqueued", operation=op.type, pending=len(self._queue))
        self._ensure_worker()
        return result

    def retry_failed(self) -> int:
        """Re-queue operations that exhausted their attempts; returns how many were re-queued."""
        failed, self._failed = self._failed, []
        self._queue.extend(failed)
        if failed:
            logger.info("failed_operations_requeued", count=len(failed))
            self._ensure_worker()
        return len(failed)

    async def drain(self) -> None:
        """Wait until every queued operation has been persisted or parked as failed."""
        while self._worker is not None and not self._worker.done():
            await self._worker

    async def load(self) -> None:
        """Fetch the conversation record and adopt it as local state."""
        for attempt in range(self._config.max_load_attempts):
            try:
                record = await self._store.find(self._conversation)
            except TransportError as e:
                self._error_info = categorize_sync_error(e, self._error_info)
                if attempt + 1 >= self._config.max_load_attempts:
                    break
                delay = backoff_delay(attempt, self._config.network_backoff_base, self._config.network_backoff_max)
                logger.info("conversation_load_retry", attempt=attempt + 1, delay=delay)
                self._state = SyncState.RETRYING
                await self._sleep(delay)
                continue
            except Exception as e:
                logger.exception("conversation_load_failed", record_id=self._conversation.record_id)
                self._error_info = categorize_sync_error(e, self._error_info)
                self._state = SyncState.FAILED
                return

            if record is not None:
                self._record_id = record.id
                self._adopt(parse_comments(record.content))
            self._state = SyncState.IDLE
            self._error_info = None
            logger.debug("conversation_loaded", record_id=self._record_id, comment_count=len(self._comments))
            return

        logger.error("conversation_load_gave_up", attempts=self._config.max_load_attempts)
        self._state = SyncState.FAILED

    async def handle_remote(self, record: StoredRecord) -> bool:
        """Subscription callback; returns True when the inbound state was adopted."""
        if not self.is_sync_allowed():
            logger.debug("remote_update_suppressed", pending=len(self._queue), in_cooldown=self.is_in_cooldown())
            return False
        if self._record_id is None:
            self._record_id = record.id
        self._adopt(parse_comments(record.content))
        logger.debug("remote_update_applied", record_id=record.id, version=record.version)
        return True

    def _adopt(self, server_comments: list[Comment]) -> None:
        drafts = extract_drafts(self._comments, self._current_user_email)
        merged = merge_with_drafts(server_comments, drafts)
        if merged.orphaned_drafts:
            logger.info("orphaned_drafts_dropped", count=len(merged.orphaned_drafts))
            if self._on_orphaned_draft is not None:
                self._on_orphaned_draft(merged.orphaned_drafts)
        self.set_local(merged.comments)

    def _ensure_worker(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._process_queue())

    async def _process_queue(self) -> None:
        while self._queue:
            op = self._queue[0]
            persisted = await self._persist(op)
            self._queue.popleft()
            if not persisted:
                self._failed.append(op)
        self._state = SyncState.FAILED if self._failed else SyncState.IDLE

    async def _persist(self, op: Operation) -> bool:
        started = self._clock()
        attempt = 0
        self._state = SyncState.SAVING
        while True:
            try:
                await self._write(op)
            except StaleVersionError as e:
                error: StoreError = e
                delay = backoff_delay(
                    attempt, self._config.version_conflict_backoff_base, self._config.version_conflict_backoff_max
                )
            except TransportError as e:
                error = e
                delay = backoff_delay(attempt, self._config.network_backoff_base, self._config.network_backoff_max)
                self._error_info = categorize_sync_error(e, self._error_info)
            except Exception as e:
                logger.exception("operation_persist_failed", operation=op.type)
                self._fail(op, categorize_sync_error(e, self._error_info))
                return False
            else:
                self._error_info = None
                return True

            attempt += 1
            elapsed = self._clock() - started
            if attempt >= self._config.max_persist_attempts or elapsed + delay > self._config.max_persist_duration_seconds:
                logger.error("operation_persist_gave_up", operation=op.type, attempts=attempt, elapsed=round(elapsed, 3))
                self._fail(op, categorize_sync_error(error, self._error_info))
                return False

            logger.info(
                "operation_persist_retry",
                operation=op.type,
                attempt=attempt,
                delay=delay,
                reason=type(error).__name__,
            )
            self._state = SyncState.RETRYING
            await self._sleep(delay)
            self._state = SyncState.SAVING

    def _fail(self, op: Operation, info: SyncErrorInfo) -> None:
        self._error_info = info
        if self._on_failure is not None:
            self._on_failure(op, info)

    async def _fetch_server_record(self) -> StoredRecord | None:
        if self._record_id is not None:
            return await self._store.get(self._record_id)
        record = await self._store.find(self._conversation)
        if record is not None:
            self._record_id = record.id
        return record

    async def _write(self, op: Operation) -> None:
        """Apply `op` to the current server tree and write it back."""
        sequence = self._sequence
        record = await self._fetch_server_record()
        server_comments = parse_comments(record.content) if record is not None else []
        result = apply_operation(server_comments, op)

        if result.status is OperationStatus.APPLIED:
            content = serialize_comments(result.comments)
            if record is None:
                created = await self._store.create(self._conversation, content)
                self._record_id = created.id
                logger.info("conversation_record_created", record_id=created.id)
            else:
                await self._store.update(record.id, content, current_version=record.version)
            self._last_write_at = self._clock()
        elif result.failed:
            logger.warning("operation_conflict", operation=op.type, status=result.status)
            if self._on_conflict is not None:
                self._on_conflict(op, result)
        else:
            logger.debug("operation_already_persisted", operation=op.type)

        # The server tree now holds every persisted operation; adopt it unless newer local changes exist
        if self._sequence == sequence and len(self._queue) == 1:
            self._adopt(result.comments)
