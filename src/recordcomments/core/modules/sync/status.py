from enum import StrEnum

from pydantic import BaseModel

from recordcomments.errors import TransportError


class SyncState(StrEnum):
    IDLE = "idle"
    SAVING = "saving"
    RETRYING = "retrying"
    FAILED = "failed"  # Operations parked until retry_failed()


class SyncErrorType(StrEnum):
    TOKEN_EXPIRED = "token_expired"
    NETWORK_ERROR = "network_error"
    QUERY_ERROR = "query_error"
    UNKNOWN = "unknown"


class SyncErrorInfo(BaseModel):
    """Categorised error for a sync status indicator."""

    type: SyncErrorType
    message: str
    consecutive_count: int = 1


AUTH_KEYWORDS = ("token", "unauthorized", "401", "403", "authentication", "forbidden")
NETWORK_KEYWORDS = ("network", "fetch", "connection", "timeout", "socket", "econnrefused")
QUERY_KEYWORDS = ("graphql", "query", "syntax", "validation")

ERROR_MESSAGES = {
    SyncErrorType.TOKEN_EXPIRED: "Access token is invalid or expired. Please reconfigure in plugin settings.",
    SyncErrorType.NETWORK_ERROR: "Connection lost. Attempting to reconnect...",
    SyncErrorType.QUERY_ERROR: "Query error. Please refresh the page.",
    SyncErrorType.UNKNOWN: "Sync error occurred. Please try again.",
}


def _categorize(error: BaseException) -> SyncErrorType:
    if isinstance(error, TransportError):
        return SyncErrorType.NETWORK_ERROR
    message = str(error).lower()
    # Auth first: "token" errors often also mention the failed fetch
    if any(keyword in message for keyword in AUTH_KEYWORDS):
        return SyncErrorType.TOKEN_EXPIRED
    if any(keyword in message for keyword in NETWORK_KEYWORDS):
        return SyncErrorType.NETWORK_ERROR
    if any(keyword in message for keyword in QUERY_KEYWORDS):
        return SyncErrorType.QUERY_ERROR
    return SyncErrorType.UNKNOWN


def categorize_sync_error(error: BaseException, previous: SyncErrorInfo | None = None) -> SyncErrorInfo:
    """Map an error to a category and message; repeats of the same category bump `consecutive_count`."""
    error_type = _categorize(error)
    count = previous.consecutive_count + 1 if previous is not None and previous.type == error_type else 1
    return SyncErrorInfo(type=error_type, message=ERROR_MESSAGES[error_type], consecutive_count=count)
