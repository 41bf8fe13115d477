from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    comment content.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Comment not found") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Raised when a user tries to change a comment they do not own."""


class UserSourceError(UserError):
    """Raised when every configured user source failed to load."""

    def __init__(self, message: str = "Failed to load users") -> None:
        super().__init__(message)


class StoreError(Exception):
    """Base class for failures reported by the remote comment store."""


class StaleVersionError(StoreError):
    """Raised by the store when an update carries an outdated record version."""

    def __init__(self, record_id: str, expected_version: int, actual_version: int) -> None:
        super().__init__(f"Record {record_id} is at version {actual_version}, update was based on {expected_version}")
        self.record_id = record_id
        self.expected_version = expected_version
        self.actual_version = actual_version


class TransportError(StoreError):
    """Raised when the store could not be reached (network failure, timeout)."""
