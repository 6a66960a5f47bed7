"""Domain exceptions shared by the REST and realtime surfaces.

Each exception carries the HTTP status and machine-readable code the API
renders it with, so handlers raise and the app-level exception handlers
translate.
"""


class ChatBackendError(Exception):
    """Base exception for chat backend errors."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ChatBackendError):
    """Raised when a required field is missing or out of range."""

    status_code = 400
    code = "VALIDATION_ERROR"


class InvalidIdentifierError(ValidationError):
    """Raised when a user identifier is not syntactically valid."""

    code = "INVALID_USER_ID"

    def __init__(self, user_id: object):
        super().__init__("Invalid user ID")
        self.user_id = user_id


class UserNotFoundError(ChatBackendError):
    """Raised when an operation targets a user that does not exist."""

    status_code = 404
    code = "USER_NOT_FOUND"

    def __init__(self, user_id: str):
        super().__init__("User not found")
        self.user_id = user_id


class StorageError(ChatBackendError):
    """Raised when the persistence layer fails.

    The original driver exception is chained as ``__cause__``.
    """

    status_code = 500
    code = "STORAGE_ERROR"

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message)
        self.operation = operation


def public_message(exc: Exception, *, production: bool) -> str:
    """Message safe to show a client for ``exc``.

    Storage failures hide the driver detail in production.
    """
    if isinstance(exc, StorageError):
        cause = exc.__cause__
        if production or cause is None:
            return exc.message
        return f"{exc.message}: {cause}"
    if isinstance(exc, ChatBackendError):
        return exc.message
    return str(exc)
