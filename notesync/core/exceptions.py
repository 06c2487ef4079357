"""
Custom Exceptions.

Application-specific exception classes for consistent error handling.
Every error the notebook reports to its callers is one of these; the
facade converts them into OperationResult failures.
"""


class ApplicationError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, code: str = "SYS_INTERNAL_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


class NotFoundError(ApplicationError):
    """Raised when a note cannot be found in its namespace or is not owned by the caller."""

    def __init__(self, message: str = "Note not found") -> None:
        super().__init__(message, code="RES_NOT_FOUND")


class ValidationError(ApplicationError):
    """Raised when validation fails."""

    def __init__(self, message: str = "Validation failed", details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message, code="VAL_VALIDATION_ERROR")


class InvalidIdentifierError(ApplicationError):
    """Raised when a note id is empty or cannot be classified."""

    def __init__(self, message: str = "Invalid note identifier") -> None:
        super().__init__(message, code="VAL_INVALID_IDENTIFIER")


class NotAuthenticatedError(ApplicationError):
    """Raised when a mutation is attempted with no session and guest mode off."""

    def __init__(self, message: str = "User not authenticated") -> None:
        super().__init__(message, code="AUTH_UNAUTHORIZED")


class ConflictError(ApplicationError):
    """Raised when an operation is not valid for the note's lifecycle state."""

    def __init__(self, message: str = "Resource conflict") -> None:
        super().__init__(message, code="RES_CONFLICT")


class TransientError(ApplicationError):
    """Raised when a network or storage call fails in a retryable way."""

    def __init__(self, message: str = "Backend temporarily unavailable", code: str = "SYS_TRANSIENT") -> None:
        super().__init__(message, code=code)


class StorageError(TransientError):
    """Raised when local key-value storage cannot be read or written."""

    def __init__(self, message: str = "Local storage error") -> None:
        super().__init__(message, code="SYS_STORAGE_ERROR")


class UnavailableError(ApplicationError):
    """Raised when a read fails and no cached projection can stand in."""

    def __init__(self, message: str = "Notes are unavailable") -> None:
        super().__init__(message, code="SYS_UNAVAILABLE")


class SyncFailureError(ApplicationError):
    """Raised when a single pending entry cannot be written to the remote store."""

    def __init__(self, note_id: str, message: str = "Sync failed") -> None:
        self.note_id = note_id
        super().__init__(message, code="SYNC_FAILED")


class OperationCancelledError(ApplicationError):
    """Raised when a mutation's cancel scope was cancelled before it was dispatched."""

    def __init__(self, message: str = "Operation cancelled") -> None:
        super().__init__(message, code="OP_CANCELLED")
