"""Unit tests for notesync.core.exceptions."""

import pytest

from notesync.core.exceptions import (
    ApplicationError,
    ConflictError,
    InvalidIdentifierError,
    NotAuthenticatedError,
    NotFoundError,
    OperationCancelledError,
    StorageError,
    SyncFailureError,
    TransientError,
    UnavailableError,
    ValidationError,
)


class TestErrorCodes:
    """Every error carries a stable code for callers to branch on."""

    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (NotAuthenticatedError(), "AUTH_UNAUTHORIZED"),
            (NotFoundError(), "RES_NOT_FOUND"),
            (InvalidIdentifierError(), "VAL_INVALID_IDENTIFIER"),
            (ValidationError(), "VAL_VALIDATION_ERROR"),
            (ConflictError(), "RES_CONFLICT"),
            (TransientError(), "SYS_TRANSIENT"),
            (UnavailableError(), "SYS_UNAVAILABLE"),
            (StorageError(), "SYS_STORAGE_ERROR"),
            (SyncFailureError("local-1"), "SYNC_FAILED"),
            (OperationCancelledError(), "OP_CANCELLED"),
        ],
    )
    def test_code(self, error, code):
        assert error.code == code
        assert isinstance(error, ApplicationError)

    def test_default_code(self):
        assert ApplicationError("boom").code == "SYS_INTERNAL_ERROR"

    def test_message_is_str(self):
        assert str(NotFoundError("Note x not found")) == "Note x not found"


class TestHierarchy:
    def test_storage_error_is_transient(self):
        """Local storage failures follow the transient-error policies."""
        assert isinstance(StorageError(), TransientError)

    def test_sync_failure_keeps_note_id(self):
        error = SyncFailureError("local-abc", "timeout")
        assert error.note_id == "local-abc"
        assert error.message == "timeout"

    def test_validation_details(self):
        error = ValidationError("bad", details={"title": "too long"})
        assert error.details == {"title": "too long"}
        assert ValidationError().details == {}
