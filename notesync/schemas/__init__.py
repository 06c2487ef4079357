# Pydantic schemas package
from notesync.schemas.base import CreatedNote, ErrorDetail, OperationResult
from notesync.schemas.identity import (
    GuestId,
    Namespace,
    NoteId,
    PendingId,
    RemoteId,
    parse_note_id,
)
from notesync.schemas.note import NEW_NOTE_SENTINEL, Note, NoteCreate, NoteUpdate
from notesync.schemas.session import AuthSession

__all__ = [
    "AuthSession",
    "CreatedNote",
    "ErrorDetail",
    "GuestId",
    "NEW_NOTE_SENTINEL",
    "Namespace",
    "Note",
    "NoteCreate",
    "NoteId",
    "NoteUpdate",
    "OperationResult",
    "PendingId",
    "RemoteId",
    "parse_note_id",
]
