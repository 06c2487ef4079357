"""
Note Identifiers.

A note id is one of three variants, and the variant decides which backend
owns the note:

    GuestId    "guest-<hex>"   local guest collection, never synced
    PendingId  "local-<hex>"   pending queue, awaiting sync
    RemoteId   "<anything>"    remote document store

Ids travel through the system as plain strings (they end up in URLs and in
JSON). `parse_note_id` turns a string into its variant and `str()` turns a
variant back into the tagged string.
"""

from dataclasses import dataclass
from enum import Enum
from uuid import uuid4

from notesync.core.exceptions import InvalidIdentifierError

GUEST_PREFIX = "guest-"
PENDING_PREFIX = "local-"


class Namespace(str, Enum):
    """Backend a note id belongs to."""

    GUEST = "guest"
    PENDING = "pending"
    REMOTE = "remote"


@dataclass(frozen=True)
class GuestId:
    value: str
    namespace = Namespace.GUEST

    @classmethod
    def generate(cls) -> "GuestId":
        return cls(uuid4().hex)

    def __str__(self) -> str:
        return f"{GUEST_PREFIX}{self.value}"


@dataclass(frozen=True)
class PendingId:
    value: str
    namespace = Namespace.PENDING

    @classmethod
    def generate(cls) -> "PendingId":
        return cls(uuid4().hex)

    def __str__(self) -> str:
        return f"{PENDING_PREFIX}{self.value}"


@dataclass(frozen=True)
class RemoteId:
    value: str
    namespace = Namespace.REMOTE

    def __post_init__(self) -> None:
        if self.value.startswith((GUEST_PREFIX, PENDING_PREFIX)):
            raise InvalidIdentifierError(
                f"Remote id {self.value!r} collides with a reserved prefix"
            )

    def __str__(self) -> str:
        return self.value


NoteId = GuestId | PendingId | RemoteId


def parse_note_id(raw: str | None) -> NoteId:
    """
    Classify a tagged id string.

    Args:
        raw: Id as seen by callers

    Returns:
        The matching identifier variant

    Raises:
        InvalidIdentifierError: If the id is empty, or a bare prefix
    """
    if not raw or not raw.strip():
        raise InvalidIdentifierError("Note id is required")
    if raw.startswith(GUEST_PREFIX):
        value = raw[len(GUEST_PREFIX):]
        if not value:
            raise InvalidIdentifierError(f"Malformed guest id {raw!r}")
        return GuestId(value)
    if raw.startswith(PENDING_PREFIX):
        value = raw[len(PENDING_PREFIX):]
        if not value:
            raise InvalidIdentifierError(f"Malformed pending id {raw!r}")
        return PendingId(value)
    return RemoteId(raw)
