"""
Local Collection Adapter.

Shared implementation of the guest and pending adapters. A collection is a
JSON array of notes stored under a single key in local key-value storage.

Persistence is two-part: the change is applied to the in-memory copy,
then the whole collection is written back. If the write fails, the
in-memory copy is rolled back to the last persisted snapshot and the
StorageError propagates, so memory never drifts from what is on disk.
"""

from __future__ import annotations

import json
from abc import abstractmethod

from pydantic import ValidationError as PydanticValidationError

from notesync.adapters.base import NoteAdapter
from notesync.core.exceptions import NotFoundError, StorageError
from notesync.core.logging import get_logger
from notesync.core.utils import utc_now
from notesync.schemas.note import Note, NoteCreate, sort_active, sort_trashed
from notesync.storage.key_value import KeyValueStorage

logger = get_logger(__name__)

EDITABLE_FIELDS = frozenset({"title", "content", "pinned"})


class LocalNoteAdapter(NoteAdapter):
    """
    Note collection persisted in local storage.

    Subclasses set `namespace` and provide `_new_id()`.
    """

    def __init__(self, storage: KeyValueStorage, key: str) -> None:
        self._storage = storage
        self.key = key
        self._notes: dict[str, Note] | None = None
        self._snapshot: str | None = None

    @abstractmethod
    def _new_id(self) -> str:
        """Fresh id in this collection's namespace."""
        ...

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _decode(self, raw: str | None) -> dict[str, Note]:
        if not raw:
            return {}
        try:
            entries = json.loads(raw)
            notes = [self._load_entry(entry) for entry in entries]
        except (ValueError, TypeError, PydanticValidationError) as e:
            logger.error(
                "Local collection is corrupt",
                extra={"key": self.key, "error": str(e)},
            )
            raise StorageError(f"Could not parse {self.key}") from e
        return {note.id: note for note in notes}

    def _load_entry(self, entry: dict) -> Note:
        return Note.model_validate(entry)

    def _encode(self, notes: dict[str, Note]) -> str:
        return json.dumps([note.to_storage() for note in notes.values()])

    def _collection(self) -> dict[str, Note]:
        """In-memory collection, loaded from storage on first use."""
        if self._notes is None:
            raw = self._storage.get(self.key)
            self._notes = self._decode(raw)
            self._snapshot = raw
        return self._notes

    def _persist(self) -> None:
        """
        Write the in-memory collection back to storage.

        Raises:
            StorageError: If the write fails; memory is rolled back first
        """
        encoded = self._encode(self._collection())
        try:
            self._storage.set(self.key, encoded)
        except Exception as e:
            self._notes = self._decode(self._snapshot)
            logger.error(
                "Local collection write failed, rolled back",
                extra={"key": self.key, "error": str(e)},
            )
            if isinstance(e, StorageError):
                raise
            raise StorageError(f"Could not write {self.key}") from e
        self._snapshot = encoded

    def reload(self) -> None:
        """Drop the in-memory copy so the next access re-reads storage."""
        self._notes = None
        self._snapshot = None

    def _owns(self, note: Note) -> bool:
        """Hook for subclasses that share one collection between owners."""
        return True

    def _get(self, note_id: str) -> Note:
        note = self._collection().get(note_id)
        if note is None or not self._owns(note):
            raise NotFoundError(f"Note {note_id} not found")
        return note

    def _put(self, note: Note) -> None:
        self._collection()[note.id] = note
        self._persist()

    # -------------------------------------------------------------------------
    # NoteAdapter
    # -------------------------------------------------------------------------

    async def create(self, data: NoteCreate) -> str:
        now = utc_now()
        note = Note(
            id=self._new_id(),
            title=data.title,
            content=data.content,
            pinned=data.pinned,
            created=now,
            last_updated=now,
        )
        self._put(self._prepare(note))
        logger.debug("Local note created", extra={"key": self.key, "note_id": note.id})
        return note.id

    def _prepare(self, note: Note) -> Note:
        """Hook for subclasses to stamp namespace markers before storing."""
        return note

    async def read(self, note_id: str) -> Note:
        return self._get(note_id).model_copy()

    async def update(self, note_id: str, fields: dict) -> None:
        changes = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
        note = self._get(note_id)
        self._put(self._prepare(note.model_copy(update={**changes, "last_updated": utc_now()})))

    async def move_to_trash(self, note_id: str) -> None:
        note = self._get(note_id)
        now = utc_now()
        self._put(self._prepare(note.model_copy(update={"deleted": True, "deleted_at": now})))

    async def restore(self, note_id: str) -> None:
        note = self._get(note_id)
        self._put(self._prepare(note.model_copy(
            update={"deleted": False, "deleted_at": None, "last_updated": utc_now()}
        )))

    async def permanently_delete(self, note_id: str) -> None:
        self._get(note_id)
        del self._collection()[note_id]
        self._persist()

    async def empty_trash(self) -> int:
        collection = self._collection()
        trashed = [
            note_id for note_id, note in collection.items()
            if note.deleted and self._owns(note)
        ]
        if not trashed:
            return 0
        for note_id in trashed:
            del collection[note_id]
        self._persist()
        return len(trashed)

    async def list(self, trashed: bool = False) -> list[Note]:
        notes = [
            n.model_copy() for n in self._collection().values()
            if n.deleted == trashed and self._owns(n)
        ]
        return sort_trashed(notes) if trashed else sort_active(notes)

    async def entries(self) -> list[Note]:
        """Every note in insertion (FIFO) order, trashed or not."""
        return [n.model_copy() for n in self._collection().values() if self._owns(n)]

    async def contains(self, note_id: str) -> bool:
        note = self._collection().get(note_id)
        return note is not None and self._owns(note)

    async def clear(self) -> None:
        """Remove the whole collection from storage."""
        self._storage.remove(self.key)
        self._notes = {}
        self._snapshot = None
