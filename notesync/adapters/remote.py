"""
Remote Store Adapter.

Authoritative store for signed-in users, on top of a DocumentStore. The
adapter scopes every call to one user: a document owned by someone else
is reported as NotFoundError, the same as a missing one.

Timestamps come from the store. Transport failures arrive from the store
as TransientError and pass through unchanged.
"""

from notesync.adapters.base import NoteAdapter
from notesync.core.exceptions import NotAuthenticatedError, NotFoundError
from notesync.core.logging import get_logger
from notesync.core.utils import utc_now
from notesync.schemas.identity import Namespace, RemoteId
from notesync.schemas.note import Note, NoteCreate, sort_active, sort_trashed
from notesync.storage.documents import Document, DocumentStore

logger = get_logger(__name__)

_FIELD_ALIASES = {
    "title": "title",
    "content": "content",
    "pinned": "pinned",
}


class RemoteStoreAdapter(NoteAdapter):
    """
    Notes of one signed-in user in the remote document store.

    Usage:
        remote = RemoteStoreAdapter(store, user_id="u1")
        note_id = await remote.create(NoteCreate(title="A"))
        note = await remote.read(note_id)
    """

    def __init__(self, store: DocumentStore, user_id: str | None) -> None:
        self.store = store
        self.user_id = user_id

    @property
    def namespace(self) -> Namespace:
        return Namespace.REMOTE

    def _owner(self) -> str:
        if not self.user_id:
            raise NotAuthenticatedError("Remote notes require a signed-in user")
        return self.user_id

    @staticmethod
    def _checked_id(note_id: str) -> str:
        return str(RemoteId(note_id))

    @staticmethod
    def _to_note(document: Document) -> Note:
        return Note.model_validate(document)

    async def _insert(self, document: Document) -> str:
        new_id = self._checked_id(await self.store.create(document))
        logger.info("Remote note created", extra={"note_id": new_id, "user_id": self.user_id})
        return new_id

    async def create(self, data: NoteCreate) -> str:
        return await self._insert({
            "title": data.title,
            "content": data.content,
            "pinned": data.pinned,
            "deleted": False,
            "deletedAt": None,
            "userId": self._owner(),
        })

    async def create_from(self, note: Note) -> str:
        """
        Create a remote copy of a locally held note.

        Keeps the note's deletion state, pin and original creation time.
        """
        return await self._insert({
            "title": note.title,
            "content": note.content,
            "pinned": note.pinned,
            "deleted": note.deleted,
            "deletedAt": note.deleted_at,
            "created": note.created,
            "userId": self._owner(),
        })

    async def read(self, note_id: str) -> Note:
        owner = self._owner()
        document = await self.store.read(self._checked_id(note_id))
        if document is None or document.get("userId") != owner:
            raise NotFoundError(f"Note {note_id} not found")
        return self._to_note(document)

    async def _write(self, note_id: str, fields: Document) -> None:
        await self.read(note_id)
        try:
            await self.store.update(note_id, fields)
        except KeyError as e:
            raise NotFoundError(f"Note {note_id} not found") from e

    async def update(self, note_id: str, fields: dict) -> None:
        changes = {
            _FIELD_ALIASES[key]: value
            for key, value in fields.items()
            if key in _FIELD_ALIASES
        }
        await self._write(note_id, changes)

    async def update_from(self, note: Note) -> None:
        """Overwrite the remote note's editable state with a local copy."""
        await self._write(note.id, {
            "title": note.title,
            "content": note.content,
            "pinned": note.pinned,
            "deleted": note.deleted,
            "deletedAt": note.deleted_at,
        })

    async def set_deleted_flag(self, note_id: str, deleted: bool) -> None:
        await self._write(note_id, {
            "deleted": deleted,
            "deletedAt": utc_now() if deleted else None,
        })

    async def move_to_trash(self, note_id: str) -> None:
        await self.set_deleted_flag(note_id, True)

    async def restore(self, note_id: str) -> None:
        await self.set_deleted_flag(note_id, False)

    async def delete(self, note_id: str) -> None:
        await self.read(note_id)
        await self.store.delete(note_id)
        logger.info("Remote note deleted", extra={"note_id": note_id})

    async def permanently_delete(self, note_id: str) -> None:
        await self.delete(note_id)

    async def query_by_owner(self, user_id: str, deleted: bool) -> list[Note]:
        documents = await self.store.query(user_id, deleted)
        return [self._to_note(document) for document in documents]

    async def list(self, trashed: bool = False) -> list[Note]:
        notes = await self.query_by_owner(self._owner(), trashed)
        return sort_trashed(notes) if trashed else sort_active(notes)
