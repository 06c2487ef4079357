"""
Pending Store Adapter.

Queue of writes made by a signed-in user while offline. Entries hold the
complete note and carry `needsSync: true` until the reconciler has written
them to the remote store.

Two kinds of entry share the collection:

    local-<hex>   note created offline, never seen by the remote store
    <remote id>   shadow entry: offline edit of a note that already exists
                  remotely, synced with an update instead of a create

Entries are stamped with the owning user's id. The collection may hold
entries from several accounts that signed in on this device; an adapter
only sees entries of its own user and entries written before ownership was
recorded.
"""

from notesync.adapters.local import LocalNoteAdapter
from notesync.core.logging import get_logger
from notesync.schemas.identity import PENDING_PREFIX, Namespace, PendingId
from notesync.schemas.note import Note
from notesync.storage.key_value import KeyValueStorage

logger = get_logger(__name__)

DEFAULT_PENDING_KEY = "offlineNotes"


class PendingStoreAdapter(LocalNoteAdapter):
    """Offline writes awaiting sync, under the `local-` namespace."""

    def __init__(
        self,
        storage: KeyValueStorage,
        user_id: str | None = None,
        key: str = DEFAULT_PENDING_KEY,
    ) -> None:
        super().__init__(storage, key)
        self.user_id = user_id

    @property
    def namespace(self) -> Namespace:
        return Namespace.PENDING

    def _new_id(self) -> str:
        return str(PendingId.generate())

    def _load_entry(self, entry: dict) -> Note:
        note = super()._load_entry(entry)
        if note.syncing:
            # A sync interrupted by shutdown never finished.
            note = note.model_copy(update={"syncing": False})
        return note

    def _owns(self, note: Note) -> bool:
        return note.user_id is None or note.user_id == self.user_id

    def _prepare(self, note: Note) -> Note:
        return note.model_copy(update={
            "needs_sync": True,
            "syncing": False,
            "user_id": note.user_id or self.user_id,
        })

    @staticmethod
    def is_shadow(note_id: str) -> bool:
        """True for entries keyed by a remote id."""
        return not note_id.startswith(PENDING_PREFIX)

    async def put_shadow(self, note: Note) -> None:
        """
        Store an offline copy of a remote note, replacing any earlier shadow.

        Args:
            note: Complete note as it should look after the offline edit
        """
        self._put(self._prepare(note))
        logger.info("Shadow entry stored", extra={"note_id": note.id})

    async def shadows(self) -> dict[str, Note]:
        """Shadow entries by remote id."""
        return {
            note.id: note for note in await self.entries() if self.is_shadow(note.id)
        }

    async def mark_syncing(self, note_id: str, flag: bool) -> None:
        note = self._get(note_id)
        self._put(note.model_copy(update={"syncing": flag}))

    async def mark_synced(self, note_id: str) -> None:
        """Record that the remote store has the entry. Used only by the reconciler."""
        note = self._get(note_id)
        self._put(note.model_copy(update={"needs_sync": False, "syncing": False}))

    async def remove(self, note_id: str) -> None:
        """Drop an entry without touching the remote store."""
        self._get(note_id)
        del self._collection()[note_id]
        self._persist()
