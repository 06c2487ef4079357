"""
Guest Store Adapter.

Authoritative store for unauthenticated ("guest") sessions. Notes live only
on this device and are never synced; signing up transfers them in bulk.
"""

from notesync.adapters.local import LocalNoteAdapter
from notesync.schemas.identity import GuestId, Namespace
from notesync.storage.key_value import KeyValueStorage

DEFAULT_GUEST_KEY = "guestNotes"


class GuestStoreAdapter(LocalNoteAdapter):
    """Guest notes under the `guest-` namespace."""

    def __init__(self, storage: KeyValueStorage, key: str = DEFAULT_GUEST_KEY) -> None:
        super().__init__(storage, key)

    @property
    def namespace(self) -> Namespace:
        return Namespace.GUEST

    def _new_id(self) -> str:
        return str(GuestId.generate())

    async def count(self) -> int:
        """Number of guest notes, trashed included."""
        return len(await self.entries())
