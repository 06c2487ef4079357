"""Note Adapters: re-exports from the adapter modules."""

from notesync.adapters.base import NoteAdapter
from notesync.adapters.guest import GuestStoreAdapter
from notesync.adapters.pending import PendingStoreAdapter
from notesync.adapters.remote import RemoteStoreAdapter

__all__ = [
    "NoteAdapter",
    "GuestStoreAdapter",
    "PendingStoreAdapter",
    "RemoteStoreAdapter",
]
