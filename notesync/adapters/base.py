"""
Note Adapter Interface.

Defines the contract every backend adapter implements. The identity router
dispatches by namespace and the notebook talks to backends exclusively
through this interface.
"""

from abc import ABC, abstractmethod

from notesync.schemas.identity import Namespace
from notesync.schemas.note import Note, NoteCreate


class NoteAdapter(ABC):
    """
    Base class for the guest, pending and remote adapters.

    Mutations return nothing; callers that need the stored state read it
    back. Every method raises NotFoundError for ids the adapter does not
    hold.
    """

    @property
    @abstractmethod
    def namespace(self) -> Namespace:
        """Namespace of the ids this adapter owns."""
        ...

    @abstractmethod
    async def create(self, data: NoteCreate) -> str:
        """Store a new active note and return its id."""
        ...

    @abstractmethod
    async def read(self, note_id: str) -> Note:
        """Return the note, trashed or not."""
        ...

    @abstractmethod
    async def update(self, note_id: str, fields: dict) -> None:
        """Apply snake_case field changes (title, content, pinned)."""
        ...

    @abstractmethod
    async def move_to_trash(self, note_id: str) -> None:
        """Soft-delete: set `deleted` and stamp `deleted_at`."""
        ...

    @abstractmethod
    async def restore(self, note_id: str) -> None:
        """Clear `deleted` and `deleted_at`."""
        ...

    @abstractmethod
    async def permanently_delete(self, note_id: str) -> None:
        """Remove the note for good."""
        ...

    @abstractmethod
    async def list(self, trashed: bool = False) -> list[Note]:
        """Active notes, or trashed notes when `trashed` is True."""
        ...

    async def empty_trash(self) -> int:
        """
        Permanently delete every trashed note.

        Returns:
            Number of notes removed
        """
        trashed = await self.list(trashed=True)
        for note in trashed:
            await self.permanently_delete(note.id)
        return len(trashed)
