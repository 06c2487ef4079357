"""
Note Repository.

Data access layer for remote note documents.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from notesync.models.note import NoteDocument
from notesync.repositories.base import BaseRepository


class NoteRepository(BaseRepository[NoteDocument]):
    """
    Repository for NoteDocument.

    Inherits standard CRUD operations from BaseRepository
    and adds the owner-scoped query the remote adapter needs.
    """

    model = NoteDocument

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def query_by_owner(
        self,
        user_id: str,
        deleted: bool,
    ) -> list[NoteDocument]:
        """
        Get all notes of one owner with the given deleted flag.

        Args:
            user_id: Owner of the notes
            deleted: True for the trash, False for active notes

        Returns:
            Notes ordered by last update, newest first
        """
        result = await self.session.execute(
            select(NoteDocument)
            .where(NoteDocument.user_id == user_id)
            .where(NoteDocument.deleted == deleted)
            .order_by(NoteDocument.last_updated.desc())
        )
        return list(result.scalars().all())
