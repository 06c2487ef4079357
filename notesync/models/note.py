"""
Note Document Model.

Database model backing SqlDocumentStore: one row per remote note.
"""

from datetime import datetime

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from notesync.models.base import Base, ServerTimestampMixin, UUIDMixin


class NoteDocument(UUIDMixin, ServerTimestampMixin, Base):
    """
    Remote note document.

    Soft-deleted rows keep `deleted=True` and a `deleted_at` timestamp
    until they are permanently removed.
    """

    __tablename__ = "notes"
    __table_args__ = (
        Index("ix_notes_owner_deleted", "user_id", "deleted"),
    )

    user_id: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(
        String(1000),
        nullable=False,
        default="",
    )
    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
    )
    pinned: Mapped[bool] = mapped_column(
        default=False,
        nullable=False,
    )
    deleted: Mapped[bool] = mapped_column(
        default=False,
        nullable=False,
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<NoteDocument(id={self.id}, title={self.title!r})>"
