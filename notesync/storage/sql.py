"""
SQL Document Store.

DocumentStore backed by SQLAlchemy async. Each call runs in its own
session and commits on success, mirroring the request-scoped session
pattern: one logical remote write, one transaction.

Usage:
    engine = create_async_engine("sqlite+aiosqlite:///notes.db")
    store = SqlDocumentStore(async_sessionmaker(engine, expire_on_commit=False))
    await store.create_schema()
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from notesync.core.exceptions import TransientError
from notesync.core.logging import get_logger
from notesync.core.utils import utc_now
from notesync.models.base import Base
from notesync.models.note import NoteDocument
from notesync.repositories.note import NoteRepository
from notesync.storage.documents import Document, DocumentStore

logger = get_logger(__name__)

_COLUMN_FOR_FIELD = {
    "title": "title",
    "content": "content",
    "pinned": "pinned",
    "deleted": "deleted",
    "deletedAt": "deleted_at",
    "created": "created",
    "userId": "user_id",
}
_DATETIME_COLUMNS = {"deleted_at", "created"}


def _to_columns(fields: Document) -> dict[str, Any]:
    """Translate document keys to column names; unknown keys are dropped."""
    columns = {}
    for key, value in fields.items():
        column = _COLUMN_FOR_FIELD.get(key)
        if column is None:
            continue
        if column in _DATETIME_COLUMNS and isinstance(value, str):
            value = datetime.fromisoformat(value)
        columns[column] = value
    if columns.get("created") is None:
        columns.pop("created", None)
    return columns


def _to_document(row: NoteDocument) -> Document:
    return {
        "id": row.id,
        "userId": row.user_id,
        "title": row.title,
        "content": row.content,
        "pinned": row.pinned,
        "deleted": row.deleted,
        "deletedAt": row.deleted_at,
        "created": row.created,
        "lastUpdated": row.last_updated,
    }


class SqlDocumentStore(DocumentStore):
    """Remote document store on a relational database."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create_schema(self) -> None:
        """Create the notes table if it does not exist."""
        engine = self._session_factory.kw["bind"]
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def _repository(self, operation: str) -> AsyncIterator[NoteRepository]:
        """
        Provide a repository on a fresh session and commit on exit.

        Raises:
            TransientError: For any database error
        """
        try:
            async with self._session_factory() as session:
                try:
                    yield NoteRepository(session)
                    await session.commit()
                except BaseException:
                    await session.rollback()
                    raise
        except SQLAlchemyError as e:
            logger.error(
                "Database error",
                extra={"operation": operation, "error": str(e)},
            )
            raise TransientError(f"Database operation failed: {operation}") from e

    async def create(self, document: Document) -> str:
        async with self._repository("create") as repo:
            row = await repo.create(**_to_columns(document))
            return row.id

    async def read(self, document_id: str) -> Document | None:
        async with self._repository("read") as repo:
            row = await repo.get_by_id_or_none(document_id)
            return _to_document(row) if row is not None else None

    async def update(self, document_id: str, fields: Document) -> None:
        async with self._repository("update") as repo:
            await repo.update(document_id, last_updated=utc_now(), **_to_columns(fields))

    async def delete(self, document_id: str) -> None:
        async with self._repository("delete") as repo:
            await repo.delete(document_id)

    async def query(self, owner_id: str, deleted: bool) -> list[Document]:
        async with self._repository("query") as repo:
            rows = await repo.query_by_owner(owner_id, deleted)
            return [_to_document(row) for row in rows]

    async def ping(self) -> bool:
        try:
            async with self._repository("ping") as repo:
                await repo.get_by_id_or_none("")
        except TransientError:
            return False
        return True
