"""Unit tests for the remote store adapter."""

from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from notesync.adapters.remote import RemoteStoreAdapter
from notesync.core.exceptions import (
    InvalidIdentifierError,
    NotAuthenticatedError,
    NotFoundError,
    TransientError,
)
from notesync.schemas.identity import Namespace
from notesync.schemas.note import Note, NoteCreate
from notesync.storage.documents import InMemoryDocumentStore

USER_ID = "user-1"


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_stamps_owner(self, remote_adapter: RemoteStoreAdapter, document_store: InMemoryDocumentStore):
        note_id = await remote_adapter.create(NoteCreate(title="A", content="B", pinned=True))

        doc = await document_store.read(note_id)
        assert doc["userId"] == USER_ID
        assert doc["deleted"] is False
        assert doc["pinned"] is True

    def test_namespace(self, remote_adapter: RemoteStoreAdapter):
        assert remote_adapter.namespace is Namespace.REMOTE

    @pytest.mark.asyncio
    async def test_create_from_keeps_history(self, remote_adapter: RemoteStoreAdapter):
        created = datetime(2024, 1, 2, 3, 4, 5)
        deleted_at = datetime(2024, 1, 3)
        local = Note(
            id="local-1", title="A", pinned=True, deleted=True,
            deleted_at=deleted_at, created=created, last_updated=created, needs_sync=True,
        )

        note_id = await remote_adapter.create_from(local)
        note = await remote_adapter.read(note_id)

        assert note.id == note_id
        assert note.created == created
        assert note.deleted is True
        assert note.deleted_at == deleted_at
        assert note.pinned is True
        assert note.needs_sync is None
        assert note.last_updated > created

    @pytest.mark.asyncio
    async def test_requires_user(self, document_store: InMemoryDocumentStore):
        adapter = RemoteStoreAdapter(document_store, user_id=None)
        with pytest.raises(NotAuthenticatedError):
            await adapter.create(NoteCreate(title="A"))

    @pytest.mark.asyncio
    async def test_store_id_with_reserved_prefix_rejected(self):
        store = AsyncMock()
        store.create.return_value = "local-oops"
        adapter = RemoteStoreAdapter(store, user_id=USER_ID)
        with pytest.raises(InvalidIdentifierError):
            await adapter.create(NoteCreate(title="A"))


class TestOwnership:
    @pytest.mark.asyncio
    async def test_foreign_note_is_not_found(self, document_store: InMemoryDocumentStore):
        other = RemoteStoreAdapter(document_store, user_id="someone-else")
        note_id = await other.create(NoteCreate(title="private"))
        mine = RemoteStoreAdapter(document_store, user_id=USER_ID)

        with pytest.raises(NotFoundError):
            await mine.read(note_id)
        with pytest.raises(NotFoundError):
            await mine.update(note_id, {"title": "hijack"})
        with pytest.raises(NotFoundError):
            await mine.delete(note_id)

        assert (await other.read(note_id)).title == "private"

    @pytest.mark.asyncio
    async def test_missing_note(self, remote_adapter: RemoteStoreAdapter):
        with pytest.raises(NotFoundError):
            await remote_adapter.read("missing")

    @pytest.mark.asyncio
    async def test_prefixed_id_rejected(self, remote_adapter: RemoteStoreAdapter):
        with pytest.raises(InvalidIdentifierError):
            await remote_adapter.read("guest-1")


class TestUpdates:
    @pytest.mark.asyncio
    async def test_update(self, remote_adapter: RemoteStoreAdapter):
        note_id = await remote_adapter.create(NoteCreate(title="A"))
        await remote_adapter.update(note_id, {"title": "B", "pinned": True, "userId": "hijack"})

        note = await remote_adapter.read(note_id)
        assert note.title == "B"
        assert note.pinned is True
        assert note.user_id == USER_ID

    @pytest.mark.asyncio
    async def test_set_deleted_flag(self, remote_adapter: RemoteStoreAdapter):
        note_id = await remote_adapter.create(NoteCreate(title="A", pinned=True))

        await remote_adapter.move_to_trash(note_id)
        trashed = await remote_adapter.read(note_id)
        assert trashed.deleted is True
        assert trashed.deleted_at is not None

        await remote_adapter.restore(note_id)
        restored = await remote_adapter.read(note_id)
        assert restored.deleted is False
        assert restored.deleted_at is None
        assert restored.pinned is True

    @pytest.mark.asyncio
    async def test_update_from(self, remote_adapter: RemoteStoreAdapter):
        note_id = await remote_adapter.create(NoteCreate(title="A"))
        shadow = (await remote_adapter.read(note_id)).model_copy(update={"title": "offline edit", "pinned": True})

        await remote_adapter.update_from(shadow)

        note = await remote_adapter.read(note_id)
        assert (note.title, note.pinned) == ("offline edit", True)

    @pytest.mark.asyncio
    async def test_delete(self, remote_adapter: RemoteStoreAdapter):
        note_id = await remote_adapter.create(NoteCreate(title="A"))
        await remote_adapter.permanently_delete(note_id)
        with pytest.raises(NotFoundError):
            await remote_adapter.read(note_id)


class TestQueries:
    @pytest.mark.asyncio
    async def test_list(self, remote_adapter: RemoteStoreAdapter):
        first = await remote_adapter.create(NoteCreate(title="first"))
        pinned = await remote_adapter.create(NoteCreate(title="pinned", pinned=True))
        latest = await remote_adapter.create(NoteCreate(title="latest"))
        trashed = await remote_adapter.create(NoteCreate(title="trashed"))
        await remote_adapter.move_to_trash(trashed)

        assert [n.id for n in await remote_adapter.list()] == [pinned, latest, first]
        assert [n.id for n in await remote_adapter.list(trashed=True)] == [trashed]

    @pytest.mark.asyncio
    async def test_query_by_owner(self, remote_adapter: RemoteStoreAdapter, document_store: InMemoryDocumentStore):
        await remote_adapter.create(NoteCreate(title="mine"))
        await RemoteStoreAdapter(document_store, user_id="other").create(NoteCreate(title="theirs"))

        notes = await remote_adapter.query_by_owner(USER_ID, deleted=False)
        assert [n.title for n in notes] == ["mine"]

    @pytest.mark.asyncio
    async def test_transient_errors_pass_through(self, remote_adapter: RemoteStoreAdapter, document_store: InMemoryDocumentStore):
        document_store.reachable = False
        with pytest.raises(TransientError):
            await remote_adapter.list()
