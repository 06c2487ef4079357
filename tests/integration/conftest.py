"""
Integration Test Fixtures.

Fixtures for integration tests - real storage backends: a SQLite database
behind the SQL document store and a temporary directory behind file
storage. These fixtures build on the root conftest.py database fixtures.
"""

from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from notesync.events.bus import EventBus
from notesync.services.connectivity import ConnectivityMonitor
from notesync.services.notebook import Notebook
from notesync.storage.key_value import FileStorage
from notesync.storage.sql import SqlDocumentStore


@pytest.fixture
def sql_store(db_session_factory: async_sessionmaker[AsyncSession]) -> SqlDocumentStore:
    """SQL document store on the per-test database."""
    return SqlDocumentStore(db_session_factory)


@pytest.fixture
def file_storage(tmp_path: Path) -> FileStorage:
    return FileStorage(tmp_path / "local")


@pytest.fixture
def sql_notebook(
    file_storage: FileStorage,
    sql_store: SqlDocumentStore,
    monitor: ConnectivityMonitor,
    bus: EventBus,
) -> Notebook:
    """Unopened notebook over file storage and the SQL document store."""
    return Notebook(storage=file_storage, store=sql_store, monitor=monitor, bus=bus)
