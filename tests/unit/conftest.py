"""
Unit Test Fixtures.

Fixtures for unit tests - every backend is in memory. Unit tests never
touch the network, the file system or a database.
"""

from unittest.mock import MagicMock

import pytest

from notesync.adapters.guest import GuestStoreAdapter
from notesync.adapters.pending import PendingStoreAdapter
from notesync.adapters.remote import RemoteStoreAdapter
from notesync.core.concurrency import SyncGuard
from notesync.events.bus import EventBus
from notesync.services.connectivity import ConnectivityMonitor
from notesync.services.notebook import Notebook
from notesync.storage.documents import InMemoryDocumentStore
from notesync.storage.key_value import MemoryStorage

USER_ID = "user-1"


# =============================================================================
# Adapter Fixtures
# =============================================================================


@pytest.fixture
def guest_adapter(storage: MemoryStorage) -> GuestStoreAdapter:
    return GuestStoreAdapter(storage)


@pytest.fixture
def pending_adapter(storage: MemoryStorage) -> PendingStoreAdapter:
    return PendingStoreAdapter(storage, user_id=USER_ID)


@pytest.fixture
def remote_adapter(document_store: InMemoryDocumentStore) -> RemoteStoreAdapter:
    return RemoteStoreAdapter(document_store, user_id=USER_ID)


@pytest.fixture
def guard() -> SyncGuard:
    return SyncGuard()


# =============================================================================
# Notebook Fixtures
# =============================================================================


@pytest.fixture
def notebook(
    storage: MemoryStorage,
    document_store: InMemoryDocumentStore,
    monitor: ConnectivityMonitor,
    bus: EventBus,
) -> Notebook:
    """Unopened notebook over in-memory backends."""
    return Notebook(storage=storage, store=document_store, monitor=monitor, bus=bus)


# =============================================================================
# Config Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_app_config() -> MagicMock:
    """
    Mock YAML application configuration.

    Usage:
        def test_with_config(mock_app_config):
            with patch("notesync.core.config.get_app_config", return_value=mock_app_config):
                ...
    """
    config = MagicMock()
    config.storage.directory = "data/local"
    config.storage.keys.guest = "guestNotes"
    config.storage.keys.pending = "offlineNotes"
    config.storage.keys.last_note_prefix = "lastNote-"
    config.sync.debounce_seconds = 0.01
    config.sync.probe_interval_seconds = 0.01
    config.sync.sync_on_reconnect = True
    config.sync.sync_on_sign_in = True
    config.concurrency.semaphores.remote_store = 8
    config.concurrency.semaphores.local_storage = 1
    config.concurrency.shutdown.drain_seconds = 1
    return config
