"""
Concurrency Infrastructure.

Everything runs on one asyncio event loop, but backend calls for the same
note can still interleave. This module holds the primitives that keep
those interleavings safe:

Semaphores:
    Created per-dependency to limit concurrent access to external services.
    Sizing is configured in config/settings/concurrency.yaml.

SyncGuard:
    Marks pending entries whose remote write is in flight. A user update
    aimed at such an entry waits for the write to finish and is re-targeted
    to the remote id the entry was remapped to.

CancelScope:
    Cancellation token handed to a mutation. Cancelled before dispatch, the
    write is skipped. Cancelled after dispatch, the write completes but its
    result is not applied to the caller's view.

Usage:
    from notesync.core.concurrency import SyncGuard, get_semaphore

    async with get_semaphore("remote_store"):
        result = await client.get(url)

    async with guard.syncing(note_id):
        await remote.create(note)
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from notesync.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SEMAPHORE_CAPACITY = 20

_semaphores: dict[str, asyncio.Semaphore] = {}


def get_semaphore(name: str) -> asyncio.Semaphore:
    """Get a named semaphore for concurrency-limiting external calls.

    Semaphores are created lazily. The capacity is read from concurrency.yaml
    under `semaphores.<name>`. If the name is not configured, defaults to 20.
    """
    if name not in _semaphores:
        from notesync.core.config import get_app_config
        semaphore_config = get_app_config().concurrency.semaphores
        capacity = getattr(semaphore_config, name, DEFAULT_SEMAPHORE_CAPACITY)
        _semaphores[name] = asyncio.Semaphore(capacity)
        logger.debug("Semaphore created", extra={"name": name, "capacity": capacity})
    return _semaphores[name]


def reset_semaphores() -> None:
    """Drop all semaphores. Called on notebook shutdown and between tests."""
    _semaphores.clear()
    logger.debug("Semaphores cleared")


class SyncGuard:
    """
    Tracks pending entries that the reconciler is currently writing.

    The reconciler enters `syncing(note_id)` before its remote write. Any
    user update for that id calls `wait(note_id)` first; it resumes once the
    write has finished and receives the id it should now target.
    """

    def __init__(self) -> None:
        self._inflight: dict[str, asyncio.Event] = {}
        self._remapped: dict[str, str] = {}

    def is_syncing(self, note_id: str) -> bool:
        return note_id in self._inflight

    @asynccontextmanager
    async def syncing(self, note_id: str) -> AsyncIterator[None]:
        """Mark `note_id` as being synced for the duration of the block."""
        if note_id in self._inflight:
            raise RuntimeError(f"Note {note_id} is already being synced")
        done = asyncio.Event()
        self._inflight[note_id] = done
        try:
            yield
        finally:
            del self._inflight[note_id]
            done.set()

    def record_remap(self, old_id: str, new_id: str) -> None:
        self._remapped[old_id] = new_id

    def resolve(self, note_id: str) -> str:
        """Follow recorded remaps from `note_id` to its current id."""
        seen = set()
        while note_id in self._remapped and note_id not in seen:
            seen.add(note_id)
            note_id = self._remapped[note_id]
        return note_id

    async def wait(self, note_id: str) -> str:
        """
        Wait until no sync is in flight for `note_id`.

        Returns:
            The id a write should target after the wait.
        """
        done = self._inflight.get(note_id)
        if done is not None:
            logger.debug("Update queued behind sync", extra={"note_id": note_id})
            await done.wait()
        return self.resolve(note_id)


class CancelScope:
    """Cancellation token for a single mutation."""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
