"""
Sync Reconciler.

Drains the pending store into the remote store. Entries are processed in
the order they were written. Each entry is independent: one failing entry
is logged, left in the pending store with `needsSync: true`, and the pass
moves on. A later pass retries it.

Per entry:
    1. enter the SyncGuard for the entry id and mark it `syncing`
    2. create it remotely (new notes) or overwrite the remote copy (shadows)
    3. record the remap, then mark the entry synced and remove it
    4. publish NoteRemapped so holders of the old id can follow it

Once the remote write has succeeded the entry counts as synced, even if
removing it locally fails. Such leftovers are discarded by the next pass.

Only one pass runs at a time. A trigger arriving mid-pass waits for the
running pass and then finds little or nothing left to do.
"""

import asyncio
from uuid import uuid4

from notesync.adapters.pending import PendingStoreAdapter
from notesync.adapters.remote import RemoteStoreAdapter
from notesync.core.concurrency import SyncGuard
from notesync.core.exceptions import ApplicationError, NotFoundError, StorageError, SyncFailureError
from notesync.core.logging import log_with_source
from notesync.events.bus import EventBus
from notesync.events.schemas import NoteRemapped, SyncCompleted
from notesync.schemas.note import Note
from notesync.schemas.sync import SyncReport
from notesync.services.base import BaseService


class SyncReconciler(BaseService):
    """
    Reconciles one user's pending entries with the remote store.

    Usage:
        reconciler = SyncReconciler(pending, remote, guard, bus)
        report = await reconciler.reconcile()
    """

    def __init__(
        self,
        pending: PendingStoreAdapter,
        remote: RemoteStoreAdapter,
        guard: SyncGuard,
        bus: EventBus | None = None,
    ) -> None:
        super().__init__()
        self.pending = pending
        self.remote = remote
        self.guard = guard
        self.bus = bus
        self._lock = asyncio.Lock()

    @property
    def in_progress(self) -> bool:
        return self._lock.locked()

    async def reconcile(self) -> SyncReport:
        """
        Run one pass over the pending store.

        Returns:
            Ids synced, ids that failed, and old-to-new id remaps
        """
        async with self._lock:
            return await self._pass()

    async def _pass(self) -> SyncReport:
        pass_id = uuid4().hex
        report = SyncReport()
        entries = await self.pending.entries()
        if not entries:
            return report

        log_with_source(
            self._logger, "sync", "info",
            "Sync pass started", pass_id=pass_id, entries=len(entries),
        )
        for entry in entries:
            if not await self.pending.contains(entry.id):
                continue
            if entry.needs_sync is False or self.guard.resolve(entry.id) != entry.id:
                # Written remotely by an earlier pass that stopped before removal.
                await self._discard(entry.id)
                continue
            try:
                new_id = await self._sync_entry(entry.id)
            except SyncFailureError as e:
                report.failed.append(e.note_id)
                log_with_source(
                    self._logger, "sync", "warning",
                    "SyncFailure", pass_id=pass_id, note_id=e.note_id, error=e.message,
                )
                continue
            if new_id is None:
                continue
            report.synced.append(entry.id)
            if new_id != entry.id:
                report.remapped[entry.id] = new_id
                if self.bus is not None:
                    await self.bus.publish(NoteRemapped.build(entry.id, new_id, pass_id))

        log_with_source(
            self._logger, "sync", "info",
            "Sync pass finished",
            pass_id=pass_id,
            synced=len(report.synced),
            failed=len(report.failed),
        )
        if self.bus is not None:
            await self.bus.publish(SyncCompleted(
                source="sync-reconciler",
                correlation_id=pass_id,
                payload=report.model_dump(),
            ))
        return report

    async def _sync_entry(self, note_id: str) -> str | None:
        """
        Write one entry remotely and remove it from the pending store.

        Returns:
            The entry's remote id, or None if a shadow entry's remote note
            no longer exists and the shadow was dropped

        Raises:
            SyncFailureError: If the entry could not be written
        """
        async with self.guard.syncing(note_id):
            try:
                await self.pending.mark_syncing(note_id, True)
                # Re-read inside the guard so edits made before the pass are included.
                entry = await self.pending.read(note_id)
                new_id = await self._write_remote(entry)
            except NotFoundError as e:
                if not self.pending.is_shadow(note_id):
                    await self._clear_syncing(note_id)
                    raise SyncFailureError(note_id, e.message) from e
                self._logger.warning(
                    "Shadow target deleted remotely, dropping shadow",
                    extra={"note_id": note_id},
                )
                await self._discard(note_id)
                return None
            except ApplicationError as e:
                await self._clear_syncing(note_id)
                raise SyncFailureError(note_id, e.message) from e

            if new_id != note_id:
                self.guard.record_remap(note_id, new_id)
            await self._settle(note_id)
            return new_id

    async def _write_remote(self, entry: Note) -> str:
        if self.pending.is_shadow(entry.id):
            await self.remote.update_from(entry)
            return entry.id
        return await self.remote.create_from(entry)

    async def _settle(self, note_id: str) -> None:
        """
        Drop an entry the remote store already has.

        Failures are logged, not raised: the remote write stands and its
        remap is recorded, so a later pass discards the entry instead of
        writing it again.
        """
        try:
            await self.pending.mark_synced(note_id)
        except StorageError as e:
            self._logger.warning(
                "Could not mark pending entry synced",
                extra={"note_id": note_id, "error": e.message},
            )
        await self._discard(note_id)
        if await self.pending.contains(note_id):
            await self._clear_syncing(note_id)

    async def _clear_syncing(self, note_id: str) -> None:
        try:
            await self.pending.mark_syncing(note_id, False)
        except ApplicationError as e:
            # Stale flags are cleared on the next load.
            self._logger.warning(
                "Could not clear syncing flag",
                extra={"note_id": note_id, "error": e.message},
            )

    async def _discard(self, note_id: str) -> None:
        try:
            await self.pending.remove(note_id)
        except ApplicationError as e:
            self._logger.warning(
                "Could not drop pending entry",
                extra={"note_id": note_id, "error": e.message},
            )
