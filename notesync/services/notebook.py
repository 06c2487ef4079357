"""
Notebook Facade.

Single entry point for everything a note view does. The notebook keeps two
projections, `notes` (active) and `trashed_notes`, and hides which backend
holds which note:

    guest session                 -> guest store
    signed in, online             -> remote store
    signed in, offline            -> pending store (new notes, shadow edits)

Mutations are applied to the projections optimistically and reverted when
the backend write fails. A remote write that fails while offline is kept
as a shadow entry in the pending store and written back on reconnect.

Every public operation returns an OperationResult. Application errors are
reported through it; anything else propagates.

Usage:
    notebook = Notebook(storage=FileStorage("data/local"), store=store, monitor=monitor)
    await notebook.open(AuthSession.signed_in("u1"))

    result = await notebook.create(NoteCreate(title="Groceries"))
    if result.success:
        await notebook.update(result.data.id, {"content": "<p>milk</p>"})

    await notebook.close()
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from pydantic import ValidationError as PydanticValidationError

from notesync.adapters.base import NoteAdapter
from notesync.adapters.guest import DEFAULT_GUEST_KEY, GuestStoreAdapter
from notesync.adapters.pending import DEFAULT_PENDING_KEY, PendingStoreAdapter
from notesync.adapters.remote import RemoteStoreAdapter
from notesync.core.concurrency import CancelScope, SyncGuard, reset_semaphores
from notesync.core.exceptions import (
    ApplicationError,
    ConflictError,
    NotAuthenticatedError,
    OperationCancelledError,
    TransientError,
    UnavailableError,
    ValidationError,
)
from notesync.core.logging import log_with_source
from notesync.core.utils import utc_now
from notesync.events.bus import EventBus
from notesync.events.schemas import EventEnvelope, NoteRemapped
from notesync.schemas.base import CreatedNote, OperationResult
from notesync.schemas.identity import Namespace
from notesync.schemas.note import Note, NoteCreate, NoteUpdate, sort_active, sort_trashed
from notesync.schemas.session import AuthSession
from notesync.schemas.sync import SyncReport
from notesync.services.base import BaseService
from notesync.services.connectivity import ConnectivityMonitor
from notesync.services.reconciler import SyncReconciler
from notesync.services.router import IdentityRouter
from notesync.storage.documents import DocumentStore
from notesync.storage.key_value import KeyValueStorage

T = TypeVar("T")

RemapListener = Callable[[str, str], None]

DEFAULT_LAST_NOTE_PREFIX = "lastNote-"
GUEST_POINTER_OWNER = "guest"
MAX_SEARCH_LENGTH = 1000


class Notebook(BaseService):
    """
    Note persistence facade for one session at a time.

    Construct once, then `open(session)` for each sign-in and `close()` on
    shutdown. Opening with a new session replaces the previous one.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        store: DocumentStore,
        monitor: ConnectivityMonitor | None = None,
        bus: EventBus | None = None,
        guest_key: str = DEFAULT_GUEST_KEY,
        pending_key: str = DEFAULT_PENDING_KEY,
        last_note_prefix: str = DEFAULT_LAST_NOTE_PREFIX,
        sync_on_reconnect: bool = True,
        sync_on_sign_in: bool = True,
        drain_seconds: float = 5.0,
    ) -> None:
        super().__init__()
        self.storage = storage
        self.store = store
        self.monitor = monitor or ConnectivityMonitor()
        self.bus = bus or EventBus()
        self.guest_key = guest_key
        self.pending_key = pending_key
        self.last_note_prefix = last_note_prefix
        self.sync_on_reconnect = sync_on_reconnect
        self.sync_on_sign_in = sync_on_sign_in
        self.drain_seconds = drain_seconds

        self.notes: list[Note] = []
        self.trashed_notes: list[Note] = []
        self._remote_cache: list[Note] | None = None
        self._remap_listeners: list[RemapListener] = []
        self._tasks: set[asyncio.Task] = set()
        self._unsubscribers: list[Callable[[], None]] = []
        self._is_open = False
        self._attach(AuthSession.anonymous())

    @classmethod
    def from_config(
        cls,
        storage: KeyValueStorage,
        store: DocumentStore,
        monitor: ConnectivityMonitor | None = None,
    ) -> "Notebook":
        """Build a notebook using storage.yaml, sync.yaml and concurrency.yaml."""
        from notesync.core.config import get_app_config

        config = get_app_config()
        return cls(
            storage=storage,
            store=store,
            monitor=monitor,
            guest_key=config.storage.keys.guest,
            pending_key=config.storage.keys.pending,
            last_note_prefix=config.storage.keys.last_note_prefix,
            sync_on_reconnect=config.sync.sync_on_reconnect,
            sync_on_sign_in=config.sync.sync_on_sign_in,
            drain_seconds=config.concurrency.shutdown.drain_seconds,
        )

    # -------------------------------------------------------------------------
    # Session lifecycle
    # -------------------------------------------------------------------------

    def _attach(self, session: AuthSession) -> None:
        """Build the adapters, router and reconciler for a session."""
        self.session = session
        self.guard = SyncGuard()
        self.guest = GuestStoreAdapter(self.storage, key=self.guest_key)
        self.pending = PendingStoreAdapter(self.storage, user_id=session.user_id, key=self.pending_key)
        self.remote = RemoteStoreAdapter(self.store, user_id=session.user_id)
        self.router = IdentityRouter({
            Namespace.GUEST: self.guest,
            Namespace.PENDING: self.pending,
            Namespace.REMOTE: self.remote,
        })
        self.reconciler = SyncReconciler(self.pending, self.remote, self.guard, self.bus)
        self.notes = []
        self.trashed_notes = []
        self._remote_cache = None

    async def open(self, session: AuthSession) -> OperationResult[None]:
        """
        Start serving a session.

        Subscribes to connectivity changes, syncs pending writes when a
        signed-in user opens the notebook online, and loads the projections.
        """
        if self._is_open:
            await self.close()
        self._attach(session)
        self._unsubscribers = [
            self.monitor.subscribe(self._on_connectivity),
            self.bus.subscribe(NoteRemapped, self._on_remapped),
        ]
        self._is_open = True
        self._log_operation(
            "Notebook opened",
            user_id=session.user_id,
            guest=session.is_guest,
            online=self.monitor.is_online,
        )
        if session.is_authenticated and self.monitor.is_online and self.sync_on_sign_in:
            await self.sync()
        return await self.refresh()

    async def close(self) -> None:
        """Stop serving the session and cancel mutations still in flight."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        tasks = [task for task in self._tasks if not task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.wait(tasks, timeout=self.drain_seconds)
        self._tasks.clear()
        self._is_open = False
        reset_semaphores()
        self._log_operation("Notebook closed", cancelled=len(tasks))

    @property
    def is_offline(self) -> bool:
        return not self.monitor.is_online

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    async def _track(self, coro: Awaitable[T]) -> T:
        """Run a mutation as a task that `close()` can cancel."""
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        try:
            return await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            raise OperationCancelledError("Notebook closed before the operation finished")

    async def _execute(
        self,
        operation: str,
        call: Callable[[], Awaitable[T]],
        scope: CancelScope | None = None,
    ) -> OperationResult[T]:
        if scope is not None and scope.cancelled:
            return OperationResult.fail(OperationCancelledError())
        try:
            data = await self._track(call())
        except ApplicationError as e:
            self._logger.warning(
                "Notebook operation failed",
                extra={"operation": operation, "code": e.code, "error": e.message},
            )
            return OperationResult.fail(e)
        return OperationResult.ok(data, source="notebook")

    def _require_session(self) -> None:
        if not self.session.is_authenticated and not self.session.is_guest:
            raise NotAuthenticatedError()

    # -------------------------------------------------------------------------
    # Projection
    # -------------------------------------------------------------------------

    def _find(self, note_id: str) -> Note | None:
        for note in (*self.notes, *self.trashed_notes):
            if note.id == note_id:
                return note
        return None

    def _drop(self, note_id: str) -> None:
        self.notes = [n for n in self.notes if n.id != note_id]
        self.trashed_notes = [n for n in self.trashed_notes if n.id != note_id]

    def _place(self, note: Note) -> None:
        self._drop(note.id)
        if note.deleted:
            self.trashed_notes = sort_trashed([*self.trashed_notes, note])
        else:
            self.notes = sort_active([*self.notes, note])

    def _apply(self, note: Note, scope: CancelScope | None, keep_newer: bool = True) -> None:
        """
        Put a note into the projection unless the scope was cancelled.

        With `keep_newer`, a held copy with a later `last_updated` wins. A
        mutation placing its own result passes False: its base copy comes
        from the store and may carry an older server stamp than the held one.
        """
        if scope is not None and scope.cancelled:
            return
        held = self._find(note.id)
        if (
            keep_newer
            and held is not None
            and held.last_updated is not None
            and note.last_updated is not None
            and held.last_updated > note.last_updated
        ):
            return
        self._place(note)

    def _revert(self, note_id: str, prior: Note | None) -> None:
        if prior is None:
            self._drop(note_id)
        else:
            self._place(prior)

    # -------------------------------------------------------------------------
    # Routing
    # -------------------------------------------------------------------------

    async def _writable_id(self, raw_id: str) -> str:
        """Validate an id and wait out any sync in flight for it."""
        self.router.classify(raw_id)
        return await self.guard.wait(raw_id)

    async def _adapter_for(self, note_id: str) -> NoteAdapter:
        """Owning adapter, preferring a pending shadow over its remote note."""
        namespace = self.router.classify(note_id)
        if namespace is Namespace.REMOTE and await self.pending.contains(note_id):
            return self.pending
        return self.router.adapter(namespace)

    def _may_shadow(self, adapter: NoteAdapter) -> bool:
        return adapter is self.remote and self.session.is_authenticated and self.is_offline

    async def _read(self, note_id: str) -> Note:
        adapter = await self._adapter_for(note_id)
        if adapter is not self.remote:
            return await adapter.read(note_id)
        try:
            return await self.remote.read(note_id)
        except TransientError as e:
            cached = self._find(note_id)
            if cached is None:
                raise UnavailableError(f"Note {note_id} is unavailable offline") from e
            return cached

    async def _write(
        self,
        note_id: str,
        current: Note,
        changes: dict[str, Any],
        write: Callable[[NoteAdapter], Awaitable[None]],
        scope: CancelScope | None,
    ) -> Note:
        """
        Apply `changes` optimistically, then run `write` against the owning adapter.

        A remote write that fails while offline is stored as a shadow entry.
        Any other failure reverts the projection and propagates.
        """
        adapter = await self._adapter_for(note_id)
        prior = self._find(note_id)
        updated = current.model_copy(update=changes)
        self._apply(updated, scope, keep_newer=False)
        try:
            try:
                await write(adapter)
            except TransientError:
                if not self._may_shadow(adapter):
                    raise
                log_with_source(
                    self._logger, "notebook", "info",
                    "Remote write failed offline, keeping shadow copy", note_id=note_id,
                )
                await self.pending.put_shadow(updated)
        except ApplicationError:
            if scope is None or not scope.cancelled:
                self._revert(note_id, prior)
            raise
        return updated

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def refresh(self) -> OperationResult[None]:
        """Rebuild both projections from the backends that own this session's notes."""
        return await self._execute("refresh", self._refresh)

    async def _refresh(self) -> None:
        if self.session.is_authenticated:
            notes = await self._load_signed_in()
        elif self.session.is_guest:
            notes = await self.guest.entries()
        else:
            notes = []
        self.notes = sort_active([n for n in notes if not n.deleted])
        self.trashed_notes = sort_trashed([n for n in notes if n.deleted])
        self._log_debug("Projection refreshed", active=len(self.notes), trashed=len(self.trashed_notes))

    async def _load_signed_in(self) -> list[Note]:
        entries = await self.pending.entries()
        try:
            remote_notes = await self._load_remote()
        except UnavailableError:
            if not entries:
                raise
            self._logger.warning(
                "Remote notes unavailable, showing pending notes only",
                extra={"pending": len(entries)},
            )
            remote_notes = []
        merged = {note.id: note for note in remote_notes}
        for entry in entries:
            if self.guard.resolve(entry.id) != entry.id:
                # Already written remotely under its new id.
                continue
            merged[entry.id] = entry
        return list(merged.values())

    async def _load_remote(self) -> list[Note]:
        try:
            if self.is_offline:
                raise TransientError("Offline")
            active = await self.remote.list()
            trashed = await self.remote.list(trashed=True)
        except TransientError as e:
            if self._remote_cache is None:
                raise UnavailableError("Notes are unavailable and nothing is cached") from e
            self._logger.info("Using cached remote notes", extra={"error": e.message})
            return list(self._remote_cache)
        self._remote_cache = [*active, *trashed]
        return list(self._remote_cache)

    async def get(self, note_id: str) -> OperationResult[Note]:
        """Fetch one note. The `new` sentinel yields an empty template without any lookup."""
        if self.router.is_new(note_id):
            return OperationResult.ok(Note.template(), source="notebook")
        return await self._execute("get", lambda: self._read(note_id))

    async def search(self, text: str) -> OperationResult[list[Note]]:
        """Active notes whose title or visible content contains `text`, pinned first."""
        needle = (text or "").strip()

        async def run() -> list[Note]:
            self._validate_string_length(needle, "search text", max_length=MAX_SEARCH_LENGTH)
            if not needle:
                return list(self.notes)
            return sort_active([note for note in self.notes if note.matches(needle)])

        return await self._execute("search", run)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def create(
        self,
        data: NoteCreate | dict | None = None,
        scope: CancelScope | None = None,
    ) -> OperationResult[CreatedNote]:
        """Create a note in the backend the session and connectivity call for."""
        return await self._execute("create", lambda: self._create(data, scope), scope)

    async def _create(self, data: NoteCreate | dict | None, scope: CancelScope | None) -> CreatedNote:
        self._require_session()
        payload = self._validated(NoteCreate, data or {})
        if self.session.is_guest:
            adapter: NoteAdapter = self.guest
        elif self.is_offline:
            adapter = self.pending
        else:
            adapter = self.remote

        try:
            note_id = await adapter.create(payload)
        except TransientError:
            if not self._may_shadow(adapter):
                raise
            adapter = self.pending
            note_id = await adapter.create(payload)

        if adapter is self.remote:
            now = utc_now()
            note = Note(
                id=note_id,
                title=payload.title,
                content=payload.content,
                pinned=payload.pinned,
                created=now,
                last_updated=now,
                user_id=self.session.user_id,
            )
        else:
            note = await adapter.read(note_id)
        self._apply(note, scope)
        self._log_operation("Note created", note_id=note_id, namespace=adapter.namespace.value)
        return CreatedNote(id=note_id)

    def _validated(self, model: type[T], data: Any) -> T:
        if isinstance(data, model):
            return data
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid note fields",
                details={"errors": e.errors(include_url=False, include_context=False)},
            ) from e

    async def update(
        self,
        note_id: str,
        fields: NoteUpdate | dict,
        scope: CancelScope | None = None,
    ) -> OperationResult[Note]:
        """Change title, content or pinned state."""
        return await self._execute("update", lambda: self._update(note_id, fields, scope), scope)

    async def _update(self, raw_id: str, fields: NoteUpdate | dict, scope: CancelScope | None) -> Note:
        self._require_session()
        changes = self._validated(NoteUpdate, fields).changes()
        note_id = await self._writable_id(raw_id)
        current = await self._read(note_id)
        if not changes:
            return current

        async def write(adapter: NoteAdapter) -> None:
            await adapter.update(note_id, changes)

        return await self._write(
            note_id, current, {**changes, "last_updated": utc_now()}, write, scope,
        )

    async def toggle_pin(self, note_id: str, scope: CancelScope | None = None) -> OperationResult[Note]:
        return await self._execute("toggle_pin", lambda: self._toggle_pin(note_id, scope), scope)

    async def _toggle_pin(self, raw_id: str, scope: CancelScope | None) -> Note:
        self._require_session()
        note_id = await self._writable_id(raw_id)
        current = await self._read(note_id)
        return await self._update(note_id, {"pinned": not current.pinned}, scope)

    async def move_to_trash(self, note_id: str, scope: CancelScope | None = None) -> OperationResult[Note]:
        """Soft-delete a note. Trashing a trashed note changes nothing."""
        return await self._execute("move_to_trash", lambda: self._set_deleted(note_id, True, scope), scope)

    async def restore_from_trash(self, note_id: str, scope: CancelScope | None = None) -> OperationResult[Note]:
        """Bring a note back from the trash. Restoring an active note changes nothing."""
        return await self._execute("restore_from_trash", lambda: self._set_deleted(note_id, False, scope), scope)

    async def _set_deleted(self, raw_id: str, deleted: bool, scope: CancelScope | None) -> Note:
        self._require_session()
        note_id = await self._writable_id(raw_id)
        current = await self._read(note_id)
        if current.deleted == deleted:
            return current

        now = utc_now()
        if deleted:
            changes = {"deleted": True, "deleted_at": now}
        else:
            changes = {"deleted": False, "deleted_at": None, "last_updated": now}

        async def write(adapter: NoteAdapter) -> None:
            if deleted:
                await adapter.move_to_trash(note_id)
            else:
                await adapter.restore(note_id)

        note = await self._write(note_id, current, changes, write, scope)
        self._log_operation("Note trashed" if deleted else "Note restored", note_id=note_id)
        return note

    async def permanently_delete(self, note_id: str, scope: CancelScope | None = None) -> OperationResult[None]:
        """Remove a trashed note for good."""
        return await self._execute("permanently_delete", lambda: self._permanently_delete(note_id, scope), scope)

    async def _permanently_delete(self, raw_id: str, scope: CancelScope | None) -> None:
        self._require_session()
        note_id = await self._writable_id(raw_id)
        current = await self._read(note_id)
        if not current.deleted:
            raise ConflictError(f"Note {note_id} must be in the trash before it can be deleted")

        prior = self._find(note_id)
        if scope is None or not scope.cancelled:
            self._drop(note_id)
        try:
            await self._delete_everywhere(note_id)
        except ApplicationError:
            if prior is not None and (scope is None or not scope.cancelled):
                self._place(prior)
            raise
        self._log_operation("Note permanently deleted", note_id=note_id)

    async def _delete_everywhere(self, note_id: str) -> None:
        namespace = self.router.classify(note_id)
        if namespace is not Namespace.REMOTE:
            await self.router.adapter(namespace).permanently_delete(note_id)
            return
        if self.is_offline:
            raise TransientError("Permanent delete of a synced note needs a connection")
        await self.remote.permanently_delete(note_id)
        if await self.pending.contains(note_id):
            await self.pending.remove(note_id)

    async def empty_trash(self, scope: CancelScope | None = None) -> OperationResult[int]:
        """Permanently delete every trashed note. Returns how many were removed."""
        return await self._execute("empty_trash", lambda: self._empty_trash(scope), scope)

    async def _empty_trash(self, scope: CancelScope | None) -> int:
        self._require_session()
        if self.session.is_guest:
            prior = list(self.trashed_notes)
            if scope is None or not scope.cancelled:
                self.trashed_notes = []
            try:
                removed = await self.guest.empty_trash()
            except ApplicationError:
                if scope is None or not scope.cancelled:
                    self.trashed_notes = prior
                raise
            self._log_operation("Trash emptied", removed=removed)
            return removed

        removed = 0
        first_error: ApplicationError | None = None
        for note in list(self.trashed_notes):
            try:
                await self._permanently_delete(note.id, scope)
            except ApplicationError as e:
                self._logger.warning(
                    "Could not delete trashed note",
                    extra={"note_id": note.id, "error": e.message},
                )
                first_error = first_error or e
                continue
            removed += 1
        if first_error is not None and removed == 0:
            raise first_error
        self._log_operation("Trash emptied", removed=removed, failed=first_error is not None)
        return removed

    # -------------------------------------------------------------------------
    # Sync and remapping
    # -------------------------------------------------------------------------

    async def sync(self) -> OperationResult[SyncReport]:
        """Reconcile pending writes now and reload the projections."""
        async def run() -> SyncReport:
            if not self.session.is_authenticated:
                raise NotAuthenticatedError("Only signed-in notebooks sync")
            report = await self.reconciler.reconcile()
            await self._refresh_quietly()
            return report

        return await self._execute("sync", run)

    async def _refresh_quietly(self) -> None:
        try:
            await self._refresh()
        except ApplicationError as e:
            self._logger.warning("Refresh after sync failed", extra={"error": e.message})

    async def _on_connectivity(self, online: bool) -> None:
        if online and self.session.is_authenticated and self.sync_on_reconnect:
            await self.sync()

    async def _on_remapped(self, event: EventEnvelope) -> None:
        old_id, new_id = event.payload["old_id"], event.payload["new_id"]
        held = self._find(old_id)
        if held is not None:
            self._drop(old_id)
        if held is not None and self._find(new_id) is None:
            self._place(held.model_copy(update={
                "id": new_id,
                "user_id": self.session.user_id,
                "needs_sync": None,
                "syncing": None,
            }))
        pointer_key = self._pointer_key()
        if pointer_key is not None and self.storage.get(pointer_key) == old_id:
            self.storage.set(pointer_key, new_id)
        for listener in list(self._remap_listeners):
            listener(old_id, new_id)
        log_with_source(self._logger, "notebook", "info", "Note remapped", old_id=old_id, new_id=new_id)

    def on_remap(self, listener: RemapListener) -> Callable[[], None]:
        """
        Call `listener(old_id, new_id)` whenever sync gives a note its remote id.

        Returns:
            Callable that removes the listener
        """
        self._remap_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._remap_listeners:
                self._remap_listeners.remove(listener)

        return unsubscribe

    def resolve_id(self, note_id: str) -> str:
        """Current id of a note that may have been remapped since `note_id` was taken."""
        return self.guard.resolve(note_id)

    # -------------------------------------------------------------------------
    # Last opened note
    # -------------------------------------------------------------------------

    def _pointer_key(self) -> str | None:
        if self.session.is_authenticated:
            return f"{self.last_note_prefix}{self.session.user_id}"
        if self.session.is_guest:
            return f"{self.last_note_prefix}{GUEST_POINTER_OWNER}"
        return None

    @property
    def last_note_id(self) -> str | None:
        """Most recently opened note for this session's user, if remembered."""
        key = self._pointer_key()
        if key is None:
            return None
        return self.storage.get(key)

    async def remember_last_note(self, note_id: str) -> OperationResult[None]:
        async def run() -> None:
            key = self._pointer_key()
            if key is None or self.router.is_new(note_id):
                return
            self.router.classify(note_id)
            self.storage.set(key, note_id)

        return await self._execute("remember_last_note", run)

    # -------------------------------------------------------------------------
    # Guest transfer
    # -------------------------------------------------------------------------

    async def guest_note_count(self) -> OperationResult[int]:
        return await self._execute("guest_note_count", self.guest.count)

    async def transfer_guest_notes(self, user_id: str) -> OperationResult[int]:
        """
        Copy every guest note into `user_id`'s remote notebook.

        Notes that fail to copy stay in the guest store; the rest are removed.

        Returns:
            Number of notes transferred
        """
        return await self._execute("transfer_guest_notes", lambda: self._transfer_guest_notes(user_id))

    async def _transfer_guest_notes(self, user_id: str) -> int:
        if not user_id:
            raise NotAuthenticatedError("Guest notes can only be transferred to a signed-in user")
        target = RemoteStoreAdapter(self.store, user_id=user_id)
        transferred = 0
        failed: list[str] = []
        for note in await self.guest.entries():
            try:
                await target.create(NoteCreate(title=note.title, content=note.content, pinned=note.pinned))
            except ApplicationError as e:
                self._logger.warning(
                    "Guest note transfer failed",
                    extra={"note_id": note.id, "error": e.message},
                )
                failed.append(note.id)
                continue
            transferred += 1

        if not failed:
            await self.guest.clear()
        else:
            for note in await self.guest.entries():
                if note.id not in failed:
                    await self.guest.permanently_delete(note.id)
        self._log_operation("Guest notes transferred", user_id=user_id, transferred=transferred, failed=len(failed))

        if self.session.is_authenticated and self.session.user_id == user_id:
            await self._refresh_quietly()
        return transferred
