"""
Debounced Saves.

Editors call `schedule()` on every keystroke; the notebook is written only
once the edits have paused for `delay` seconds. `flush()` writes right away
(leaving a view, closing the app) and `cancel()` drops whatever is queued.

The saver follows its note through a sync remap, so a save queued against
a `local-` id lands on the note's new remote id.

Usage:
    saver = DebouncedSaver(notebook, note_id, delay=1.0)
    saver.schedule({"content": html})
    ...
    await saver.flush()
    saver.close()
"""

import asyncio
from typing import Any

from notesync.core.logging import get_logger
from notesync.schemas.base import OperationResult
from notesync.schemas.note import Note
from notesync.services.notebook import Notebook

logger = get_logger(__name__)


class DebouncedSaver:
    """Coalesces edits to one note into a single delayed update."""

    def __init__(self, notebook: Notebook, note_id: str, delay: float = 1.0) -> None:
        self.notebook = notebook
        self.note_id = note_id
        self.delay = delay
        self._fields: dict[str, Any] = {}
        self._timer: asyncio.Task | None = None
        self._unsubscribe = notebook.on_remap(self._retarget)

    @classmethod
    def from_config(cls, notebook: Notebook, note_id: str) -> "DebouncedSaver":
        from notesync.core.config import get_app_config

        return cls(notebook, note_id, delay=get_app_config().sync.debounce_seconds)

    @property
    def pending(self) -> bool:
        return bool(self._fields)

    def _retarget(self, old_id: str, new_id: str) -> None:
        if self.note_id == old_id:
            logger.debug("Debounced saver retargeted", extra={"old_id": old_id, "new_id": new_id})
            self.note_id = new_id

    def _stop_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def schedule(self, fields: dict[str, Any]) -> None:
        """Queue field changes and restart the delay."""
        self._fields.update(fields)
        self._stop_timer()
        self._timer = asyncio.create_task(self._save_later())

    async def _save_later(self) -> None:
        await asyncio.sleep(self.delay)
        self._timer = None
        await self._save()

    async def _save(self) -> OperationResult[Note] | None:
        if not self._fields:
            return None
        fields, self._fields = self._fields, {}
        result = await self.notebook.update(self.note_id, fields)
        if not result.success:
            logger.warning(
                "Debounced save failed",
                extra={"note_id": self.note_id, "code": result.error.code},
            )
        return result

    async def flush(self) -> OperationResult[Note] | None:
        """Save queued changes now. Returns None when nothing was queued."""
        self._stop_timer()
        return await self._save()

    def cancel(self) -> None:
        """Drop queued changes without saving."""
        self._stop_timer()
        self._fields = {}

    def close(self) -> None:
        self.cancel()
        self._unsubscribe()
