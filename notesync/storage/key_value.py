"""
Local Key-Value Storage.

The local persistent store behind the guest and pending collections.
It mirrors the browser storage contract the engine was designed against:
string keys, string values, whole values only (no partial writes).

Implementations:
    MemoryStorage  - process-local dict, for tests and ephemeral sessions
    FileStorage    - one file per key under a directory, written atomically
"""

import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import quote

from notesync.core.exceptions import StorageError
from notesync.core.logging import get_logger

logger = get_logger(__name__)


class KeyValueStorage(ABC):
    """String key-value store used verbatim by the local adapters."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Replace the value stored under `key`."""
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete `key`. Missing keys are ignored."""
        ...


class MemoryStorage(KeyValueStorage):
    """Dict-backed storage."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class FileStorage(KeyValueStorage):
    """
    Directory-backed storage.

    Each key maps to one file named after the URL-quoted key. Writes go to
    a temporary file in the same directory and are moved into place, so a
    crash mid-write never leaves a truncated collection behind.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{quote(key, safe='')}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error("Local storage read failed", extra={"key": key, "error": str(e)})
            raise StorageError(f"Could not read {key}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".tmp-")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error("Local storage write failed", extra={"key": key, "error": str(e)})
            raise StorageError(f"Could not write {key}") from e

    def remove(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            logger.error("Local storage delete failed", extra={"key": key, "error": str(e)})
            raise StorageError(f"Could not delete {key}") from e
