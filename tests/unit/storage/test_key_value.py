"""Unit tests for local key-value storage."""

from pathlib import Path
from unittest.mock import patch

import pytest

from notesync.core.exceptions import StorageError
from notesync.storage.key_value import FileStorage, MemoryStorage


class TestMemoryStorage:
    def test_get_set_remove(self):
        storage = MemoryStorage()
        assert storage.get("k") is None
        storage.set("k", "v")
        assert storage.get("k") == "v"
        storage.remove("k")
        assert storage.get("k") is None

    def test_remove_missing_ignored(self):
        MemoryStorage().remove("missing")

    def test_initial_copied(self):
        initial = {"k": "v"}
        storage = MemoryStorage(initial)
        storage.set("k", "w")
        assert initial == {"k": "v"}
        assert storage.keys() == ["k"]


class TestFileStorage:
    def test_round_trip(self, tmp_path: Path):
        storage = FileStorage(tmp_path / "local")
        storage.set("guestNotes", "[]")
        assert storage.get("guestNotes") == "[]"
        assert FileStorage(tmp_path / "local").get("guestNotes") == "[]"

    def test_missing_key(self, tmp_path: Path):
        assert FileStorage(tmp_path).get("nothing") is None

    def test_keys_are_quoted(self, tmp_path: Path):
        storage = FileStorage(tmp_path)
        storage.set("lastNote-a/b", "x")
        assert storage.get("lastNote-a/b") == "x"
        assert [p.name for p in tmp_path.iterdir()] == ["lastNote-a%2Fb.json"]

    def test_overwrite_leaves_no_temp_files(self, tmp_path: Path):
        storage = FileStorage(tmp_path)
        storage.set("k", "1")
        storage.set("k", "2")
        assert storage.get("k") == "2"
        assert len(list(tmp_path.iterdir())) == 1

    def test_remove(self, tmp_path: Path):
        storage = FileStorage(tmp_path)
        storage.set("k", "1")
        storage.remove("k")
        storage.remove("k")
        assert storage.get("k") is None

    def test_write_failure_is_storage_error(self, tmp_path: Path):
        storage = FileStorage(tmp_path)
        with patch("notesync.storage.key_value.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(StorageError):
                storage.set("k", "1")
        assert storage.get("k") is None
        assert list(tmp_path.iterdir()) == []

    def test_read_failure_is_storage_error(self, tmp_path: Path):
        storage = FileStorage(tmp_path)
        storage.set("k", "1")
        with patch.object(Path, "read_text", side_effect=PermissionError("denied")):
            with pytest.raises(StorageError):
                storage.get("k")
