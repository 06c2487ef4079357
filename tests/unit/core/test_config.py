"""Unit tests for notesync.core.config and config_schema."""

from pathlib import Path
from unittest.mock import patch

import pydantic
import pytest

from notesync.core.config import (
    AppConfig,
    find_project_root,
    get_app_config,
    get_remote_base_url,
    get_storage_directory,
    load_yaml_config,
)
from notesync.core.config_schema import RemoteSchema, StorageSchema


@pytest.fixture(autouse=True)
def _clear_config_cache():
    get_app_config.cache_clear()
    yield
    get_app_config.cache_clear()


class TestProjectRoot:
    def test_found_from_repo(self):
        assert (find_project_root() / ".project_root").exists()

    def test_missing_marker(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(RuntimeError):
            find_project_root()


class TestYamlLoading:
    def test_load_storage(self):
        data = load_yaml_config("storage.yaml")
        assert data["keys"]["guest"] == "guestNotes"

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError):
            load_yaml_config("does-not-exist.yaml")


class TestAppConfig:
    def test_sections_are_typed(self):
        config = AppConfig()
        assert config.storage.keys.pending == "offlineNotes"
        assert config.storage.keys.last_note_prefix == "lastNote-"
        assert config.remote.retry.max_attempts >= 1
        assert config.sync.sync_on_reconnect is True
        assert config.concurrency.semaphores.remote_store > 0

    def test_cached(self):
        assert get_app_config() is get_app_config()


class TestSchemas:
    def test_unknown_key_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            StorageSchema(
                directory="data",
                keys={"guest": "g", "pending": "p", "last_note_prefix": "l"},
                surprise=True,
            )

    def test_missing_key_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            RemoteSchema(base_url="http://x", health_path="/health", timeout_seconds=1)


class TestHelpers:
    def test_relative_storage_directory_resolved(self, mock_app_config):
        with patch("notesync.core.config.get_app_config", return_value=mock_app_config):
            directory = get_storage_directory()
        assert directory == find_project_root() / "data" / "local"

    def test_absolute_storage_directory_kept(self, mock_app_config, tmp_path: Path):
        mock_app_config.storage.directory = str(tmp_path)
        with patch("notesync.core.config.get_app_config", return_value=mock_app_config):
            assert get_storage_directory() == tmp_path

    def test_remote_base_url(self, mock_app_config):
        mock_app_config.remote.base_url = "http://notes.test/api/"
        mock_app_config.remote.timeout_seconds = 3
        with patch("notesync.core.config.get_app_config", return_value=mock_app_config):
            assert get_remote_base_url() == ("http://notes.test/api", 3.0)
