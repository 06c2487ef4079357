"""
Unit Tests for Centralized Logging.

Tests the logging configuration and source handling.
"""

import logging
from unittest.mock import MagicMock, patch

import pytest

from notesync.core import logging as logging_module
from notesync.core.logging import VALID_SOURCES, get_logger, log_with_source, setup_logging


@pytest.fixture
def logging_config():
    return {
        "level": "INFO",
        "format": "json",
        "handlers": {
            "console": {"enabled": True},
            "file": {
                "enabled": True,
                "path": "logs/system.jsonl",
                "max_bytes": 10485760,
                "backup_count": 5,
            },
        },
    }


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging_module._logging_config = None


class TestValidSources:
    def test_sources_used_by_the_package(self):
        assert {"notebook", "sync", "connectivity", "cli"} <= VALID_SOURCES
        assert isinstance(VALID_SOURCES, frozenset)


class TestLoggingConfigLoading:
    def test_reads_yaml_once(self, logging_config):
        logging_module._logging_config = None
        with patch("notesync.core.logging.load_yaml_config", return_value=logging_config) as load:
            first = logging_module._load_logging_config()
            second = logging_module._load_logging_config()

        assert first is second
        load.assert_called_once_with("logging.yaml")

    def test_missing_file(self):
        logging_module._logging_config = None
        with patch(
            "notesync.core.logging.load_yaml_config",
            side_effect=FileNotFoundError("Configuration file not found: logging.yaml"),
        ):
            with pytest.raises(FileNotFoundError, match="logging.yaml"):
                logging_module._load_logging_config()


class TestSetupLogging:
    def test_override_level(self, logging_config):
        with patch("notesync.core.logging._load_logging_config", return_value=logging_config):
            setup_logging(level="DEBUG", enable_file_logging=False)
        assert logging.getLogger().level == logging.DEBUG

    def test_config_defaults(self, logging_config):
        with patch("notesync.core.logging._load_logging_config", return_value=logging_config):
            setup_logging(enable_file_logging=False)

        root = logging.getLogger()
        assert root.level == logging.INFO
        assert [type(h).__name__ for h in root.handlers] == ["StreamHandler"]

    def test_file_handler(self, tmp_path, logging_config):
        log_file = tmp_path / "logs" / "system.jsonl"
        with patch("notesync.core.logging._load_logging_config", return_value=logging_config), \
             patch("notesync.core.logging._resolve_log_path", return_value=log_file):
            setup_logging(format_type="console")

        handler_types = [type(h).__name__ for h in logging.getLogger().handlers]
        assert "RotatingFileHandler" in handler_types
        assert log_file.parent.exists()


class TestLogWithSource:
    def test_adds_source(self):
        logger = MagicMock()
        log_with_source(logger, "sync", "warning", "SyncFailure", note_id="local-1")
        logger.warning.assert_called_once_with("SyncFailure", source="sync", note_id="local-1")

    def test_invalid_level(self):
        with pytest.raises(AttributeError):
            log_with_source(get_logger("test"), "sync", "loud", "message")
