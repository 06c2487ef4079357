"""
Configuration Management.

Loads secrets from config/.env and settings from config/settings/*.yaml.
No hardcoded values in code: all configuration comes from these sources.

Secrets (.env):
    REMOTE_API_TOKEN

Settings (YAML):
    application.yaml   - App identity
    logging.yaml       - Logging configuration
    storage.yaml       - Local storage directory and collection keys
    remote.yaml        - Remote document store endpoint and resilience
    sync.yaml          - Debounce, connectivity probing, sync triggers
    concurrency.yaml   - Semaphores, shutdown timing
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from notesync.core.config_schema import (
    ApplicationSchema,
    ConcurrencySchema,
    LoggingSchema,
    RemoteSchema,
    StorageSchema,
    SyncSchema,
)


def find_project_root() -> Path:
    """Find project root by looking for .project_root marker file."""
    current = Path.cwd()
    while current != current.parent:
        if (current / ".project_root").exists():
            return current
        current = current.parent
    raise RuntimeError("Project root not found. Ensure .project_root file exists.")


def load_yaml_config(filename: str) -> dict[str, Any]:
    """Load a YAML configuration file from config/settings/."""
    project_root = find_project_root()
    config_path = project_root / "config" / "settings" / filename

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


class Settings(BaseSettings):
    """Secrets loaded from config/.env. Only passwords, tokens, and keys."""

    remote_api_token: str = ""

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def _load_validated(schema_cls: type, filename: str) -> Any:
    """Load YAML and validate against schema. Returns typed model instance."""
    raw = load_yaml_config(filename)
    try:
        return schema_cls(**raw)
    except ValidationError as e:
        raise ValueError(
            f"Invalid configuration in {filename}:\n{e}"
        ) from e


class AppConfig:
    """
    Application configuration loaded from YAML files.

    Each YAML file is validated against its Pydantic schema at load time.
    Missing keys, wrong types, or unknown fields raise a clear error
    immediately instead of causing cryptic KeyErrors later.

    Properties return typed Pydantic model instances with attribute access.
    """

    def __init__(self) -> None:
        self._application = _load_validated(ApplicationSchema, "application.yaml")
        self._logging = _load_validated(LoggingSchema, "logging.yaml")
        self._storage = _load_validated(StorageSchema, "storage.yaml")
        self._remote = _load_validated(RemoteSchema, "remote.yaml")
        self._sync = _load_validated(SyncSchema, "sync.yaml")
        self._concurrency = _load_validated(ConcurrencySchema, "concurrency.yaml")

    @property
    def application(self) -> ApplicationSchema:
        """Application settings."""
        return self._application

    @property
    def logging(self) -> LoggingSchema:
        """Logging settings."""
        return self._logging

    @property
    def storage(self) -> StorageSchema:
        """Local storage settings."""
        return self._storage

    @property
    def remote(self) -> RemoteSchema:
        """Remote document store settings."""
        return self._remote

    @property
    def sync(self) -> SyncSchema:
        """Synchronization settings (debounce, probing, triggers)."""
        return self._sync

    @property
    def concurrency(self) -> ConcurrencySchema:
        """Concurrency settings (semaphores, shutdown)."""
        return self._concurrency


@lru_cache
def get_settings() -> Settings:
    """Get cached secrets instance. Resolves .env path from project root."""
    env_path = find_project_root() / "config" / ".env"
    return Settings(_env_file=str(env_path))


@lru_cache
def get_app_config() -> AppConfig:
    """Get cached application configuration."""
    return AppConfig()


def get_storage_directory() -> Path:
    """
    Resolve the local storage directory from storage.yaml.

    Relative paths are resolved against the project root.

    Returns:
        Absolute Path of the directory holding local collections.
    """
    directory = Path(get_app_config().storage.directory).expanduser()
    if directory.is_absolute():
        return directory
    return find_project_root() / directory


def get_remote_base_url() -> tuple[str, float]:
    """
    Get the remote document store base URL and timeout from remote.yaml.

    Returns:
        Tuple of (base_url, timeout_seconds).
    """
    remote = get_app_config().remote
    return remote.base_url.rstrip("/"), float(remote.timeout_seconds)
