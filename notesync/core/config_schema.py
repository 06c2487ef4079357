"""
Configuration Schemas.

Pydantic models defining the expected structure of each YAML config file.
Used by AppConfig to validate configuration at load time. If a YAML file
has missing keys, wrong types, or unknown fields, a clear ValidationError
is raised at startup instead of a cryptic KeyError deep in the engine.

Each top-level class corresponds to one file in config/settings/:
    ApplicationSchema  → application.yaml
    LoggingSchema      → logging.yaml
    StorageSchema      → storage.yaml
    RemoteSchema       → remote.yaml
    SyncSchema         → sync.yaml
    ConcurrencySchema  → concurrency.yaml
"""

from pydantic import BaseModel, ConfigDict


class _StrictBase(BaseModel):
    """Base with extra='forbid' so unknown YAML keys are caught immediately."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# application.yaml
# =============================================================================


class ApplicationSchema(_StrictBase):
    name: str
    version: str
    description: str
    environment: str
    debug: bool


# =============================================================================
# logging.yaml
# =============================================================================


class ConsoleHandlerSchema(_StrictBase):
    enabled: bool


class FileHandlerSchema(_StrictBase):
    enabled: bool
    path: str
    max_bytes: int
    backup_count: int


class HandlersSchema(_StrictBase):
    console: ConsoleHandlerSchema
    file: FileHandlerSchema


class LoggingSchema(_StrictBase):
    level: str
    format: str
    handlers: HandlersSchema


# =============================================================================
# storage.yaml
# =============================================================================


class CollectionKeysSchema(_StrictBase):
    guest: str
    pending: str
    last_note_prefix: str


class StorageSchema(_StrictBase):
    directory: str
    keys: CollectionKeysSchema


# =============================================================================
# remote.yaml
# =============================================================================


class RemoteRetrySchema(_StrictBase):
    max_attempts: int
    backoff_multiplier: float
    backoff_max: float


class RemoteCircuitBreakerSchema(_StrictBase):
    fail_max: int
    timeout_duration: int


class RemoteSchema(_StrictBase):
    base_url: str
    health_path: str
    timeout_seconds: float
    retry: RemoteRetrySchema
    circuit_breaker: RemoteCircuitBreakerSchema


# =============================================================================
# sync.yaml
# =============================================================================


class SyncSchema(_StrictBase):
    debounce_seconds: float
    probe_interval_seconds: float
    sync_on_reconnect: bool
    sync_on_sign_in: bool


# =============================================================================
# concurrency.yaml
# =============================================================================


class SemaphoresSchema(_StrictBase):
    remote_store: int
    local_storage: int


class ShutdownSchema(_StrictBase):
    drain_seconds: int


class ConcurrencySchema(_StrictBase):
    semaphores: SemaphoresSchema
    shutdown: ShutdownSchema
