"""
Event Schemas.

Standardized event envelope and domain-specific event types.
All events published through the event bus use the EventEnvelope base.

Naming convention for event_type: domain.entity.action (dot notation)

Usage:
    from notesync.events.schemas import NoteRemapped

    event = NoteRemapped.build(
        old_id="local-1f2e", new_id="a8c3", correlation_id=pass_id,
    )
"""

from uuid import uuid4

from pydantic import BaseModel, Field

from notesync.core.utils import utc_now


class EventEnvelope(BaseModel):
    """Base event envelope, all events inherit from this.

    Fields:
        event_id: Unique event identifier (auto-generated UUID)
        event_type: Domain event type in dot notation (e.g. notes.note.remapped)
        event_version: Schema version for forward compatibility
        timestamp: ISO 8601 UTC timestamp
        source: Component that published the event
        correlation_id: Sync pass or session id tying related events together
        payload: Event-specific data
    """

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    event_type: str
    event_version: int = 1
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())
    source: str
    correlation_id: str = Field(default_factory=lambda: str(uuid4()))
    payload: dict


class NoteRemapped(EventEnvelope):
    """Published when a pending note is synced and receives its remote id."""

    event_type: str = "notes.note.remapped"

    @classmethod
    def build(cls, old_id: str, new_id: str, correlation_id: str) -> "NoteRemapped":
        return cls(
            source="sync-reconciler",
            correlation_id=correlation_id,
            payload={"old_id": old_id, "new_id": new_id},
        )

    @property
    def old_id(self) -> str:
        return self.payload["old_id"]

    @property
    def new_id(self) -> str:
        return self.payload["new_id"]


class SyncCompleted(EventEnvelope):
    """Published at the end of every reconciliation pass."""

    event_type: str = "notes.sync.completed"


class ConnectivityChanged(EventEnvelope):
    """Published when the connectivity monitor sees a transition."""

    event_type: str = "connectivity.state.changed"

    @property
    def online(self) -> bool:
        return bool(self.payload.get("online"))
