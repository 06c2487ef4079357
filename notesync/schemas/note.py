"""
Note Schemas.

Pydantic schemas for the note entity and the field sets callers pass in.

Local collections and remote documents are stored with camelCase keys
(`lastUpdated`, `deletedAt`, `needsSync`, ...); Python code uses the
snake_case attribute names. Always dump with `by_alias=True` when writing.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from notesync.core.utils import strip_html, utc_now

NEW_NOTE_SENTINEL = "new"
"""Route placeholder meaning "no note yet". Never stored, never looked up."""


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Note(_CamelModel):
    """
    A single note as seen by the notebook.

    `user_id` is set on remote-backed notes and on pending store entries.
    Pending `local-` entries carry it too: one pending collection is shared
    by every account that signed in on the device, and the owner stamp keeps
    each user's queue apart. It is never written to a guest note.
    `needs_sync` and `syncing` are set only on pending store entries.
    """

    id: str
    title: str = ""
    content: str = ""
    pinned: bool = False
    deleted: bool = False
    deleted_at: datetime | None = None
    created: datetime | None = None
    last_updated: datetime | None = None
    user_id: str | None = None
    needs_sync: bool | None = None
    syncing: bool | None = None

    @field_validator("title", "content", mode="before")
    @classmethod
    def _empty_text(cls, value: str | None) -> str:
        return "" if value is None else value

    @field_validator("deleted_at", "created", "last_updated")
    @classmethod
    def _naive_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def matches(self, text: str) -> bool:
        """Case-insensitive match against the title and visible content."""
        needle = text.lower()
        if needle in self.title.lower():
            return True
        return needle in strip_html(self.content).lower()

    def to_storage(self) -> dict:
        """Serialize for a local collection, omitting unset namespace markers."""
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        data.setdefault("deletedAt", None)
        return data

    @classmethod
    def template(cls) -> "Note":
        """Fresh empty note for the `new` sentinel."""
        now = utc_now()
        return cls(id=NEW_NOTE_SENTINEL, created=now, last_updated=now)


class NoteCreate(_CamelModel):
    """Fields accepted when creating a note."""

    title: str = Field(default="", max_length=1000)
    content: str = Field(default="")
    pinned: bool = False


class NoteUpdate(_CamelModel):
    """Fields accepted when updating a note. Only fields that are set are applied."""

    title: str | None = Field(default=None, max_length=1000)
    content: str | None = None
    pinned: bool | None = None

    def changes(self) -> dict:
        """Snake_case dict of the fields the caller actually set."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


def _recency(note: Note) -> datetime:
    return note.last_updated or datetime.min


def sort_active(notes: list[Note]) -> list[Note]:
    """Pinned notes first, each group most recently updated first."""
    pinned = sorted((n for n in notes if n.pinned), key=_recency, reverse=True)
    unpinned = sorted((n for n in notes if not n.pinned), key=_recency, reverse=True)
    return pinned + unpinned


def sort_trashed(notes: list[Note]) -> list[Note]:
    """Most recently trashed first."""
    return sorted(
        notes,
        key=lambda n: n.deleted_at or n.last_updated or datetime.min,
        reverse=True,
    )
