"""
Sync Schemas.

Outcome of a reconciliation pass.
"""

from pydantic import BaseModel, Field


class SyncReport(BaseModel):
    """What one pass over the pending store achieved."""

    synced: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    remapped: dict[str, str] = Field(default_factory=dict)

    @property
    def is_clean(self) -> bool:
        return not self.failed
