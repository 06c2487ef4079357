"""
Base Schemas.

Standard result envelope returned by every notebook operation, so callers
can render inline failure states without catching exceptions.
"""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from notesync.core.exceptions import ApplicationError
from notesync.core.utils import utc_now

DataT = TypeVar("DataT")


class ResultMetadata(BaseModel):
    """Metadata included in all operation results."""

    timestamp: datetime = Field(default_factory=utc_now)
    source: str | None = None


class ErrorDetail(BaseModel):
    """Error detail structure."""

    code: str
    message: str
    details: dict[str, Any] | None = None


class OperationResult(BaseModel, Generic[DataT]):
    """
    Standard operation result envelope.

    All notebook operations return this structure for consistency.
    """

    success: bool = True
    data: DataT | None = None
    error: ErrorDetail | None = None
    metadata: ResultMetadata = Field(default_factory=ResultMetadata)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @classmethod
    def ok(cls, data: Any = None, source: str | None = None) -> "OperationResult":
        return cls(success=True, data=data, metadata=ResultMetadata(source=source))

    @classmethod
    def fail(cls, error: ApplicationError) -> "OperationResult":
        return cls(
            success=False,
            error=ErrorDetail(
                code=error.code,
                message=error.message,
                details=getattr(error, "details", None) or None,
            ),
        )


class CreatedNote(BaseModel):
    """Payload returned by a successful create."""

    id: str
