"""
Remote Document Store Interface.

The authoritative cloud store for signed-in users. Documents are plain
dicts with camelCase keys:

    title, content, pinned, deleted, deletedAt, created, lastUpdated, userId

The store assigns ids and `lastUpdated` (server timestamps). `created` is
assigned by the store unless the caller supplies one, which is how synced
notes keep their original creation time.

Implementations raise TransientError for anything that may succeed on
retry (network failures, timeouts, database errors). A missing document is
not an error: `read` returns None.

Implementations:
    InMemoryDocumentStore  - in-process store for development and tests
    SqlDocumentStore       - SQLAlchemy async (notesync.storage.sql)
    HttpDocumentStore      - JSON API over httpx (notesync.storage.http)
"""

import itertools
from abc import ABC, abstractmethod
from copy import deepcopy
from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

from notesync.core.exceptions import TransientError
from notesync.core.utils import utc_now

Document = dict[str, Any]


class DocumentStore(ABC):
    """Contract for the remote document store."""

    @abstractmethod
    async def create(self, document: Document) -> str:
        """Insert a document and return its new id."""
        ...

    @abstractmethod
    async def read(self, document_id: str) -> Document | None:
        """Return the document with its `id` key set, or None."""
        ...

    @abstractmethod
    async def update(self, document_id: str, fields: Document) -> None:
        """
        Merge `fields` into an existing document.

        Raises:
            KeyError: If the document does not exist
        """
        ...

    @abstractmethod
    async def delete(self, document_id: str) -> None:
        """Remove a document. Missing documents are ignored."""
        ...

    @abstractmethod
    async def query(self, owner_id: str, deleted: bool) -> list[Document]:
        """Return every document owned by `owner_id` with the given deleted flag."""
        ...

    async def ping(self) -> bool:
        """Return True if the store is reachable."""
        return True

    async def close(self) -> None:
        """Release connections held by the store."""
        return None


class InMemoryDocumentStore(DocumentStore):
    """
    Document store held in a dict.

    Server timestamps are strictly monotonic even when the clock does not
    advance between calls. Set `reachable = False` to simulate a network
    outage: every call then raises TransientError.
    """

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}
        self._tick = itertools.count()
        self._last_stamp: datetime | None = None
        self.reachable = True

    def _check_reachable(self) -> None:
        if not self.reachable:
            raise TransientError("Remote store unreachable")

    def _server_timestamp(self) -> datetime:
        now = utc_now()
        if self._last_stamp is not None and now <= self._last_stamp:
            now = self._last_stamp + timedelta(microseconds=1)
        self._last_stamp = now
        return now

    async def create(self, document: Document) -> str:
        self._check_reachable()
        document_id = uuid4().hex
        stamp = self._server_timestamp()
        stored = deepcopy(document)
        stored.pop("id", None)
        stored["created"] = stored.get("created") or stamp
        stored["lastUpdated"] = stamp
        self._documents[document_id] = stored
        return document_id

    async def read(self, document_id: str) -> Document | None:
        self._check_reachable()
        stored = self._documents.get(document_id)
        if stored is None:
            return None
        return {"id": document_id, **deepcopy(stored)}

    async def update(self, document_id: str, fields: Document) -> None:
        self._check_reachable()
        if document_id not in self._documents:
            raise KeyError(document_id)
        changes = deepcopy(fields)
        changes.pop("id", None)
        self._documents[document_id].update(changes)
        self._documents[document_id]["lastUpdated"] = self._server_timestamp()

    async def delete(self, document_id: str) -> None:
        self._check_reachable()
        self._documents.pop(document_id, None)

    async def query(self, owner_id: str, deleted: bool) -> list[Document]:
        self._check_reachable()
        return [
            {"id": document_id, **deepcopy(stored)}
            for document_id, stored in self._documents.items()
            if stored.get("userId") == owner_id and bool(stored.get("deleted")) == deleted
        ]

    async def ping(self) -> bool:
        return self.reachable

    def __len__(self) -> int:
        return len(self._documents)
