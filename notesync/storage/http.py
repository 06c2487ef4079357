"""
HTTP Document Store.

DocumentStore talking to a JSON notes API. Every request runs through the
resilience stack (circuit breaker, retry, semaphore, timeout) and any
failure that may clear up on its own is reported as TransientError.

Endpoints (relative to base_url):
    POST   /notes                         create, returns {"id": ...}
    GET    /notes/{id}                    read, 404 when missing
    PATCH  /notes/{id}                    partial update
    DELETE /notes/{id}                    delete
    GET    /notes?ownerId=..&deleted=..   owner query

Responses use the envelope {"success": bool, "data": ..., "error": ...}.
"""

from typing import Any

import aiobreaker
import httpx

from notesync.core.config import get_app_config, get_remote_base_url, get_settings
from notesync.core.exceptions import ApplicationError, TransientError
from notesync.core.logging import get_logger
from notesync.core.resilience import create_circuit_breaker, resilient_call
from notesync.storage.documents import Document, DocumentStore

logger = get_logger(__name__)

DEPENDENCY = "remote_store"


class _ServerError(Exception):
    """5xx response; retried like a transport error."""


class HttpDocumentStore(DocumentStore):
    """
    Remote document store client.

    Usage:
        store = HttpDocumentStore.from_config()
        note_id = await store.create({"title": "A", "userId": "u1"})
        await store.close()
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        token: str | None = None,
        health_path: str = "/health",
        breaker: aiobreaker.CircuitBreaker | None = None,
        max_attempts: int = 3,
        backoff_multiplier: float = 0.5,
        backoff_max: float = 4.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.health_path = health_path
        self._token = token
        self._breaker = breaker or create_circuit_breaker(DEPENDENCY)
        self._max_attempts = max_attempts
        self._backoff_multiplier = backoff_multiplier
        self._backoff_max = backoff_max
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_config(cls) -> "HttpDocumentStore":
        """Build a client from remote.yaml and the REMOTE_API_TOKEN secret."""
        remote = get_app_config().remote
        base_url, timeout = get_remote_base_url()
        return cls(
            base_url=base_url,
            timeout=timeout,
            token=get_settings().remote_api_token or None,
            health_path=remote.health_path,
            breaker=create_circuit_breaker(
                DEPENDENCY,
                fail_max=remote.circuit_breaker.fail_max,
                timeout_duration=remote.circuit_breaker.timeout_duration,
            ),
            max_attempts=remote.retry.max_attempts,
            backoff_multiplier=remote.retry.backoff_multiplier,
            backoff_max=remote.retry.backoff_max,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {"Accept": "application/json"}
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """
        Send one request through the resilience stack.

        Returns:
            The response for any status below 500

        Raises:
            TransientError: On transport errors, timeouts, 5xx, or an open circuit
        """
        client = await self._get_client()

        async def send() -> httpx.Response:
            response = await client.request(method, path, **kwargs)
            if response.status_code >= 500:
                raise _ServerError(f"{method} {path} returned {response.status_code}")
            return response

        try:
            return await resilient_call(
                self._breaker,
                send,
                dependency=DEPENDENCY,
                retry_on=(httpx.TransportError, TimeoutError, _ServerError),
                max_attempts=self._max_attempts,
                backoff_multiplier=self._backoff_multiplier,
                backoff_max=self._backoff_max,
                timeout=self.timeout,
            )
        except aiobreaker.CircuitBreakerError as e:
            raise TransientError("Remote store circuit open") from e
        except (httpx.TransportError, TimeoutError, _ServerError) as e:
            logger.warning(
                "Remote request failed",
                extra={"method": method, "path": path, "error": str(e)},
            )
            raise TransientError(f"Remote request failed: {method} {path}") from e

    @staticmethod
    def _check(response: httpx.Response) -> None:
        if response.is_error:
            raise ApplicationError(
                f"Remote store rejected request ({response.status_code})",
                code="SYS_REMOTE_REJECTED",
            )

    @classmethod
    def _data(cls, response: httpx.Response) -> Any:
        cls._check(response)
        body = response.json()
        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    @staticmethod
    def _encode(document: Document) -> Document:
        """Render datetimes as ISO strings for the wire."""
        return {
            key: value.isoformat() if hasattr(value, "isoformat") else value
            for key, value in document.items()
        }

    async def create(self, document: Document) -> str:
        response = await self._request("POST", "/notes", json=self._encode(document))
        return str(self._data(response)["id"])

    async def read(self, document_id: str) -> Document | None:
        response = await self._request("GET", f"/notes/{document_id}")
        if response.status_code == 404:
            return None
        return self._data(response)

    async def update(self, document_id: str, fields: Document) -> None:
        response = await self._request(
            "PATCH", f"/notes/{document_id}", json=self._encode(fields)
        )
        if response.status_code == 404:
            raise KeyError(document_id)
        self._check(response)

    async def delete(self, document_id: str) -> None:
        response = await self._request("DELETE", f"/notes/{document_id}")
        if response.status_code != 404:
            self._check(response)

    async def query(self, owner_id: str, deleted: bool) -> list[Document]:
        response = await self._request(
            "GET",
            "/notes",
            params={"ownerId": owner_id, "deleted": str(deleted).lower()},
        )
        return list(self._data(response) or [])

    async def ping(self) -> bool:
        client = await self._get_client()
        try:
            response = await client.get(self.health_path)
        except httpx.HTTPError:
            return False
        return response.status_code < 500

