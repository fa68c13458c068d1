"""CouchDB Client — minimal async document API over httpx (get, save, ping).

Invariants:
    - Every non-2xx response raises DocumentStoreError with the body's error/reason
    - Transport failures (connect, read, timeout) raise DocumentStoreError("transport_error")
    - 2xx responses whose body is not a JSON object raise DocumentStoreError("bad_response")
    - Document ids are percent-encoded as a single path segment (module/x → module%2Fx)
    - No retries: callers decide what a failure means

Design Decisions:
    - One shared httpx.AsyncClient per connection, closed by aclose() at shutdown
    - Connection construction performs no I/O; the first request opens the socket
"""

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from modsetup.core.errors import DocumentStoreError, ErrorContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectionAuth:
    username: str
    password: str


@dataclass(frozen=True)
class ConnectionDescriptor:
    """Where and as whom to connect. Port kept as the literal URL string."""
    hostname: str
    port: str
    auth: ConnectionAuth
    scheme: str = "http"

    @property
    def base_url(self) -> str:
        host = f"[{self.hostname}]" if ":" in self.hostname else self.hostname
        return f"{self.scheme}://{host}:{self.port}"


class CouchDatabase:
    """Handle on one database (collection) of a CouchConnection."""

    def __init__(self, client: httpx.AsyncClient, name: str):
        self._client = client
        self.name = name

    def _doc_path(self, doc_id: str) -> str:
        return f"/{quote(self.name, safe='')}/{quote(doc_id, safe='')}"

    async def get(self, doc_id: str) -> dict[str, Any]:
        """Fetch a document by id."""
        return await self._request("GET", self._doc_path(doc_id), doc_id)

    async def save(self, doc: dict[str, Any]) -> dict[str, Any]:
        """Create or update a document; returns the store's {ok, id, rev} result."""
        doc_id = doc.get("_id")
        if doc_id:
            return await self._request(
                "PUT", self._doc_path(doc_id), doc_id, json=doc,
            )
        return await self._request(
            "POST", f"/{quote(self.name, safe='')}", None, json=doc,
        )

    async def _request(
        self, method: str, path: str, doc_id: str | None, **kwargs,
    ) -> dict[str, Any]:
        """Send a request and return its JSON object body."""
        context = ErrorContext(document_id=doc_id, database=self.name)
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.warning(
                f"Document store unreachable: {e!r}",
                extra={
                    "database": self.name, "document_id": doc_id,
                    "error_code": "transport_error",
                },
            )
            raise DocumentStoreError(
                "transport_error", str(e) or type(e).__name__, None, context,
            ) from e
        if response.is_success:
            return _parse_success_body(response, context)
        error, reason = _parse_error_body(response)
        logger.debug(
            f"{method} {path} failed with {response.status_code}",
            extra={
                "database": self.name, "document_id": doc_id,
                "error_code": error, "reason": reason,
            },
        )
        raise DocumentStoreError(error, reason, response.status_code, context)


class CouchConnection:
    """Shared connection handle for a worker's lifetime."""

    def __init__(
        self,
        descriptor: ConnectionDescriptor,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.options = descriptor
        self._client = httpx.AsyncClient(
            base_url=descriptor.base_url,
            auth=(descriptor.auth.username, descriptor.auth.password),
            timeout=timeout_seconds,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def database(self, name: str) -> CouchDatabase:
        return CouchDatabase(self._client, name)

    async def ping(self) -> bool:
        """Check the server answers /_up (for readiness probes)."""
        try:
            response = await self._client.get("/_up")
        except httpx.TransportError as e:
            logger.error(f"Document store ping failed: {e!r}")
            return False
        return response.is_success

    async def aclose(self) -> None:
        await self._client.aclose()


def _parse_success_body(
    response: httpx.Response, context: ErrorContext,
) -> dict[str, Any]:
    """2xx bodies must be JSON objects; anything else is a bad_response store error."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        return body
    logger.warning(
        f"Document store answered {response.status_code} with a non-JSON-object body",
        extra={
            "database": context.database, "document_id": context.document_id,
            "error_code": "bad_response",
        },
    )
    raise DocumentStoreError(
        "bad_response",
        response.text[:200] or response.reason_phrase,
        response.status_code,
        context,
    )


def _parse_error_body(response: httpx.Response) -> tuple[str, str]:
    """Extract (error, reason) from a CouchDB error response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and ("error" in body or "reason" in body):
        return (
            str(body.get("error", f"http_{response.status_code}")),
            str(body.get("reason", response.reason_phrase)),
        )
    return f"http_{response.status_code}", response.text or response.reason_phrase
