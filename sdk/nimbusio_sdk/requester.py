"""
HTTP transport for the nimbus.io SDK.

This module provides the Requester capability that every operation takes
as its first argument:
- Requester: Protocol (host resolution, request signing, execution)
- HttpRequester: httpx-backed implementation

Invariants:
    - create_request performs no I/O
    - do performs exactly one round trip, no retries
    - Transport errors from httpx propagate unchanged
    - Responses are returned unread; the caller closes them
"""

from __future__ import annotations

import logging
from typing import IO, Any, Iterable, Iterator, Mapping, Protocol, Union, runtime_checkable
from urllib.parse import quote_plus, urlencode

import httpx

from .auth import auth_headers
from .config import ServiceSettings, get_settings
from .credentials import Credentials

logger = logging.getLogger(__name__)

AGENT_HEADER = "agent"
READ_CHUNK_SIZE = 64 * 1024

Body = Union[bytes, IO[bytes], Iterable[bytes]]


@runtime_checkable
class Requester(Protocol):
    """Capability to build and execute signed requests."""

    def collection_host_name(self, collection_name: str) -> str:
        """Resolve a collection name to the host serving it."""
        ...

    def create_request(
        self,
        method: str,
        host: str,
        path: str,
        body: Body | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Request:
        """Assemble a signed request. Must not perform I/O."""
        ...

    def do(self, request: httpx.Request) -> httpx.Response:
        """Execute the request and return the unread response."""
        ...


def build_path(resource: str, key: str, params: Mapping[str, Any] | None = None) -> str:
    """Build ``/<resource>/<escaped key>[?<sorted query>]``.

    The result is signed verbatim, so it must survive URL parsing
    unchanged: dot segments are percent-encoded.
    """
    segment = quote_plus(key)
    if segment in (".", ".."):
        segment = segment.replace(".", "%2E")
    path = f"/{resource}/{segment}"
    if params:
        path = f"{path}?{urlencode(sorted(params.items()))}"
    return path


def iter_body(body: IO[bytes], chunk_size: int = READ_CHUNK_SIZE) -> Iterator[bytes]:
    """Stream a readable binary object in chunks."""
    while True:
        chunk = body.read(chunk_size)
        if not chunk:
            return
        yield chunk


class HttpRequester:
    """Requester backed by an httpx.Client.

    Example:
        >>> credentials = load_credentials_from_default()
        >>> with HttpRequester(credentials) as requester:
        ...     version = archive(requester, "my-collection", "key", b"data", 4)
    """

    def __init__(
        self,
        credentials: Credentials,
        settings: ServiceSettings | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize requester.

        Args:
            credentials: Identity used to sign every request
            settings: Service configuration (default: from environment)
            client: Optional preconfigured httpx client; not closed by us
        """
        self.credentials = credentials
        self.settings = settings or get_settings()
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=self.settings.timeout)

    @property
    def scheme(self) -> str:
        return "https" if self.settings.use_ssl else "http"

    def collection_host_name(self, collection_name: str) -> str:
        return f"{collection_name}.{self.settings.service_domain}"

    def base_url(self, host: str) -> str:
        port = self.settings.service_port
        default_port = 443 if self.settings.use_ssl else 80
        if port == default_port:
            return f"{self.scheme}://{host}"
        return f"{self.scheme}://{host}:{port}"

    def create_request(
        self,
        method: str,
        host: str,
        path: str,
        body: Body | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Request:
        request_headers: dict[str, str] = dict(headers or {})
        request_headers.update(auth_headers(self.credentials, method, path))
        request_headers[AGENT_HEADER] = self.settings.agent

        content: Any = body
        if body is not None and hasattr(body, "read"):
            content = iter_body(body)  # type: ignore[arg-type]

        return httpx.Request(
            method,
            self.base_url(host) + path,
            headers=request_headers,
            content=content,
        )

    def do(self, request: httpx.Request) -> httpx.Response:
        path = request.url.raw_path.decode("ascii")
        logger.debug(f"{request.method} {request.url.host} {path}")
        response = self._client.send(request, stream=True)
        logger.debug(
            f"{request.method} {request.url.host} -> {response.status_code} "
            f"{response.reason_phrase}"
        )
        return response

    def close(self) -> None:
        """Close the underlying client if this requester created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> HttpRequester:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
