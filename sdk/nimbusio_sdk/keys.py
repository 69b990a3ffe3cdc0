"""
Key operations: archive, retrieve and delete.

Every function takes the Requester capability as its first argument:

    >>> version = archive(requester, "my-collection", "test key", b"test body", 9)
    >>> with retrieve(requester, "my-collection", "test key") as stream:
    ...     data = stream.read()
    >>> delete_key(requester, "my-collection", "test key")

Invariants:
    - retrieve validates its parameters before any request is sent
    - Streams returned by retrieve are owned and closed by the caller
    - JSON replies are always read fully and their responses closed
"""

from __future__ import annotations

import logging
from typing import Any, Iterator

import httpx

from ._response import decode_reply, expect_status
from .errors import (
    ContentLengthMismatchError,
    DecodeError,
    ProtocolError,
    UnsupportedParameterError,
)
from .models import ArchiveResult, ConjoinedParams, RetrieveParams, SuccessResult
from .requester import Body, Requester, build_path

logger = logging.getLogger(__name__)


class RetrieveStream:
    """Streaming body of a retrieve call.

    Wraps the open response. Close it, or use it as a context manager,
    on every path; an unclosed stream holds its connection.
    """

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def content_length(self) -> int | None:
        """Declared length of the body, if the server sent one."""
        value = self._response.headers.get("content-length")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError as e:
            raise DecodeError(f"invalid content-length header {value!r}", body=value) from e

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    @property
    def closed(self) -> bool:
        return self._response.is_closed

    def read(self) -> bytes:
        """Read the remaining body and close the stream."""
        try:
            return b"".join(self._response.iter_bytes())
        finally:
            self.close()

    def iter_bytes(self, chunk_size: int | None = None) -> Iterator[bytes]:
        return self._response.iter_bytes(chunk_size)

    def __iter__(self) -> Iterator[bytes]:
        return self.iter_bytes()

    def close(self) -> None:
        self._response.close()

    def __enter__(self) -> RetrieveStream:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


def archive(
    requester: Requester,
    collection_name: str,
    key: str,
    body: Body,
    content_length: int,
    conjoined_params: ConjoinedParams | None = None,
) -> str:
    """Upload data to a key.

    Args:
        requester: Request capability
        collection_name: Target collection
        key: Key to archive to
        body: bytes, binary file object or iterable of bytes
        content_length: Exact body length; sent as-is, not checked locally
        conjoined_params: Upload as one part of a conjoined archive

    Returns:
        Version identifier of the new write

    Raises:
        HTTPError: Status other than 200
        DecodeError: Body lacks a version_identifier
    """
    method = "POST"
    host = requester.collection_host_name(collection_name)

    params: dict[str, Any] | None = None
    if conjoined_params is not None and conjoined_params.conjoined_identifier:
        params = {
            "conjoined_identifier": conjoined_params.conjoined_identifier,
            "conjoined_part": conjoined_params.conjoined_part,
        }
    path = build_path("data", key, params)

    request = requester.create_request(
        method,
        host,
        path,
        body,
        headers={"Content-Length": str(content_length)},
    )
    response = requester.do(request)
    expect_status(response, 200, method, host, path)

    result = decode_reply(response, ArchiveResult)
    logger.debug(f"Archived {key!r} as version {result.version_identifier}")
    return result.version_identifier


def retrieve(
    requester: Requester,
    collection_name: str,
    key: str,
    params: RetrieveParams | None = None,
) -> RetrieveStream:
    """Fetch the data of a key, whole or as a byte slice.

    Args:
        requester: Request capability
        collection_name: Source collection
        key: Key to retrieve
        params: Version and slice selection

    Returns:
        RetrieveStream the caller must close

    Raises:
        UnsupportedParameterError: modified_since or unmodified_since set
        HTTPError: Status other than 200 (206 for slices)
        ContentLengthMismatchError: Slice came back with the wrong length
        DecodeError: Slice reply has a malformed content-length header
    """
    params = params or RetrieveParams()

    if params.modified_since is not None:
        raise UnsupportedParameterError("modified_since")
    if params.unmodified_since is not None:
        raise UnsupportedParameterError("unmodified_since")

    method = "GET"
    host = requester.collection_host_name(collection_name)

    query = None
    if params.version_identifier:
        query = {"version_identifier": params.version_identifier}
    path = build_path("data", key, query)

    # Declared lengths must describe the bytes the caller reads
    headers: dict[str, str] = {"accept-encoding": "identity"}
    expected_status = 200
    range_value = params.range_header()
    if range_value is not None:
        headers["range"] = range_value
        expected_status = 206

    request = requester.create_request(method, host, path, headers=headers)
    response = requester.do(request)
    expect_status(response, expected_status, method, host, path)

    stream = RetrieveStream(response)
    if params.slice_size <= 0 or "content-encoding" in stream.headers:
        return stream

    try:
        declared = stream.content_length
    except DecodeError:
        stream.close()
        raise
    if declared is not None and declared != params.slice_size:
        stream.close()
        raise ContentLengthMismatchError(params.slice_size, declared)

    return stream


def delete_version(
    requester: Requester,
    collection_name: str,
    key: str,
    version_identifier: str = "",
) -> None:
    """Delete one version of a key, or every version if none is given.

    Raises:
        HTTPError: Status other than 200
        ProtocolError: Server replied ``{"success": false}``
    """
    method = "DELETE"
    host = requester.collection_host_name(collection_name)

    query = {"version": version_identifier} if version_identifier else None
    path = build_path("data", key, query)

    request = requester.create_request(method, host, path)
    response = requester.do(request)
    expect_status(response, 200, method, host, path)

    result = decode_reply(response, SuccessResult)
    if not result.success:
        raise ProtocolError("unexpected 'false' for 'success'", action="delete")


def delete_key(requester: Requester, collection_name: str, key: str) -> None:
    """Delete a key, hiding all of its versions."""
    delete_version(requester, collection_name, key, "")
