"""
Shared response handling for SDK operations.

Internal to the SDK. Every JSON endpoint goes through expect_status and
decode_reply so that status checks, body reads and closing behave the
same way everywhere.
"""

from __future__ import annotations

import logging
from typing import TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from .errors import DecodeError, HTTPError

logger = logging.getLogger(__name__)

ReplyT = TypeVar("ReplyT", bound=BaseModel)

ERROR_BODY_LIMIT = 4 * 1024


def _read_and_close(response: httpx.Response) -> bytes:
    try:
        return response.read()
    finally:
        response.close()


def _read_prefix_and_close(response: httpx.Response, limit: int) -> bytes:
    prefix = bytearray()
    try:
        for chunk in response.iter_bytes():
            prefix.extend(chunk)
            if len(prefix) >= limit:
                break
    finally:
        response.close()
    return bytes(prefix[:limit])


def expect_status(
    response: httpx.Response,
    expected: int,
    method: str,
    host: str,
    path: str,
) -> None:
    """Raise HTTPError unless the response has the expected status.

    On mismatch at most ERROR_BODY_LIMIT bytes of the body are read into
    the error and the response is closed.
    """
    if response.status_code == expected:
        return

    body = _read_prefix_and_close(response, ERROR_BODY_LIMIT).decode("utf-8", errors="replace")
    logger.debug(f"{method} {host} {path} returned {response.status_code}")
    raise HTTPError(
        response.status_code,
        f"{method} {host} {path} failed {body}",
        method=method,
        host=host,
        path=path,
        body=body,
    )


def decode_reply(response: httpx.Response, model: type[ReplyT]) -> ReplyT:
    """Read, close and validate a JSON response body."""
    body = _read_and_close(response)
    try:
        return model.model_validate_json(body)
    except ValidationError as e:
        text = body.decode("utf-8", errors="replace")
        raise DecodeError(
            f"invalid {model.__name__} response: {e.errors(include_url=False)}",
            body=text,
        ) from e
