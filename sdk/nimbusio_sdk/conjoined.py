"""
Conjoined archive protocol.

A conjoined archive assembles one key from several sequential uploads:

    >>> identifier = start_conjoined(requester, "my-collection", "big-key")
    >>> archive(requester, "my-collection", "big-key", part1, len(part1),
    ...         ConjoinedParams(identifier, 1))
    >>> archive(requester, "my-collection", "big-key", part2, len(part2),
    ...         ConjoinedParams(identifier, 2))
    >>> finish_conjoined(requester, "my-collection", "big-key", identifier)

Invariants:
    - The client holds no session state beyond the identifier string
    - Abort and finish are terminal; misuse is reported by the server as
      an HTTPError and is not special-cased here
"""

from __future__ import annotations

import logging

from ._response import decode_reply, expect_status
from .errors import ProtocolError
from .models import ConjoinedStartResult, SuccessResult
from .requester import Requester, build_path

logger = logging.getLogger(__name__)

_METHOD = "POST"


def start_conjoined(requester: Requester, collection_name: str, key: str) -> str:
    """Start a conjoined archive.

    Args:
        requester: Request capability
        collection_name: Target collection
        key: Key the parts will be assembled into

    Returns:
        Conjoined identifier to pass with every part

    Raises:
        HTTPError: Status other than 200
        DecodeError: Body lacks a non-empty conjoined_identifier
    """
    host = requester.collection_host_name(collection_name)
    path = build_path("conjoined", key, {"action": "start"})

    request = requester.create_request(_METHOD, host, path)
    response = requester.do(request)
    expect_status(response, 200, _METHOD, host, path)

    result = decode_reply(response, ConjoinedStartResult)
    logger.info(f"Started conjoined archive {result.conjoined_identifier} for {key!r}")
    return result.conjoined_identifier


def _end_conjoined(
    requester: Requester,
    collection_name: str,
    key: str,
    conjoined_identifier: str,
    action: str,
) -> None:
    host = requester.collection_host_name(collection_name)
    path = build_path(
        "conjoined",
        key,
        {"action": action, "conjoined_identifier": conjoined_identifier},
    )

    request = requester.create_request(_METHOD, host, path)
    response = requester.do(request)
    expect_status(response, 200, _METHOD, host, path)

    result = decode_reply(response, SuccessResult)
    if not result.success:
        raise ProtocolError(f"conjoined action={action} returned false", action=action)

    logger.info(f"Conjoined archive {conjoined_identifier} for {key!r}: {action}")


def abort_conjoined(
    requester: Requester,
    collection_name: str,
    key: str,
    conjoined_identifier: str,
) -> None:
    """Discard a started but unfinished conjoined archive.

    Raises:
        HTTPError: Status other than 200
        ProtocolError: Server replied ``{"success": false}``
    """
    _end_conjoined(requester, collection_name, key, conjoined_identifier, "abort")


def finish_conjoined(
    requester: Requester,
    collection_name: str,
    key: str,
    conjoined_identifier: str,
) -> None:
    """Seal a conjoined archive so the key becomes retrievable.

    Raises:
        HTTPError: Status other than 200
        ProtocolError: Server replied ``{"success": false}``
    """
    _end_conjoined(requester, collection_name, key, conjoined_identifier, "finish")
