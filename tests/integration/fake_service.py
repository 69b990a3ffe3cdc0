"""
In-memory nimbus.io service for integration tests.

Mounted behind httpx.MockTransport so the real HttpRequester code path is
exercised end to end without a network.

Invariants:
    - All data is lost when the instance is discarded
    - Every request must carry a valid signature for the configured
      credentials, otherwise the reply is 401
    - Keys become retrievable only through a plain archive or a finished
      conjoined archive
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, unquote_plus

import httpx

from nimbusio_sdk.auth import AUTHORIZATION_HEADER, TIMESTAMP_HEADER, compute_auth_string
from nimbusio_sdk.credentials import Credentials

logger = logging.getLogger(__name__)

_RANGE_PATTERN = re.compile(r"^bytes=(\d+)-(\d*)$")


@dataclass
class StoredVersion:
    """One archived version of a key."""

    version_identifier: str
    data: bytes
    deleted: bool = False


@dataclass
class ConjoinedSession:
    """Server-side state of a conjoined archive."""

    key: str
    state: str = "started"
    parts: Dict[int, bytes] = field(default_factory=dict)


@dataclass
class CannedReply:
    """Reply returned instead of normal processing for the next request."""

    status_code: int
    body: bytes
    headers: Dict[str, str] = field(default_factory=dict)
    chunked: bool = False


class FakeNimbusService:
    """Fake nimbus.io collection host.

    Attributes:
        credentials: Credentials requests must be signed with
        requests: Every request received, in order

    Example:
        >>> service = FakeNimbusService(credentials)
        >>> client = httpx.Client(transport=httpx.MockTransport(service.handle))
    """

    def __init__(self, credentials: Credentials) -> None:
        self.credentials = credentials
        self.requests: List[httpx.Request] = []
        self._keys: Dict[Tuple[str, str], List[StoredVersion]] = {}
        self._sessions: Dict[str, ConjoinedSession] = {}
        self._canned: List[CannedReply] = []
        self._next_id = 0
        self.content_length_override: Optional[int] = None

    # Testing helpers

    def queue_reply(
        self,
        status_code: int,
        body: Any = b"",
        headers: Optional[Dict[str, str]] = None,
        chunked: bool = False,
    ) -> None:
        """Answer the next request with a fixed reply.

        A chunked reply is streamed without a content-length header.
        """
        if not isinstance(body, bytes):
            body = json.dumps(body).encode("utf-8")
        self._canned.append(CannedReply(status_code, body, dict(headers or {}), chunked))

    def versions(self, host: str, key: str) -> List[StoredVersion]:
        return self._keys.get((host, key), [])

    # Transport entry point

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if not self._signature_valid(request):
            return self._json(401, {"error": "invalid signature"})

        if self._canned:
            reply = self._canned.pop(0)
            content = iter([reply.body]) if reply.chunked else reply.body
            return httpx.Response(reply.status_code, content=content, headers=reply.headers)

        path = request.url.raw_path.decode("ascii").split("?", 1)[0]
        if path.startswith("/conjoined/"):
            return self._conjoined(request, unquote_plus(path[len("/conjoined/"):]))
        if path.startswith("/data/"):
            return self._data(request, unquote_plus(path[len("/data/"):]))
        return self._json(404, {"error": "unknown path"})

    # Internals

    def _signature_valid(self, request: httpx.Request) -> bool:
        timestamp = request.headers.get(TIMESTAMP_HEADER)
        authorization = request.headers.get(AUTHORIZATION_HEADER)
        if timestamp is None or authorization is None:
            return False
        expected = compute_auth_string(
            self.credentials,
            request.method,
            int(timestamp),
            request.url.raw_path.decode("ascii"),
        )
        return authorization == expected

    def _new_identifier(self, prefix: str) -> str:
        self._next_id += 1
        return f"{prefix}-{self._next_id:08d}"

    @staticmethod
    def _json(status_code: int, payload: Dict[str, Any]) -> httpx.Response:
        return httpx.Response(status_code, json=payload)

    @staticmethod
    def _query(request: httpx.Request) -> Dict[str, str]:
        parsed = parse_qs(request.url.query.decode("ascii"))
        return {name: values[0] for name, values in parsed.items()}

    def _conjoined(self, request: httpx.Request, key: str) -> httpx.Response:
        if request.method != "POST":
            return self._json(405, {"error": "method not allowed"})

        query = self._query(request)
        action = query.get("action")

        if action == "start":
            identifier = self._new_identifier("conjoined")
            self._sessions[identifier] = ConjoinedSession(key=key)
            return self._json(200, {"conjoined_identifier": identifier})

        session = self._sessions.get(query.get("conjoined_identifier", ""))
        if session is None or session.key != key:
            return self._json(404, {"error": "unknown conjoined identifier"})
        if session.state != "started":
            return self._json(409, {"error": f"conjoined archive already {session.state}"})

        if action == "abort":
            session.state = "aborted"
            return self._json(200, {"success": True})

        if action == "finish":
            session.state = "finished"
            data = b"".join(session.parts[n] for n in sorted(session.parts))
            self._store(request.url.host, key, data)
            return self._json(200, {"success": True})

        return self._json(400, {"error": f"unknown action {action}"})

    def _data(self, request: httpx.Request, key: str) -> httpx.Response:
        if request.method == "POST":
            return self._archive(request, key)
        if request.method == "GET":
            return self._retrieve(request, key)
        if request.method == "DELETE":
            return self._delete(request, key)
        return self._json(405, {"error": "method not allowed"})

    def _store(self, host: str, key: str, data: bytes) -> str:
        version = StoredVersion(self._new_identifier("version"), data)
        self._keys.setdefault((host, key), []).append(version)
        return version.version_identifier

    def _archive(self, request: httpx.Request, key: str) -> httpx.Response:
        body = request.content
        declared = request.headers.get("content-length")
        if declared is None or int(declared) != len(body):
            return self._json(400, {"error": "content length mismatch"})

        query = self._query(request)
        identifier = query.get("conjoined_identifier")
        if identifier is None:
            return self._json(200, {"version_identifier": self._store(request.url.host, key, body)})

        session = self._sessions.get(identifier)
        if session is None or session.key != key or session.state != "started":
            return self._json(409, {"error": "conjoined archive not accepting parts"})
        part = int(query.get("conjoined_part", "0"))
        session.parts[part] = body
        return self._json(200, {"version_identifier": f"{identifier}-part-{part}"})

    def _retrieve(self, request: httpx.Request, key: str) -> httpx.Response:
        versions = [v for v in self.versions(request.url.host, key) if not v.deleted]
        wanted = self._query(request).get("version_identifier")
        if wanted is not None:
            versions = [v for v in versions if v.version_identifier == wanted]
        if not versions:
            return self._json(404, {"error": "not found"})
        data = versions[-1].data

        range_value = request.headers.get("range")
        status_code = 200
        if range_value is not None:
            match = _RANGE_PATTERN.match(range_value)
            if match is None:
                return self._json(416, {"error": "bad range"})
            start = int(match.group(1))
            end = int(match.group(2)) if match.group(2) else len(data) - 1
            data = data[start : end + 1]
            status_code = 206

        headers = {}
        if self.content_length_override is not None:
            headers["content-length"] = str(self.content_length_override)
        return httpx.Response(status_code, content=data, headers=headers)

    def _delete(self, request: httpx.Request, key: str) -> httpx.Response:
        versions = [v for v in self.versions(request.url.host, key) if not v.deleted]
        wanted = self._query(request).get("version")
        if wanted is not None:
            versions = [v for v in versions if v.version_identifier == wanted]
        if not versions:
            return self._json(404, {"error": "not found"})
        for version in versions:
            version.deleted = True
        return self._json(200, {"success": True})
