"""
Request signing for nimbus.io.

Every request carries an ``Authorization`` header computed as an
HMAC-SHA256 over the user name, method, timestamp and path, keyed by the
secret key, plus an ``x-nimbus-io-timestamp`` header with the same
timestamp.
"""

from __future__ import annotations

import hashlib
import hmac
import time

from .credentials import Credentials

AUTHORIZATION_HEADER = "Authorization"
TIMESTAMP_HEADER = "x-nimbus-io-timestamp"


def compute_auth_string(
    credentials: Credentials,
    method: str,
    timestamp: int,
    path: str,
) -> str:
    """Compute the Authorization header value for a request.

    Args:
        credentials: Identity signing the request
        method: HTTP verb
        timestamp: Seconds since the epoch
        path: Raw request path including query string, without host

    Returns:
        ``"NIMBUS.IO <auth_key_id>:<hex digest>"``
    """
    message = "\n".join([credentials.name, method, str(timestamp), path])
    digest = hmac.new(
        credentials.auth_key.encode("utf-8"),
        message.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return f"NIMBUS.IO {credentials.auth_key_id}:{digest}"


def auth_headers(
    credentials: Credentials,
    method: str,
    path: str,
    timestamp: int | None = None,
) -> dict[str, str]:
    """Build both authentication headers for one request."""
    if timestamp is None:
        timestamp = int(time.time())
    return {
        AUTHORIZATION_HEADER: compute_auth_string(credentials, method, timestamp, path),
        TIMESTAMP_HEADER: str(timestamp),
    }
