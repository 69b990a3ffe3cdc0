"""
Error types for the nimbus.io SDK.

This module defines all exception types raised by the SDK:
- NimbusIoError: Base exception
- HTTPError: Response arrived with an unexpected status code
- ProtocolError: Response was understood but the action did not apply
- DecodeError: Response body is malformed or does not match its schema
- GuardError: Local precondition/postcondition check failed
- CredentialsError: Credentials could not be loaded

Transport failures (connection refused, timeouts) are raised by httpx
and are not wrapped.

Invariants:
    - All SDK errors inherit from NimbusIoError
    - Errors carry enough context to reproduce the failing request
    - Secret keys never appear in error messages
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class NimbusIoError(Exception):
    """Base exception for all nimbus.io SDK errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "NIMBUSIO_ERROR"
        self.details = details or {}


class HTTPError(NimbusIoError):
    """The service answered with an unexpected status code.

    Raised for every endpoint whose response status is not the one the
    operation expects (200, or 206 for slice retrieval).

    Attributes:
        status_code: HTTP status code received
        method: Request method
        host: Host the request was sent to
        path: Request path including query string
        body: Raw response body, decoded leniently
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        method: Optional[str] = None,
        host: Optional[str] = None,
        path: Optional[str] = None,
        body: str = "",
    ) -> None:
        super().__init__(
            message,
            code="HTTP_ERROR",
            details={
                "status_code": status_code,
                "method": method,
                "host": host,
                "path": path,
            },
        )
        self.status_code = status_code
        self.method = method
        self.host = host
        self.path = path
        self.body = body

    def __str__(self) -> str:
        return f"({self.status_code}) {self.message}"


class ProtocolError(NimbusIoError):
    """The service returned 200 but reported that the action failed.

    Raised when a ``{"success": false}`` body comes back from abort,
    finish or delete.
    """

    def __init__(self, message: str, action: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="PROTOCOL_ERROR",
            details={"action": action},
        )
        self.action = action


class DecodeError(NimbusIoError):
    """Response body could not be decoded into the expected schema."""

    def __init__(self, message: str, body: str = "") -> None:
        super().__init__(
            message,
            code="DECODE_ERROR",
            details={"body": body},
        )
        self.body = body


class GuardError(NimbusIoError):
    """A local check failed before or after the network exchange."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code or "GUARD_ERROR", details=details)


class UnsupportedParameterError(GuardError):
    """A recognised but unimplemented parameter was supplied.

    Raised before any request is sent.
    """

    def __init__(self, parameter: str) -> None:
        super().__init__(
            f"not implemented: {parameter}",
            code="UNSUPPORTED_PARAMETER",
            details={"parameter": parameter},
        )
        self.parameter = parameter


class ContentLengthMismatchError(GuardError):
    """A slice retrieval came back with the wrong declared length."""

    def __init__(self, expected: int, found: int) -> None:
        super().__init__(
            f"content length mismatch: expected {expected} found {found}",
            code="CONTENT_LENGTH_MISMATCH",
            details={"expected": expected, "found": found},
        )
        self.expected = expected
        self.found = found


class CredentialsError(NimbusIoError):
    """Credentials file is missing or incomplete."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="CREDENTIALS_ERROR",
            details={"path": path},
        )
        self.path = path
