"""
nimbus.io Python SDK - Client library for the nimbus.io object store.

This SDK provides blocking access to key-level operations:
- Credentials and request signing
- HttpRequester, the capability passed to every operation
- archive / retrieve / delete_key / delete_version
- Conjoined archives (start / abort / finish) for multi-part uploads

Example:
    >>> from nimbusio_sdk import (
    ...     HttpRequester,
    ...     archive,
    ...     load_credentials_from_default,
    ...     retrieve,
    ... )
    >>>
    >>> credentials = load_credentials_from_default()
    >>> with HttpRequester(credentials) as requester:
    ...     version = archive(requester, "my-collection", "test key", b"test body", 9)
    ...     with retrieve(requester, "my-collection", "test key") as stream:
    ...         assert stream.read() == b"test body"

Invariants:
    - Every request is signed with the caller's credentials
    - One blocking round trip per call, no retries
    - The requester is passed explicitly; there is no global client

Version: 1.0.0
"""

__version__ = "1.0.0"

from .auth import auth_headers, compute_auth_string
from .config import ServiceSettings, get_settings
from .conjoined import abort_conjoined, finish_conjoined, start_conjoined
from .credentials import (
    Credentials,
    load_credentials_from_default,
    load_credentials_from_path,
)
from .errors import (
    ContentLengthMismatchError,
    CredentialsError,
    DecodeError,
    GuardError,
    HTTPError,
    NimbusIoError,
    ProtocolError,
    UnsupportedParameterError,
)
from .keys import RetrieveStream, archive, delete_key, delete_version, retrieve
from .models import ConjoinedParams, RetrieveParams
from .requester import HttpRequester, Requester

__all__ = [
    # Version
    "__version__",
    # Identity and configuration
    "Credentials",
    "load_credentials_from_path",
    "load_credentials_from_default",
    "ServiceSettings",
    "get_settings",
    "compute_auth_string",
    "auth_headers",
    # Transport
    "Requester",
    "HttpRequester",
    # Operations
    "archive",
    "retrieve",
    "delete_key",
    "delete_version",
    "start_conjoined",
    "abort_conjoined",
    "finish_conjoined",
    "ConjoinedParams",
    "RetrieveParams",
    "RetrieveStream",
    # Errors
    "NimbusIoError",
    "HTTPError",
    "ProtocolError",
    "DecodeError",
    "GuardError",
    "UnsupportedParameterError",
    "ContentLengthMismatchError",
    "CredentialsError",
]
