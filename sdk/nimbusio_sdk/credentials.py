"""
Credentials for signing nimbus.io requests.

A credentials file holds one ``Key value`` pair per line:

    Username   alice
    AuthKeyId  17
    AuthKey    0123456789abcdef

Blank lines and lines starting with ``#`` are ignored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .config import get_settings
from .errors import CredentialsError

logger = logging.getLogger(__name__)

_REQUIRED_KEYS = ("Username", "AuthKeyId", "AuthKey")


@dataclass(frozen=True)
class Credentials:
    """Identity used to sign every request.

    Attributes:
        name: User (identity) name
        auth_key_id: Identifier of the access key
        auth_key: Secret key used as the HMAC key
    """

    name: str
    auth_key_id: str
    auth_key: str = field(repr=False)


def parse_credentials(text: str, path: str | None = None) -> Credentials:
    """Parse the contents of a credentials file.

    Raises:
        CredentialsError: If a required key is missing
    """
    values: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split(None, 1)
        if len(parts) != 2:
            continue
        values[parts[0]] = parts[1].strip()

    missing = [key for key in _REQUIRED_KEYS if not values.get(key)]
    if missing:
        raise CredentialsError(
            f"credentials missing {', '.join(missing)}",
            path=path,
        )

    return Credentials(
        name=values["Username"],
        auth_key_id=values["AuthKeyId"],
        auth_key=values["AuthKey"],
    )


def load_credentials_from_path(path: str | Path) -> Credentials:
    """Load credentials from an explicit file path."""
    resolved = Path(path).expanduser()
    try:
        text = resolved.read_text(encoding="utf-8")
    except OSError as e:
        raise CredentialsError(
            f"unable to read credentials file {resolved}: {e}",
            path=str(resolved),
        ) from e

    credentials = parse_credentials(text, path=str(resolved))
    logger.debug(f"Loaded credentials for {credentials.name} from {resolved}")
    return credentials


def load_credentials_from_default() -> Credentials:
    """Load credentials from the configured default location."""
    return load_credentials_from_path(get_settings().credentials_path)
