"""
Smoke test CLI for nimbus.io.

Archives a key into an existing collection, retrieves it, compares the
bytes and deletes the key. With --conjoined the body is uploaded in two
parts through a conjoined archive.

Usage:
    nimbusio-smoke --collection <name> [--credentials <path>] [options]
"""

from __future__ import annotations

import argparse
import logging
import sys

import httpx

from .conjoined import abort_conjoined, finish_conjoined, start_conjoined
from .credentials import load_credentials_from_default, load_credentials_from_path
from .errors import NimbusIoError
from .keys import archive, delete_key, retrieve
from .models import ConjoinedParams
from .requester import HttpRequester, Requester

logger = logging.getLogger(__name__)

DEFAULT_KEY = "test key"
DEFAULT_BODY = "test body"


def _archive_conjoined(
    requester: Requester,
    collection_name: str,
    key: str,
    body: bytes,
) -> str:
    midpoint = len(body) // 2
    parts = [body[:midpoint], body[midpoint:]]

    identifier = start_conjoined(requester, collection_name, key)
    try:
        version = ""
        for part_number, part in enumerate(parts, start=1):
            version = archive(
                requester,
                collection_name,
                key,
                part,
                len(part),
                ConjoinedParams(identifier, part_number),
            )
    except Exception:
        abort_conjoined(requester, collection_name, key, identifier)
        raise

    finish_conjoined(requester, collection_name, key, identifier)
    return version


def run_smoke_test(
    requester: Requester,
    collection_name: str,
    key: str,
    body: bytes,
    conjoined: bool = False,
) -> bool:
    """Archive, retrieve and delete one key.

    Returns:
        True if the retrieved bytes match what was archived
    """
    if conjoined:
        version = _archive_conjoined(requester, collection_name, key, body)
    else:
        version = archive(requester, collection_name, key, body, len(body))
    logger.info(f"archived key {key!r} to version {version}")

    with retrieve(requester, collection_name, key) as stream:
        retrieved = stream.read()
    matches = retrieved == body
    logger.info(f"retrieved key {key!r}; matches body = {matches}")

    delete_key(requester, collection_name, key)
    logger.info(f"deleted key {key!r}")
    return matches


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="nimbus.io archive/retrieve/delete smoke test")
    parser.add_argument("--collection", required=True, help="Existing collection name")
    parser.add_argument("--credentials", help="Path to credentials file")
    parser.add_argument("--key", default=DEFAULT_KEY, help="Key to archive")
    parser.add_argument("--body", default=DEFAULT_BODY, help="Body to archive")
    parser.add_argument(
        "--conjoined", action="store_true", help="Upload through a conjoined archive"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        if args.credentials:
            credentials = load_credentials_from_path(args.credentials)
        else:
            credentials = load_credentials_from_default()

        with HttpRequester(credentials) as requester:
            matches = run_smoke_test(
                requester,
                args.collection,
                args.key,
                args.body.encode("utf-8"),
                conjoined=args.conjoined,
            )
    except (NimbusIoError, httpx.HTTPError) as e:
        logger.error(f"Smoke test failed: {e}")
        sys.exit(1)

    if not matches:
        logger.error("Retrieved body does not match archived body")
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
