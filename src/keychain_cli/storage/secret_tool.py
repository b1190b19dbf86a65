"""Linux credential storage using libsecret's ``secret-tool``."""

import subprocess
from typing import Dict, List

import structlog

from .base import (
    CredentialNotFoundError,
    CredentialStoreError,
    ItemQuery,
    SecureStorage,
    Status,
)

logger = structlog.get_logger(__name__)

SECRET_TOOL = "secret-tool"
ATTRIBUTE_PREFIX = "attribute."


def _attribute_args(query: ItemQuery) -> List[str]:
    args = []
    for key, value in query.attributes().items():
        args.extend([key, value])
    return args


def parse_search_output(output: str) -> List[Dict[str, str]]:
    """Extract attribute mappings from ``secret-tool search`` output.

    Each item starts with a ``[/object/path]`` header followed by
    ``name = value`` lines; only ``attribute.*`` lines are kept.
    """
    items: List[Dict[str, str]] = []
    current = None
    for line in output.splitlines():
        if line.startswith("["):
            current = {}
            items.append(current)
            continue
        if current is None or not line.startswith(ATTRIBUTE_PREFIX):
            continue
        name, sep, value = line[len(ATTRIBUTE_PREFIX):].partition(" = ")
        if sep:
            current[name] = value
    return items


class LibSecretStorage(SecureStorage):
    """Storage backend driving the freedesktop secret service."""

    name = "secret-tool"

    def __init__(self):
        """Initialize the store."""
        self._check_libsecret()

    def _check_libsecret(self) -> None:
        """Check if libsecret is available."""
        try:
            subprocess.run(
                [SECRET_TOOL, "search", "dummy", "dummy"],
                capture_output=True,
                check=False,
            )
        except FileNotFoundError:
            raise CredentialStoreError(
                "libsecret not found. Please install libsecret-tools.",
                Status.NOT_AVAILABLE,
            )

    def _search(self, query: ItemQuery) -> List[Dict[str, str]]:
        try:
            result = subprocess.run(
                [SECRET_TOOL, "search", "--all", *_attribute_args(query)],
                capture_output=True,
                check=False,
            )
        except OSError as e:
            raise CredentialStoreError(f"Failed to search credentials: {e}") from e

        # Item details are split across stdout and stderr depending on version
        output = (result.stdout + result.stderr).decode("utf-8", errors="replace")
        return [attrs for attrs in parse_search_output(output) if query.matches(attrs)]

    def add(self, query: ItemQuery, secret: bytes) -> None:
        """Store a secret with secret-tool."""
        if query.account is None:
            raise CredentialStoreError("Account attribute is required", Status.PARAM)
        if self._search(query):
            raise CredentialStoreError(
                f"Item already exists: {query.account}", Status.DUPLICATE_ITEM
            )
        try:
            subprocess.run(
                [
                    SECRET_TOOL,
                    "store",
                    "--label",
                    f"{query.service} - {query.account}",
                    *_attribute_args(query),
                ],
                input=secret,
                capture_output=True,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            raise CredentialStoreError(f"Failed to store credential: {e}") from e

    def delete(self, query: ItemQuery) -> None:
        """Clear matching secrets."""
        if not self._search(query):
            raise CredentialNotFoundError(f"No item matches {query.attributes()}")
        try:
            subprocess.run(
                [SECRET_TOOL, "clear", *_attribute_args(query)],
                capture_output=True,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            raise CredentialStoreError(f"Failed to delete credential: {e}") from e

    def query_list(self, query: ItemQuery) -> List[Dict[str, str]]:
        """List attributes of matching items."""
        items = self._search(query)
        logger.debug("listed_secret_tool_items", count=len(items))
        return items

    def query_one(self, query: ItemQuery) -> bytes:
        """Look up one secret."""
        try:
            result = subprocess.run(
                [SECRET_TOOL, "lookup", *_attribute_args(query)],
                capture_output=True,
                check=False,
            )
        except OSError as e:
            raise CredentialStoreError(f"Failed to retrieve credential: {e}") from e
        if result.returncode != 0:
            raise CredentialNotFoundError(f"Credential not found: {query.account}")
        return result.stdout
