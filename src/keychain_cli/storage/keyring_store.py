"""Credential storage through the ``keyring`` library."""

import hashlib
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

import keyring
from keyring.errors import (
    KeyringError,
    KeyringLocked,
    NoKeyringError,
    PasswordDeleteError,
)
from pydantic import BaseModel, Field, ValidationError
import structlog

from .base import (
    CredentialNotFoundError,
    CredentialStoreError,
    ItemQuery,
    SecureStorage,
    Status,
)

logger = structlog.get_logger(__name__)

DEFAULT_DATA_DIR = Path("~/.config/keychain-cli")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccountIndex(BaseModel):
    """Accounts known to exist under one keyring service name."""

    service: str
    access_group: Optional[str] = None
    accounts: List[str] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=_utcnow)


def _status_for(error: KeyringError) -> Status:
    """Translate a keyring exception into a platform status code."""
    if isinstance(error, KeyringLocked):
        return Status.INTERACTION_NOT_ALLOWED
    if isinstance(error, NoKeyringError):
        return Status.NOT_AVAILABLE
    return Status.IO


class KeyringStorage(SecureStorage):
    """Storage backend using the system keyring.

    keyring has no way to enumerate entries, so every scope keeps an account
    index next to the secrets. The index only holds account names.
    """

    name = "keyring"

    def __init__(self, data_dir: Optional[Path] = None):
        """Initialize the store.

        Args:
            data_dir: Directory for account indexes. Defaults to
                ``~/.config/keychain-cli``.
        """
        base = Path(data_dir) if data_dir is not None else DEFAULT_DATA_DIR
        self._index_dir = base.expanduser() / "index"
        os.makedirs(self._index_dir, mode=0o700, exist_ok=True)

    @staticmethod
    def _keyring_service(query: ItemQuery) -> str:
        if query.access_group:
            return f"{query.service}:{query.access_group}"
        return query.service

    def _index_path(self, query: ItemQuery) -> Path:
        digest = hashlib.sha256(self._keyring_service(query).encode()).hexdigest()
        return self._index_dir / f"{digest[:32]}.json"

    def _read_index(self, query: ItemQuery) -> AccountIndex:
        path = self._index_path(query)
        try:
            return AccountIndex.model_validate_json(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return AccountIndex(service=query.service, access_group=query.access_group)
        except (OSError, ValidationError) as e:
            raise CredentialStoreError(f"Failed to read account index: {e}") from e

    def _write_index(self, query: ItemQuery, index: AccountIndex) -> None:
        path = self._index_path(query)
        index.updated_at = _utcnow()
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(index.model_dump_json(indent=2))
            os.chmod(path, 0o600)
        except OSError as e:
            raise CredentialStoreError(f"Failed to write account index: {e}") from e

    def add(self, query: ItemQuery, secret: bytes) -> None:
        """Store a secret in the keyring and record its account."""
        if query.account is None:
            raise CredentialStoreError("Account attribute is required", Status.PARAM)
        service = self._keyring_service(query)
        index = self._read_index(query)
        try:
            if (
                query.account in index.accounts
                and keyring.get_password(service, query.account) is not None
            ):
                raise CredentialStoreError(
                    f"Item already exists: {query.account}", Status.DUPLICATE_ITEM
                )
            keyring.set_password(service, query.account, secret.decode("utf-8"))
        except UnicodeDecodeError as e:
            raise CredentialStoreError(
                f"keyring only stores text secrets: {e}", Status.PARAM
            ) from e
        except KeyringError as e:
            raise CredentialStoreError(
                f"Failed to store credential: {e}", _status_for(e)
            ) from e

        if query.account not in index.accounts:
            index.accounts.append(query.account)
            try:
                self._write_index(query, index)
            except CredentialStoreError:
                # Every stored secret must be in the index
                self._discard(service, query.account)
                raise
        logger.debug("keyring_item_added", service=service, account=query.account)

    @staticmethod
    def _discard(service: str, account: str) -> None:
        try:
            keyring.delete_password(service, account)
        except KeyringError as e:
            logger.error("keyring_rollback_failed", service=service, account=account, error=str(e))

    def delete(self, query: ItemQuery) -> None:
        """Delete matching secrets and drop them from the index."""
        service = self._keyring_service(query)
        index = self._read_index(query)
        accounts = [query.account] if query.account is not None else list(index.accounts)

        deleted = []
        for account in accounts:
            try:
                keyring.delete_password(service, account)
                deleted.append(account)
            except PasswordDeleteError:
                # Entry is gone from the keyring already
                if account in index.accounts:
                    deleted.append(account)
            except KeyringError as e:
                raise CredentialStoreError(
                    f"Failed to delete credential: {e}", _status_for(e)
                ) from e

        if not deleted:
            raise CredentialNotFoundError(f"No item matches {query.attributes()}")

        index.accounts = [a for a in index.accounts if a not in deleted]
        self._write_index(query, index)

    def query_list(self, query: ItemQuery) -> List[Dict[str, str]]:
        """List the indexed accounts of the scope."""
        index = self._read_index(query)
        items = []
        for account in index.accounts:
            attrs = ItemQuery(
                service=query.service,
                account=account,
                access_group=query.access_group,
            ).attributes()
            if query.matches(attrs):
                items.append(attrs)
        return items

    def query_one(self, query: ItemQuery) -> bytes:
        """Fetch one secret from the keyring."""
        if query.account is None:
            raise CredentialStoreError("Account attribute is required", Status.PARAM)
        try:
            password = keyring.get_password(self._keyring_service(query), query.account)
        except KeyringError as e:
            raise CredentialStoreError(
                f"Failed to retrieve credential: {e}", _status_for(e)
            ) from e
        if password is None:
            raise CredentialNotFoundError(f"Credential not found: {query.account}")
        return password.encode("utf-8")
