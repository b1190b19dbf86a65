"""Credential store adapter scoped to one service."""

from typing import List, Optional

import structlog

from .storage import (
    CredentialDecodeError,
    CredentialNotFoundError,
    CredentialStoreError,
    ItemQuery,
    SecureStorage,
    Status,
)

logger = structlog.get_logger(__name__)


class CredentialManager:
    """Add, list and look up account passwords under a fixed service scope.

    Every call goes straight to the storage backend; nothing is cached.
    """

    def __init__(
        self,
        storage: SecureStorage,
        service_name: str,
        access_group: Optional[str] = None,
    ):
        """Initialize the manager.

        Args:
            storage: Backend holding the credentials.
            service_name: Service scope shared by all managed credentials.
            access_group: Optional secondary scope applied to every query.
        """
        self.storage = storage
        self.service_name = service_name
        self.access_group = access_group

    def _query(self, account: Optional[str] = None) -> ItemQuery:
        return ItemQuery(
            service=self.service_name,
            account=account,
            access_group=self.access_group,
        )

    def add_item(self, account: str, password: str) -> Status:
        """Store a password, replacing any existing entry for the account.

        Returns:
            Status.SUCCESS, Status.PARAM for an empty account name, or the
            backend status code of the failed insert.
        """
        if not account:
            logger.warning("add_item_rejected", service=self.service_name, reason="empty account")
            return Status.PARAM
        query = self._query(account)
        try:
            self.storage.delete(query)
        except CredentialNotFoundError:
            pass
        except CredentialStoreError as e:
            logger.debug("replace_delete_failed", account=account, status=int(e.status))

        try:
            self.storage.add(query, password.encode("utf-8"))
        except CredentialStoreError as e:
            logger.warning(
                "add_item_failed",
                service=self.service_name,
                account=account,
                status=int(e.status),
                error=str(e),
            )
            return e.status
        logger.info("add_item", service=self.service_name, account=account)
        return Status.SUCCESS

    def get_item_list(self) -> List[str]:
        """Return the account names in scope, or an empty list on error."""
        try:
            items = self.storage.query_list(self._query())
        except CredentialStoreError as e:
            logger.warning(
                "item_list_query_failed",
                service=self.service_name,
                status=int(e.status),
                error=str(e),
            )
            return []
        return [item["account"] for item in items if isinstance(item.get("account"), str)]

    def fetch_password(self, account: str) -> str:
        """Look up the password for an account.

        Raises:
            CredentialNotFoundError: If the account has no entry.
            CredentialDecodeError: If the stored secret is not UTF-8 text.
            CredentialStoreError: If the backend fails otherwise.
        """
        data = self.storage.query_one(self._query(account))
        if data is None:
            raise CredentialDecodeError(f"Stored item for {account} has no data")
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CredentialDecodeError(
                f"Stored password for {account} is not valid UTF-8"
            ) from e

    def get_password(self, account: str) -> Optional[str]:
        """Look up the password for an account, returning None on any failure."""
        try:
            return self.fetch_password(account)
        except CredentialStoreError as e:
            logger.warning(
                "password_lookup_failed",
                service=self.service_name,
                account=account,
                status=int(e.status),
                reason=type(e).__name__,
            )
            return None
