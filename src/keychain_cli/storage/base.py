"""Base interfaces and types for secure credential storage."""

from abc import ABC, abstractmethod
from enum import Enum, IntEnum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
import structlog

logger = structlog.get_logger(__name__)


class Status(IntEnum):
    """Platform status codes returned by storage operations.

    Values follow the Security framework numbering so codes read the same as
    the ones a keychain reports.
    """

    SUCCESS = 0
    UNIMPLEMENTED = -4
    IO = -36
    PARAM = -50
    NOT_AVAILABLE = -25291
    AUTH_FAILED = -25293
    DUPLICATE_ITEM = -25299
    ITEM_NOT_FOUND = -25300
    INTERACTION_NOT_ALLOWED = -25308
    DECODE = -26275


class ItemClass(str, Enum):
    """Store classes understood by the backends."""

    GENERIC_PASSWORD = "genp"


class ItemQuery(BaseModel):
    """Attributes a storage operation is keyed on."""

    model_config = ConfigDict(frozen=True)

    item_class: ItemClass = ItemClass.GENERIC_PASSWORD
    service: str = Field(min_length=1)
    account: Optional[str] = None
    access_group: Optional[str] = None

    def attributes(self) -> Dict[str, str]:
        """Return the non-empty attributes as a flat mapping."""
        attrs = {"service": self.service}
        if self.account is not None:
            attrs["account"] = self.account
        if self.access_group is not None:
            attrs["access_group"] = self.access_group
        return attrs

    def matches(self, attrs: Dict[str, str]) -> bool:
        """Check whether a stored item's attributes fall inside this query."""
        return all(attrs.get(k) == v for k, v in self.attributes().items())


class CredentialStoreError(Exception):
    """Base exception for credential store operations."""

    def __init__(self, message: str, status: Status = Status.IO):
        super().__init__(message)
        self.status = status


class CredentialNotFoundError(CredentialStoreError):
    """Exception raised when no stored item matches a query."""

    def __init__(self, message: str):
        super().__init__(message, Status.ITEM_NOT_FOUND)


class CredentialDecodeError(CredentialStoreError):
    """Exception raised when a stored secret cannot be decoded."""

    def __init__(self, message: str):
        super().__init__(message, Status.DECODE)


class SecureStorage(ABC):
    """Abstract base class for secure storage backends."""

    name = "abstract"

    @abstractmethod
    def add(self, query: ItemQuery, secret: bytes) -> None:
        """Insert a new item.

        Args:
            query: Attributes of the item. ``account`` is required.
            secret: Raw secret payload.

        Raises:
            CredentialStoreError: With ``DUPLICATE_ITEM`` if the item exists,
                or another status if the backend fails.
        """

    @abstractmethod
    def delete(self, query: ItemQuery) -> None:
        """Delete every item matching the query.

        Raises:
            CredentialNotFoundError: If nothing matched.
            CredentialStoreError: If deletion fails.
        """

    @abstractmethod
    def query_list(self, query: ItemQuery) -> List[Dict[str, str]]:
        """Return the attribute mappings of all matching items.

        Secrets are never part of the result.

        Raises:
            CredentialStoreError: If the query fails.
        """

    @abstractmethod
    def query_one(self, query: ItemQuery) -> bytes:
        """Return the raw secret of the single item matching the query.

        Raises:
            CredentialNotFoundError: If no item matches.
            CredentialStoreError: If retrieval fails.
        """
