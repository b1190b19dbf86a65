"""In-memory storage backend."""

from typing import Dict, List, Tuple

from .base import (
    CredentialNotFoundError,
    CredentialStoreError,
    ItemQuery,
    SecureStorage,
    Status,
)


class MemoryStorage(SecureStorage):
    """Storage backend that keeps items in process memory.

    Items are lost when the process exits. Insertion order is preserved so
    listings are stable, which makes this backend suitable as a test double.
    """

    name = "memory"

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._items: Dict[Tuple[str, ...], Tuple[Dict[str, str], bytes]] = {}

    @staticmethod
    def _key(query: ItemQuery) -> Tuple[str, ...]:
        return (
            query.item_class.value,
            query.service,
            query.access_group or "",
            query.account or "",
        )

    def _matching(self, query: ItemQuery) -> List[Tuple[str, ...]]:
        return [
            key
            for key, (attrs, _) in self._items.items()
            if key[0] == query.item_class.value and query.matches(attrs)
        ]

    def add(self, query: ItemQuery, secret: bytes) -> None:
        """Insert an item, refusing duplicates."""
        if query.account is None:
            raise CredentialStoreError("Account attribute is required", Status.PARAM)
        key = self._key(query)
        if key in self._items:
            raise CredentialStoreError(
                f"Item already exists: {query.account}", Status.DUPLICATE_ITEM
            )
        self._items[key] = (query.attributes(), bytes(secret))

    def delete(self, query: ItemQuery) -> None:
        """Delete all matching items."""
        keys = self._matching(query)
        if not keys:
            raise CredentialNotFoundError(f"No item matches {query.attributes()}")
        for key in keys:
            del self._items[key]

    def query_list(self, query: ItemQuery) -> List[Dict[str, str]]:
        """List attributes of matching items."""
        return [dict(self._items[key][0]) for key in self._matching(query)]

    def query_one(self, query: ItemQuery) -> bytes:
        """Return the secret of the first matching item."""
        keys = self._matching(query)
        if not keys:
            raise CredentialNotFoundError(f"No item matches {query.attributes()}")
        return self._items[keys[0]][1]
