"""Secure credential storage backends."""

from pathlib import Path
from typing import Optional

from .base import (
    CredentialDecodeError,
    CredentialNotFoundError,
    CredentialStoreError,
    ItemClass,
    ItemQuery,
    SecureStorage,
    Status,
)
from .keyring_store import KeyringStorage
from .memory import MemoryStorage
from .secret_tool import LibSecretStorage

BACKENDS = {
    KeyringStorage.name: KeyringStorage,
    LibSecretStorage.name: LibSecretStorage,
    MemoryStorage.name: MemoryStorage,
}


def get_storage(backend: str = "keyring", data_dir: Optional[Path] = None) -> SecureStorage:
    """Get a storage backend by name.

    Args:
        backend: One of ``keyring``, ``secret-tool`` or ``memory``.
        data_dir: Private data directory used by the keyring backend.

    Returns:
        SecureStorage: Backend instance.

    Raises:
        ValueError: If the backend name is unknown.
        CredentialStoreError: If the backend cannot be initialized.
    """
    if backend == KeyringStorage.name:
        return KeyringStorage(data_dir)
    elif backend == LibSecretStorage.name:
        return LibSecretStorage()
    elif backend == MemoryStorage.name:
        return MemoryStorage()
    else:
        raise ValueError(f"Unsupported storage backend: {backend}")


__all__ = [
    "BACKENDS",
    "CredentialDecodeError",
    "CredentialNotFoundError",
    "CredentialStoreError",
    "ItemClass",
    "ItemQuery",
    "KeyringStorage",
    "LibSecretStorage",
    "MemoryStorage",
    "SecureStorage",
    "Status",
    "get_storage",
]
