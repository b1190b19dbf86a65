"""Shared fixtures."""

from typing import Dict, List, Optional, Tuple

import keyring
import pytest
from keyring.backend import KeyringBackend
from keyring.errors import PasswordDeleteError

from keychain_cli.clipboard import Clipboard
from keychain_cli.config import DEFAULT_SERVICE_NAME
from keychain_cli.logs import reset_logging
from keychain_cli.manager import CredentialManager
from keychain_cli.storage import MemoryStorage


class MemoryKeyring(KeyringBackend):
    """keyring backend holding passwords in a dict."""

    priority = 1

    def __init__(self):
        super().__init__()
        self.passwords: Dict[Tuple[str, str], str] = {}

    def get_password(self, service: str, username: str) -> Optional[str]:
        return self.passwords.get((service, username))

    def set_password(self, service: str, username: str, password: str) -> None:
        self.passwords[(service, username)] = password

    def delete_password(self, service: str, username: str) -> None:
        try:
            del self.passwords[(service, username)]
        except KeyError:
            raise PasswordDeleteError("Password not found")


class RecordingClipboard(Clipboard):
    """Clipboard that remembers every copy."""

    def __init__(self):
        self.copies: List[bytes] = []

    def copy(self, data: bytes) -> None:
        self.copies.append(data)


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep logs and keyring indexes inside the test's temp directory."""
    monkeypatch.setenv("KEYCHAIN_CLI_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("KEYCHAIN_CLI_DATA_DIR", str(tmp_path / "data"))
    for name in ("SERVICE", "ACCESS_GROUP", "BACKEND", "MENU", "CLIPBOARD_COMMAND"):
        monkeypatch.delenv(f"KEYCHAIN_CLI_{name}", raising=False)
    yield
    reset_logging()


@pytest.fixture
def storage() -> MemoryStorage:
    """Empty in-memory storage."""
    return MemoryStorage()


@pytest.fixture
def manager(storage: MemoryStorage) -> CredentialManager:
    """Manager over in-memory storage using the default service scope."""
    return CredentialManager(storage, DEFAULT_SERVICE_NAME)


@pytest.fixture
def clipboard() -> RecordingClipboard:
    """Recording clipboard."""
    return RecordingClipboard()


@pytest.fixture
def memory_keyring():
    """Install an in-memory keyring backend for the duration of a test."""
    previous = keyring.get_keyring()
    backend = MemoryKeyring()
    keyring.set_keyring(backend)
    yield backend
    keyring.set_keyring(previous)
