"""Tests for storage backends."""

import os
import subprocess
import sys
from pathlib import Path
from unittest.mock import patch

import pytest
from keyring.errors import KeyringLocked

from keychain_cli.storage import (
    CredentialNotFoundError,
    CredentialStoreError,
    ItemQuery,
    KeyringStorage,
    LibSecretStorage,
    MemoryStorage,
    Status,
    get_storage,
)
from keychain_cli.storage.secret_tool import parse_search_output


def query(account=None, group=None) -> ItemQuery:
    return ItemQuery(service="test-service", account=account, access_group=group)


class TestMemoryStorage:
    def test_add_and_query_one(self):
        store = MemoryStorage()
        store.add(query("alice"), b"pw")
        assert store.query_one(query("alice")) == b"pw"

    def test_duplicate_add(self):
        store = MemoryStorage()
        store.add(query("alice"), b"pw")
        with pytest.raises(CredentialStoreError) as exc:
            store.add(query("alice"), b"other")
        assert exc.value.status == Status.DUPLICATE_ITEM

    def test_delete_missing(self):
        with pytest.raises(CredentialNotFoundError):
            MemoryStorage().delete(query("nobody"))

    def test_query_list_keeps_insertion_order(self):
        store = MemoryStorage()
        for name in ("carol", "alice", "bob"):
            store.add(query(name), b"pw")
        assert [item["account"] for item in store.query_list(query())] == [
            "carol",
            "alice",
            "bob",
        ]

    def test_access_group_filters(self):
        store = MemoryStorage()
        store.add(query("alice"), b"plain")
        store.add(query("bob", group="team"), b"grouped")
        grouped = store.query_list(query(group="team"))
        assert grouped == [
            {"service": "test-service", "account": "bob", "access_group": "team"}
        ]
        with pytest.raises(CredentialNotFoundError):
            store.query_one(query("alice", group="team"))


class TestKeyringStorage:
    @pytest.fixture
    def store(self, tmp_path, memory_keyring) -> KeyringStorage:
        return KeyringStorage(tmp_path / "data")

    def test_store_and_retrieve(self, store, memory_keyring):
        store.add(query("alice"), "pässword".encode("utf-8"))
        assert store.query_one(query("alice")) == "pässword".encode("utf-8")
        assert memory_keyring.passwords[("test-service", "alice")] == "pässword"
        assert store.query_list(query()) == [
            {"service": "test-service", "account": "alice"}
        ]

    def test_access_group_in_service_name(self, store, memory_keyring):
        store.add(query("alice", group="team"), b"pw")
        assert ("test-service:team", "alice") in memory_keyring.passwords
        assert store.query_list(query()) == []
        assert len(store.query_list(query(group="team"))) == 1

    def test_duplicate(self, store):
        store.add(query("alice"), b"pw")
        with pytest.raises(CredentialStoreError) as exc:
            store.add(query("alice"), b"pw2")
        assert exc.value.status == Status.DUPLICATE_ITEM

    def test_delete(self, store, memory_keyring):
        store.add(query("alice"), b"pw")
        store.delete(query("alice"))
        assert memory_keyring.passwords == {}
        assert store.query_list(query()) == []
        with pytest.raises(CredentialNotFoundError):
            store.query_one(query("alice"))
        with pytest.raises(CredentialNotFoundError):
            store.delete(query("alice"))

    def test_index_survives_new_instance(self, store, tmp_path):
        store.add(query("alice"), b"pw")
        again = KeyringStorage(tmp_path / "data")
        assert [i["account"] for i in again.query_list(query())] == ["alice"]

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_index_permissions(self, store, tmp_path):
        store.add(query("alice"), b"pw")
        index_dir = tmp_path / "data" / "index"
        files = list(index_dir.glob("*.json"))
        assert len(files) == 1
        assert files[0].stat().st_mode & 0o777 == 0o600
        assert "pw" not in files[0].read_text()

    def test_corrupt_index(self, store, tmp_path):
        store.add(query("alice"), b"pw")
        index_file = next((tmp_path / "data" / "index").glob("*.json"))
        index_file.write_text("{not json")
        with pytest.raises(CredentialStoreError):
            store.query_list(query())

    def test_index_write_failure_rolls_back(self, store, memory_keyring):
        with patch.object(
            store,
            "_write_index",
            side_effect=CredentialStoreError("Failed to write account index"),
        ):
            with pytest.raises(CredentialStoreError) as exc:
                store.add(query("alice"), b"pw")
        assert exc.value.status == Status.IO
        assert memory_keyring.passwords == {}
        assert store.query_list(query()) == []

    def test_locked_keyring(self, store, memory_keyring):
        with patch.object(
            memory_keyring, "get_password", side_effect=KeyringLocked("locked")
        ):
            with pytest.raises(CredentialStoreError) as exc:
                store.query_one(query("alice"))
        assert exc.value.status == Status.INTERACTION_NOT_ALLOWED


SEARCH_OUTPUT = b"""[/org/freedesktop/secrets/collection/login/12]
label = test-service - alice
secret = pw
created = 2024-01-01 10:00:00
modified = 2024-01-01 10:00:00
schema = org.freedesktop.Secret.Generic
attribute.service = test-service
attribute.account = alice
[/org/freedesktop/secrets/collection/login/13]
label = test-service - bob
secret = pw2
attribute.service = test-service
attribute.account = bob
attribute.access_group = team
"""


def completed(args, returncode=0, stdout=b"", stderr=b""):
    return subprocess.CompletedProcess(args, returncode, stdout=stdout, stderr=stderr)


class TestLibSecretStorage:
    @pytest.fixture
    def mock_run(self):
        with patch("keychain_cli.storage.secret_tool.subprocess.run") as mock:
            mock.side_effect = lambda args, **kwargs: completed(args)
            yield mock

    def test_parse_search_output(self):
        items = parse_search_output(SEARCH_OUTPUT.decode())
        assert items == [
            {"service": "test-service", "account": "alice"},
            {"service": "test-service", "account": "bob", "access_group": "team"},
        ]

    def test_missing_binary(self):
        with patch(
            "keychain_cli.storage.secret_tool.subprocess.run",
            side_effect=FileNotFoundError,
        ):
            with pytest.raises(CredentialStoreError) as exc:
                LibSecretStorage()
        assert exc.value.status == Status.NOT_AVAILABLE

    def test_query_list(self, mock_run):
        store = LibSecretStorage()
        mock_run.side_effect = lambda args, **kwargs: completed(args, stderr=SEARCH_OUTPUT)
        assert [i["account"] for i in store.query_list(query())] == ["alice", "bob"]
        assert [i["account"] for i in store.query_list(query(group="team"))] == ["bob"]
        args = mock_run.call_args[0][0]
        assert args[:3] == ["secret-tool", "search", "--all"]

    def test_add_pipes_secret(self, mock_run):
        store = LibSecretStorage()
        store.add(query("alice"), b"pw")
        store_call = mock_run.call_args
        assert store_call[0][0][:2] == ["secret-tool", "store"]
        assert store_call[0][0][-4:] == ["service", "test-service", "account", "alice"]
        assert store_call[1]["input"] == b"pw"

    def test_add_failure(self, mock_run):
        store = LibSecretStorage()

        def run(args, **kwargs):
            if args[1] == "store":
                raise subprocess.CalledProcessError(1, args)
            return completed(args)

        mock_run.side_effect = run
        with pytest.raises(CredentialStoreError) as exc:
            store.add(query("alice"), b"pw")
        assert exc.value.status == Status.IO

    def test_query_one(self, mock_run):
        store = LibSecretStorage()
        mock_run.side_effect = lambda args, **kwargs: completed(args, stdout=b"\xffraw")
        assert store.query_one(query("alice")) == b"\xffraw"

    def test_query_one_not_found(self, mock_run):
        store = LibSecretStorage()
        mock_run.side_effect = lambda args, **kwargs: completed(args, returncode=1)
        with pytest.raises(CredentialNotFoundError):
            store.query_one(query("alice"))

    def test_delete_not_found(self, mock_run):
        store = LibSecretStorage()
        with pytest.raises(CredentialNotFoundError):
            store.delete(query("alice"))


def test_get_storage_selection(tmp_path, memory_keyring):
    assert isinstance(get_storage("memory"), MemoryStorage)
    assert isinstance(get_storage("keyring", tmp_path), KeyringStorage)
    assert os.path.isdir(Path(tmp_path) / "index")
    with pytest.raises(ValueError):
        get_storage("floppy")
