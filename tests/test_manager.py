"""Tests for the credential store adapter."""

from unittest.mock import Mock

import pytest

from keychain_cli.manager import CredentialManager
from keychain_cli.storage import (
    CredentialDecodeError,
    CredentialNotFoundError,
    CredentialStoreError,
    ItemQuery,
    MemoryStorage,
    SecureStorage,
    Status,
)


def test_add_then_get_round_trip(manager):
    assert manager.add_item("alice", "correct horse") == Status.SUCCESS
    assert manager.get_password("alice") == "correct horse"


def test_re_add_replaces_password(manager):
    manager.add_item("alice", "old")
    assert manager.add_item("alice", "new") == Status.SUCCESS
    assert manager.get_password("alice") == "new"
    assert manager.get_item_list() == ["alice"]


def test_item_list_only_accounts(manager):
    manager.add_item("alice", "a")
    manager.add_item("bob", "b")
    assert manager.get_item_list() == ["alice", "bob"]


def test_scopes_are_isolated(storage):
    work = CredentialManager(storage, "work")
    home = CredentialManager(storage, "home")
    grouped = CredentialManager(storage, "work", access_group="team")

    work.add_item("alice", "w")
    home.add_item("alice", "h")
    grouped.add_item("bob", "g")

    assert home.get_item_list() == ["alice"]
    assert home.get_password("alice") == "h"
    assert grouped.get_item_list() == ["bob"]
    assert grouped.get_password("alice") is None


def test_add_failure_returns_backend_status():
    storage = Mock(spec=SecureStorage)
    storage.delete.side_effect = CredentialNotFoundError("none")
    storage.add.side_effect = CredentialStoreError(
        "locked", Status.INTERACTION_NOT_ALLOWED
    )
    manager = CredentialManager(storage, "svc")
    assert manager.add_item("alice", "pw") == Status.INTERACTION_NOT_ALLOWED


def test_add_deletes_before_insert():
    storage = Mock(spec=SecureStorage)
    manager = CredentialManager(storage, "svc", access_group="grp")
    manager.add_item("alice", "pw")

    expected = ItemQuery(service="svc", account="alice", access_group="grp")
    storage.delete.assert_called_once_with(expected)
    storage.add.assert_called_once_with(expected, b"pw")


def test_item_list_fails_soft():
    storage = Mock(spec=SecureStorage)
    storage.query_list.side_effect = CredentialStoreError("boom", Status.IO)
    assert CredentialManager(storage, "svc").get_item_list() == []


def test_missing_password(manager):
    assert manager.get_password("nobody") is None
    with pytest.raises(CredentialNotFoundError):
        manager.fetch_password("nobody")


def test_undecodable_password(storage, manager):
    storage.add(
        ItemQuery(service=manager.service_name, account="binary"), b"\xff\xfe\x00"
    )
    assert manager.get_password("binary") is None
    with pytest.raises(CredentialDecodeError) as exc:
        manager.fetch_password("binary")
    assert exc.value.status == Status.DECODE


def test_every_call_queries_backend():
    storage = MemoryStorage()
    manager = CredentialManager(storage, "svc")
    manager.add_item("alice", "one")
    assert manager.get_password("alice") == "one"
    storage.delete(ItemQuery(service="svc", account="alice"))
    assert manager.get_password("alice") is None


def test_add_rejects_empty_account(storage, manager):
    assert manager.add_item("", "pw") == Status.PARAM
    assert storage.query_list(ItemQuery(service=manager.service_name)) == []
