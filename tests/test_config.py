"""Tests for runtime settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from keychain_cli.config import DEFAULT_SERVICE_NAME, Settings


def test_defaults():
    settings = Settings()
    assert settings.service_name == DEFAULT_SERVICE_NAME
    assert settings.access_group is None
    assert settings.backend == "keyring"
    assert settings.menu == "full"


def test_blank_values_are_unset():
    settings = Settings(access_group="  ", clipboard_command="")
    assert settings.access_group is None
    assert settings.clipboard_command is None


def test_expands_home(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    settings = Settings(data_dir=Path("~/kc"), log_dir=Path("~/logs"))
    assert settings.data_dir == tmp_path / "kc"
    assert settings.log_dir == tmp_path / "logs"


@pytest.mark.parametrize(
    "options",
    [{"service_name": ""}, {"backend": "floppy"}, {"menu": "huge"}],
)
def test_invalid_settings(options):
    with pytest.raises(ValidationError):
        Settings(**options)
