"""Runtime settings."""

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from .storage.keyring_store import DEFAULT_DATA_DIR

DEFAULT_SERVICE_NAME = "com.github.kyoneken.mac-keychain-cli"
ENV_PREFIX = "KEYCHAIN_CLI_"

BackendName = Literal["keyring", "secret-tool", "memory"]
MenuName = Literal["full", "basic"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class Settings(BaseModel):
    """Settings for one interactive session.

    Every field can be set with a click option or the matching
    ``KEYCHAIN_CLI_*`` environment variable.
    """

    service_name: str = Field(default=DEFAULT_SERVICE_NAME, min_length=1)
    access_group: Optional[str] = Field(default=None, min_length=1)
    backend: BackendName = "keyring"
    menu: MenuName = "full"
    clipboard_command: Optional[str] = None
    data_dir: Path = DEFAULT_DATA_DIR
    log_level: LogLevel = "WARNING"
    log_dir: Optional[Path] = None

    @field_validator("access_group", "clipboard_command", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: Optional[str]) -> Optional[str]:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("data_dir", "log_dir")
    @classmethod
    def _expand_user(cls, value: Optional[Path]) -> Optional[Path]:
        return value.expanduser() if value is not None else None
