"""Structured logging setup."""

import logging
import os
import sys
from contextlib import suppress
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional, Union

import structlog
from structlog.types import EventDict

LOG_FILE_NAME = "keychain-cli.log"
SENSITIVE_KEYS = {"password", "token", "secret", "key", "credential", "api_key"}


def get_log_dir(base_dir: Optional[Union[str, Path]] = None) -> Path:
    """Get normalized log directory path.

    Args:
        base_dir: Base directory for logs. If None, uses ~/.local/log

    Returns:
        Resolved Path object for log directory
    """
    if base_dir is None:
        base_dir = Path.home() / ".local" / "log"
    return Path(base_dir).expanduser().resolve()


def create_secure_handler(
    log_path: Path, max_bytes: int, backup_count: int
) -> RotatingFileHandler:
    """Create a RotatingFileHandler whose file is private to the owner group.

    Args:
        log_path: Path to the log file
        max_bytes: Maximum size of each log file
        backup_count: Number of backup files to keep
    """
    os.makedirs(log_path.parent, mode=0o750, exist_ok=True)
    if not log_path.exists():
        log_path.touch(mode=0o640)
    os.chmod(log_path, 0o640)
    return RotatingFileHandler(
        str(log_path), maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )


def add_timestamp(_: Any, __: str, event_dict: EventDict) -> EventDict:
    """Add ISO 8601 timestamp."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def sanitize_keys(event_dict: dict[str, Any], sensitive_keys: set[str]) -> dict[str, Any]:
    """Redact sensitive keys, matching case-insensitively and recursing into
    nested dicts and lists.

    Args:
        event_dict: Dictionary to sanitize
        sensitive_keys: Set of keys to redact

    Returns:
        Sanitized copy of the dictionary
    """
    lowered = {k.lower() for k in sensitive_keys}

    def _sanitize_value(key: str, value: Any) -> Any:
        if key.lower() in lowered:
            return "***"
        if isinstance(value, dict):
            return sanitize_keys(value, sensitive_keys)
        if isinstance(value, list):
            return [_sanitize_value("", item) for item in value]
        return value

    return {k: _sanitize_value(k, v) for k, v in event_dict.items()}


def sanitize_event_dict(_: Any, __: str, event_dict: EventDict) -> EventDict:
    """Mask sensitive values anywhere in a log record."""
    return sanitize_keys(dict(event_dict), SENSITIVE_KEYS)


def setup_logging(
    *,
    log_level: str = "WARNING",
    base_dir: Optional[Union[str, Path]] = None,
    max_log_size: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 3,
) -> structlog.stdlib.BoundLogger:
    """Configure structlog over the stdlib root logger.

    JSON records go to ``<base_dir>/keychain-cli.log``; warnings and errors
    are also echoed to stderr. Calling it again replaces the previous setup.

    Args:
        log_level: Minimum level written to the log file
        base_dir: Optional base directory for log files
        max_log_size: Maximum size of a log file before rotation
        backup_count: Number of backup files to keep
    """
    reset_logging()

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            add_timestamp,
            sanitize_event_dict,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    log_file = get_log_dir(base_dir) / LOG_FILE_NAME
    file_handler = create_secure_handler(log_file, max_log_size, backup_count)
    file_handler.setFormatter(logging.Formatter("%(message)s"))

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    return structlog.get_logger("keychain_cli")


def reset_logging() -> None:
    """Remove root handlers and restore structlog defaults."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        with suppress(OSError, ValueError):
            handler.close()
        root_logger.removeHandler(handler)
    structlog.reset_defaults()
