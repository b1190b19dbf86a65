"""Main CLI implementation."""

from pathlib import Path
from typing import Optional

import click
import structlog
from pydantic import ValidationError

from .. import __version__
from ..clipboard import get_clipboard
from ..config import DEFAULT_SERVICE_NAME, ENV_PREFIX, Settings
from ..logs import setup_logging
from ..manager import CredentialManager
from ..storage import BACKENDS, CredentialStoreError, get_storage
from .session import MENUS, InteractiveSession

logger = structlog.get_logger(__name__)


@click.command()
@click.version_option(version=__version__, prog_name="keychain-cli")
@click.option(
    "--service",
    envvar=f"{ENV_PREFIX}SERVICE",
    default=DEFAULT_SERVICE_NAME,
    show_default=True,
    help="Service scope for all managed credentials",
)
@click.option(
    "--access-group",
    envvar=f"{ENV_PREFIX}ACCESS_GROUP",
    default=None,
    help="Optional access group narrowing the service scope",
)
@click.option(
    "--backend",
    envvar=f"{ENV_PREFIX}BACKEND",
    type=click.Choice(sorted(BACKENDS)),
    default="keyring",
    show_default=True,
    help="Secure storage backend",
)
@click.option(
    "--menu",
    envvar=f"{ENV_PREFIX}MENU",
    type=click.Choice(sorted(MENUS)),
    default="full",
    show_default=True,
    help="Menu layout",
)
@click.option(
    "--clipboard-command",
    envvar=f"{ENV_PREFIX}CLIPBOARD_COMMAND",
    default=None,
    help="Command that reads clipboard data from stdin (default: platform utility)",
)
@click.option(
    "--data-dir",
    envvar=f"{ENV_PREFIX}DATA_DIR",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for the keyring account index",
)
@click.option(
    "--log-level",
    envvar=f"{ENV_PREFIX}LOG_LEVEL",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default="WARNING",
    help="Set logging level",
)
@click.option(
    "--log-dir",
    envvar=f"{ENV_PREFIX}LOG_DIR",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for log files (default: ~/.local/log)",
)
def cli(
    service: str,
    access_group: Optional[str],
    backend: str,
    menu: str,
    clipboard_command: Optional[str],
    data_dir: Optional[Path],
    log_level: str,
    log_dir: Optional[Path],
) -> None:
    """Keychain CLI.

    Interactive manager for account passwords kept in the system secret store.
    """
    options = {
        "service_name": service,
        "access_group": access_group,
        "backend": backend,
        "menu": menu,
        "clipboard_command": clipboard_command,
        "log_level": log_level,
        "log_dir": log_dir,
    }
    if data_dir is not None:
        options["data_dir"] = data_dir
    try:
        settings = Settings(**options)
    except ValidationError as e:
        raise click.UsageError(str(e))

    try:
        setup_logging(log_level=settings.log_level, base_dir=settings.log_dir)
    except OSError as e:
        raise click.ClickException(f"Cannot set up logging: {e}")

    try:
        storage = get_storage(settings.backend, settings.data_dir)
    except CredentialStoreError as e:
        logger.error("storage_init_failed", backend=settings.backend, status=int(e.status))
        raise click.ClickException(str(e))
    except OSError as e:
        logger.error("storage_init_failed", backend=settings.backend, error=str(e))
        raise click.ClickException(f"Cannot open {settings.backend} storage: {e}")

    manager = CredentialManager(storage, settings.service_name, settings.access_group)
    logger.info(
        "session_started",
        service=settings.service_name,
        access_group=settings.access_group,
        backend=settings.backend,
    )
    InteractiveSession(
        manager, get_clipboard(settings.clipboard_command), menu=settings.menu
    ).run()


def main() -> None:
    """CLI entry point."""
    cli()
