"""Interactive menu loop."""

from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

import click
import structlog
from rich.console import Console
from rich.table import Table

from ..clipboard import Clipboard
from ..manager import CredentialManager
from ..storage import (
    CredentialDecodeError,
    CredentialNotFoundError,
    CredentialStoreError,
    Status,
)
from ..transfer import export_items, import_items

logger = structlog.get_logger(__name__)


class State(str, Enum):
    """States of the interactive session."""

    MAIN_MENU = "main_menu"
    AWAITING_ACCOUNT_NAME = "awaiting_account_name"
    AWAITING_PASSWORD = "awaiting_password"
    AWAITING_FILE_PATH = "awaiting_file_path"
    AWAITING_SELECTION = "awaiting_selection"
    TERMINATED = "terminated"


class Action(str, Enum):
    """Menu actions."""

    ADD = "add"
    GET = "get"
    SELECT = "select"
    EXPORT = "export"
    IMPORT = "import"
    EXIT = "exit"


MENUS: Dict[str, List[Tuple[Action, str]]] = {
    "full": [
        (Action.ADD, "Add item"),
        (Action.SELECT, "Get password from item list"),
        (Action.EXPORT, "Export items"),
        (Action.IMPORT, "Import items"),
        (Action.EXIT, "Exit"),
    ],
    "basic": [
        (Action.ADD, "Add item"),
        (Action.GET, "Get password"),
        (Action.EXIT, "Exit"),
    ],
}


def print_accounts(console: Console, accounts: List[str]) -> None:
    """Print accounts as a numbered table."""
    table = Table(title="Stored Accounts")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Account", style="cyan")
    for number, account in enumerate(accounts, start=1):
        table.add_row(str(number), account)
    console.print(table)


class InteractiveSession:
    """Line-driven state machine over a credential manager.

    Invalid input always lands back in the main menu; only the Exit option,
    end of input or Ctrl-C terminate the session.
    """

    def __init__(
        self,
        manager: CredentialManager,
        clipboard: Clipboard,
        menu: str = "full",
        console: Optional[Console] = None,
    ):
        self.manager = manager
        self.clipboard = clipboard
        self.menu = MENUS[menu]
        self.console = console or Console()
        self.state = State.MAIN_MENU

        self._action: Optional[Action] = None
        self._account: Optional[str] = None
        self._accounts: List[str] = []
        self._handlers: Dict[State, Callable[[], None]] = {
            State.MAIN_MENU: self._main_menu,
            State.AWAITING_ACCOUNT_NAME: self._account_name,
            State.AWAITING_PASSWORD: self._password,
            State.AWAITING_FILE_PATH: self._file_path,
            State.AWAITING_SELECTION: self._selection,
        }

    def run(self) -> None:
        """Run until the session terminates."""
        click.echo("Welcome to the Custom Keychain CLI Tool")
        while self.state is not State.TERMINATED:
            try:
                self._handlers[self.state]()
            except click.Abort:
                click.echo()
                self._terminate()

    def _read(self, text: str, hide_input: bool = False) -> str:
        return click.prompt(
            text,
            default="",
            show_default=False,
            hide_input=hide_input,
            prompt_suffix="\n",
        )

    def _back_to_menu(self, message: Optional[str] = None) -> None:
        if message:
            click.echo(message, err=True)
        self._action = None
        self._account = None
        self._accounts = []
        self.state = State.MAIN_MENU

    def _terminate(self) -> None:
        click.echo("Goodbye!")
        self.state = State.TERMINATED

    def _main_menu(self) -> None:
        click.echo("\nChoose an option:")
        for number, (_, label) in enumerate(self.menu, start=1):
            click.echo(f"{number}. {label}")

        choice = self._read("").strip()
        try:
            option = int(choice)
        except ValueError:
            self._back_to_menu("Invalid input. Please try again.")
            return
        if not 1 <= option <= len(self.menu):
            self._back_to_menu("Invalid option. Please try again.")
            return

        action = self.menu[option - 1][0]
        self._action = action
        if action in (Action.ADD, Action.GET):
            self.state = State.AWAITING_ACCOUNT_NAME
        elif action is Action.SELECT:
            self._show_item_list()
        elif action in (Action.EXPORT, Action.IMPORT):
            self.state = State.AWAITING_FILE_PATH
        else:
            self._terminate()

    def _show_item_list(self) -> None:
        accounts = self.manager.get_item_list()
        if not accounts:
            self._back_to_menu("No items found.")
            return
        click.echo("Select an account from the list:")
        print_accounts(self.console, accounts)
        self._accounts = accounts
        self.state = State.AWAITING_SELECTION

    def _account_name(self) -> None:
        account = self._read("Enter account name:")
        if not account:
            self._back_to_menu("Invalid account name.")
            return
        if self._action is Action.GET:
            self._copy_password(account)
            self._back_to_menu()
            return
        self._account = account
        self.state = State.AWAITING_PASSWORD

    def _password(self) -> None:
        password = self._read("Enter password:", hide_input=True)
        if not password:
            self._back_to_menu("Invalid password.")
            return
        status = self.manager.add_item(self._account, password)
        if status == Status.SUCCESS:
            click.echo(f"Add item status: {status.value}")
        else:
            click.echo(f"Add item status: {status.value} ({status.name})", err=True)
        self._back_to_menu()

    def _selection(self) -> None:
        choice = self._read("Enter number:").strip()
        try:
            index = int(choice)
        except ValueError:
            index = 0
        if not 1 <= index <= len(self._accounts):
            self._back_to_menu("Invalid selection.")
            return
        self._copy_password(self._accounts[index - 1])
        self._back_to_menu()

    def _copy_password(self, account: str) -> None:
        try:
            password = self.manager.fetch_password(account)
        except CredentialNotFoundError:
            click.echo("Password not found.", err=True)
            return
        except CredentialDecodeError:
            click.echo(f"Stored password for '{account}' could not be decoded.", err=True)
            return
        except CredentialStoreError as e:
            click.echo(f"Error finding password: {e.status.value}", err=True)
            return
        self.clipboard.copy(password.encode("utf-8"))
        click.echo(f"Password for '{account}' copied to clipboard.")

    def _file_path(self) -> None:
        verb = "export" if self._action is Action.EXPORT else "import"
        file_path = self._read(f"Enter file path to {verb} items:").strip()
        if not file_path:
            self._back_to_menu("Invalid file path.")
            return
        if self._action is Action.EXPORT:
            self._export(file_path)
        else:
            self._import(file_path)
        self._back_to_menu()

    def _export(self, file_path: str) -> None:
        result = export_items(self.manager, file_path)
        if not result:
            click.echo(result.error or "Export failed.", err=True)
            click.echo("Export failed.")
            return
        click.echo(f"Items successfully exported to {result.path}")
        if result.skipped:
            click.echo(f"Skipped unreadable accounts: {', '.join(result.skipped)}")
        click.echo("Export successful.")

    def _import(self, file_path: str) -> None:
        result = import_items(self.manager, file_path)
        if not result:
            click.echo(f"Error importing items: {result.error}", err=True)
            click.echo("Import failed.")
            return
        for account in result.imported:
            click.echo(f"Imported {account}: Status {Status.SUCCESS.value}")
        for account, status in result.failed.items():
            click.echo(f"Imported {account}: Status {status}", err=True)
        if result.skipped:
            click.echo(f"Skipped {result.skipped} malformed entries.")
        click.echo("Import successful.")
