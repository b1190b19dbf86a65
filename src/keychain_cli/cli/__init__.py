"""Command-line interface for keychain-cli."""

from .commands import cli, main
from .session import InteractiveSession, State

__all__ = ["InteractiveSession", "State", "cli", "main"]
