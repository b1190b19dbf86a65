"""Clipboard bridge backed by an external clipboard utility."""

import os
import platform
import shlex
import shutil
import subprocess
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import structlog

logger = structlog.get_logger(__name__)


class Clipboard(ABC):
    """Destination for copied secrets."""

    @abstractmethod
    def copy(self, data: bytes) -> None:
        """Place raw bytes on the clipboard."""


class NullClipboard(Clipboard):
    """Clipboard that discards everything."""

    def copy(self, data: bytes) -> None:
        logger.warning("clipboard_unavailable")


class CommandClipboard(Clipboard):
    """Clipboard that pipes data into a utility such as ``pbcopy``.

    The call blocks until the utility exits. Failures are logged but never
    raised to the caller.
    """

    def __init__(self, command: Sequence[str]):
        self.command = list(command)

    def copy(self, data: bytes) -> None:
        try:
            process = subprocess.Popen(self.command, stdin=subprocess.PIPE)
        except OSError as e:
            logger.warning("clipboard_launch_failed", command=self.command[0], error=str(e))
            return

        try:
            process.stdin.write(data)
            process.stdin.close()
        except BrokenPipeError:
            logger.debug("clipboard_pipe_closed", command=self.command[0])
        returncode = process.wait()
        if returncode != 0:
            logger.warning(
                "clipboard_command_failed",
                command=self.command[0],
                returncode=returncode,
            )


def default_clipboard_command() -> Optional[List[str]]:
    """Pick the clipboard utility for the current platform."""
    system = platform.system().lower()
    if system == "darwin":
        return ["pbcopy"]
    elif system == "windows":
        return ["clip"]

    if os.environ.get("WAYLAND_DISPLAY") and shutil.which("wl-copy"):
        return ["wl-copy"]
    if shutil.which("xclip"):
        return ["xclip", "-selection", "clipboard"]
    if shutil.which("xsel"):
        return ["xsel", "--clipboard", "--input"]
    return None


def get_clipboard(command: Optional[str] = None) -> Clipboard:
    """Build the clipboard for a command line, or the platform default."""
    args = shlex.split(command) if command else default_clipboard_command()
    if not args:
        return NullClipboard()
    return CommandClipboard(args)


def copy_to_clipboard(text: str, clipboard: Optional[Clipboard] = None) -> None:
    """Copy text to the clipboard as UTF-8."""
    (clipboard or get_clipboard()).copy(text.encode("utf-8"))
