"""Local terminal primitives.

Raw mode, window size, resize notifications and secret input for the
interactive session and password prompts.
"""

import asyncio
import contextlib
import getpass
import logging
import os
import shutil
import signal
import sys
import termios
import tty
from collections.abc import Callable, Iterator

logger = logging.getLogger(__name__)

DEFAULT_SIZE = (80, 24)


def read_secret(prompt: str) -> str:
    """Read a line from the terminal without echo."""
    return getpass.getpass(prompt)


class LocalTerminal:
    """The invoking process's controlling terminal."""

    def __init__(self, stdin=None, stdout=None, stderr=None):
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr

    def size(self) -> tuple[int, int]:
        """Return ``(columns, rows)``, 80x24 if it cannot be determined."""
        try:
            size = os.get_terminal_size(self.stdout.fileno())
        except (OSError, ValueError, AttributeError):
            size = shutil.get_terminal_size(fallback=DEFAULT_SIZE)
        if size.columns <= 0 or size.lines <= 0:
            return DEFAULT_SIZE
        return (size.columns, size.lines)

    @contextlib.contextmanager
    def raw_mode(self) -> Iterator[None]:
        """Put stdin in raw mode, restoring the captured state on exit."""
        self.stdout.flush()
        self.stderr.flush()

        fd = None
        saved = None
        try:
            if self.stdin.isatty():
                fd = self.stdin.fileno()
                saved = termios.tcgetattr(fd)
                tty.setraw(fd, termios.TCSADRAIN)
        except (OSError, ValueError, termios.error) as e:
            logger.debug("Cannot enter raw mode: %s", e)

        try:
            yield
        finally:
            self.stdout.flush()
            self.stderr.flush()
            if saved is not None and fd is not None:
                termios.tcsetattr(fd, termios.TCSADRAIN, saved)

    def watch_resize(self, callback: Callable[[int, int], None]) -> Callable[[], None]:
        """Call ``callback(columns, rows)`` on every SIGWINCH.

        Returns:
            A function that removes the handler
        """
        loop = asyncio.get_running_loop()

        def on_resize() -> None:
            columns, rows = self.size()
            callback(columns, rows)

        try:
            loop.add_signal_handler(signal.SIGWINCH, on_resize)
        except (NotImplementedError, RuntimeError, AttributeError) as e:
            logger.debug("Resize notifications unavailable: %s", e)
            return lambda: None

        def remove() -> None:
            loop.remove_signal_handler(signal.SIGWINCH)

        return remove
