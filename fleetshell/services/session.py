"""Session engine: one-shot commands and interactive shells on a connection."""

import logging

import asyncssh

from fleetshell.errors import RemoteExitError, SessionError
from fleetshell.models import CommandOutcome, Connection
from fleetshell.protocols import Terminal

logger = logging.getLogger(__name__)

TERM_TYPE = "xterm-256color"

NO_EXIT_STATUS = "channel closed without an exit status"


def _text(value: str | bytes | None) -> str:
    """Normalize captured stream content to text."""
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


async def execute_command(conn: Connection, command: str) -> CommandOutcome:
    """Run a command and capture its combined output.

    Stdout comes first, followed by any stderr content. Output is read as
    raw bytes and decoded leniently so non-UTF-8 data is kept. A nonzero
    remote exit is a normal outcome; only transport failures set ``error``,
    including a channel that closed without reporting an exit status.

    Args:
        conn: Open connection
        command: Shell command line to run remotely

    Returns:
        CommandOutcome with combined output and exit status (-1 on
        transport failure)
    """
    logger.debug("Running on %s: %s", conn.endpoint.target, command)
    try:
        result = await conn.client.run(command, check=False, encoding=None)
    except (asyncssh.Error, OSError) as e:
        logger.warning("Command on %s failed: %s", conn.endpoint.target, e)
        return CommandOutcome(output="", exit_status=-1, error=str(e))

    output = _text(result.stdout) + _text(result.stderr)

    # returncode is -signal when the remote process was killed
    returncode = result.returncode
    if returncode is None:
        logger.warning("Command on %s ended without an exit status", conn.endpoint.target)
        return CommandOutcome(output=output, exit_status=-1, error=NO_EXIT_STATUS)

    logger.debug("Command on %s exited with %d", conn.endpoint.target, returncode)
    return CommandOutcome(output=output, exit_status=returncode)


async def run_interactive_session(
    conn: Connection,
    terminal: Terminal,
    term_type: str = TERM_TYPE,
) -> None:
    """Attach the local terminal to a remote shell until it exits.

    The terminal is put in raw mode for the duration and restored on
    every exit path. Local resizes are forwarded to the remote PTY.

    Args:
        conn: Open connection
        terminal: Local terminal collaborator
        term_type: TERM value requested for the remote PTY

    Raises:
        RemoteExitError: If the shell exits with a nonzero status
        SessionError: If the session fails at the transport level
    """
    with terminal.raw_mode():
        columns, rows = terminal.size()
        logger.debug(
            "Requesting %s PTY %dx%d on %s", term_type, columns, rows, conn.endpoint.target
        )
        try:
            process = await conn.client.create_process(
                term_type=term_type,
                term_size=(columns, rows),
                stdin=terminal.stdin,
                stdout=terminal.stdout,
                stderr=terminal.stderr,
                encoding=None,
            )
        except (asyncssh.Error, OSError) as e:
            raise SessionError(conn.endpoint.target, e) from e

        def resize(new_columns: int, new_rows: int) -> None:
            process.change_terminal_size(new_columns, new_rows)

        stop_watching = terminal.watch_resize(resize)
        try:
            completed = await process.wait()
        except (asyncssh.Error, OSError) as e:
            raise SessionError(conn.endpoint.target, e) from e
        finally:
            stop_watching()
            process.close()

    status = completed.returncode
    if status is None:
        raise SessionError(conn.endpoint.target, RuntimeError(NO_EXIT_STATUS))
    if status:
        raise RemoteExitError(status)
    logger.debug("Shell on %s exited cleanly", conn.endpoint.target)
