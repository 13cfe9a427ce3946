"""Bidirectional stream relay over an SSH connection.

Modes:
- local: listen on this machine, reach the target through the SSH connection
- remote: ask the peer to listen, reach the target from this machine

Every accepted connection gets one worker that pumps bytes both ways.
When either direction finishes, both ends of that pair are closed so
the other direction unblocks; the worker then exits.

Cancellation:
- A supervisor wakes every ``wake_interval`` seconds to observe the
  cancellation signal and notice a dead listener or SSH connection
"""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import asyncssh

from fleetshell.models import Connection, ForwardSpec, RelaySession

logger = logging.getLogger(__name__)

BUFFER_SIZE = 32 * 1024

# Seconds to wait for the second direction after both ends were closed
DRAIN_TIMEOUT = 5.0

StreamPair = tuple[Any, Any]


async def pump(reader: Any, writer: Any, count: Callable[[int], None]) -> int:
    """Copy bytes from reader to writer until EOF or error.

    The copied total is reported through ``count`` when the direction ends,
    however it ends.

    Returns:
        Number of bytes copied
    """
    total = 0
    try:
        while True:
            data = await reader.read(BUFFER_SIZE)
            if not data:
                break
            writer.write(data)
            await writer.drain()
            total += len(data)
    except (OSError, asyncssh.Error, asyncio.IncompleteReadError) as e:
        logger.debug("Relay direction ended: %s", e)
    finally:
        count(total)
    return total


def close_writer(writer: Any) -> None:
    """Close one side of a relayed pair."""
    with contextlib.suppress(OSError, RuntimeError, asyncssh.Error):
        writer.close()


async def bridge(
    session: RelaySession,
    listen_side: StreamPair,
    target_side: StreamPair,
) -> tuple[int, int]:
    """Relay between two stream pairs until one direction finishes.

    Args:
        session: Shared counters for this relay
        listen_side: ``(reader, writer)`` of the accepted connection
        target_side: ``(reader, writer)`` of the dialed target

    Returns:
        Tuple of (bytes up, bytes down)
    """
    listen_reader, listen_writer = listen_side
    target_reader, target_writer = target_side

    up = asyncio.create_task(pump(listen_reader, target_writer, session.add_up))
    down = asyncio.create_task(pump(target_reader, listen_writer, session.add_down))

    _, pending = await asyncio.wait({up, down}, return_when=asyncio.FIRST_COMPLETED)

    # Closing both ends is what unblocks the direction still reading
    close_writer(listen_writer)
    close_writer(target_writer)

    if pending:
        _, stuck = await asyncio.wait(pending, timeout=DRAIN_TIMEOUT)
        for task in stuck:
            task.cancel()
        if stuck:
            await asyncio.wait(stuck)

    return (
        up.result() if not up.cancelled() else 0,
        down.result() if not down.cancelled() else 0,
    )


class StreamRelay:
    """One listening socket relaying accepted connections to a target."""

    def __init__(
        self,
        conn: Connection,
        forward: ForwardSpec,
        wake_interval: float = 1.0,
    ) -> None:
        """Initialize relay.

        Args:
            conn: Established SSH connection carrying the relayed traffic
            forward: Listening and target addresses plus mode
            wake_interval: Seconds between supervisor wake-ups
        """
        if forward.mode not in ("local", "remote"):
            raise ValueError(f"mode must be 'local' or 'remote', got '{forward.mode}'")

        self.conn = conn
        self.forward = forward
        self.wake_interval = wake_interval
        self.session = RelaySession(forward=forward)
        self._listener: Any = None
        self._supervisor: asyncio.Task[None] | None = None

    @property
    def bound_port(self) -> int:
        """Port the listener actually bound (useful when asked for port 0)."""
        if self._listener is None:
            return 0
        if self.forward.mode == "local":
            return int(self._listener.sockets[0].getsockname()[1])
        return int(self._listener.get_port())

    async def start(self) -> RelaySession:
        """Open the listener and start accepting.

        Returns:
            RelaySession with live counters

        Raises:
            OSError: If the local port cannot be bound
            asyncssh.Error: If the peer refuses to listen
        """
        forward = self.forward
        if forward.mode == "local":
            self._listener = await asyncio.start_server(
                self._accept_local, forward.listen_host, forward.listen_port
            )
        else:
            self._listener = await self.conn.client.start_server(
                self._remote_handler, forward.listen_host, forward.listen_port
            )

        logger.info(
            "Relay active (%s): %s:%d -> %s via %s",
            forward.mode,
            forward.listen_host,
            self.bound_port,
            forward.target_address,
            self.conn.endpoint.target,
        )
        self._supervisor = asyncio.create_task(self._supervise())
        return self.session

    async def _supervise(self) -> None:
        """Wake periodically until cancelled or the listener dies."""
        while not self.session.is_cancelled:
            try:
                await asyncio.wait_for(self.session.cancelled.wait(), self.wake_interval)
            except asyncio.TimeoutError:
                pass

            if self.session.is_cancelled:
                break
            if self.conn.is_closed:
                logger.error(
                    "SSH connection to %s closed, stopping relay", self.conn.endpoint.target
                )
                self.session.cancel()
            elif self.forward.mode == "local" and not self._listener.is_serving():
                logger.error("Listener on %s stopped, stopping relay", self.forward.listen_address)
                self.session.cancel()

        self._close_listener()

    def _close_listener(self) -> None:
        if self._listener is not None:
            self._listener.close()
            self._listener = None

    async def _accept_local(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        """Worker for a connection accepted on the local listener."""

        async def dial_target() -> StreamPair:
            return await self.conn.client.open_connection(
                self.forward.target_host, self.forward.target_port
            )

        peer = writer.get_extra_info("peername")
        await self._relay(reader, writer, dial_target, peer)

    def _remote_handler(self, orig_host: str, orig_port: int) -> Callable[..., Awaitable[None]]:
        """Handler factory for connections accepted by the peer."""

        async def handle(reader: asyncssh.SSHReader, writer: asyncssh.SSHWriter) -> None:
            async def dial_target() -> StreamPair:
                return await asyncio.open_connection(
                    self.forward.target_host, self.forward.target_port
                )

            await self._relay(reader, writer, dial_target, (orig_host, orig_port))

        return handle

    async def _relay(
        self,
        reader: Any,
        writer: Any,
        dial_target: Callable[[], Awaitable[StreamPair]],
        peer: Any,
    ) -> None:
        """Dial the opposite side and bridge until either side finishes."""
        if self.session.is_cancelled:
            close_writer(writer)
            return

        number = self.session.connection_opened()
        logger.info("#%d connection from %s", number, _format_peer(peer))
        try:
            try:
                target = await dial_target()
            except (OSError, asyncssh.Error) as e:
                logger.warning(
                    "#%d cannot reach %s: %s", number, self.forward.target_address, e
                )
                close_writer(writer)
                return

            sent, received = await bridge(self.session, (reader, writer), target)
            logger.info("#%d closed (up=%s down=%s)", number, sent, received)
        finally:
            self.session.connection_closed()

    async def wait(self) -> None:
        """Block until the relay is cancelled or its listener dies."""
        if self._supervisor is not None:
            await self._supervisor

    async def stop(self) -> RelaySession:
        """Close the listener and the SSH connection.

        In-flight relayed connections are not closed here; they drain as
        their peers close.

        Returns:
            RelaySession with final counters
        """
        self.session.cancel()
        if self._supervisor is not None:
            await self._supervisor
        self._close_listener()
        self.conn.close()

        stats = self.session.snapshot()
        logger.info(
            "Relay stopped: total=%d up=%d down=%d",
            stats.total_connections,
            stats.bytes_up,
            stats.bytes_down,
        )
        return self.session


async def start_relay(
    conn: Connection,
    forward: ForwardSpec,
    wake_interval: float = 1.0,
) -> StreamRelay:
    """Create and start a StreamRelay."""
    relay = StreamRelay(conn, forward, wake_interval=wake_interval)
    await relay.start()
    return relay


def parse_forward(value: str, bind_host: str = "0.0.0.0") -> ForwardSpec:
    """Parse ``LOCAL_PORT:TARGET_HOST:TARGET_PORT`` into a local ForwardSpec.

    Raises:
        ValueError: If the value is malformed or a port is out of range
    """
    parts = value.split(":")
    if len(parts) != 3 or not parts[1]:
        raise ValueError(f"Invalid forward '{value}'. Expected LOCAL_PORT:HOST:PORT")

    try:
        local_port = int(parts[0])
        target_port = int(parts[2])
    except ValueError as e:
        raise ValueError(f"Invalid forward '{value}': ports must be numeric") from e

    for port in (local_port, target_port):
        if not 1 <= port <= 65535:
            raise ValueError(f"Invalid forward '{value}': port {port} out of range")

    return ForwardSpec(
        mode="local",
        listen_host=bind_host,
        listen_port=local_port,
        target_host=parts[1],
        target_port=target_port,
    )


async def share_proxy(
    conn: Connection,
    proxy_address: str,
    proxy_port: int,
    wake_interval: float = 1.0,
) -> StreamRelay | None:
    """Expose a local HTTP proxy on the peer's ``127.0.0.1:proxy_port``.

    Failure is logged and returns None; the caller's session goes on.
    """
    host, _, port = proxy_address.rpartition(":")
    if not host or not port.isdigit():
        logger.warning("Invalid proxy address '%s', expected host:port", proxy_address)
        return None

    forward = ForwardSpec(
        mode="remote",
        listen_host="127.0.0.1",
        listen_port=proxy_port,
        target_host=host,
        target_port=int(port),
    )
    try:
        return await start_relay(conn, forward, wake_interval=wake_interval)
    except (OSError, asyncssh.Error) as e:
        logger.warning("Could not set up proxy forwarding: %s", e)
        return None


def _format_peer(peer: Any) -> str:
    if isinstance(peer, tuple) and len(peer) >= 2:
        return f"{peer[0]}:{peer[1]}"
    return str(peer)
