"""Stream relay data models."""

import asyncio
from dataclasses import dataclass, field
from typing import Literal

ForwardMode = Literal["local", "remote"]


@dataclass(frozen=True)
class ForwardSpec:
    """Where a relay listens and where it sends accepted connections.

    ``local`` mode listens on this machine and dials the target through
    the SSH connection. ``remote`` mode asks the peer to listen and dials
    the target from this machine.
    """

    mode: ForwardMode
    listen_host: str
    listen_port: int
    target_host: str
    target_port: int

    @property
    def listen_address(self) -> str:
        """Return ``host:port`` of the listening side."""
        return f"{self.listen_host}:{self.listen_port}"

    @property
    def target_address(self) -> str:
        """Return ``host:port`` of the target side."""
        return f"{self.target_host}:{self.target_port}"


@dataclass(frozen=True)
class RelayStats:
    """Point-in-time copy of relay counters."""

    active_connections: int
    total_connections: int
    bytes_up: int
    bytes_down: int


@dataclass
class RelaySession:
    """Counters and cancellation signal shared by one relay's workers.

    Counters are only touched from the event loop thread, so each update
    is a single uninterrupted integer operation.
    """

    forward: ForwardSpec
    active_connections: int = 0
    total_connections: int = 0
    bytes_up: int = 0
    bytes_down: int = 0
    cancelled: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    def connection_opened(self) -> int:
        """Record an accepted connection and return its sequence number."""
        self.total_connections += 1
        self.active_connections += 1
        return self.total_connections

    def connection_closed(self) -> None:
        """Record a finished relay worker."""
        self.active_connections -= 1

    def add_up(self, count: int) -> None:
        """Add bytes copied from the listening side to the target."""
        self.bytes_up += count

    def add_down(self, count: int) -> None:
        """Add bytes copied from the target back to the listening side."""
        self.bytes_down += count

    def cancel(self) -> None:
        """Signal the accept loop and workers to stop."""
        self.cancelled.set()

    @property
    def is_cancelled(self) -> bool:
        """Whether stop has been requested."""
        return self.cancelled.is_set()

    def snapshot(self) -> RelayStats:
        """Copy the counters for display."""
        return RelayStats(
            active_connections=self.active_connections,
            total_connections=self.total_connections,
            bytes_up=self.bytes_up,
            bytes_down=self.bytes_down,
        )
