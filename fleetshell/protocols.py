"""Protocol interfaces for dependency inversion.

Defines the seams between the core and its collaborators so the
session engine and fan-out executor can be driven by fakes in tests.

Usage Example:

    from fleetshell.protocols import EndpointDialer

    async def my_function(dialer: EndpointDialer):
        '''Function depends on protocol, not concrete implementation.'''
        conn = await dialer.dial(endpoint)

    # Can pass any implementation
    from fleetshell.services.dialer import Dialer
    await my_function(Dialer())

    # Or a fake for testing
    class FakeDialer:
        async def dial(self, endpoint, relay=None, allow_prompt=True):
            return fake_connection

    await my_function(FakeDialer())
"""

from collections.abc import Callable
from contextlib import AbstractContextManager
from typing import Any, Protocol, runtime_checkable

from fleetshell.models import Connection, EndpointSpec, RelaySpec


@runtime_checkable
class EndpointDialer(Protocol):
    """Protocol for producing authenticated connections."""

    async def dial(
        self,
        endpoint: EndpointSpec,
        relay: RelaySpec | None = None,
        allow_prompt: bool = True,
    ) -> Connection:
        """Open a connection to endpoint, through relay if given.

        Args:
            endpoint: Final destination
            relay: Optional jump host
            allow_prompt: Whether terminal password prompts are permitted

        Returns:
            Authenticated connection

        Raises:
            DialError: If unable to connect
        """
        ...


@runtime_checkable
class Terminal(Protocol):
    """Protocol for the local terminal used by interactive sessions.

    Implementations expose the three standard streams plus raw-mode,
    size and resize primitives.
    """

    stdin: Any
    stdout: Any
    stderr: Any

    def size(self) -> tuple[int, int]:
        """Return ``(columns, rows)``."""
        ...

    def raw_mode(self) -> AbstractContextManager[None]:
        """Context manager that restores the previous mode on exit."""
        ...

    def watch_resize(self, callback: Callable[[int, int], None]) -> Callable[[], None]:
        """Register a resize callback and return its remover."""
        ...
