"""SSH connection model."""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from fleetshell.models.endpoint import EndpointSpec, RelaySpec

if TYPE_CHECKING:
    import asyncssh

logger = logging.getLogger(__name__)


@dataclass
class Connection:
    """Authenticated SSH connection, optionally chained through a relay.

    The relay connection is owned by this object: closing the endpoint
    connection closes the relay too.
    """

    client: "asyncssh.SSHClientConnection"
    endpoint: EndpointSpec
    relay_client: "asyncssh.SSHClientConnection | None" = None
    relay: RelaySpec | None = None

    @property
    def is_closed(self) -> bool:
        """Check if the endpoint connection was closed."""
        return bool(self.client.is_closed())

    def close(self) -> None:
        """Close the endpoint connection and the relay behind it."""
        logger.debug("Closing connection to %s", self.endpoint.target)
        self.client.close()
        if self.relay_client is not None:
            self.relay_client.close()

    async def wait_closed(self) -> None:
        """Wait until both connections are fully closed."""
        await self.client.wait_closed()
        if self.relay_client is not None:
            await self.relay_client.wait_closed()

    async def __aenter__(self) -> "Connection":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()
        await self.wait_closed()
