"""Single-endpoint operations: one command or one interactive shell.

Unlike fan-out, the first fatal error propagates to the caller.
"""

import logging

from fleetshell.errors import SessionError
from fleetshell.models import (
    Catalog,
    CommandOutcome,
    Connection,
    EndpointSpec,
    RelaySpec,
    UserEntry,
)
from fleetshell.protocols import EndpointDialer, Terminal
from fleetshell.services.keys import ensure_public_key
from fleetshell.services.relay import StreamRelay, share_proxy
from fleetshell.services.resolver import auth_hints, resolve
from fleetshell.services.session import TERM_TYPE, execute_command, run_interactive_session

logger = logging.getLogger(__name__)


def resolve_single(
    token: str,
    catalog: Catalog,
    effective_user: UserEntry | None = None,
    password: str | None = None,
    agent_path: str | None = None,
    allow_prompt: bool = True,
) -> EndpointSpec:
    """Resolve one token with the hints a single-endpoint run may use.

    Raises:
        InvalidFormat: If the token does not resolve
    """
    return resolve(
        token,
        effective_user,
        catalog,
        extra_hints=auth_hints(
            agent_path=agent_path, password=password, allow_prompt=allow_prompt
        ),
    )


async def _prepare(
    conn: Connection,
    install_keys: bool,
    proxy: tuple[str, int] | None,
    wake_interval: float,
) -> StreamRelay | None:
    """Best-effort steps that run before the main session."""
    if install_keys:
        await ensure_public_key(conn, conn.endpoint.key_paths)
    if proxy is None:
        return None
    address, remote_port = proxy
    relay = await share_proxy(conn, address, remote_port, wake_interval=wake_interval)
    if relay is not None:
        logger.info("Proxy %s available on remote 127.0.0.1:%d", address, remote_port)
    return relay


async def run_command(
    token: str,
    command: str,
    catalog: Catalog,
    dialer: EndpointDialer,
    effective_user: UserEntry | None = None,
    relay: RelaySpec | None = None,
    password: str | None = None,
    agent_path: str | None = None,
    allow_prompt: bool = True,
    install_keys: bool = True,
    proxy: tuple[str, int] | None = None,
    wake_interval: float = 1.0,
) -> CommandOutcome:
    """Run one command on one endpoint.

    Returns:
        CommandOutcome; a nonzero exit status is a normal outcome

    Raises:
        InvalidFormat: If the token does not resolve
        DialError: If the endpoint or relay cannot be reached
        SessionError: If the command died at the transport level
    """
    endpoint = resolve_single(
        token, catalog, effective_user, password, agent_path, allow_prompt
    )
    conn = await dialer.dial(endpoint, relay, allow_prompt=allow_prompt)

    async with conn:
        proxy_relay = await _prepare(conn, install_keys, proxy, wake_interval)
        try:
            outcome = await execute_command(conn, command)
        finally:
            if proxy_relay is not None:
                await proxy_relay.stop()

    if outcome.transport_failed:
        raise SessionError(endpoint.target, RuntimeError(outcome.error))
    return outcome


async def open_shell(
    token: str,
    catalog: Catalog,
    dialer: EndpointDialer,
    terminal: Terminal,
    effective_user: UserEntry | None = None,
    relay: RelaySpec | None = None,
    password: str | None = None,
    agent_path: str | None = None,
    install_keys: bool = True,
    proxy: tuple[str, int] | None = None,
    wake_interval: float = 1.0,
    term_type: str = TERM_TYPE,
) -> None:
    """Attach the local terminal to a remote shell on one endpoint.

    Raises:
        InvalidFormat: If the token does not resolve
        DialError: If the endpoint or relay cannot be reached
        SessionError: If the shell failed at the transport level
        RemoteExitError: If the shell exited with a nonzero status
    """
    endpoint = resolve_single(token, catalog, effective_user, password, agent_path)
    conn = await dialer.dial(endpoint, relay, allow_prompt=True)

    async with conn:
        proxy_relay = await _prepare(conn, install_keys, proxy, wake_interval)
        try:
            await run_interactive_session(conn, terminal, term_type)
        finally:
            if proxy_relay is not None:
                await proxy_relay.stop()
