"""Concurrent command execution across many hosts.

One asyncio task per expanded host token. Each task resolves, dials,
runs and closes on its own; any failure ends up in that host's
ExecutionResult instead of propagating to its siblings.
"""

import asyncio
import logging
import time
from collections.abc import Callable, Sequence

from fleetshell.errors import (
    AuthExhausted,
    DialError,
    InvalidFormat,
    NoValidEndpoints,
    auth_guidance,
)
from fleetshell.models import Catalog, ExecutionResult, FanOutReport, RelaySpec, UserEntry
from fleetshell.protocols import EndpointDialer
from fleetshell.services.keys import ensure_public_key
from fleetshell.services.resolver import auth_hints, expand_groups, resolve
from fleetshell.services.session import execute_command

logger = logging.getLogger(__name__)


def prompt_shared_password(
    user: UserEntry | None,
    prompter: Callable[[str], str],
) -> str | None:
    """Ask once for a password used by every fan-out worker.

    Must run before any worker starts; workers never prompt.

    Returns:
        The password, or None when the user just pressed Enter
    """
    name = user.name if user else "current user"
    if user is None or not user.ssh_keys:
        prompt = f"Password for {name} (used for all hosts): "
    else:
        prompt = f"Password for {name} (fallback if the SSH key fails, Enter to skip): "
    return prompter(prompt) or None


async def run_on_host(
    token: str,
    command: str,
    catalog: Catalog,
    dialer: EndpointDialer,
    effective_user: UserEntry | None = None,
    relay: RelaySpec | None = None,
    password: str | None = None,
    agent_path: str | None = None,
    install_keys: bool = True,
) -> ExecutionResult:
    """Resolve, dial and run a command on a single host.

    Never raises for per-host problems; they are reported in the result.
    """
    started = time.monotonic()

    def failed(detail: str, output: str = "", exit_status: int = -1) -> ExecutionResult:
        return ExecutionResult(
            endpoint_token=token,
            succeeded=False,
            combined_output=output,
            exit_status=exit_status,
            error_detail=detail,
            elapsed=time.monotonic() - started,
        )

    try:
        endpoint = resolve(
            token,
            effective_user,
            catalog,
            extra_hints=auth_hints(agent_path=agent_path, password=password),
        )
    except InvalidFormat as e:
        logger.warning("Skipping %s: %s", token, e)
        return failed(str(e))

    try:
        conn = await dialer.dial(endpoint, relay, allow_prompt=False)
    except AuthExhausted as e:
        guidance = auth_guidance(has_password=bool(password), has_keys=bool(endpoint.key_paths))
        logger.warning("Authentication failed for %s: %s", token, e)
        return failed(f"{e}{guidance}")
    except DialError as e:
        logger.warning("Cannot connect to %s: %s", token, e)
        return failed(str(e))
    except Exception as e:
        logger.error("Unexpected error dialing %s: %s", token, e)
        return failed(str(e))

    try:
        if install_keys:
            await ensure_public_key(conn, endpoint.key_paths)
        outcome = await execute_command(conn, command)
    except Exception as e:
        logger.error("Unexpected error on %s: %s", token, e)
        return failed(str(e))
    finally:
        conn.close()

    if outcome.transport_failed:
        return failed(outcome.error or "session failed", outcome.output, outcome.exit_status)

    return ExecutionResult(
        endpoint_token=token,
        succeeded=True,
        combined_output=outcome.output,
        exit_status=outcome.exit_status,
        elapsed=time.monotonic() - started,
    )


async def run_many(
    tokens: Sequence[str],
    command: str,
    catalog: Catalog,
    dialer: EndpointDialer,
    effective_user: UserEntry | None = None,
    relay: RelaySpec | None = None,
    password: str | None = None,
    agent_path: str | None = None,
    install_keys: bool = True,
) -> FanOutReport:
    """Execute command on many hosts concurrently.

    Args:
        tokens: Host tokens, ``@tag`` groups allowed
        command: Shell command to execute
        catalog: Read-only catalog snapshot
        dialer: Connection factory
        effective_user: Identity selected for this invocation
        relay: Optional jump host, dialed separately by every worker
        password: Password collected once before dispatch
        agent_path: SSH agent socket offered to every host
        install_keys: Whether to install the user's public key best-effort

    Returns:
        FanOutReport with one result per expanded host and total elapsed time

    Raises:
        NoValidEndpoints: If expansion leaves nothing to run on
    """
    expansion = expand_groups(tokens, catalog)
    if not expansion.tokens:
        raise NoValidEndpoints(list(tokens))

    logger.info(
        "Running on %d host(s)%s: %s",
        len(expansion.tokens),
        f" via {relay.label}" if relay else "",
        command,
    )

    started = time.monotonic()
    tasks = [
        run_on_host(
            token,
            command,
            catalog,
            dialer,
            effective_user=effective_user,
            relay=relay,
            password=password,
            agent_path=agent_path,
            install_keys=install_keys,
        )
        for token in expansion.tokens
    ]
    results = await asyncio.gather(*tasks)
    elapsed = time.monotonic() - started

    report = FanOutReport(
        results=list(results),
        elapsed=elapsed,
        groups_seen=expansion.groups_seen,
    )
    logger.info(
        "Fan-out completed: %d succeeded, %d failed in %.2fs",
        report.success_count,
        report.failure_count,
        elapsed,
    )
    return report
