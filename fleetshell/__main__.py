"""Entry point for the fleetshell command line.

Modes:
- one host, no command: interactive shell
- one host with -c: single command
- several hosts or any @tag with -c: concurrent fan-out
- ``forward``: local port forward until Ctrl+C
- ``list``: show catalog hosts and jump hosts
"""

import argparse
import asyncio
import logging
import signal
import sys

from fleetshell.config import Config, Settings
from fleetshell.errors import (
    AuthExhausted,
    FleetShellError,
    NoValidEndpoints,
    RemoteExitError,
    auth_guidance,
)
from fleetshell.models import Catalog, RelaySession, RelaySpec, UserEntry
from fleetshell.services import (
    Dialer,
    auth_hints,
    open_shell,
    parse_forward,
    prompt_shared_password,
    resolve_single,
    run_command,
    run_many,
    start_relay,
)
from fleetshell.services.resolver import is_group_token
from fleetshell.ui import describe, relay_status, relay_summary, render_catalog, render_results
from fleetshell.utils import LocalTerminal, configure_logging, read_secret

logger = logging.getLogger(__name__)

# Seconds between relay status line refreshes
STATUS_INTERVAL = 1.0


def _add_identity_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-u", "--user", help="catalog user to connect as")
    parser.add_argument("-j", "--jump", help="jump host name or 1-based index")
    parser.add_argument(
        "-a",
        "--ask-password",
        action="store_true",
        help="prompt for a password once before connecting",
    )


def build_parser() -> argparse.ArgumentParser:
    """Parser for the default connect/command mode."""
    parser = argparse.ArgumentParser(
        prog="fleetshell",
        description="SSH to one host, or run a command on many hosts at once.",
        epilog="Subcommands: 'fleetshell forward ...', 'fleetshell list'",
    )
    _add_identity_args(parser)
    parser.add_argument("-c", "--command", help="command to run instead of a shell")
    parser.add_argument(
        "-p",
        "--proxy",
        action="store_true",
        help="share the configured local proxy with the remote host",
    )
    parser.add_argument(
        "hosts",
        nargs="+",
        metavar="HOST",
        help="catalog name, [user@]host[:port] or @tag",
    )
    return parser


def build_forward_parser() -> argparse.ArgumentParser:
    """Parser for ``fleetshell forward``."""
    parser = argparse.ArgumentParser(
        prog="fleetshell forward",
        description="Forward a local port to a target reachable from the host.",
    )
    _add_identity_args(parser)
    parser.add_argument("host", metavar="HOST")
    parser.add_argument("forward", metavar="LOCAL_PORT:TARGET_HOST:TARGET_PORT")
    return parser


def select_user(catalog: Catalog, name: str | None) -> UserEntry | None:
    """Effective user: the named one, else the catalog default.

    A name missing from the catalog still selects that login, without keys.
    """
    if name is None:
        return catalog.effective_user()
    user = catalog.find_user(name)
    if user is None:
        logger.warning("User %s not in catalog, no key files offered", name)
        user = UserEntry(name=name)
    return catalog.effective_user(user)


def select_relay(
    catalog: Catalog,
    selector: str | None,
    agent_path: str | None,
    allow_prompt: bool,
) -> RelaySpec | None:
    """Resolve ``-j`` into a RelaySpec carrying agent/prompt hints."""
    if selector is None:
        return None
    relay = catalog.relay_spec(selector)
    if relay is None:
        raise FleetShellError(f"Unknown jump host '{selector}'")
    return relay.with_hints(*auth_hints(agent_path=agent_path, allow_prompt=allow_prompt))


def build_dialer(config: Config) -> Dialer:
    return Dialer(
        known_hosts=config.known_hosts_path,
        strict_host_key_checking=config.strict_host_key_checking,
        connect_timeout=config.connect_timeout,
        prompter=read_secret,
    )


def _error(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)


def run_default(config: Config, args: argparse.Namespace) -> int:
    """Shell, single command or fan-out depending on the arguments."""
    catalog = config.catalog
    settings = config.settings
    user = select_user(catalog, args.user)
    dialer = build_dialer(config)

    fan_out = len(args.hosts) > 1 or any(is_group_token(token) for token in args.hosts)
    if fan_out and not args.command:
        _error("several hosts or a @tag need a command (-c)")
        return 1

    if fan_out:
        password = prompt_shared_password(user, read_secret) if args.ask_password else None
        relay = select_relay(catalog, args.jump, settings.agent_path, allow_prompt=False)
        try:
            report = asyncio.run(
                run_many(
                    args.hosts,
                    args.command,
                    catalog,
                    dialer,
                    effective_user=user,
                    relay=relay,
                    password=password,
                    agent_path=settings.agent_path,
                    install_keys=settings.install_keys,
                )
            )
        except NoValidEndpoints as e:
            _error(str(e))
            return 1
        print(render_results(report))
        return 1 if report.failure_count else 0

    token = args.hosts[0]
    password = None
    if args.ask_password:
        password = read_secret(f"Password for {user.name if user else 'current user'}: ") or None

    proxy = None
    if args.proxy:
        proxy = catalog.proxy()
        if proxy is None:
            logger.warning("No proxy configured in the catalog, continuing without it")

    relay = select_relay(catalog, args.jump, settings.agent_path, allow_prompt=True)
    endpoint = resolve_single(token, catalog, user, password, settings.agent_path)
    print(f"Connecting to {describe(endpoint, relay, proxy)}", file=sys.stderr)

    try:
        if args.command:
            outcome = asyncio.run(
                run_command(
                    token,
                    args.command,
                    catalog,
                    dialer,
                    effective_user=user,
                    relay=relay,
                    password=password,
                    agent_path=settings.agent_path,
                    install_keys=settings.install_keys,
                    proxy=proxy,
                    wake_interval=settings.relay_wake_interval,
                )
            )
            sys.stdout.write(outcome.output)
            sys.stdout.flush()
            return 0 if outcome.exit_status == 0 else 1

        asyncio.run(
            open_shell(
                token,
                catalog,
                dialer,
                LocalTerminal(),
                effective_user=user,
                relay=relay,
                password=password,
                agent_path=settings.agent_path,
                install_keys=settings.install_keys,
                proxy=proxy,
                wake_interval=settings.relay_wake_interval,
            )
        )
    except RemoteExitError as e:
        logger.debug("Shell exited with status %d", e.exit_status)
        return 1
    except AuthExhausted as e:
        guidance = auth_guidance(has_password=bool(password), has_keys=bool(endpoint.key_paths))
        _error(f"{e}{guidance}")
        return 1
    return 0


async def forward_until_stopped(
    config: Config,
    args: argparse.Namespace,
    user: UserEntry | None,
    relay: RelaySpec | None,
    password: str | None,
) -> RelaySession:
    """Dial, start a local relay and serve until SIGINT/SIGTERM."""
    settings = config.settings
    forward = parse_forward(args.forward, bind_host=settings.forward_bind_host)
    endpoint = resolve_single(args.host, config.catalog, user, password, settings.agent_path)
    print(f"Connecting to {describe(endpoint, relay)}", file=sys.stderr)

    conn = await build_dialer(config).dial(endpoint, relay)
    try:
        stream_relay = await start_relay(conn, forward, wake_interval=settings.relay_wake_interval)
    except Exception:
        conn.close()
        raise
    session = stream_relay.session
    print(
        f"Forwarding {forward.listen_address} -> {forward.target_address}, Ctrl+C to stop",
        file=sys.stderr,
    )

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, session.cancel)

    show_status = sys.stderr.isatty()
    try:
        while not session.is_cancelled:
            if show_status:
                sys.stderr.write(f"\r\033[K{relay_status(session)}")
                sys.stderr.flush()
            try:
                await asyncio.wait_for(session.cancelled.wait(), STATUS_INTERVAL)
            except asyncio.TimeoutError:
                pass
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        if show_status:
            sys.stderr.write("\n")
        await stream_relay.stop()

    return session


def run_forward(config: Config, argv: list[str]) -> int:
    args = build_forward_parser().parse_args(argv)
    try:
        parse_forward(args.forward)
    except ValueError as e:
        _error(str(e))
        return 1

    user = select_user(config.catalog, args.user)
    password = None
    if args.ask_password:
        password = read_secret(f"Password for {user.name if user else 'current user'}: ") or None
    relay = select_relay(config.catalog, args.jump, config.settings.agent_path, allow_prompt=True)

    session = asyncio.run(forward_until_stopped(config, args, user, relay, password))
    print(relay_summary(session), file=sys.stderr)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the command line and return the process exit code."""
    argv = list(sys.argv[1:] if argv is None else argv)

    settings = Settings.from_env()
    configure_logging(settings.log_level, settings.log_colors)

    try:
        config = Config.from_env(settings)
    except (FleetShellError, FileNotFoundError) as e:
        _error(str(e))
        return 1

    try:
        if argv and argv[0] == "list":
            print(render_catalog(config.catalog))
            return 0
        if argv and argv[0] == "forward":
            return run_forward(config, argv[1:])
        return run_default(config, build_parser().parse_args(argv))
    except (FleetShellError, OSError) as e:
        _error(str(e))
        return 1
    except KeyboardInterrupt:
        print(file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
