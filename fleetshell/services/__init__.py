"""Services for fleetshell."""

from fleetshell.services.dialer import AuthPlan, Dialer
from fleetshell.services.direct import open_shell, resolve_single, run_command
from fleetshell.services.fanout import prompt_shared_password, run_many, run_on_host
from fleetshell.services.keys import ensure_public_key, install_public_key, read_public_key
from fleetshell.services.relay import (
    StreamRelay,
    bridge,
    parse_forward,
    share_proxy,
    start_relay,
)
from fleetshell.services.resolver import (
    GroupExpansion,
    auth_hints,
    expand_groups,
    parse_token,
    resolve,
)
from fleetshell.services.session import execute_command, run_interactive_session

__all__ = [
    "AuthPlan",
    "Dialer",
    "GroupExpansion",
    "StreamRelay",
    "auth_hints",
    "bridge",
    "ensure_public_key",
    "execute_command",
    "expand_groups",
    "install_public_key",
    "open_shell",
    "parse_forward",
    "parse_token",
    "prompt_shared_password",
    "read_public_key",
    "resolve",
    "resolve_single",
    "run_command",
    "run_interactive_session",
    "run_many",
    "run_on_host",
    "share_proxy",
    "start_relay",
]
