"""Utilities for fleetshell."""

from fleetshell.utils.console import ColorfulFormatter, configure_logging
from fleetshell.utils.shell import authorized_key_check, authorized_key_install, quote_arg
from fleetshell.utils.terminal import LocalTerminal, read_secret

__all__ = [
    "authorized_key_check",
    "authorized_key_install",
    "ColorfulFormatter",
    "configure_logging",
    "LocalTerminal",
    "quote_arg",
    "read_secret",
]
