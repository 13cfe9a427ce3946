"""Shell command safety utilities."""

import shlex


def quote_arg(arg: str) -> str:
    """Safely quote a shell argument.

    Args:
        arg: Argument to quote

    Returns:
        Shell-safe quoted argument
    """
    return shlex.quote(arg)


def authorized_key_check(public_key: str) -> str:
    """Command that exits 0 only if the key line is already authorized.

    Uses ``grep -Fxq`` for a fixed-string, whole-line, quiet match.
    """
    return f"grep -Fxq {quote_arg(public_key)} ~/.ssh/authorized_keys 2>/dev/null"


def authorized_key_install(public_key: str) -> str:
    """Command that appends a key line to authorized_keys with safe modes."""
    return (
        "mkdir -p ~/.ssh && chmod 700 ~/.ssh && "
        f"echo {quote_arg(public_key)} >> ~/.ssh/authorized_keys && "
        "chmod 600 ~/.ssh/authorized_keys"
    )
