"""Error taxonomy for fleetshell.

Every error keeps the inputs that produced it as attributes so callers
can render targeted messages without parsing strings.
"""


class FleetShellError(Exception):
    """Base class for all fleetshell errors."""


class CatalogError(FleetShellError):
    """Catalog document could not be loaded."""


class InvalidFormat(FleetShellError, ValueError):
    """Endpoint token does not match ``[user@]host[:port]``."""

    def __init__(self, token: str, reason: str):
        """Initialize invalid format error.

        Args:
            token: The raw token that failed to parse
            reason: Human-readable description of the problem
        """
        self.token = token
        self.reason = reason
        super().__init__(f"Invalid endpoint '{token}': {reason}")


class DialError(FleetShellError):
    """Transport-level failure while connecting to an endpoint."""

    def __init__(self, target: str, original_error: Exception):
        """Initialize dial error.

        Args:
            target: ``user@host:port`` of the endpoint
            original_error: Exception raised by the transport layer
        """
        self.target = target
        self.original_error = original_error
        super().__init__(f"Cannot connect to {target}: {original_error}")


class AuthExhausted(DialError):
    """Remote rejected every offered credential."""

    def __init__(self, target: str, original_error: Exception):
        super().__init__(target, original_error)
        self.args = (f"Authentication failed for {target}: {original_error}",)


class RelayDialError(DialError):
    """Failure while connecting to, or tunneling through, a relay host."""

    def __init__(self, relay: str, target: str, original_error: Exception):
        """Initialize relay dial error.

        Args:
            relay: ``user@host:port`` of the relay
            target: ``host:port`` the relay was asked to reach
            original_error: Exception raised by the transport layer
        """
        super().__init__(target, original_error)
        self.relay = relay
        self.args = (f"Cannot reach {target} via relay {relay}: {original_error}",)


class NoValidEndpoints(FleetShellError):
    """Fan-out was requested with nothing to run on."""

    def __init__(self, tokens: list[str]):
        self.tokens = tokens
        super().__init__(f"No valid hosts in {tokens!r}")


class SessionError(FleetShellError):
    """Remote command or shell terminated abnormally at the transport level."""

    def __init__(self, target: str, original_error: Exception):
        self.target = target
        self.original_error = original_error
        super().__init__(f"Session on {target} failed: {original_error}")


class RemoteExitError(FleetShellError):
    """Interactive shell exited with a nonzero status."""

    def __init__(self, exit_status: int):
        self.exit_status = exit_status
        super().__init__(f"Remote shell exited with status {exit_status}")


class KeyInstallError(FleetShellError):
    """Best-effort public key installation failed."""


def auth_guidance(has_password: bool, has_keys: bool) -> str:
    """Return a hint to append to connection errors.

    Args:
        has_password: Whether a password was supplied up front
        has_keys: Whether the endpoint had key-file hints

    Returns:
        Guidance text, or an empty string when a password was supplied
    """
    if has_password:
        return ""
    if not has_keys:
        return " (hint: use -a/--ask-password to supply a password)"
    return " (hint: if the SSH key is not installed remotely, use -a to supply a password)"
