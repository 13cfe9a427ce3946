"""SSH host key verification.

Manages the known_hosts policy used when dialing endpoints and relays.
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class HostKeyVerifier:
    """SSH host key verification policy.

    Fleet hosts are often reached for the first time through fan-out, so
    non-strict mode is the default: unverifiable keys are accepted with a
    warning instead of failing the dial.
    """

    def __init__(
        self,
        known_hosts_path: str | None = None,
        strict_checking: bool = False,
    ):
        """Initialize host key verifier.

        Args:
            known_hosts_path: Path to known_hosts file or 'none' to disable
            strict_checking: Reject unknown host keys

        Raises:
            FileNotFoundError: If strict mode and file missing
        """
        self.strict_checking = strict_checking
        self._known_hosts = self._resolve_known_hosts(known_hosts_path)

    @classmethod
    def from_env(cls) -> "HostKeyVerifier":
        """Create verifier from FLEETSHELL_KNOWN_HOSTS / FLEETSHELL_STRICT_HOST_KEY_CHECKING."""
        strict = os.getenv("FLEETSHELL_STRICT_HOST_KEY_CHECKING", "false").lower()
        return cls(
            known_hosts_path=os.getenv("FLEETSHELL_KNOWN_HOSTS"),
            strict_checking=strict in ("1", "true", "yes", "on"),
        )

    def _resolve_known_hosts(self, env_value: str | None) -> str | None:
        """Resolve known_hosts path with security defaults.

        Returns:
            Path to known_hosts file or None to disable verification

        Raises:
            FileNotFoundError: If strict mode and file missing
        """
        # Explicit disable
        if env_value and env_value.lower() == "none":
            logger.critical(
                "SSH HOST KEY VERIFICATION DISABLED. "
                "This is vulnerable to MITM attacks; only use it on trusted networks."
            )
            return None

        path = (
            Path(os.path.expanduser(env_value))
            if env_value
            else Path.home() / ".ssh" / "known_hosts"
        )
        if path.exists():
            return str(path)

        if self.strict_checking:
            raise FileNotFoundError(
                f"SSH host key verification required but "
                f"known_hosts not found at {path}.\n\n"
                f"To fix this:\n"
                f"1. Add host keys: ssh-keyscan <hostname> >> {path}\n"
                f"2. Or set FLEETSHELL_STRICT_HOST_KEY_CHECKING=false\n"
                f"3. Or disable verification (NOT RECOMMENDED): "
                f"export FLEETSHELL_KNOWN_HOSTS=none"
            )

        logger.warning(
            "known_hosts not found at %s, verification disabled. This is insecure!",
            path,
        )
        return None

    def get_known_hosts_path(self) -> str | None:
        """Get path to known_hosts file.

        Returns:
            Path string or None if verification disabled
        """
        return self._known_hosts
