"""Application settings from environment variables.

Centralized environment variable parsing and validation.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path.home() / ".fleetshell" / "catalog.json"


@dataclass
class Settings:
    """Application settings from environment.

    Handles parsing, validation, and defaults for all env vars.
    """

    # Catalog
    catalog_path: Path = field(default=DEFAULT_CATALOG_PATH)

    # Dialing
    connect_timeout: float = field(default=15.0)
    agent_path: str | None = field(default=None)

    # Relays
    relay_wake_interval: float = field(default=1.0)
    forward_bind_host: str = field(default="0.0.0.0")

    # Sessions
    install_keys: bool = field(default=True)

    # Logging
    log_level: str = field(default="INFO")
    log_colors: bool = field(default=True)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables.

        Returns:
            Settings instance with values from environment
        """
        catalog = os.getenv("FLEETSHELL_CATALOG", "").strip()
        return cls(
            catalog_path=Path(os.path.expanduser(catalog)) if catalog else DEFAULT_CATALOG_PATH,
            connect_timeout=cls._get_float("FLEETSHELL_CONNECT_TIMEOUT", 15.0),
            agent_path=os.getenv("SSH_AUTH_SOCK") or None,
            relay_wake_interval=cls._get_float("FLEETSHELL_RELAY_WAKE_INTERVAL", 1.0),
            forward_bind_host=os.getenv("FLEETSHELL_FORWARD_BIND", "0.0.0.0"),
            install_keys=cls._get_bool("FLEETSHELL_INSTALL_KEYS", True),
            log_level=os.getenv("FLEETSHELL_LOG_LEVEL", "INFO").upper(),
            log_colors=cls._get_bool("FLEETSHELL_LOG_COLORS", True),
        )

    @staticmethod
    def _get_float(key: str, default: float) -> float:
        """Get a positive number from environment.

        Args:
            key: Environment variable key
            default: Default value if not set or invalid

        Returns:
            Float value from environment or default
        """
        value = os.getenv(key)
        if value is None:
            return default

        try:
            number = float(value)
        except ValueError:
            logger.warning("Invalid number for %s: %s, using default %s", key, value, default)
            return default

        if number <= 0:
            logger.warning("%s must be > 0, got %s. Using default: %s", key, value, default)
            return default
        return number

    @staticmethod
    def _get_bool(key: str, default: bool) -> bool:
        """Get boolean from environment.

        Args:
            key: Environment variable key
            default: Default value if not set

        Returns:
            Boolean value from environment or default
        """
        value = os.getenv(key)
        if value is None:
            return default
        return value.lower() in ("1", "true", "yes", "on")
