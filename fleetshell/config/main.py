"""Application configuration.

Delegates to specialized components:
- Settings: Environment variables
- HostKeyVerifier: Manages known_hosts
- load_catalog: Reads the host catalog
"""

import logging
from dataclasses import dataclass, field

from fleetshell.config.catalog import load_catalog
from fleetshell.config.host_keys import HostKeyVerifier
from fleetshell.config.settings import Settings
from fleetshell.models import Catalog

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """Application configuration.

    Aggregates settings, host key policy and the catalog snapshot.
    """

    settings: Settings
    host_keys: HostKeyVerifier
    catalog: Catalog = field(default_factory=Catalog)

    @classmethod
    def from_env(cls, settings: Settings | None = None) -> "Config":
        """Create config from environment.

        Args:
            settings: Already-loaded settings, read from the environment if None

        Returns:
            Configured instance with all components initialized
        """
        settings = settings or Settings.from_env()
        return cls(
            settings=settings,
            host_keys=HostKeyVerifier.from_env(),
            catalog=load_catalog(settings.catalog_path),
        )

    @property
    def known_hosts_path(self) -> str | None:
        """Path to known_hosts file or None if disabled."""
        return self.host_keys.get_known_hosts_path()

    @property
    def strict_host_key_checking(self) -> bool:
        """Whether to reject unknown host keys."""
        return self.host_keys.strict_checking

    @property
    def connect_timeout(self) -> float:
        """Dial timeout in seconds."""
        return self.settings.connect_timeout
