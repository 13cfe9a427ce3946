"""Configuration module for fleetshell.

Provides focused classes for different configuration concerns:
- Config: Main configuration class (aggregates all components)
- HostKeyVerifier: Manages SSH host key verification
- Settings: Environment variable configuration
- load_catalog: Reads the host catalog document
"""

from fleetshell.config.catalog import load_catalog
from fleetshell.config.host_keys import HostKeyVerifier
from fleetshell.config.main import Config
from fleetshell.config.settings import Settings

__all__ = ["Config", "HostKeyVerifier", "Settings", "load_catalog"]
