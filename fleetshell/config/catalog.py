"""Catalog document loader.

Reads the JSON catalog that lists hosts, users and jump hosts.
"""

import json
import logging
from pathlib import Path

from fleetshell.errors import CatalogError
from fleetshell.models import Catalog

logger = logging.getLogger(__name__)


def load_catalog(path: Path | str) -> Catalog:
    """Load a catalog snapshot from disk.

    Args:
        path: Path to the JSON catalog document

    Returns:
        Catalog snapshot, empty if the file is missing or unreadable

    Raises:
        CatalogError: If the file exists but is not a valid catalog document
    """
    path = Path(path)
    if not path.exists():
        logger.warning("Catalog not found: %s", path)
        return Catalog()

    try:
        content = path.read_text()
        logger.debug("Reading catalog from %s", path)
    except (OSError, PermissionError) as e:
        logger.warning("Cannot read catalog %s: %s", path, e)
        return Catalog()

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise CatalogError(f"Invalid catalog {path}: {e}") from e

    if not isinstance(data, dict):
        raise CatalogError(f"Invalid catalog {path}: top level must be an object")

    try:
        catalog = Catalog.from_dict(data)
    except (KeyError, TypeError, AttributeError) as e:
        raise CatalogError(f"Invalid catalog {path}: {e}") from e

    logger.info(
        "Loaded %d hosts, %d users, %d jump hosts from %s",
        len(catalog.hosts),
        len(catalog.users),
        len(catalog.relays),
        path,
    )
    return catalog
