"""Best-effort public key installation on the remote peer.

Runs before a session starts. The primary session never sees these
failures: ``ensure_public_key`` downgrades them to a warning.
"""

import logging
from pathlib import Path

import asyncssh

from fleetshell.errors import KeyInstallError
from fleetshell.models import Connection
from fleetshell.utils.shell import authorized_key_check, authorized_key_install

logger = logging.getLogger(__name__)


def read_public_key(private_key_path: str) -> str | None:
    """Read ``<key>.pub`` next to a private key.

    Returns:
        Stripped key line, or None when the file is missing, unreadable or empty
    """
    pub_path = Path(f"{private_key_path}.pub")
    try:
        content = pub_path.read_text().strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("No usable public key at %s: %s", pub_path, e)
        return None
    return content or None


async def install_public_key(conn: Connection, key_paths: list[str]) -> bool:
    """Append the first key's public half to authorized_keys if missing.

    Args:
        conn: Open connection
        key_paths: Private key paths in preference order

    Returns:
        True if the key was installed, False if nothing needed doing

    Raises:
        KeyInstallError: If the remote check or install failed
    """
    if not key_paths:
        return False

    public_key = read_public_key(key_paths[0])
    if public_key is None:
        return False

    try:
        check = await conn.client.run(authorized_key_check(public_key), check=False)
    except (asyncssh.Error, OSError) as e:
        raise KeyInstallError(f"Cannot check existing keys: {e}") from e

    if check.returncode == 0:
        logger.debug("Public key already authorized on %s", conn.endpoint.target)
        return False

    try:
        install = await conn.client.run(authorized_key_install(public_key), check=False)
    except (asyncssh.Error, OSError) as e:
        raise KeyInstallError(f"Cannot install public key: {e}") from e

    if install.returncode != 0:
        raise KeyInstallError(
            f"Installing public key exited with code {install.returncode}"
        )

    logger.info("Public key installed on %s", conn.endpoint.target)
    return True


async def ensure_public_key(conn: Connection, key_paths: list[str]) -> bool:
    """Run install_public_key, logging failures instead of raising."""
    try:
        return await install_public_key(conn, key_paths)
    except KeyInstallError as e:
        logger.warning("Could not install public key on %s: %s", conn.endpoint.target, e)
        return False
