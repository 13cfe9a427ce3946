"""Endpoint resolution.

Turns user-supplied tokens into EndpointSpecs:
- catalog names map to the stored host/port
- anything else is parsed as ``[user@]host[:port]``
- ``@tag`` tokens expand to the catalog members carrying that tag
"""

import getpass
import logging
import re
from collections.abc import Iterable, Sequence
from typing import NamedTuple

from fleetshell.errors import InvalidFormat
from fleetshell.models import (
    DEFAULT_PORT,
    AgentSocket,
    Catalog,
    CredentialHint,
    EndpointSpec,
    InteractivePrompt,
    PresetPassword,
    UserEntry,
)

logger = logging.getLogger(__name__)

GROUP_MARKER = "@"

_TOKEN_RE = re.compile(r"^(?:(?P<user>[^@]+)@)?(?P<host>[^:@]*)(?::(?P<port>.*))?$")

# Characters that never appear in a hostname and could reach a shell
_SUSPICIOUS_CHARS = ("/", "\\", ";", "&", "|", "$", "`", " ", "\t", "\n", "\r", "\x00")


class GroupExpansion(NamedTuple):
    """Expanded tokens plus the group names that produced them."""

    tokens: list[str]
    groups_seen: list[str]
    empty_groups: list[str]


def system_user() -> str:
    """Login name of the invoking process, ``root`` if it cannot be determined."""
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "root"


def auth_hints(
    agent_path: str | None = None,
    password: str | None = None,
    allow_prompt: bool = False,
) -> tuple[CredentialHint, ...]:
    """Build the non-key credential hints offered after key files.

    A preset password replaces the interactive prompt.

    Args:
        agent_path: SSH agent socket path
        password: Password collected before dialing
        allow_prompt: Whether a terminal prompt may be shown

    Returns:
        Hints in trial order
    """
    hints: list[CredentialHint] = []
    if agent_path:
        hints.append(AgentSocket(agent_path))
    if password:
        hints.append(PresetPassword(password))
    elif allow_prompt:
        hints.append(InteractivePrompt())
    return tuple(hints)


def parse_port(token: str, value: str | None) -> int:
    """Validate the port part of a token.

    Raises:
        InvalidFormat: If the port is not numeric or not in [1, 65535]
    """
    if value is None:
        return DEFAULT_PORT
    if not (value.isascii() and value.isdigit()):
        raise InvalidFormat(token, f"port '{value}' is not numeric")
    port = int(value)
    if not 1 <= port <= 65535:
        raise InvalidFormat(token, f"port {port} out of range 1-65535")
    return port


def parse_token(token: str) -> tuple[str | None, str, int]:
    """Split ``[user@]host[:port]`` into its parts.

    Args:
        token: Raw endpoint string

    Returns:
        Tuple of (user or None, host, port)

    Raises:
        InvalidFormat: If host is empty or invalid, or the port is bad
    """
    match = _TOKEN_RE.match(token.strip())
    if match is None:
        raise InvalidFormat(token, "expected [user@]host[:port]")

    host = match.group("host")
    if not host:
        raise InvalidFormat(token, "host cannot be empty")
    if len(host) > 253:
        raise InvalidFormat(token, f"host name too long: {len(host)} chars")
    if any(char in host for char in _SUSPICIOUS_CHARS):
        raise InvalidFormat(token, f"host contains invalid characters: {host!r}")

    port = parse_port(token, match.group("port"))
    return match.group("user"), host, port


def resolve(
    token: str,
    effective_user: UserEntry | None,
    catalog: Catalog,
    extra_hints: Sequence[CredentialHint] = (),
) -> EndpointSpec:
    """Resolve a token into an EndpointSpec.

    Args:
        token: Catalog name or ``[user@]host[:port]``
        effective_user: Identity selected for this invocation
        catalog: Read-only catalog snapshot
        extra_hints: Agent/password/prompt hints appended after key files

    Returns:
        Resolved endpoint

    Raises:
        InvalidFormat: If the token is not a catalog name and does not parse
    """
    username = effective_user.name if effective_user else system_user()
    key_hints = effective_user.key_hints if effective_user else ()

    entry = catalog.find_host(token)
    if entry is not None:
        logger.debug("Resolved %s from catalog (%s:%d)", token, entry.host, entry.port)
        return EndpointSpec(
            user=username,
            host=entry.host,
            port=entry.port,
            credential_hints=tuple(key_hints) + tuple(extra_hints),
        )

    parsed_user, host, port = parse_token(token)

    if parsed_user and parsed_user != username:
        # Another identity never borrows the effective user's keys
        username = parsed_user
        named = catalog.find_user(parsed_user)
        key_hints = named.key_hints if named is not None else ()
        if named is None:
            logger.debug("User %s not in catalog, no key files offered", parsed_user)

    return EndpointSpec(
        user=username,
        host=host,
        port=port,
        credential_hints=tuple(key_hints) + tuple(extra_hints),
    )


def is_group_token(token: str) -> bool:
    """Whether a token references a tag group."""
    return token.startswith(GROUP_MARKER) and len(token) > len(GROUP_MARKER)


def expand_groups(tokens: Iterable[str], catalog: Catalog) -> GroupExpansion:
    """Replace ``@tag`` tokens with the tag's member host names.

    Order of first appearance is kept and duplicates are dropped. A tag
    with no members is logged and skipped, not treated as an error.

    Args:
        tokens: Raw tokens as typed by the user
        catalog: Read-only catalog snapshot

    Returns:
        GroupExpansion with expanded tokens, tags seen and empty tags
    """
    expanded: list[str] = []
    groups_seen: list[str] = []
    empty_groups: list[str] = []
    seen: set[str] = set()

    for token in tokens:
        if is_group_token(token):
            tag = token[len(GROUP_MARKER):]
            groups_seen.append(tag)
            members = catalog.hosts_by_tag(tag)
            if not members:
                logger.warning("No hosts found with tag '%s'", tag)
                empty_groups.append(tag)
                continue
            candidates = members
        else:
            candidates = [token]

        for name in candidates:
            if name not in seen:
                seen.add(name)
                expanded.append(name)

    return GroupExpansion(tokens=expanded, groups_seen=groups_seen, empty_groups=empty_groups)
