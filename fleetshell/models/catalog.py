"""Host catalog data models.

The catalog is a read-only snapshot handed to the core by the
configuration layer. Nothing in fleetshell mutates it.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any

from fleetshell.models.endpoint import DEFAULT_PORT, KeyFile, RelaySpec

logger = logging.getLogger(__name__)


def expand_home(path: str) -> str:
    """Expand a leading ``~`` in a key path."""
    return os.path.expanduser(path)


@dataclass(frozen=True)
class UserEntry:
    """Named identity with its ordered key files."""

    name: str
    ssh_keys: tuple[str, ...] = ()

    @property
    def key_hints(self) -> tuple[KeyFile, ...]:
        """Key-file hints with ``~`` expanded."""
        return tuple(KeyFile(expand_home(key)) for key in self.ssh_keys if key)


@dataclass(frozen=True)
class HostEntry:
    """Named host with optional tag labels."""

    name: str
    host: str
    port: int = DEFAULT_PORT
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class RelayEntry:
    """Named jump host."""

    name: str
    host: str
    user: str
    port: int = DEFAULT_PORT


@dataclass
class Catalog:
    """Hosts, users and jump hosts known to this invocation."""

    hosts: list[HostEntry] = field(default_factory=list)
    users: list[UserEntry] = field(default_factory=list)
    relays: list[RelayEntry] = field(default_factory=list)
    default_user_name: str = ""
    proxy_address: str = ""
    proxy_port: int = 0
    _tag_index: dict[str, list[str]] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        """Build the tag -> member index from host labels."""
        for entry in self.hosts:
            for tag in entry.tags:
                members = self._tag_index.setdefault(tag, [])
                if entry.name not in members:
                    members.append(entry.name)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Catalog":
        """Build a catalog from its document form.

        Args:
            data: Mapping with ``config`` and ``hosts`` sections

        Returns:
            Catalog snapshot
        """
        section = data.get("config") or {}

        users = [
            UserEntry(
                name=str(user["name"]),
                ssh_keys=tuple(str(key) for key in user.get("ssh_keys") or ()),
            )
            for user in section.get("users") or ()
            if user.get("name")
        ]
        relays = [
            RelayEntry(
                name=str(relay.get("name", "")),
                host=str(relay["host"]),
                user=str(relay.get("user", "")),
                port=_port(relay.get("port")),
            )
            for relay in section.get("jump_hosts") or ()
            if relay.get("host")
        ]
        hosts = [
            HostEntry(
                name=str(host["name"]),
                host=str(host["host"]),
                port=_port(host.get("port")),
                tags=tuple(str(tag) for tag in host.get("tags") or ()),
            )
            for host in data.get("hosts") or ()
            if host.get("name") and host.get("host")
        ]

        proxy_address = str(section.get("proxy") or "")
        proxy_port = section.get("proxy_port") or 0
        try:
            proxy_port = int(proxy_port)
        except (TypeError, ValueError):
            logger.warning("Invalid proxy_port %r, proxy sharing disabled", proxy_port)
            proxy_port = 0

        return cls(
            hosts=hosts,
            users=users,
            relays=relays,
            default_user_name=str(section.get("default_user") or ""),
            proxy_address=proxy_address,
            proxy_port=proxy_port,
        )

    def find_host(self, name: str) -> HostEntry | None:
        """Find a host by catalog name."""
        for entry in self.hosts:
            if entry.name == name:
                return entry
        return None

    def find_host_by_address(self, address: str) -> HostEntry | None:
        """Find a host by its network address."""
        for entry in self.hosts:
            if entry.host == address:
                return entry
        return None

    def find_user(self, name: str) -> UserEntry | None:
        """Find a user by name."""
        for user in self.users:
            if user.name == name:
                return user
        return None

    def default_user(self) -> UserEntry | None:
        """Configured default user, else the first user, else None."""
        if self.default_user_name:
            user = self.find_user(self.default_user_name)
            if user is not None:
                return user
        return self.users[0] if self.users else None

    def effective_user(self, selected: UserEntry | None = None) -> UserEntry | None:
        """Explicitly selected user wins over the default."""
        if selected is not None:
            return selected
        return self.default_user()

    def hosts_by_tag(self, tag: str) -> list[str]:
        """Member host names for a tag, in catalog order."""
        return list(self._tag_index.get(tag, ()))

    def find_relay(self, name: str) -> RelayEntry | None:
        """Find a jump host by name."""
        for relay in self.relays:
            if relay.name == name:
                return relay
        return None

    def relay_spec(self, selector: str | int) -> RelaySpec | None:
        """Resolve a jump host by name or 1-based index into a RelaySpec.

        The relay authenticates with the keys of the catalog user it names;
        an unknown user gets no key hints.
        """
        relay: RelayEntry | None
        if isinstance(selector, int) or str(selector).isdigit():
            index = int(selector) - 1
            relay = self.relays[index] if 0 <= index < len(self.relays) else None
        else:
            relay = self.find_relay(selector)
        if relay is None:
            return None

        user = self.find_user(relay.user)
        hints = user.key_hints if user is not None else ()
        return RelaySpec(
            user=relay.user,
            host=relay.host,
            port=relay.port,
            credential_hints=hints,
            name=relay.name,
        )

    def proxy(self) -> tuple[str, int] | None:
        """Return ``(address, remote_port)`` when proxy sharing is configured."""
        if self.proxy_address and 0 < self.proxy_port <= 65535:
            return (self.proxy_address, self.proxy_port)
        return None


def _port(value: Any) -> int:
    """Coerce a port field, defaulting to 22 when missing, invalid or out of range."""
    if value in (None, ""):
        return DEFAULT_PORT
    try:
        port = int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid port %r, using %d", value, DEFAULT_PORT)
        return DEFAULT_PORT
    if not 1 <= port <= 65535:
        logger.warning("Port %d out of range, using %d", port, DEFAULT_PORT)
        return DEFAULT_PORT
    return port
