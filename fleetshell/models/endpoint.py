"""Endpoint and credential data models."""

from dataclasses import dataclass, field
from typing import Union

DEFAULT_PORT = 22


@dataclass(frozen=True)
class KeyFile:
    """Private key file offered for public-key authentication."""

    path: str


@dataclass(frozen=True)
class AgentSocket:
    """SSH agent socket offered for public-key authentication."""

    path: str


@dataclass(frozen=True)
class PresetPassword:
    """Password supplied before dialing."""

    password: str = field(repr=False)


@dataclass(frozen=True)
class InteractivePrompt:
    """Ask for a password on the terminal when the server requests one."""


CredentialHint = Union[KeyFile, AgentSocket, PresetPassword, InteractivePrompt]


@dataclass(frozen=True)
class EndpointSpec:
    """Fully resolved remote endpoint."""

    user: str
    host: str
    port: int = DEFAULT_PORT
    credential_hints: tuple[CredentialHint, ...] = ()

    @property
    def address(self) -> str:
        """Return ``host:port``."""
        return f"{self.host}:{self.port}"

    @property
    def target(self) -> str:
        """Return ``user@host:port``."""
        return f"{self.user}@{self.host}:{self.port}"

    @property
    def key_paths(self) -> list[str]:
        """Return key file paths in trial order."""
        return [hint.path for hint in self.credential_hints if isinstance(hint, KeyFile)]

    def with_hints(self, *hints: CredentialHint) -> "EndpointSpec":
        """Return a copy with extra hints appended."""
        return EndpointSpec(
            user=self.user,
            host=self.host,
            port=self.port,
            credential_hints=self.credential_hints + tuple(hints),
        )


@dataclass(frozen=True)
class RelaySpec(EndpointSpec):
    """Intermediary hop used to reach an endpoint."""

    name: str = ""

    def with_hints(self, *hints: CredentialHint) -> "RelaySpec":
        """Return a copy with extra hints appended."""
        return RelaySpec(
            user=self.user,
            host=self.host,
            port=self.port,
            credential_hints=self.credential_hints + tuple(hints),
            name=self.name,
        )

    @property
    def label(self) -> str:
        """Return the relay name, falling back to its target."""
        return self.name or self.target
