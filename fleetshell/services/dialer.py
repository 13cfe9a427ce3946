"""SSH dialing with ordered credential hints and optional relay chaining.

Auth Plan:
- Credential hints are walked left to right and folded into one plan
- Key files are parsed once and offered together, agent keys follow
- A preset password or a terminal prompt provides password auth
- ``preferred_auth`` follows the first appearance of each method kind

Relay Chaining:
- The relay is dialed with its own hints, then the endpoint handshake runs
  over a channel opened inside the relay connection (asyncssh ``tunnel=``)
- A failure at any stage after the relay is up closes the relay before
  the error propagates
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import asyncssh

from fleetshell.errors import AuthExhausted, DialError, RelayDialError
from fleetshell.models import (
    AgentSocket,
    Connection,
    EndpointSpec,
    InteractivePrompt,
    KeyFile,
    PresetPassword,
    RelaySpec,
)
from fleetshell.utils.terminal import read_secret

logger = logging.getLogger(__name__)

PUBLICKEY = "publickey"
PASSWORD_METHODS = ("keyboard-interactive", "password")

Prompter = Callable[[str], str]


@dataclass
class AuthPlan:
    """Credential hints folded into what asyncssh needs."""

    key_files: list[str] = field(default_factory=list)
    agent_paths: list[str] = field(default_factory=list)
    password: str | None = field(default=None, repr=False)
    prompt: bool = False
    methods: list[str] = field(default_factory=list)

    @classmethod
    def from_hints(cls, endpoint: EndpointSpec, allow_prompt: bool) -> "AuthPlan":
        """Walk the hint list in order.

        Args:
            endpoint: Endpoint whose hints to fold
            allow_prompt: Whether InteractivePrompt hints may be honoured

        Returns:
            AuthPlan for this endpoint
        """
        plan = cls()

        def add_methods(*methods: str) -> None:
            for method in methods:
                if method not in plan.methods:
                    plan.methods.append(method)

        for hint in endpoint.credential_hints:
            if isinstance(hint, KeyFile):
                if hint.path not in plan.key_files:
                    plan.key_files.append(hint.path)
                add_methods(PUBLICKEY)
            elif isinstance(hint, AgentSocket):
                if hint.path not in plan.agent_paths:
                    plan.agent_paths.append(hint.path)
                add_methods(PUBLICKEY)
            elif isinstance(hint, PresetPassword):
                if plan.password is None:
                    plan.password = hint.password
                add_methods(*PASSWORD_METHODS)
            elif isinstance(hint, InteractivePrompt) and allow_prompt:
                plan.prompt = True
                add_methods(*PASSWORD_METHODS)

        return plan


class PromptingClient(asyncssh.SSHClient):
    """Client callbacks that ask for a password on the terminal once."""

    def __init__(self, target: str, prompter: Prompter):
        self._target = target
        self._prompter = prompter
        self._password: str | None = None
        self._asked = False

    async def _ask(self) -> str | None:
        if self._asked:
            return self._password
        self._asked = True
        loop = asyncio.get_running_loop()
        self._password = await loop.run_in_executor(
            None, self._prompter, f"Password for {self._target}: "
        )
        return self._password

    async def password_auth_requested(self) -> str | None:  # type: ignore[override]
        """Prompt once; a second request means the password was rejected."""
        if self._asked:
            return None
        return await self._ask()

    def kbdint_auth_requested(self) -> str:
        """Accept any keyboard-interactive submethod."""
        return ""

    async def kbdint_challenge_received(  # type: ignore[override]
        self,
        name: str,
        instructions: str,
        lang: str,
        prompts: list[tuple[str, bool]],
    ) -> list[str] | None:
        """Answer hidden prompts with the terminal password."""
        if not prompts:
            return []
        if self._asked and self._password is None:
            return None
        password = await self._ask()
        if password is None:
            return None
        return [password for _ in prompts]


async def load_client_keys(plan: AuthPlan) -> list[Any]:
    """Parse key files, then collect agent keys, in plan order.

    Unreadable keys are skipped so one broken file does not block the rest.
    """
    keys: list[Any] = []
    for path in plan.key_files:
        try:
            keys.append(asyncssh.read_private_key(path))
        except (OSError, asyncssh.KeyImportError) as e:
            logger.debug("Skipping key %s: %s", path, e)

    for agent_path in plan.agent_paths:
        try:
            agent = await asyncssh.connect_agent(agent_path)
        except (OSError, asyncssh.Error) as e:
            logger.debug("SSH agent at %s unavailable: %s", agent_path, e)
            continue
        if agent is None:
            continue
        try:
            keys.extend(await agent.get_keys())
        except (OSError, asyncssh.Error) as e:
            logger.debug("Cannot list keys from agent %s: %s", agent_path, e)
        finally:
            agent.close()

    return keys


class Dialer:
    """Builds authenticated connections to endpoints."""

    def __init__(
        self,
        known_hosts: str | None = None,
        strict_host_key_checking: bool = False,
        connect_timeout: float = 15.0,
        prompter: Prompter = read_secret,
    ) -> None:
        """Initialize dialer.

        Args:
            known_hosts: Path to known_hosts file, or None to disable verification
            strict_host_key_checking: Whether to reject unknown host keys
            connect_timeout: Seconds allowed for TCP connect plus handshake
            prompter: Reads a secret from the terminal given a prompt
        """
        self._known_hosts = known_hosts
        self._strict_host_key = strict_host_key_checking
        self.connect_timeout = connect_timeout
        self._prompter = prompter

        if self._known_hosts is None:
            logger.warning(
                "SSH host key verification DISABLED - vulnerable to MITM attacks. "
                "Set FLEETSHELL_KNOWN_HOSTS to a valid known_hosts file path."
            )
        else:
            logger.debug(
                "SSH host key verification enabled (known_hosts=%s, strict=%s)",
                self._known_hosts,
                self._strict_host_key,
            )

    async def _options(self, spec: EndpointSpec, allow_prompt: bool) -> dict[str, Any]:
        """Build asyncssh.connect keyword arguments for one hop."""
        plan = AuthPlan.from_hints(spec, allow_prompt)
        keys = await load_client_keys(plan)

        options: dict[str, Any] = {
            "port": spec.port,
            "username": spec.user,
            "client_keys": keys or None,
            "agent_path": None,
            "password": plan.password,
            "connect_timeout": self.connect_timeout,
        }
        if plan.methods:
            options["preferred_auth"] = ",".join(plan.methods)
        if plan.prompt:
            target = spec.target
            options["client_factory"] = lambda: PromptingClient(target, self._prompter)

        logger.debug(
            "Auth plan for %s: %d key(s), methods=%s, prompt=%s",
            spec.target,
            len(keys),
            plan.methods,
            plan.prompt,
        )
        return options

    async def _handshake(
        self,
        spec: EndpointSpec,
        allow_prompt: bool,
        tunnel: asyncssh.SSHClientConnection | None = None,
        via: RelaySpec | None = None,
    ) -> asyncssh.SSHClientConnection:
        """Connect one hop, applying the host key policy.

        Raises:
            AuthExhausted: If every offered credential was rejected
            RelayDialError: If the relay could not open a channel to the host
            DialError: On any other transport failure
        """
        options = await self._options(spec, allow_prompt)
        if tunnel is not None:
            options["tunnel"] = tunnel

        try:
            try:
                return await asyncssh.connect(
                    spec.host, known_hosts=self._known_hosts, **options
                )
            except asyncssh.HostKeyNotVerifiable as e:
                if self._strict_host_key:
                    logger.error(
                        "Host key verification failed for %s: %s. "
                        "Add the host key to %s or set "
                        "FLEETSHELL_STRICT_HOST_KEY_CHECKING=false",
                        spec.target,
                        e,
                        self._known_hosts,
                    )
                    raise
                logger.warning(
                    "Host key not verified for %s (strict mode disabled): %s",
                    spec.target,
                    e,
                )
                return await asyncssh.connect(spec.host, known_hosts=None, **options)
        except asyncssh.PermissionDenied as e:
            raise AuthExhausted(spec.target, e) from e
        except asyncssh.ChannelOpenError as e:
            if via is not None:
                raise RelayDialError(via.target, spec.address, e) from e
            raise DialError(spec.target, e) from e
        except (asyncssh.Error, OSError, asyncio.TimeoutError) as e:
            if via is not None and isinstance(e, OSError):
                raise RelayDialError(via.target, spec.address, e) from e
            raise DialError(spec.target, e) from e

    async def dial(
        self,
        endpoint: EndpointSpec,
        relay: RelaySpec | None = None,
        allow_prompt: bool = True,
    ) -> Connection:
        """Open an authenticated connection, through the relay if given.

        Args:
            endpoint: Final destination
            relay: Optional jump host, authenticated with its own hints
            allow_prompt: Whether terminal password prompts are permitted

        Returns:
            Connection owning the endpoint and relay connections

        Raises:
            AuthExhausted: If the endpoint rejected every credential
            RelayDialError: If the relay, or the channel through it, failed
            DialError: On endpoint transport failure
        """
        if relay is None:
            logger.info("Opening SSH connection to %s", endpoint.target)
            client = await self._handshake(endpoint, allow_prompt)
            logger.info("SSH connection established to %s", endpoint.target)
            return Connection(client=client, endpoint=endpoint)

        logger.info("Opening SSH connection to relay %s (%s)", relay.label, relay.target)
        try:
            relay_client = await self._handshake(relay, allow_prompt)
        except DialError as e:
            raise RelayDialError(relay.target, endpoint.address, e.original_error) from e

        logger.info("Opening SSH connection to %s via %s", endpoint.target, relay.label)
        established = False
        try:
            client = await self._handshake(
                endpoint, allow_prompt, tunnel=relay_client, via=relay
            )
            established = True
        finally:
            if not established:
                logger.debug("Closing relay %s after failed dial", relay.label)
                relay_client.close()

        logger.info("SSH connection established to %s via %s", endpoint.target, relay.label)
        return Connection(
            client=client,
            endpoint=endpoint,
            relay_client=relay_client,
            relay=relay,
        )
