"""Data models for fleetshell."""

from fleetshell.models.catalog import Catalog, HostEntry, RelayEntry, UserEntry
from fleetshell.models.endpoint import (
    DEFAULT_PORT,
    AgentSocket,
    CredentialHint,
    EndpointSpec,
    InteractivePrompt,
    KeyFile,
    PresetPassword,
    RelaySpec,
)
from fleetshell.models.relay import ForwardSpec, RelaySession, RelayStats
from fleetshell.models.result import CommandOutcome, ExecutionResult, FanOutReport
from fleetshell.models.ssh import Connection

__all__ = [
    "AgentSocket",
    "Catalog",
    "CommandOutcome",
    "Connection",
    "CredentialHint",
    "DEFAULT_PORT",
    "EndpointSpec",
    "ExecutionResult",
    "FanOutReport",
    "ForwardSpec",
    "HostEntry",
    "InteractivePrompt",
    "KeyFile",
    "PresetPassword",
    "RelayEntry",
    "RelaySession",
    "RelaySpec",
    "RelayStats",
    "UserEntry",
]
