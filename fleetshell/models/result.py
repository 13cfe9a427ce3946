"""Command execution result models."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class CommandOutcome:
    """Output of one remote command run on an open connection."""

    output: str
    exit_status: int
    error: str | None = None

    @property
    def transport_failed(self) -> bool:
        """Whether the command died at the transport level."""
        return self.error is not None


@dataclass(frozen=True)
class ExecutionResult:
    """Result from a single host in a fan-out run."""

    endpoint_token: str
    succeeded: bool
    combined_output: str = ""
    exit_status: int = -1
    error_detail: str | None = None
    elapsed: float = 0.0


@dataclass
class FanOutReport:
    """All fan-out results plus total wall-clock time."""

    results: list[ExecutionResult] = field(default_factory=list)
    elapsed: float = 0.0
    groups_seen: list[str] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        """Number of hosts that ran the command."""
        return sum(1 for result in self.results if result.succeeded)

    @property
    def failure_count(self) -> int:
        """Number of hosts that failed."""
        return len(self.results) - self.success_count

    def sorted(self) -> list[ExecutionResult]:
        """Results ordered by endpoint token."""
        return sorted(self.results, key=lambda result: result.endpoint_token)
