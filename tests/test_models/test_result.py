"""Tests for execution result models."""

from fleetshell.models import CommandOutcome, ExecutionResult, FanOutReport


def test_command_outcome_transport_failed() -> None:
    """Only an error marks a transport failure, not a nonzero exit."""
    assert not CommandOutcome(output="x", exit_status=3).transport_failed
    assert CommandOutcome(output="", exit_status=-1, error="reset").transport_failed


def test_report_counts_and_sorting() -> None:
    """Counts follow succeeded flags; sorted orders by token."""
    report = FanOutReport(
        results=[
            ExecutionResult(endpoint_token="web2", succeeded=True, exit_status=0),
            ExecutionResult(endpoint_token="db1", succeeded=False, error_detail="refused"),
            ExecutionResult(endpoint_token="web1", succeeded=True, exit_status=1),
        ],
        elapsed=1.5,
    )

    assert report.success_count == 2
    assert report.failure_count == 1
    assert [r.endpoint_token for r in report.sorted()] == ["db1", "web1", "web2"]
