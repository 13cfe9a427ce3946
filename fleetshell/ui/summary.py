"""Plain-text rendering for the command line.

Everything here returns strings; printing is left to the caller.
"""

import os

from fleetshell.models import (
    DEFAULT_PORT,
    Catalog,
    EndpointSpec,
    ExecutionResult,
    FanOutReport,
    RelaySession,
    RelaySpec,
)

RULE_WIDTH = 60

_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_bytes(count: int) -> str:
    """Render a byte count with a binary unit, e.g. ``1.5 KB``."""
    value = float(count)
    for unit in _UNITS:
        if value < 1024 or unit == _UNITS[-1]:
            if unit == "B":
                return f"{int(value)} B"
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{count} B"


def describe(
    endpoint: EndpointSpec,
    relay: RelaySpec | None = None,
    proxy: tuple[str, int] | None = None,
) -> str:
    """One-line description of where a connection is going and how."""
    text = f"{endpoint.user}@{endpoint.host}"
    if endpoint.port != DEFAULT_PORT:
        text += f":{endpoint.port}"

    keys = endpoint.key_paths
    if len(keys) == 1:
        text += f" (key: {os.path.basename(keys[0])})"
    elif keys:
        text += f" (keys: {len(keys)} configured)"

    if relay is not None:
        text += f" via {relay.label} ({relay.target})"
    if proxy is not None:
        address, remote_port = proxy
        text += f" [Proxy: {address} via :{remote_port}]"
    return text


def _header(result: ExecutionResult) -> str:
    header = f"═══ {result.endpoint_token} "
    if result.succeeded:
        return header + "═" * max(RULE_WIDTH - len(header), 3)
    header += "[FAILED] "
    return header + "═" * max(RULE_WIDTH - len(header), 3)


def render_results(report: FanOutReport) -> str:
    """Per-host output blocks followed by a summary line.

    Results are ordered by endpoint token so repeated runs diff cleanly.
    """
    lines: list[str] = []

    for result in report.sorted():
        lines.append(_header(result))
        if result.combined_output:
            lines.append(result.combined_output.rstrip("\n"))
        if result.succeeded:
            if result.exit_status != 0:
                lines.append(f"[exit code: {result.exit_status}]")
        else:
            lines.append(f"Error: {result.error_detail}")
        lines.append("")

    total = len(report.results)
    lines.append(
        f"─── {report.success_count} succeeded, {report.failure_count} failed, "
        f"{total} total in {report.elapsed:.2f}s ───"
    )
    return "\n".join(lines)


def relay_status(session: RelaySession) -> str:
    """Status line shown while a relay is running."""
    stats = session.snapshot()
    return (
        f"{session.forward.listen_address} -> {session.forward.target_address} | "
        f"active={stats.active_connections} total={stats.total_connections} "
        f"up={format_bytes(stats.bytes_up)} down={format_bytes(stats.bytes_down)}"
    )


def relay_summary(session: RelaySession) -> str:
    """Totals printed once a relay has stopped."""
    stats = session.snapshot()
    return "\n".join(
        [
            "Forwarding stopped",
            f"  Connections: {stats.total_connections}",
            f"  Sent:        {format_bytes(stats.bytes_up)}",
            f"  Received:    {format_bytes(stats.bytes_down)}",
        ]
    )


def render_catalog(catalog: Catalog) -> str:
    """List catalog hosts and jump hosts."""
    if not catalog.hosts and not catalog.relays:
        return "No hosts configured."

    lines = ["Hosts:"]
    for entry in sorted(catalog.hosts, key=lambda host: host.name):
        tags = f" [{', '.join(entry.tags)}]" if entry.tags else ""
        lines.append(f"  {entry.name} -> {entry.host}:{entry.port}{tags}")

    if catalog.relays:
        lines.append("Jump hosts:")
        for index, relay in enumerate(catalog.relays, start=1):
            lines.append(f"  {index}. {relay.name} -> {relay.user}@{relay.host}:{relay.port}")
    return "\n".join(lines)
