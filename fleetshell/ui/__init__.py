"""Text rendering for fleetshell output."""

from fleetshell.ui.summary import (
    describe,
    format_bytes,
    relay_status,
    relay_summary,
    render_catalog,
    render_results,
)

__all__ = [
    "describe",
    "format_bytes",
    "relay_status",
    "relay_summary",
    "render_catalog",
    "render_results",
]
