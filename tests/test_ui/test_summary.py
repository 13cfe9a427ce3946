"""Tests for text rendering."""

from fleetshell.models import (
    Catalog,
    EndpointSpec,
    ExecutionResult,
    FanOutReport,
    ForwardSpec,
    KeyFile,
    RelaySession,
    RelaySpec,
)
from fleetshell.ui import (
    describe,
    format_bytes,
    relay_status,
    relay_summary,
    render_catalog,
    render_results,
)


def test_format_bytes() -> None:
    assert format_bytes(0) == "0 B"
    assert format_bytes(1023) == "1023 B"
    assert format_bytes(1536) == "1.5 KB"
    assert format_bytes(5 * 1024 * 1024) == "5.0 MB"


def test_describe_direct() -> None:
    """Default port is omitted; a single key is named."""
    spec = EndpointSpec(
        user="deploy", host="10.0.0.1", credential_hints=(KeyFile("/k/id_ed25519"),)
    )
    assert describe(spec) == "deploy@10.0.0.1 (key: id_ed25519)"


def test_describe_relay_and_proxy() -> None:
    spec = EndpointSpec(
        user="deploy",
        host="10.0.0.1",
        port=2222,
        credential_hints=(KeyFile("/a"), KeyFile("/b")),
    )
    relay = RelaySpec(user="ops", host="203.0.113.10", port=2200, name="bastion")

    text = describe(spec, relay, ("127.0.0.1:3128", 13128))

    assert text == (
        "deploy@10.0.0.1:2222 (keys: 2 configured) via bastion (ops@203.0.113.10:2200) "
        "[Proxy: 127.0.0.1:3128 via :13128]"
    )


def test_render_results() -> None:
    """Blocks are sorted by token and the summary counts everything."""
    report = FanOutReport(
        results=[
            ExecutionResult("web2", True, "up 3 days\n", 0),
            ExecutionResult("db1", False, error_detail="Cannot connect to u@db1:22: refused"),
            ExecutionResult("web1", True, "", 2),
        ],
        elapsed=1.234,
    )

    text = render_results(report)
    lines = text.splitlines()

    assert lines[0].startswith("═══ db1 [FAILED] ")
    assert lines[1] == "Error: Cannot connect to u@db1:22: refused"
    assert "[exit code: 2]" in text
    assert "up 3 days" in text
    assert text.index("web1") < text.index("web2")
    assert lines[-1] == "─── 2 succeeded, 1 failed, 3 total in 1.23s ───"


def test_relay_status_and_summary() -> None:
    session = RelaySession(
        forward=ForwardSpec("local", "0.0.0.0", 8080, "db", 5432),
    )
    session.connection_opened()
    session.add_up(2048)
    session.add_down(10)

    status = relay_status(session)
    assert status.startswith("0.0.0.0:8080 -> db:5432 |")
    assert "active=1 total=1 up=2.0 KB down=10 B" in status

    summary = relay_summary(session)
    assert "Connections: 1" in summary
    assert "Sent:        2.0 KB" in summary


def test_render_catalog(catalog: Catalog) -> None:
    text = render_catalog(catalog)

    assert "  db1 -> 10.0.1.1:5022 [prod]" in text
    assert "  1. bastion -> ops@203.0.113.10:2200" in text
    assert render_catalog(Catalog()) == "No hosts configured."
