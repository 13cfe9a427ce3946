"""Tests for relay session counters."""

from fleetshell.models import ForwardSpec, RelaySession


def make_session() -> RelaySession:
    return RelaySession(
        forward=ForwardSpec(
            mode="local",
            listen_host="127.0.0.1",
            listen_port=8080,
            target_host="db",
            target_port=5432,
        )
    )


def test_forward_addresses() -> None:
    """ForwardSpec renders host:port pairs."""
    session = make_session()
    assert session.forward.listen_address == "127.0.0.1:8080"
    assert session.forward.target_address == "db:5432"


def test_connection_counters() -> None:
    """Opened connections are numbered; closing only lowers active."""
    session = make_session()

    assert session.connection_opened() == 1
    assert session.connection_opened() == 2
    session.connection_closed()

    assert session.active_connections == 1
    assert session.total_connections == 2


def test_byte_counters_and_snapshot() -> None:
    """Snapshot copies counters and does not track later updates."""
    session = make_session()
    session.add_up(100)
    session.add_down(40)
    session.add_up(1)

    stats = session.snapshot()
    session.add_down(10)

    assert stats.bytes_up == 101
    assert stats.bytes_down == 40
    assert session.bytes_down == 50


def test_cancel() -> None:
    """Cancel sets the shared signal."""
    session = make_session()
    assert not session.is_cancelled
    session.cancel()
    assert session.is_cancelled
    assert session.cancelled.is_set()
