"""Tests for HostKeyVerifier."""

from pathlib import Path

import pytest

from fleetshell.config.host_keys import HostKeyVerifier


def test_verifier_uses_custom_path(tmp_path: Path) -> None:
    """Verifier accepts custom known_hosts path."""
    custom = tmp_path / "my_known_hosts"
    custom.touch()

    verifier = HostKeyVerifier(known_hosts_path=str(custom))
    assert verifier.get_known_hosts_path() == str(custom)


def test_verifier_disabled_with_none() -> None:
    """Verifier can be disabled with 'none' path."""
    verifier = HostKeyVerifier(known_hosts_path="none")
    assert verifier.get_known_hosts_path() is None


def test_verifier_raises_on_missing_file_strict_mode(tmp_path: Path) -> None:
    """Verifier raises if file missing in strict mode."""
    missing = tmp_path / "nonexistent"
    with pytest.raises(FileNotFoundError, match="known_hosts not found"):
        HostKeyVerifier(known_hosts_path=str(missing), strict_checking=True)


def test_verifier_allows_missing_file_non_strict(tmp_path: Path) -> None:
    """Missing file in non-strict mode disables verification."""
    missing = tmp_path / "nonexistent"
    verifier = HostKeyVerifier(known_hosts_path=str(missing), strict_checking=False)
    assert verifier.get_known_hosts_path() is None


def test_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Environment selects path and strictness; non-strict is the default."""
    known_hosts = tmp_path / "known_hosts"
    known_hosts.touch()
    monkeypatch.setenv("FLEETSHELL_KNOWN_HOSTS", str(known_hosts))
    monkeypatch.delenv("FLEETSHELL_STRICT_HOST_KEY_CHECKING", raising=False)

    verifier = HostKeyVerifier.from_env()
    assert verifier.get_known_hosts_path() == str(known_hosts)
    assert verifier.strict_checking is False

    monkeypatch.setenv("FLEETSHELL_STRICT_HOST_KEY_CHECKING", "true")
    assert HostKeyVerifier.from_env().strict_checking is True
