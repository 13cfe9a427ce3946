"""Tests for environment settings."""

from pathlib import Path

import pytest

from fleetshell.config.settings import DEFAULT_CATALOG_PATH, Settings

ENV_VARS = (
    "FLEETSHELL_CATALOG",
    "FLEETSHELL_CONNECT_TIMEOUT",
    "FLEETSHELL_RELAY_WAKE_INTERVAL",
    "FLEETSHELL_FORWARD_BIND",
    "FLEETSHELL_INSTALL_KEYS",
    "FLEETSHELL_LOG_LEVEL",
    "FLEETSHELL_LOG_COLORS",
    "SSH_AUTH_SOCK",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every variable Settings reads."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env: pytest.MonkeyPatch) -> None:
    """Unset environment yields documented defaults."""
    settings = Settings.from_env()

    assert settings.catalog_path == DEFAULT_CATALOG_PATH
    assert settings.connect_timeout == 15.0
    assert settings.agent_path is None
    assert settings.relay_wake_interval == 1.0
    assert settings.forward_bind_host == "0.0.0.0"
    assert settings.install_keys is True
    assert settings.log_level == "INFO"
    assert settings.log_colors is True


def test_overrides(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Every variable is honoured."""
    clean_env.setenv("FLEETSHELL_CATALOG", str(tmp_path / "c.json"))
    clean_env.setenv("FLEETSHELL_CONNECT_TIMEOUT", "3.5")
    clean_env.setenv("FLEETSHELL_RELAY_WAKE_INTERVAL", "0.25")
    clean_env.setenv("FLEETSHELL_FORWARD_BIND", "127.0.0.1")
    clean_env.setenv("FLEETSHELL_INSTALL_KEYS", "no")
    clean_env.setenv("FLEETSHELL_LOG_LEVEL", "debug")
    clean_env.setenv("FLEETSHELL_LOG_COLORS", "false")
    clean_env.setenv("SSH_AUTH_SOCK", "/tmp/agent.sock")

    settings = Settings.from_env()

    assert settings.catalog_path == tmp_path / "c.json"
    assert settings.connect_timeout == 3.5
    assert settings.relay_wake_interval == 0.25
    assert settings.forward_bind_host == "127.0.0.1"
    assert settings.install_keys is False
    assert settings.log_level == "DEBUG"
    assert settings.log_colors is False
    assert settings.agent_path == "/tmp/agent.sock"


@pytest.mark.parametrize("value", ["abc", "0", "-2"])
def test_invalid_numbers_use_default(clean_env: pytest.MonkeyPatch, value: str) -> None:
    """Invalid or non-positive numbers fall back to the default."""
    clean_env.setenv("FLEETSHELL_CONNECT_TIMEOUT", value)
    assert Settings.from_env().connect_timeout == 15.0
