"""Tests for the catalog loader and Config aggregate."""

import json
from pathlib import Path

import pytest

from fleetshell.config import Config, HostKeyVerifier, Settings, load_catalog
from fleetshell.errors import CatalogError


def test_load_catalog(tmp_path: Path, catalog_data: dict) -> None:
    """A valid document loads into a Catalog."""
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(catalog_data))

    catalog = load_catalog(path)

    assert catalog.find_host("web1").host == "10.0.0.1"
    assert catalog.hosts_by_tag("web") == ["web1", "web2"]


def test_missing_file_gives_empty_catalog(tmp_path: Path) -> None:
    """Missing file is a warning, not an error."""
    catalog = load_catalog(tmp_path / "absent.json")
    assert catalog.hosts == []
    assert catalog.users == []


def test_malformed_json_raises(tmp_path: Path) -> None:
    """Broken JSON raises CatalogError."""
    path = tmp_path / "catalog.json"
    path.write_text("{not json")

    with pytest.raises(CatalogError, match="Invalid catalog"):
        load_catalog(path)


def test_non_object_document_raises(tmp_path: Path) -> None:
    """Top level must be an object."""
    path = tmp_path / "catalog.json"
    path.write_text("[1, 2]")

    with pytest.raises(CatalogError, match="top level"):
        load_catalog(path)


def test_config_properties(tmp_path: Path, catalog_data: dict) -> None:
    """Config exposes the values the dialer and relay need."""
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(catalog_data))
    known_hosts = tmp_path / "known_hosts"
    known_hosts.touch()

    config = Config(
        settings=Settings(catalog_path=path, connect_timeout=7.0, relay_wake_interval=0.5),
        host_keys=HostKeyVerifier(known_hosts_path=str(known_hosts), strict_checking=True),
        catalog=load_catalog(path),
    )

    assert config.known_hosts_path == str(known_hosts)
    assert config.strict_host_key_checking is True
    assert config.connect_timeout == 7.0
    assert config.catalog.find_user("ops") is not None


def test_config_from_env_reuses_loaded_settings(
    tmp_path: Path, catalog_data: dict, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Preloaded settings are kept; host keys and catalog come from the environment."""
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(catalog_data))
    monkeypatch.setenv("FLEETSHELL_KNOWN_HOSTS", "none")
    settings = Settings(catalog_path=path, connect_timeout=3.0)

    config = Config.from_env(settings)

    assert config.settings is settings
    assert config.known_hosts_path is None
    assert config.catalog.find_host("db1").port == 5022


def test_config_from_env_reads_settings(
    tmp_path: Path, catalog_data: dict, monkeypatch: pytest.MonkeyPatch
) -> None:
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(catalog_data))
    monkeypatch.setenv("FLEETSHELL_CATALOG", str(path))
    monkeypatch.setenv("FLEETSHELL_KNOWN_HOSTS", "none")

    config = Config.from_env()

    assert config.settings.catalog_path == path
    assert [host.name for host in config.catalog.hosts] == ["web1", "web2", "db1"]
