"""Tests for endpoint resolution and group expansion."""

from unittest.mock import patch

import pytest

from fleetshell.errors import InvalidFormat
from fleetshell.models import (
    AgentSocket,
    Catalog,
    EndpointSpec,
    InteractivePrompt,
    KeyFile,
    PresetPassword,
    UserEntry,
)
from fleetshell.services.resolver import (
    auth_hints,
    expand_groups,
    is_group_token,
    parse_token,
    resolve,
)


@pytest.fixture
def deploy(catalog: Catalog) -> UserEntry:
    return catalog.find_user("deploy")


def test_catalog_name_uses_stored_host(catalog: Catalog, deploy: UserEntry) -> None:
    """A catalog name resolves to its stored host and port."""
    spec = resolve("web1", deploy, catalog)

    assert spec == EndpointSpec(
        user="deploy",
        host="10.0.0.1",
        port=22,
        credential_hints=deploy.key_hints,
    )


def test_catalog_name_keeps_custom_port(catalog: Catalog, deploy: UserEntry) -> None:
    spec = resolve("db1", deploy, catalog)
    assert (spec.host, spec.port) == ("10.0.1.1", 5022)


def test_literal_token_with_all_parts(catalog: Catalog, deploy: UserEntry) -> None:
    """user@host:port is used verbatim when not in the catalog."""
    spec = resolve("ubuntu@10.0.0.5:2222", deploy, catalog)

    assert (spec.user, spec.host, spec.port) == ("ubuntu", "10.0.0.5", 2222)
    # ubuntu is not a catalog user, so deploy's keys are not borrowed
    assert spec.credential_hints == ()


def test_host_only_defaults(catalog: Catalog, deploy: UserEntry) -> None:
    """Bare host takes the effective user, its keys and port 22."""
    spec = resolve("example.com", deploy, catalog)

    assert (spec.user, spec.host, spec.port) == ("deploy", "example.com", 22)
    assert spec.key_paths == [hint.path for hint in deploy.key_hints]


def test_explicit_catalog_user_gets_own_keys(catalog: Catalog, deploy: UserEntry) -> None:
    """An explicit user in the token switches to that user's keys."""
    spec = resolve("ops@example.com", deploy, catalog)

    assert spec.user == "ops"
    assert spec.key_paths == ["/keys/ops_ed25519"]


def test_explicit_same_user_keeps_keys(catalog: Catalog, deploy: UserEntry) -> None:
    spec = resolve("deploy@example.com:2022", deploy, catalog)
    assert spec.key_paths == [hint.path for hint in deploy.key_hints]


def test_no_effective_user_falls_back_to_system_identity() -> None:
    """Without an effective user the process login name is used."""
    with patch("fleetshell.services.resolver.getpass.getuser", return_value="alice"):
        spec = resolve("example.com", None, Catalog())

    assert spec.user == "alice"
    assert spec.credential_hints == ()


def test_system_identity_unavailable_uses_root() -> None:
    with patch("fleetshell.services.resolver.getpass.getuser", side_effect=KeyError("uid")):
        spec = resolve("example.com", None, Catalog())
    assert spec.user == "root"


def test_extra_hints_follow_key_files(catalog: Catalog, deploy: UserEntry) -> None:
    """Agent and password hints come after key files."""
    extra = auth_hints(agent_path="/agent.sock", password="pw")
    spec = resolve("web1", deploy, catalog, extra_hints=extra)

    assert spec.credential_hints == deploy.key_hints + (
        AgentSocket("/agent.sock"),
        PresetPassword("pw"),
    )


def test_auth_hints_prompt_only_without_password() -> None:
    """A preset password replaces the interactive prompt."""
    assert auth_hints(allow_prompt=True) == (InteractivePrompt(),)
    assert auth_hints(password="pw", allow_prompt=True) == (PresetPassword("pw"),)
    assert auth_hints() == ()


@pytest.mark.parametrize(
    "token",
    [
        "",
        "user@",
        ":22",
        "host:abc",
        "host:0",
        "host:65536",
        "host:-1",
        "host:",
        "user@host:99999",
        "bad;host",
        "host with space",
    ],
)
def test_malformed_tokens_raise(catalog: Catalog, deploy: UserEntry, token: str) -> None:
    """Malformed tokens raise InvalidFormat."""
    with pytest.raises(InvalidFormat) as exc_info:
        resolve(token, deploy, catalog)
    assert exc_info.value.token == token


def test_invalid_format_is_value_error() -> None:
    with pytest.raises(ValueError):
        parse_token("host:abc")


def test_parse_token_parts() -> None:
    assert parse_token("host") == (None, "host", 22)
    assert parse_token("u@host:65535") == ("u", "host", 65535)
    assert parse_token("host:1") == (None, "host", 1)


def test_resolve_is_idempotent(catalog: Catalog, deploy: UserEntry) -> None:
    """Resolving twice yields equal specs."""
    for token in ("web1", "ops@example.com:2200", "example.com"):
        assert resolve(token, deploy, catalog) == resolve(token, deploy, catalog)


def test_is_group_token() -> None:
    assert is_group_token("@web")
    assert not is_group_token("@")
    assert not is_group_token("user@host")


def test_expand_groups_replaces_tags(catalog: Catalog) -> None:
    """@tag expands to members in catalog order, followed by plain tokens."""
    expansion = expand_groups(["@web", "db1"], catalog)

    assert expansion.tokens == ["web1", "web2", "db1"]
    assert expansion.groups_seen == ["web"]
    assert expansion.empty_groups == []


def test_expand_groups_drops_duplicates(catalog: Catalog) -> None:
    """First appearance wins across tags and plain tokens."""
    expansion = expand_groups(["web2", "@web", "@prod", "web1"], catalog)

    assert expansion.tokens == ["web2", "web1", "db1"]
    assert expansion.groups_seen == ["web", "prod"]


def test_expand_empty_group_warns(catalog: Catalog, caplog: pytest.LogCaptureFixture) -> None:
    """An empty tag is skipped with a warning, not an error."""
    with caplog.at_level("WARNING", logger="fleetshell.services.resolver"):
        expansion = expand_groups(["@empty"], catalog)

    assert expansion.tokens == []
    assert expansion.groups_seen == ["empty"]
    assert expansion.empty_groups == ["empty"]
    assert "empty" in caplog.text


def test_key_hint_type(catalog: Catalog, deploy: UserEntry) -> None:
    spec = resolve("web1", deploy, catalog)
    assert all(isinstance(hint, KeyFile) for hint in spec.credential_hints)


def test_catalog_port_out_of_range_resolves_to_default() -> None:
    """A bad catalog port never leaks into the resolved endpoint."""
    catalog = Catalog.from_dict({"hosts": [{"name": "web1", "host": "10.0.0.1", "port": 70000}]})

    spec = resolve("web1", None, catalog)

    assert (spec.host, spec.port) == ("10.0.0.1", 22)
