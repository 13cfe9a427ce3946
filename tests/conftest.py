"""Shared fixtures."""

import pytest

from fleetshell.models import Catalog


@pytest.fixture
def catalog_data() -> dict:
    """Catalog document with users, a jump host and tagged hosts."""
    return {
        "config": {
            "default_user": "deploy",
            "proxy": "127.0.0.1:3128",
            "proxy_port": 13128,
            "users": [
                {"name": "deploy", "ssh_keys": ["~/.ssh/deploy_ed25519", "/keys/deploy_rsa"]},
                {"name": "ops", "ssh_keys": ["/keys/ops_ed25519"]},
            ],
            "jump_hosts": [
                {"name": "bastion", "host": "203.0.113.10", "user": "ops", "port": 2200},
            ],
        },
        "hosts": [
            {"name": "web1", "host": "10.0.0.1", "port": 22, "tags": ["web"]},
            {"name": "web2", "host": "10.0.0.2", "tags": ["web", "prod"]},
            {"name": "db1", "host": "10.0.1.1", "port": 5022, "tags": ["prod"]},
        ],
    }


@pytest.fixture
def catalog(catalog_data: dict) -> Catalog:
    """Catalog snapshot built from catalog_data."""
    return Catalog.from_dict(catalog_data)
