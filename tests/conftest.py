"""
Pytest configuration and fixtures for sshhop tests.
"""

import json
import os

import pytest

from sshhop.models import Inventory, Target


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def reset_sshhop_settings(monkeypatch):
    """Isolate every test from the caller's SSHHOP_* environment."""
    from sshhop.config import reset_settings

    for name in list(os.environ):
        if name.startswith("SSHHOP_"):
            monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


# ============================================================================
# Test Data Fixtures
# ============================================================================


@pytest.fixture
def sample_servers():
    """Raw inventory entries as they appear in config.json."""
    return [
        {
            "alias": "db1",
            "address": "10.0.0.5",
            "port": 22,
            "user": "ops",
            "private_key": "~/.ssh/id_ed25519",
            "use_key": True,
        },
        {
            "alias": "Web",
            "address": "10.0.0.6",
            "port": 2222,
            "user": "deploy",
            "password": "s3cret",
            "use_key": False,
        },
        {
            "alias": "bare",
            "address": "10.0.0.7",
            "port": 22,
            "user": "guest",
            "use_key": False,
        },
    ]


@pytest.fixture
def inventory(sample_servers) -> Inventory:
    """Parsed sample inventory."""
    return Inventory.model_validate({"servers": sample_servers})


@pytest.fixture
def inventory_file(tmp_path, sample_servers):
    """Sample inventory written to a temporary config.json."""
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"servers": sample_servers}))
    return path


@pytest.fixture
def key_target() -> Target:
    """Target using key authentication."""
    return Target(
        alias="db1",
        address="10.0.0.5",
        port=22,
        user="ops",
        private_key="~/.ssh/id_ed25519",
        use_key=True,
    )
