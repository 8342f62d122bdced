"""Shared test configuration and fixtures."""
import os
from pathlib import Path

import pytest
from dotenv import load_dotenv


def pytest_configure(config):
    """Configure test environment."""
    test_env = Path(__file__).parent / "config" / ".env.test"
    if test_env.exists():
        load_dotenv(test_env)


@pytest.fixture(scope="session")
def test_config_dir():
    """Return the test config directory."""
    return Path(__file__).parent / "config"


@pytest.fixture(scope="session")
def seed_secret():
    """Return the seed secret used by deterministic tests."""
    return os.getenv("MASKING_TEST_SEED_SECRET", "test-seed-secret")


@pytest.fixture
def clean_masking_env(monkeypatch):
    """Remove MASKING_* overrides so configuration tests see only their files."""
    for name in ("MASKING_LOG_LEVEL", "MASKING_UNMAPPED_POLICY",
                 "MASKING_SEED_SECRET", "MASKING_CONFIG_PATH"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
