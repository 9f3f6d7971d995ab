"""
Pytest configuration and fixtures for CloudPrism tests.
"""

import tempfile
from pathlib import Path
from unittest.mock import Mock

import pytest

from cloudprism.engine import PulumiEngine
from cloudprism.settings import reload_settings

_ENV_VARS = [
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_SESSION_TOKEN",
    "AWS_DEFAULT_REGION",
    "PULUMI_CONFIG_PASSPHRASE",
    "CP_APPLICATION",
    "CP_ENVIRONMENT",
    "CP_STATE_BACKEND",
    "CP_STATE_PATH",
    "CP_STATE_NAME",
    "CP_BUCKET_TAGS",
    "CP_STACK_NAME",
    "CP_PULUMI_CONFIG_PASSPHRASE",
    "CP_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Run every test without ambient AWS/CloudPrism configuration."""
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    reload_settings()
    yield


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def engine():
    """Engine double that records login/logout and stack operations."""
    return Mock(spec=PulumiEngine)
