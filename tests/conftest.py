# tests/conftest.py
import logging
from unittest.mock import MagicMock

import pytest

from docker_provisioner.setup.config_models import AppSettings


@pytest.fixture
def mock_logger():
    """Fixture to create a mock logger for testing."""
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def app_settings(tmp_path):
    """AppSettings with the daemon configuration redirected to tmp_path."""
    return AppSettings(
        daemon={"config_path": str(tmp_path / "docker" / "daemon.json")},
        post_install={"additional_users": []},
    )
