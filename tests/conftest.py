# tests/conftest.py
import logging
from unittest.mock import MagicMock

import pytest

from devsetup.common.file_utils import ConfigWriter
from devsetup.config_models import AppSettings, PathSettings
from devsetup.engine.context import ProvisioningContext
from devsetup.engine.probe import EnvironmentProbe
from devsetup.engine.state_store import StateStore
from devsetup.engine.version_resolver import FixedVersionResolver


@pytest.fixture
def app_settings(tmp_path):
    """AppSettings whose home and install directories live under tmp_path."""
    return AppSettings(
        paths=PathSettings(
            home=tmp_path / "home",
            neovim_install_parent=tmp_path / "opt",
        ),
    )


@pytest.fixture
def mock_logger():
    """Fixture to create a mock logger for testing."""
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def mock_probe():
    return MagicMock(spec=EnvironmentProbe)


@pytest.fixture
def context(app_settings, mock_logger, mock_probe):
    """A context with a mocked probe and apt manager and a fixed Python version."""
    return ProvisioningContext(
        app_settings,
        logger=mock_logger,
        probe=mock_probe,
        writer=ConfigWriter(app_settings, mock_logger),
        resolver=FixedVersionResolver({"python": "3.12.4"}),
        state_store=StateStore(app_settings, logger=mock_logger),
        apt_manager=MagicMock(),
    )
