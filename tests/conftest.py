from __future__ import annotations

import pytest
from PyQt6.QtCore import QCoreApplication

from processing.channel_store import ChannelStore
from processing.config_store import ConfigStore


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """QObjects and QTimers need an application instance."""
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


@pytest.fixture
def config_store(tmp_path) -> ConfigStore:
    return ConfigStore(path=str(tmp_path / "scales_config.json"))


@pytest.fixture
def store(config_store) -> ChannelStore:
    return ChannelStore(config_store)
