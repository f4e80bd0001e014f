"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from rtos_provision.core.persistence.user_config import ConfigStore
from rtos_provision.core.services.provisioning.execution.sink import CollectingSink

from tests.fakes import RecordingRunner


@pytest.fixture
def sink() -> CollectingSink:
    return CollectingSink()


@pytest.fixture
def recording_runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def store(tmp_path: Path) -> ConfigStore:
    """Config store backed by a temporary file."""
    return ConfigStore(tmp_path / "state" / "config.json")


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point config dir and cwd at a temp dir; clear RTP_* overrides."""
    config_dir = tmp_path / "config-home"
    monkeypatch.setenv("RTP_CONFIG_DIR", str(config_dir))
    for var in ("RTP_PIP_MIRROR", "RTP_BASE_PYTHON", "RTP_LOG_LEVEL", "RTP_LOG_FILE"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return config_dir


@pytest.fixture(autouse=True)
def _reset_root_logging():
    """Drop handlers installed by setup_logging during a test."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
