"""
Settings loader — reads rtos-provision.yml into ProvisionSettings.

Reads YAML, applies environment overrides, validates against the
pydantic schema, and returns a typed settings object. No file at all
is fine: every setting has a default.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml

from rtos_provision.core.models.settings import ProvisionSettings

logger = logging.getLogger(__name__)

# Per-workspace settings file, searched upward from the cwd
SETTINGS_FILE = "rtos-provision.yml"

# Fallback settings file inside the user config directory
USER_SETTINGS_FILE = "settings.yml"

# Environment variable → settings key
_ENV_OVERRIDES = {
    "RTP_PIP_MIRROR": "pip_mirror",
    "RTP_BASE_PYTHON": "base_python",
}


class ConfigError(Exception):
    """Raised when the settings file is unreadable or invalid."""


def find_settings_file(
    start_dir: Path | None = None,
    config_dir: Path | None = None,
) -> Path | None:
    """Locate the settings file.

    Walks up from ``start_dir`` (default: cwd) looking for
    ``rtos-provision.yml``; falls back to ``<config_dir>/settings.yml``.

    Returns:
        Path to the settings file, or None if there is none.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / SETTINGS_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    if config_dir is not None:
        candidate = config_dir / USER_SETTINGS_FILE
        if candidate.is_file():
            return candidate

    return None


def load_settings(
    path: Path | None = None,
    *,
    environ: dict[str, str] | None = None,
) -> ProvisionSettings:
    """Load and validate provisioning settings.

    Args:
        path: Explicit settings file. None means defaults + env overrides.
        environ: Environment to read overrides from (default: os.environ).

    Raises:
        ConfigError: If an explicit file is missing, unreadable, or invalid.
    """
    data: dict = {}

    if path is not None:
        if not path.is_file():
            raise ConfigError(f"Settings file not found: {path}")

        logger.debug("Loading settings from %s", path)
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read {path}: {e}") from e

        try:
            loaded = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(
                f"Expected a YAML mapping in {path}, got {type(loaded).__name__}"
            )
        # Settings may sit under a "provision" key or at the top level
        section = loaded.get("provision", loaded)
        if section is None:
            section = {}
        if not isinstance(section, dict):
            raise ConfigError(
                f"Expected a mapping under 'provision' in {path}, got {type(section).__name__}"
            )
        data = dict(section)

    env = os.environ if environ is None else environ
    for var, key in _ENV_OVERRIDES.items():
        if var in env:
            data[key] = env[var]

    try:
        settings = ProvisionSettings.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid settings: {e}") from e

    logger.debug("Settings: mirror=%s activation=%s", settings.pip_mirror, settings.activation)
    return settings
