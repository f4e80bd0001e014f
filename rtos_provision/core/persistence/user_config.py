"""
User config persistence — atomic read/write for UserConfig.

The config lives in ``config.json`` inside the user config directory.
Writes are atomic (write to temp file, then rename) so a crash
mid-write never leaves a truncated file behind.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import Callable

from rtos_provision.core.models.user_config import UserConfig

logger = logging.getLogger(__name__)

APP_DIR_NAME = "rtos-provision"
CONFIG_FILE = "config.json"


def default_config_dir(environ: dict[str, str] | None = None) -> Path:
    """Resolve the user config directory.

    ``$RTP_CONFIG_DIR`` wins; otherwise ``%APPDATA%`` on Windows and
    ``$XDG_CONFIG_HOME`` (or ``~/.config``) elsewhere.
    """
    env = os.environ if environ is None else environ
    override = env.get("RTP_CONFIG_DIR")
    if override:
        return Path(override)

    if sys.platform == "win32" and env.get("APPDATA"):
        return Path(env["APPDATA"]) / APP_DIR_NAME

    base = env.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / APP_DIR_NAME


def default_config_path(environ: dict[str, str] | None = None) -> Path:
    return default_config_dir(environ) / CONFIG_FILE


def load_config(path: Path) -> UserConfig:
    """Load user config from JSON.

    A missing or unreadable file yields a fresh config.
    """
    if not path.is_file():
        logger.info("No config file at %s — starting fresh", path)
        return UserConfig()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        config = UserConfig.model_validate(data)
        logger.debug("Loaded config from %s (%d projects)", path, len(config.projects))
        return config
    except json.JSONDecodeError as e:
        logger.warning("Corrupt config file %s: %s — starting fresh", path, e)
        return UserConfig()
    except Exception as e:
        logger.warning("Cannot load config from %s: %s — starting fresh", path, e)
        return UserConfig()


def save_config(config: UserConfig, path: Path) -> None:
    """Save user config to JSON (atomic write)."""
    path.parent.mkdir(parents=True, exist_ok=True)

    content = json.dumps(config.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n"

    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".config_", suffix=".tmp")
    os.close(fd)
    tmp = Path(tmp_path)
    try:
        tmp.write_text(content, encoding="utf-8")
        os.replace(tmp, path)
        logger.debug("Config saved to %s", path)
    except Exception:
        tmp.unlink(missing_ok=True)
        logger.error("Failed to save config to %s", path)
        raise


class ConfigStore:
    """Load/save wrapper bound to one config file path."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or default_config_path()

    def load(self) -> UserConfig:
        return load_config(self.path)

    def save(self, config: UserConfig) -> None:
        save_config(config, self.path)

    def update(self, fn: Callable[[UserConfig], None]) -> UserConfig:
        """Load, apply ``fn`` in place, save, and return the new config."""
        config = self.load()
        fn(config)
        self.save(config)
        return config
