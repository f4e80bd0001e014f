"""
ProvisionSettings — tunables for the provisioning pipeline.

Loaded from ``rtos-provision.yml`` (see ``core.config.loader``). Every
field has a working default, so a missing file is not an error.
"""

from __future__ import annotations

import sys
from typing import Literal

from pydantic import BaseModel, Field, field_validator

# USTC mirror; set pip_mirror: null to keep the upstream index
DEFAULT_PIP_MIRROR = "https://mirrors.ustc.edu.cn/pypi/simple"

STARTER_MANIFEST_URL = "https://github.com/RoboMaster-DLMU-CONE/one-starter"
STARTER_MANIFEST_REVISION = "main"


def _default_base_python() -> str:
    return "python" if sys.platform == "win32" else "python3"


class ProvisionSettings(BaseModel):
    """Pipeline settings."""

    # ── Package index ────────────────────────────────────────────
    pip_mirror: str | None = DEFAULT_PIP_MIRROR   # None = skip mirror steps

    # ── Isolated installation ────────────────────────────────────
    base_python: str = Field(default_factory=_default_base_python)
    venv_dir: str = ".venv"
    meta_tool_package: str = "west"

    # ── Workspace ────────────────────────────────────────────────
    manifest_url: str | None = None
    manifest_revision: str | None = None
    starter_manifest_url: str = STARTER_MANIFEST_URL
    starter_revision: str = STARTER_MANIFEST_REVISION
    shallow_depth: int = 15
    sdk_subdir: str = "zephyr"

    # ── Invocation ───────────────────────────────────────────────
    activation: Literal["overlay", "shell"] = "overlay"
    probe_timeout: int = 10
    winget_mirror: str | None = None

    @field_validator("pip_mirror", "manifest_url", "manifest_revision", "winget_mirror")
    @classmethod
    def _blank_is_none(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("shallow_depth", "probe_timeout")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v
