"""
L2 Execution — Environment overlay for an isolated installation.

Emulates "activating" a virtual environment for child processes only:
the venv's executable directory is prefixed to PATH and VIRTUAL_ENV
marks the active root. The calling process's environment is never
touched; the overlay is carried on each ProcessSpec.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from rtos_provision.core.services.provisioning.data.constants import (
    PATH_SEPARATOR,
    PATH_SEPARATOR_DEFAULT,
    VENV_BIN_DIR,
    VENV_BIN_DIR_DEFAULT,
)
from rtos_provision.core.services.provisioning.platform_info import os_family


@dataclass(frozen=True)
class EnvOverlay:
    """Variables to set (and unset) on top of an inherited environment."""

    variables: dict[str, str] = field(default_factory=dict)
    unset: tuple[str, ...] = ()

    def apply(self, base: Mapping[str, str]) -> dict[str, str]:
        """Return a new environment: ``base`` with the overlay applied."""
        env = dict(base)
        for key in self.unset:
            env.pop(key, None)
        env.update(self.variables)
        return env


def _family(family: str | None) -> str:
    return family or os_family()


def venv_bin_dir(install_root: Path, *, family: str | None = None) -> Path:
    """``bin`` (POSIX) or ``Scripts`` (Windows) inside the installation."""
    return install_root / VENV_BIN_DIR.get(_family(family), VENV_BIN_DIR_DEFAULT)


def venv_executable(install_root: Path, name: str, *, family: str | None = None) -> Path:
    """Path of a console script or binary inside the installation."""
    fam = _family(family)
    suffix = ".exe" if fam == "windows" else ""
    return venv_bin_dir(install_root, family=fam) / f"{name}{suffix}"


def venv_interpreter(install_root: Path, *, family: str | None = None) -> Path:
    return venv_executable(install_root, "python", family=family)


def venv_activation_script(install_root: Path, *, family: str | None = None) -> Path:
    fam = _family(family)
    script = "activate.bat" if fam == "windows" else "activate"
    return venv_bin_dir(install_root, family=fam) / script


def activation_overlay(
    install_root: Path,
    *,
    family: str | None = None,
    inherited_path: str | None = None,
) -> EnvOverlay:
    """Compute the overlay that makes ``install_root`` the active venv.

    Args:
        install_root: Root of the isolated installation (the venv dir).
        family: OS family; defaults to the host's.
        inherited_path: PATH to extend; defaults to the current PATH.
    """
    fam = _family(family)
    sep = PATH_SEPARATOR.get(fam, PATH_SEPARATOR_DEFAULT)
    bin_dir = str(venv_bin_dir(install_root, family=fam))

    base_path = os.environ.get("PATH", "") if inherited_path is None else inherited_path
    new_path = bin_dir + sep + base_path if base_path else bin_dir

    return EnvOverlay(
        variables={"PATH": new_path, "VIRTUAL_ENV": str(install_root)},
        unset=("PYTHONHOME",),
    )
