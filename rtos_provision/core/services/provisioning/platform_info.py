"""
L1 Platform — Host platform identification.

Maps the running OS onto the keys used by the catalog tables:
an OS family (``linux``, ``windows``, ``macos``, ``unsupported``) and,
on Linux, a distribution family (``debian``, ``fedora``).
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

OS_RELEASE = Path("/etc/os-release")

# os-release ID / ID_LIKE token → distribution family
_DISTRO_FAMILIES: dict[str, str] = {
    "debian": "debian",
    "ubuntu": "debian",
    "linuxmint": "debian",
    "pop": "debian",
    "fedora": "fedora",
    "rhel": "fedora",
    "centos": "fedora",
    "rocky": "fedora",
    "almalinux": "fedora",
}


@dataclass(frozen=True)
class PlatformInfo:
    os_family: str
    distro: str | None = None

    @property
    def package_family(self) -> str | None:
        """Key into PACKAGE_NAMES / INSTALLERS for this host."""
        if self.os_family == "windows":
            return "winget"
        return self.distro


def os_family(platform: str | None = None) -> str:
    """Map ``sys.platform`` onto a catalog OS family."""
    plat = platform or sys.platform
    if plat.startswith("linux"):
        return "linux"
    if plat == "win32":
        return "windows"
    if plat == "darwin":
        return "macos"
    return "unsupported"


def parse_os_release(text: str) -> dict[str, str]:
    """Parse the KEY=value lines of an os-release file."""
    fields: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        fields[key.strip()] = value.strip().strip('"').strip("'")
    return fields


def detect_distro(os_release: Path = OS_RELEASE) -> str | None:
    """Return the distribution family, or None if unknown/unreadable."""
    try:
        fields = parse_os_release(os_release.read_text(encoding="utf-8"))
    except OSError:
        logger.debug("Cannot read %s", os_release)
        return None

    tokens = [fields.get("ID", "")] + fields.get("ID_LIKE", "").split()
    for token in tokens:
        family = _DISTRO_FAMILIES.get(token.lower())
        if family:
            return family
    return None


def detect_platform() -> PlatformInfo:
    family = os_family()
    distro = detect_distro() if family == "linux" else None
    return PlatformInfo(os_family=family, distro=distro)
