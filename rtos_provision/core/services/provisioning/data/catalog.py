"""
L0 Data — Dependency catalog and package-name tables.

Table-driven: adding an OS family or distribution is a data change.

  DEPENDENCY_CATALOG[os_family]  → ordered probes for check_dependencies
  PACKAGE_NAMES[distro]          → logical dependency name → OS packages
  INSTALLERS[distro]             → install command prefix
  TERMINALS                      → emulators tried for interactive installs
"""

from __future__ import annotations

from dataclasses import dataclass, field


# ── Probe kinds ─────────────────────────────────────────────────


@dataclass(frozen=True)
class CommandProbe:
    """Run a binary; success = exit 0. Stdout becomes the version string."""

    argv: tuple[str, ...]
    capture_version: bool = True


@dataclass(frozen=True)
class PackageProbe:
    """Ask the OS package database; keys are database names (dpkg, rpm)."""

    packages: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ShellProbe:
    """Run a short ``sh -c`` expression; success = exit 0."""

    expression: str


Probe = CommandProbe | PackageProbe | ShellProbe


@dataclass(frozen=True)
class CatalogEntry:
    name: str
    probe: Probe
    critical: bool = True


def _binary(name: str, cmd: str, flag: str = "--version") -> CatalogEntry:
    return CatalogEntry(name, CommandProbe((cmd, flag)))


# ── Catalog ─────────────────────────────────────────────────────

DEPENDENCY_CATALOG: dict[str, list[CatalogEntry]] = {
    "linux": [
        _binary("Git", "git"),
        _binary("CMake", "cmake"),
        _binary("Ninja", "ninja"),
        _binary("Gperf", "gperf"),
        _binary("CCache", "ccache"),
        _binary("Dfu-util", "dfu-util"),
        _binary("DTC", "dtc"),
        _binary("Wget", "wget"),
        _binary("Python 3", "python3"),
        _binary("XZ Utils", "xz"),
        _binary("File", "file"),
        _binary("Make", "make"),
        _binary("GCC", "gcc"),
        _binary("G++", "g++"),
        CatalogEntry("python3-dev", PackageProbe({"dpkg": "python3-dev", "rpm": "python3-devel"})),
        CatalogEntry(
            "python3-venv",
            CommandProbe(("python3", "-m", "venv", "--help"), capture_version=False),
        ),
        CatalogEntry("python3-tk", PackageProbe({"dpkg": "python3-tk", "rpm": "python3-tkinter"})),
        CatalogEntry("libsdl2-dev", PackageProbe({"dpkg": "libsdl2-dev", "rpm": "sdl2-compat-devel"})),
        CatalogEntry("libmagic1", PackageProbe({"dpkg": "libmagic1", "rpm": "file-libs"})),
        CatalogEntry(
            "gcc-multilib",
            ShellProbe('dpkg -l | grep gcc-multilib || rpm -qa | grep "glibc-devel.*i686"'),
        ),
        CatalogEntry(
            "g++-multilib",
            ShellProbe('dpkg -l | grep g++-multilib || rpm -qa | grep "libstdc++-devel.*i686"'),
        ),
    ],
    "windows": [
        _binary("CMake", "cmake"),
        _binary("Ninja", "ninja"),
        _binary("Gperf", "gperf"),
        _binary("Python 3.12", "python"),
        _binary("Git", "git"),
        _binary("DTC", "dtc"),
        _binary("Wget", "wget"),
        _binary("7-Zip", "7z", "--help"),  # 7z has no version flag
    ],
}


# ── Package names ───────────────────────────────────────────────

PACKAGE_NAMES: dict[str, dict[str, list[str]]] = {
    "debian": {
        "Git": ["git"],
        "CMake": ["cmake"],
        "Ninja": ["ninja-build"],
        "Gperf": ["gperf"],
        "CCache": ["ccache"],
        "Dfu-util": ["dfu-util"],
        "DTC": ["device-tree-compiler"],
        "Wget": ["wget"],
        "Python 3": ["python3"],
        "XZ Utils": ["xz-utils"],
        "File": ["file"],
        "Make": ["make"],
        "GCC": ["gcc"],
        "G++": ["g++"],
        "python3-dev": ["python3-dev"],
        "python3-venv": ["python3-venv"],
        "python3-tk": ["python3-tk"],
        "libsdl2-dev": ["libsdl2-dev"],
        "libmagic1": ["libmagic1"],
        "gcc-multilib": ["gcc-multilib"],
        "g++-multilib": ["g++-multilib"],
    },
    "fedora": {
        "Git": ["git"],
        "CMake": ["cmake"],
        "Ninja": ["ninja-build"],
        "Gperf": ["gperf"],
        "CCache": ["ccache"],
        "Dfu-util": ["dfu-util"],
        "DTC": ["dtc"],
        "Wget": ["wget"],
        "Python 3": ["python3"],
        "XZ Utils": ["xz"],
        "File": ["file"],
        "Make": ["make"],
        "GCC": ["gcc"],
        "G++": ["gcc-c++"],
        "python3-dev": ["python3-devel"],
        "python3-venv": ["python3"],  # venv ships with python3-libs
        "python3-tk": ["python3-tkinter"],
        "libsdl2-dev": ["sdl2-compat-devel"],
        "libmagic1": ["file-libs"],
        "gcc-multilib": ["glibc-devel.i686"],
        "g++-multilib": ["libstdc++-devel.i686"],
    },
    "winget": {
        "CMake": ["Kitware.CMake"],
        "Ninja": ["Ninja-build.Ninja"],
        "Gperf": ["oss-winget.gperf"],
        "Python 3.12": ["Python.Python.3.12"],
        "Git": ["Git.Git"],
        "DTC": ["oss-winget.dtc"],
        "Wget": ["wget"],
        "7-Zip": ["7zip.7zip"],
    },
}

INSTALLERS: dict[str, list[str]] = {
    "debian": ["apt", "install", "-y", "--no-install-recommends"],
    "fedora": ["dnf", "install", "-y"],
    "winget": ["winget", "install"],
}

# Linux distributions without their own table fall back to debian names.
DEFAULT_LINUX_DISTRO = "debian"

# Terminal emulator → argv prefix that runs a ``bash -c`` script.
TERMINALS: list[tuple[str, list[str]]] = [
    ("gnome-terminal", ["gnome-terminal", "--"]),
    ("konsole", ["konsole", "-e"]),
    ("xfce4-terminal", ["xfce4-terminal", "--"]),
    ("xterm", ["xterm", "-e"]),
]
