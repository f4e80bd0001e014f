"""
L3 Detection — Dependency inventory.

Read-only probes over the OS-specific catalog in ``data.catalog``.
Three probe kinds:

  CommandProbe  run ``<binary> --version`` (success + version string)
  PackageProbe  query the package database (dpkg-query, rpm -q)
  ShellProbe    run ``sh -c <expression>`` and use the exit code

A probe that cannot run at all (tool absent, timeout) reports
``installed=False``. Probes never raise to the caller.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable

from rtos_provision.core.models.environment import Dependency, EnvReport, EnvStatus
from rtos_provision.core.models.settings import ProvisionSettings
from rtos_provision.core.models.user_config import UserConfig
from rtos_provision.core.services.provisioning.data.catalog import (
    DEPENDENCY_CATALOG,
    CatalogEntry,
    CommandProbe,
    PackageProbe,
    ShellProbe,
)
from rtos_provision.core.services.provisioning.data.constants import (
    MAX_PROBE_WORKERS,
    PACKAGE_DATABASES,
)
from rtos_provision.core.services.provisioning.platform_info import (
    PlatformInfo,
    detect_platform,
)
from rtos_provision.core.services.provisioning.execution.overlay import venv_interpreter
from rtos_provision.core.services.provisioning.execution.process_runner import run_capture

logger = logging.getLogger(__name__)

# (argv, timeout=...) -> (returncode | None, stdout)
Capture = Callable[..., tuple[int | None, str]]


# ── Probes ──────────────────────────────────────────────────────


def _first_line(text: str) -> str | None:
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return None


def probe_command(probe: CommandProbe, capture: Capture, timeout: int) -> tuple[bool, str | None]:
    rc, out = capture(list(probe.argv), timeout=timeout)
    if rc != 0:
        return False, None
    return True, _first_line(out) if probe.capture_version else None


def _query_package(db: str, package: str, capture: Capture, timeout: int) -> tuple[bool | None, str | None]:
    """Ask one package database. ``None`` = database not available here."""
    if db == "dpkg":
        rc, out = capture(
            ["dpkg-query", "-W", "-f=${Status}\t${Version}", package], timeout=timeout,
        )
        if rc is None:
            return None, None
        status, _, version = out.partition("\t")
        if "install ok installed" in status:
            return True, version.strip() or None
        return False, None

    if db == "rpm":
        rc, out = capture(["rpm", "-q", "--qf", "%{VERSION}", package], timeout=timeout)
        if rc is None:
            return None, None
        if rc == 0:
            return True, out.strip() or None
        return False, None

    logger.warning("Unknown package database: %s", db)
    return None, None


def probe_package(probe: PackageProbe, capture: Capture, timeout: int) -> tuple[bool, str | None]:
    for db in PACKAGE_DATABASES:
        package = probe.packages.get(db)
        if not package:
            continue
        installed, version = _query_package(db, package, capture, timeout)
        if installed is None:
            continue  # e.g. dpkg-query on Fedora
        if installed:
            return True, version
    return False, None


def probe_shell(probe: ShellProbe, capture: Capture, timeout: int) -> tuple[bool, str | None]:
    rc, _ = capture(["sh", "-c", probe.expression], timeout=timeout)
    return rc == 0, None


def probe_entry(entry: CatalogEntry, capture: Capture = run_capture, timeout: int = 10) -> Dependency:
    """Run one catalog probe. Never raises."""
    probe = entry.probe
    try:
        if isinstance(probe, CommandProbe):
            installed, version = probe_command(probe, capture, timeout)
        elif isinstance(probe, PackageProbe):
            installed, version = probe_package(probe, capture, timeout)
        elif isinstance(probe, ShellProbe):
            installed, version = probe_shell(probe, capture, timeout)
        else:
            logger.warning("Unknown probe kind for %s: %r", entry.name, probe)
            installed, version = False, None
    except Exception:
        logger.exception("Probe for %s failed", entry.name)
        installed, version = False, None

    return Dependency(
        name=entry.name,
        installed=installed,
        version=version,
        critical=entry.critical,
    )


# ── Inventory ───────────────────────────────────────────────────


def check_dependencies(
    platform: PlatformInfo | None = None,
    *,
    capture: Capture = run_capture,
    timeout: int = 10,
    catalog: dict[str, list[CatalogEntry]] | None = None,
) -> EnvReport:
    """Probe every catalog entry for the host OS.

    Probes run concurrently; the report keeps catalog order. Computed
    fresh on every call.

    Returns:
        EnvReport. An OS family with no catalog yields an unsupported
        report with no dependencies.
    """
    plat = platform or detect_platform()
    entries = (catalog if catalog is not None else DEPENDENCY_CATALOG).get(plat.os_family)

    if entries is None:
        logger.info("No dependency catalog for os=%s", plat.os_family)
        return EnvReport(os="unsupported", distro=plat.distro, supported=False)

    workers = max(1, min(MAX_PROBE_WORKERS, len(entries)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="probe") as pool:
        deps = list(pool.map(lambda e: probe_entry(e, capture, timeout), entries))

    missing = [d.name for d in deps if not d.installed]
    if missing:
        logger.info("Missing dependencies on %s: %s", plat.os_family, ", ".join(missing))

    return EnvReport(os=plat.os_family, distro=plat.distro, dependencies=deps)


def check_environment(
    config: UserConfig,
    settings: ProvisionSettings | None = None,
    *,
    capture: Capture = run_capture,
    environ: dict[str, str] | None = None,
) -> EnvStatus:
    """Four-flag readiness check: git, interpreter, west, SDK.

    Uses the configured venv interpreter when it exists, otherwise the
    base interpreter from settings.
    """
    settings = settings or ProvisionSettings()
    env = os.environ if environ is None else environ
    timeout = settings.probe_timeout

    python_cmd = settings.base_python
    if config.venv_path:
        candidate = venv_interpreter(Path(config.venv_path))
        if candidate.exists():
            python_cmd = str(candidate)

    def ok(argv: list[str]) -> bool:
        rc, _ = capture(argv, timeout=timeout)
        return rc == 0

    if config.sdk_base:
        sdk = Path(config.sdk_base).exists()
    else:
        sdk = "ZEPHYR_BASE" in env

    return EnvStatus(
        git=ok(["git", "--version"]),
        python=ok([python_cmd, "--version"]),
        west=ok([python_cmd, "-m", "west", "--version"]),
        sdk=sdk,
    )
