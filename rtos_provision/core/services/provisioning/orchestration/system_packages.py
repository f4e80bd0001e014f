"""
L4 Orchestration — Install missing system packages.

Maps the missing entries of an ``EnvReport`` onto OS packages and
installs them, either:

  interactive      in a new terminal window (Linux: ``sudo apt/dnf ...``
                   so the user can type a password) or an elevated
                   PowerShell running ``winget install ...`` (Windows).
                   Fire-and-forget: the window is launched, not awaited.
  non-interactive  through the process runner, output streamed to the
                   sink, ``sudo -n`` prepended when not root.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from rtos_provision.core.models.environment import EnvReport
from rtos_provision.core.models.process import ProcessSpec
from rtos_provision.core.models.settings import ProvisionSettings
from rtos_provision.core.services.provisioning.data.catalog import (
    DEFAULT_LINUX_DISTRO,
    INSTALLERS,
    PACKAGE_NAMES,
    TERMINALS,
)
from rtos_provision.core.services.provisioning.detection.dependencies import check_dependencies
from rtos_provision.core.services.provisioning.execution.process_runner import (
    Runner,
    run_process,
)
from rtos_provision.core.services.provisioning.execution.sink import LoggingSink, LogSink
from rtos_provision.core.services.provisioning.orchestration.pipeline import (
    PipelineContext,
    PipelineError,
    PipelineStep,
    run_pipeline,
)
from rtos_provision.core.services.provisioning.platform_info import (
    PlatformInfo,
    detect_platform,
)

logger = logging.getLogger(__name__)

# Spawns a detached GUI process (terminal / PowerShell window).
Launcher = Callable[[list[str]], object]


@dataclass
class InstallPlan:
    family: str
    installer: list[str]
    packages: list[str] = field(default_factory=list)
    unmapped: list[str] = field(default_factory=list)

    @property
    def commands(self) -> list[list[str]]:
        """Install commands, without privilege escalation."""
        if self.family == "winget":
            return [[*self.installer, pkg] for pkg in self.packages]
        return [[*self.installer, *self.packages]]

    def to_dict(self) -> dict:
        return {
            "family": self.family,
            "packages": list(self.packages),
            "unmapped": list(self.unmapped),
            "commands": [shlex.join(c) for c in self.commands],
        }


def plan_install(report: EnvReport, platform: PlatformInfo) -> InstallPlan | None:
    """Compute the OS packages for the missing dependencies.

    Returns:
        ``None`` when nothing is missing or nothing maps to a package.
    """
    family = platform.package_family
    if family is None and platform.os_family == "linux":
        family = DEFAULT_LINUX_DISTRO
    if family not in PACKAGE_NAMES:
        logger.info("No package map for %s", family)
        return None

    names = PACKAGE_NAMES[family]
    plan = InstallPlan(family=family, installer=list(INSTALLERS[family]))
    for dep in report.missing:
        pkgs = names.get(dep.name)
        if pkgs is None:
            plan.unmapped.append(dep.name)
            continue
        for pkg in pkgs:
            if pkg not in plan.packages:
                plan.packages.append(pkg)

    if plan.unmapped:
        logger.warning("No package for: %s", ", ".join(plan.unmapped))
    if not plan.packages:
        return None
    return plan


# ── Interactive launch ──────────────────────────────────────────


def terminal_command(
    plan: InstallPlan,
    which: Callable[[str], str | None] | None = None,
) -> list[str]:
    """argv that opens a terminal running ``sudo <install>``."""
    which = which or shutil.which
    script = "; ".join(f"sudo {shlex.join(c)}" for c in plan.commands)
    script += "; echo 'Press Enter to close...'; read"
    for name, prefix in TERMINALS:
        if which(name):
            return [*prefix, "bash", "-c", script]
    raise PipelineError(
        "launch-terminal",
        "no supported terminal emulator found; install the packages manually: "
        + "; ".join(shlex.join(c) for c in plan.commands),
    )


def powershell_command(plan: InstallPlan, winget_mirror: str | None = None) -> list[str]:
    """argv that opens an elevated PowerShell running ``winget install``."""
    parts: list[str] = []
    if winget_mirror:
        parts += [
            "winget source remove winget",
            f"winget source add winget {winget_mirror} --trust-level trusted",
        ]
    parts += [subprocess.list2cmdline(c) for c in plan.commands]
    parts.append("Read-Host 'Press Enter to exit'")
    script = "; ".join(parts)
    return [
        "powershell",
        "Start-Process", "powershell",
        "-Verb", "RunAs",
        "-ArgumentList", f'"-NoExit -Command {script}"',
    ]


def _spawn_detached(argv: list[str]) -> object:
    return subprocess.Popen(
        argv,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=os.name != "nt",
    )


# ── Entry point ─────────────────────────────────────────────────


def _is_root() -> bool:
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0


def install_dependencies(
    sink: LogSink | None = None,
    *,
    report: EnvReport | None = None,
    platform: PlatformInfo | None = None,
    interactive: bool = True,
    settings: ProvisionSettings | None = None,
    runner: Runner = run_process,
    launcher: Launcher = _spawn_detached,
) -> InstallPlan | None:
    """Install the OS packages for every missing dependency.

    Args:
        report: Inventory to act on; probed fresh when omitted.
        interactive: Open a terminal / elevated window instead of
            running the installer in-process.

    Returns:
        The executed plan, or ``None`` when nothing needed installing.

    Raises:
        PipelineError: unsupported OS, no terminal found, launch failed,
            or (non-interactive) the installer exited non-zero.
    """
    sink = sink or LoggingSink()
    settings = settings or ProvisionSettings()
    platform = platform or detect_platform()
    report = report or check_dependencies(platform, timeout=settings.probe_timeout)

    if not report.supported:
        raise PipelineError("install-packages", "unsupported operating system")

    plan = plan_install(report, platform)
    if plan is None:
        sink.info("Nothing to install.")
        return None

    sink.info(f"Installing {len(plan.packages)} package(s): {' '.join(plan.packages)}")

    if interactive:
        if plan.family == "winget":
            argv = powershell_command(plan, settings.winget_mirror)
        else:
            argv = terminal_command(plan)
        logger.info("Launching installer window: %s", argv[0])
        try:
            launcher(argv)
        except OSError as e:
            raise PipelineError("launch-terminal", f"failed to launch {argv[0]}: {e}") from e
        sink.info("Installer opened in a new window; re-run 'env deps' when it finishes.")
        return plan

    escalate = plan.family != "winget" and not _is_root()
    steps = []
    for cmd in plan.commands:
        argv = ["sudo", "-n", *cmd] if escalate else cmd
        steps.append(
            PipelineStep(
                name="install-packages",
                milestone=f"Running {shlex.join(argv)}",
                build=lambda ctx, argv=argv: ProcessSpec(
                    executable=argv[0], args=tuple(argv[1:]), label="install",
                ),
            ),
        )
    run_pipeline(steps, PipelineContext(target=Path.cwd(), settings=settings), sink, runner=runner)
    sink.info("System packages installed.")
    return plan
