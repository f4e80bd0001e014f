"""
L4 Orchestration — Workspace provisioning.

``provision()`` turns an empty directory into a ready-to-build Zephyr
workspace with its own isolated Python installation:

    prepare → create-venv → (resolve interpreter) → pip-upgrade →
    pip-index → install-west → west-init → west-update →
    zephyr-export → python-deps → sdk-install

The two mirror steps are skipped when ``pip_mirror`` is unset. Every
step after ``create-venv`` runs with the venv's activation overlay.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from rtos_provision.core.models.settings import ProvisionSettings
from rtos_provision.core.services.provisioning.data.constants import BLOB_FILTER
from rtos_provision.core.services.provisioning.execution.overlay import (
    activation_overlay,
    venv_interpreter,
)
from rtos_provision.core.services.provisioning.execution.process_runner import (
    Runner,
    run_process,
)
from rtos_provision.core.services.provisioning.execution.sink import LoggingSink, LogSink
from rtos_provision.core.services.provisioning.orchestration.pipeline import (
    PipelineContext,
    PipelineError,
    PipelineRun,
    PipelineStep,
    run_pipeline,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProvisionOptions:
    sdk_destination: Path | None = None
    shallow_clone: bool = False


def workspace_venv(target: Path, settings: ProvisionSettings) -> Path:
    """Root of the isolated installation inside a workspace."""
    return target / settings.venv_dir


def workspace_zephyr_base(target: Path, settings: ProvisionSettings) -> Path:
    """The RTOS source tree checked out by ``west update``."""
    return target / settings.sdk_subdir


# ── Step builders ───────────────────────────────────────────────


def _resolve_interpreter(ctx: PipelineContext) -> None:
    venv = workspace_venv(ctx.target, ctx.settings)
    family = ctx.extra.get("family")
    interpreter = venv_interpreter(venv, family=family)
    if not interpreter.exists():
        raise PipelineError(
            "resolve-interpreter",
            f"interpreter not found after venv creation: {interpreter}",
        )
    ctx.interpreter = interpreter
    ctx.overlay = activation_overlay(venv, family=family)
    logger.debug("Resolved interpreter %s", interpreter)


def build_provision_steps(options: ProvisionOptions, settings: ProvisionSettings) -> list[PipelineStep]:
    """The ordered step list for one provisioning run."""
    steps = [
        PipelineStep(
            name="create-venv",
            milestone="Creating virtual environment...",
            build=lambda ctx: ctx.spec(
                settings.base_python, "-m", "venv", settings.venv_dir, label="venv",
            ),
            on_success=_resolve_interpreter,
        ),
    ]

    mirror = settings.pip_mirror
    if mirror:
        steps += [
            PipelineStep(
                name="pip-upgrade",
                milestone=f"Upgrading pip from {mirror}...",
                build=lambda ctx: ctx.python(
                    "-m", "pip", "install", "-i", mirror, "pip", "-U", label="pip",
                ),
            ),
            PipelineStep(
                name="pip-index",
                milestone="Configuring pip package index...",
                build=lambda ctx: ctx.python(
                    "-m", "pip", "config", "set", "global.index-url", mirror, label="pip",
                ),
            ),
        ]

    init_args = ["-m", "west", "init"]
    if settings.manifest_url:
        init_args += ["-m", settings.manifest_url]
        if settings.manifest_revision:
            init_args += ["--mr", settings.manifest_revision]
    if options.shallow_clone:
        init_args.append(f"--clone-opt={BLOB_FILTER}")
    init_args.append(".")

    update_args = ["-m", "west", "update"]
    if options.shallow_clone:
        update_args.append(f"--fetch-opt={BLOB_FILTER}")

    sdk_args = ["-m", "west", "sdk", "install"]
    if options.sdk_destination is not None:
        sdk_args += ["-d", str(options.sdk_destination)]

    steps += [
        PipelineStep(
            name="install-west",
            milestone=f"Installing {settings.meta_tool_package}...",
            build=lambda ctx: ctx.python(
                "-m", "pip", "install", settings.meta_tool_package, label="pip",
            ),
        ),
        PipelineStep(
            name="west-init",
            milestone="Initializing west workspace...",
            build=lambda ctx: ctx.python(*init_args, label="west"),
        ),
        PipelineStep(
            name="west-update",
            milestone="Updating west modules (this may take a while)...",
            build=lambda ctx: ctx.python(*update_args, label="west"),
        ),
        PipelineStep(
            name="zephyr-export",
            milestone="Exporting Zephyr CMake package...",
            build=lambda ctx: ctx.python("-m", "west", "zephyr-export", label="west"),
        ),
        PipelineStep(
            name="python-deps",
            milestone="Installing Python dependencies...",
            build=lambda ctx: ctx.python(
                "-m", "west", "packages", "pip", "--install", label="west",
            ),
        ),
        PipelineStep(
            name="sdk-install",
            milestone="Installing Zephyr SDK...",
            build=lambda ctx: ctx.python(
                *sdk_args,
                cwd=workspace_zephyr_base(ctx.target, settings),
                label="west",
            ),
        ),
    ]
    return steps


# ── Entry point ─────────────────────────────────────────────────


def provision(
    target_directory: str | Path,
    options: ProvisionOptions | None = None,
    sink: LogSink | None = None,
    *,
    settings: ProvisionSettings | None = None,
    runner: Runner = run_process,
    family: str | None = None,
) -> PipelineRun:
    """Provision a Zephyr workspace in ``target_directory``.

    Args:
        target_directory: Workspace root; created if missing.
        options: SDK destination and shallow-clone flag.
        sink: Receives milestones and every line of child output.
        settings: Pipeline settings (mirror, interpreter, manifest).
        runner: Process runner; tests pass a recording fake.
        family: OS family override for venv layout (default: host).

    Returns:
        The succeeded ``PipelineRun``.

    Raises:
        PipelineError: naming the step that failed. Partial state on
            disk is left in place.
    """
    options = options or ProvisionOptions()
    settings = settings or ProvisionSettings()
    sink = sink or LoggingSink()
    target = Path(target_directory).expanduser().absolute()

    run = PipelineRun()
    run.start("prepare")
    try:
        target.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        run.fail("prepare", str(e))
        raise PipelineError("prepare", f"cannot create {target}: {e}") from e

    logger.info(
        "Provisioning %s (shallow=%s, sdk=%s)",
        target, options.shallow_clone, options.sdk_destination,
    )

    ctx = PipelineContext(target=target, settings=settings, extra={"family": family})
    run_pipeline(build_provision_steps(options, settings), ctx, sink, runner=runner, run=run)

    sink.info("Zephyr installation complete!")
    logger.info("Provisioned %s", target)
    return run
