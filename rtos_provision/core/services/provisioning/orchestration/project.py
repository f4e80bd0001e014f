"""
L4 Orchestration — New project from the starter manifest.

``create_project()`` records the project in history, then runs two
meta-tool steps with the configured isolated installation active:

    west-init    west init -m <starter> --mr <rev> [--clone-opt=--depth=N] <name>
                 (cwd: parent of the workspace)
    west-update  west update [--fetch-opt=--depth=N]
                 (cwd: the workspace)

Two invocation styles are supported (``settings.activation``):

  overlay  run ``<venv>/bin/west`` directly with the activation overlay
  shell    compose ``. <venv>/bin/activate && west ...`` and run it
           through ``sh -c`` (``cmd /C`` with ``activate.bat`` on Windows)

``run_meta_tool()`` runs any other west command in an existing workspace
the same way; ``delete_project_directory()`` removes a project from disk.
"""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import Callable

from rtos_provision.core.models.process import ProcessSpec, StepResult
from rtos_provision.core.models.settings import ProvisionSettings
from rtos_provision.core.models.user_config import ProjectRecord
from rtos_provision.core.persistence.user_config import ConfigStore
from rtos_provision.core.services.provisioning.execution.overlay import (
    EnvOverlay,
    activation_overlay,
    venv_activation_script,
    venv_executable,
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
from rtos_provision.core.services.provisioning.platform_info import os_family

logger = logging.getLogger(__name__)

PROJECT_TYPE = "zephyr"

# Terminal type exported to the meta-tool.
_TERM_ENV = {"TERM": "xterm"}

NameResolver = Callable[[Path], str | None]


def _meta_tool_spec(
    args: list[str],
    *,
    venv: Path,
    cwd: Path,
    settings: ProvisionSettings,
    family: str,
    label: str,
) -> ProcessSpec:
    tool = settings.meta_tool_package

    if settings.activation == "shell":
        activate = venv_activation_script(venv, family=family)
        if family == "windows":
            line = subprocess.list2cmdline([str(activate)]) + " && " + subprocess.list2cmdline([tool, *args])
            return ProcessSpec(
                executable="cmd", args=("/C", line), cwd=cwd, env=dict(_TERM_ENV), label=label,
            )
        line = f". {shlex.quote(str(activate))} && {shlex.join([tool, *args])}"
        return ProcessSpec(
            executable="sh", args=("-c", line), cwd=cwd, env=dict(_TERM_ENV), label=label,
        )

    overlay: EnvOverlay = activation_overlay(venv, family=family)
    return ProcessSpec(
        executable=str(venv_executable(venv, tool, family=family)),
        args=tuple(args),
        cwd=cwd,
        env={**overlay.variables, **_TERM_ENV},
        env_unset=overlay.unset,
        label=label,
    )


def build_project_steps(
    workspace: Path,
    venv: Path,
    shallow_clone: bool,
    settings: ProvisionSettings,
    family: str,
) -> list[PipelineStep]:
    init_args = [
        "init",
        "-m", settings.starter_manifest_url,
        "--mr", settings.starter_revision,
    ]
    if shallow_clone:
        init_args.append(f"--clone-opt=--depth={settings.shallow_depth}")
    init_args.append(workspace.name)

    update_args = ["update"]
    if shallow_clone:
        update_args.append(f"--fetch-opt=--depth={settings.shallow_depth}")

    def spec_for(args: list[str], cwd: Path) -> Callable[[PipelineContext], ProcessSpec]:
        return lambda ctx: _meta_tool_spec(
            args, venv=venv, cwd=cwd, settings=settings, family=family, label="west",
        )

    return [
        PipelineStep(
            name="west-init",
            milestone=f"Initializing project: west {shlex.join(init_args)}",
            build=spec_for(init_args, workspace.parent),
        ),
        PipelineStep(
            name="west-update",
            milestone=f"Updating project: west {shlex.join(update_args)}",
            build=spec_for(update_args, workspace),
        ),
    ]


def create_project(
    name: str,
    workspace_path: str | Path,
    shallow_clone: bool = False,
    sink: LogSink | None = None,
    *,
    store: ConfigStore | None = None,
    settings: ProvisionSettings | None = None,
    runner: Runner = run_process,
    name_resolver: NameResolver | None = None,
    family: str | None = None,
) -> PipelineRun:
    """Create a project workspace from the starter manifest.

    The project is recorded in history before anything runs, so a
    failed creation still shows up in the recent-projects list.

    Raises:
        PipelineError: ``configure`` when no isolated installation is
            configured or the path is unusable, otherwise the failing
            meta-tool step.
    """
    store = store or ConfigStore()
    settings = settings or ProvisionSettings()
    sink = sink or LoggingSink()
    fam = family or os_family()
    workspace = Path(workspace_path).expanduser().absolute()

    if not workspace.name:
        raise PipelineError("configure", f"invalid workspace path: {workspace_path}")

    config = store.update(
        lambda c: c.touch_project(workspace, name=name, project_type=PROJECT_TYPE),
    )
    if not config.venv_path:
        raise PipelineError(
            "configure", "no virtual environment configured; run 'workspace install' first",
        )
    venv = Path(config.venv_path)

    if not workspace.parent.is_dir():
        raise PipelineError("configure", f"parent directory does not exist: {workspace.parent}")

    logger.info("Creating project %s at %s (shallow=%s)", name, workspace, shallow_clone)

    ctx = PipelineContext(target=workspace, settings=settings)
    steps = build_project_steps(workspace, venv, shallow_clone, settings, fam)
    run = run_pipeline(steps, ctx, sink, runner=runner)

    if name_resolver is not None:
        resolved = name_resolver(workspace)
        if resolved and resolved != name:
            logger.info("Project name resolved to %s", resolved)
            store.update(lambda c: _rename(c.get_project(str(workspace)), resolved))

    sink.info("Project created!")
    return run


def _rename(record: ProjectRecord | None, name: str) -> None:
    if record is not None:
        record.name = name


# ── Ad-hoc meta-tool commands ───────────────────────────────────


def run_meta_tool(
    args: list[str],
    cwd: str | Path,
    sink: LogSink | None = None,
    *,
    venv: str | Path,
    settings: ProvisionSettings | None = None,
    runner: Runner = run_process,
    family: str | None = None,
) -> StepResult:
    """Run ``west <args>`` in ``cwd`` with the isolated installation active.

    Output streams to ``sink`` while the command runs.

    Raises:
        PipelineError: ``configure`` when ``args`` is empty or ``cwd`` is
            not a directory, ``west`` when the command fails.
    """
    settings = settings or ProvisionSettings()
    sink = sink or LoggingSink()
    fam = family or os_family()
    workdir = Path(cwd).expanduser().absolute()

    if not args:
        raise PipelineError("configure", "no west command given")
    if not workdir.is_dir():
        raise PipelineError("configure", f"workspace directory does not exist: {workdir}")

    spec = _meta_tool_spec(
        list(args), venv=Path(venv), cwd=workdir, settings=settings, family=fam, label="west",
    )
    step = PipelineStep(
        name="west",
        milestone=f"Running: west {shlex.join(args)}",
        build=lambda ctx: spec,
    )
    run = run_pipeline([step], PipelineContext(target=workdir, settings=settings), sink, runner=runner)
    return run.results[-1][1]


# ── Project directories ─────────────────────────────────────────


def delete_project_directory(path: str | Path) -> Path:
    """Remove a project directory and everything below it.

    Raises:
        PipelineError: ``delete-project`` when the path does not exist,
            is not a directory, or cannot be removed.
    """
    target = Path(path).expanduser().absolute()
    if not target.exists():
        raise PipelineError("delete-project", f"directory does not exist: {target}")
    if not target.is_dir():
        raise PipelineError("delete-project", f"path is not a directory: {target}")

    logger.info("Deleting project directory %s", target)
    try:
        shutil.rmtree(target)
    except OSError as e:
        raise PipelineError("delete-project", f"cannot remove {target}: {e}") from e
    return target
