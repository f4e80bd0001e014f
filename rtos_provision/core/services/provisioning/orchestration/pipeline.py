"""
L4 Orchestration — Sequential pipeline driver.

A pipeline is an ordered list of ``PipelineStep``. Each step logs its
milestone line to the sink, builds a ``ProcessSpec`` from the shared
``PipelineContext`` and hands it to the runner. The first failed step
ends the run; later steps are never started. There are no retries and
no rollback: whatever earlier steps left on disk stays there.

State machine::

    not_started ──► running(step) ──► succeeded
                          │
                          └─────────► failed(step, cause)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable

from rtos_provision.core.models.process import ProcessSpec, StepResult
from rtos_provision.core.models.settings import ProvisionSettings
from rtos_provision.core.services.provisioning.execution.overlay import EnvOverlay
from rtos_provision.core.services.provisioning.execution.process_runner import (
    Runner,
    run_process,
)
from rtos_provision.core.services.provisioning.execution.sink import LogSink

logger = logging.getLogger(__name__)


class PipelineError(Exception):
    """A pipeline stopped at ``step``.

    ``result`` is the failing command's StepResult, or ``None`` when the
    failure happened outside a child process (missing directory,
    unresolvable interpreter, missing configuration).
    """

    def __init__(self, step: str, message: str, result: StepResult | None = None):
        super().__init__(message)
        self.step = step
        self.message = message
        self.result = result

    def __str__(self) -> str:
        text = f"step '{self.step}' failed: {self.message}"
        if self.result is not None and self.result.tail:
            text += "\n" + "\n".join(self.result.tail)
        return text

    @classmethod
    def from_result(cls, step: str, result: StepResult) -> PipelineError:
        return cls(step, f"{result.command} {result.cause}", result)

    def to_dict(self) -> dict:
        return {
            "ok": False,
            "step": self.step,
            "error": self.message,
            "exit_code": self.result.exit_code if self.result else None,
            "spawn_error": self.result.spawn_error if self.result else None,
            "tail": list(self.result.tail) if self.result else [],
        }


@dataclass
class PipelineContext:
    """Mutable state shared by the steps of one run."""

    target: Path
    settings: ProvisionSettings = field(default_factory=ProvisionSettings)
    interpreter: Path | None = None
    overlay: EnvOverlay | None = None
    extra: dict = field(default_factory=dict)

    def spec(
        self,
        executable: str | Path,
        *args: str,
        cwd: Path | None = None,
        label: str = "",
        env: dict[str, str] | None = None,
    ) -> ProcessSpec:
        """ProcessSpec carrying the current overlay (if any)."""
        variables = dict(self.overlay.variables) if self.overlay else {}
        if env:
            variables.update(env)
        return ProcessSpec(
            executable=str(executable),
            args=tuple(args),
            cwd=cwd if cwd is not None else self.target,
            env=variables,
            env_unset=self.overlay.unset if self.overlay else (),
            label=label,
        )

    def python(self, *args: str, **kwargs) -> ProcessSpec:
        """``<venv interpreter> <args>``; only valid once the interpreter is resolved."""
        if self.interpreter is None:
            raise PipelineError("resolve-interpreter", "interpreter has not been resolved")
        return self.spec(self.interpreter, *args, **kwargs)


@dataclass(frozen=True)
class PipelineStep:
    name: str
    milestone: str
    build: Callable[[PipelineContext], ProcessSpec]
    on_success: Callable[[PipelineContext], None] | None = None


class RunState(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class PipelineRun:
    """Progress of one pipeline run."""

    state: RunState = RunState.NOT_STARTED
    current_step: str | None = None
    failed_step: str | None = None
    cause: str | None = None
    results: list[tuple[str, StepResult]] = field(default_factory=list)

    def start(self, step: str) -> None:
        if self.state in (RunState.SUCCEEDED, RunState.FAILED):
            raise RuntimeError(f"pipeline already {self.state.value}")
        self.state = RunState.RUNNING
        self.current_step = step

    def record(self, step: str, result: StepResult) -> None:
        self.results.append((step, result))

    def fail(self, step: str, cause: str) -> None:
        self.state = RunState.FAILED
        self.failed_step = step
        self.cause = cause
        self.current_step = None

    def succeed(self) -> None:
        self.state = RunState.SUCCEEDED
        self.current_step = None

    @property
    def steps_run(self) -> list[str]:
        return [name for name, _ in self.results]

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "failed_step": self.failed_step,
            "cause": self.cause,
            "steps": [
                {"name": name, **result.model_dump()} for name, result in self.results
            ],
        }


def run_pipeline(
    steps: list[PipelineStep],
    ctx: PipelineContext,
    sink: LogSink,
    *,
    runner: Runner = run_process,
    run: PipelineRun | None = None,
) -> PipelineRun:
    """Run ``steps`` in order, stopping at the first failure.

    Raises:
        PipelineError: a step failed. The run passed in (or the one
            created here) is left in the ``failed`` state.
    """
    run = run or PipelineRun()

    for step in steps:
        run.start(step.name)
        sink.info(step.milestone)
        logger.info("Pipeline step %s", step.name)

        try:
            spec = step.build(ctx)
        except PipelineError as e:
            run.fail(e.step, e.message)
            raise

        result = runner(spec, sink)
        run.record(step.name, result)

        if result.failed:
            error = PipelineError.from_result(step.name, result)
            run.fail(step.name, result.cause)
            logger.error("Pipeline aborted at %s: %s", step.name, result.cause)
            raise error

        if step.on_success is not None:
            try:
                step.on_success(ctx)
            except PipelineError as e:
                run.fail(e.step, e.message)
                raise

    run.succeed()
    return run
