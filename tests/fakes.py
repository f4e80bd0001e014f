"""
Test doubles shared across test modules.
"""

from __future__ import annotations

from typing import Callable

from rtos_provision.core.models.process import ProcessSpec, StepResult, StreamKind
from rtos_provision.core.services.provisioning.execution.overlay import venv_interpreter
from rtos_provision.core.services.provisioning.execution.sink import LogSink


class RecordingRunner:
    """Fake process runner: records every spec instead of spawning.

    A ``<python> -m venv <dir>`` spec creates the venv interpreter file so
    the pipeline can resolve it. ``fail_on`` picks specs that should fail.
    """

    def __init__(
        self,
        fail_on: Callable[[ProcessSpec], bool] | None = None,
        *,
        exit_code: int = 1,
        family: str = "linux",
        create_interpreter: bool = True,
    ) -> None:
        self.specs: list[ProcessSpec] = []
        self.fail_on = fail_on
        self.exit_code = exit_code
        self.family = family
        self.create_interpreter = create_interpreter

    def __call__(self, spec: ProcessSpec, sink: LogSink) -> StepResult:
        self.specs.append(spec)
        sink.emit(StreamKind.STDOUT, f"ran {spec.display()}\n", 1)

        if self.fail_on is not None and self.fail_on(spec):
            sink.emit(StreamKind.STDERR, "simulated failure\n", 1)
            return StepResult.failure(
                spec.display(), self.exit_code, tail=["simulated failure"],
            )

        if self.create_interpreter and spec.args[:2] == ("-m", "venv"):
            interpreter = venv_interpreter(spec.cwd / spec.args[2], family=self.family)
            interpreter.parent.mkdir(parents=True, exist_ok=True)
            interpreter.write_text("")

        return StepResult.success(spec.display())

    @property
    def argvs(self) -> list[list[str]]:
        return [s.argv for s in self.specs]
