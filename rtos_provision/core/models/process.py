"""
Process models — the execution contract for external commands.

A ``ProcessSpec`` describes one external command. The runner turns it
into a child process, streams ``LogEvent`` lines to a sink, and returns
a ``StepResult``. The runner NEVER raises for a failed command — spawn
errors and non-zero exits are both captured in the result.
"""

from __future__ import annotations

import shlex
import subprocess
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class StreamKind(str, Enum):
    """Provenance of a log line."""

    STDOUT = "stdout"
    STDERR = "stderr"
    INFO = "info"        # milestone lines written by the pipeline itself


@dataclass(frozen=True)
class LogEvent:
    """One line of output, terminator included.

    ``seq`` orders events from the same stream of the same process.
    There is no ordering guarantee between stdout and stderr.
    """

    stream: StreamKind
    text: str
    seq: int = 0


class ProcessSpec(BaseModel):
    """An external command to run. Immutable once constructed."""

    model_config = ConfigDict(frozen=True)

    executable: str
    args: tuple[str, ...] = ()
    cwd: Path | None = None
    env: dict[str, str] = Field(default_factory=dict)   # overlay on inherited env
    env_unset: tuple[str, ...] = ()
    label: str = ""
    hide_window: bool = True

    @property
    def argv(self) -> list[str]:
        return [self.executable, *self.args]

    def display(self) -> str:
        """Render the command line for humans (never executed as a string)."""
        if sys.platform == "win32":
            return subprocess.list2cmdline(self.argv)
        return shlex.join(self.argv)

    def with_args(self, *extra: str) -> ProcessSpec:
        """Return a copy with ``extra`` appended to the argument list."""
        return self.model_copy(update={"args": (*self.args, *extra)})


class StepResult(BaseModel):
    """Terminal status of one external command.

    Final once the child has exited (or failed to spawn).
    """

    model_config = ConfigDict(frozen=True)

    status: Literal["ok", "failed"] = "ok"
    command: str = ""
    exit_code: int | None = None
    spawn_error: str | None = None
    duration_ms: int = 0
    tail: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @property
    def is_spawn_error(self) -> bool:
        """True when no process was ever started."""
        return self.failed and self.spawn_error is not None

    @property
    def cause(self) -> str:
        """Human-readable failure cause ("" on success)."""
        if self.ok:
            return ""
        if self.spawn_error is not None:
            return f"failed to start: {self.spawn_error}"
        return f"exited with status {self.exit_code}"

    @classmethod
    def success(cls, command: str, **kwargs: Any) -> StepResult:
        return cls(status="ok", command=command, exit_code=0, **kwargs)

    @classmethod
    def failure(cls, command: str, exit_code: int, **kwargs: Any) -> StepResult:
        return cls(status="failed", command=command, exit_code=exit_code, **kwargs)

    @classmethod
    def spawn_failure(cls, command: str, error: str, **kwargs: Any) -> StepResult:
        return cls(status="failed", command=command, spawn_error=error, **kwargs)
