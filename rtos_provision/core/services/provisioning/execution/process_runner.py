"""
L2 Execution — Streaming process runner.

The SINGLE PLACE where pipeline steps spawn child processes. One call
runs one command to completion:

  1. spawn with stdout/stderr on pipes (never inherited)
  2. one reader thread per pipe assembles lines and emits them to the sink
  3. wait for exit, THEN join both readers, so every line has reached
     the sink before the result is returned
  4. classify: exit 0 → ok, non-zero → failed(exit code),
     spawn error → failed(spawn_error) with zero events emitted

The runner never raises for a failed command and never enforces a
timeout: a hung tool hangs the step.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
import threading
import time
from collections import deque
from typing import IO, Callable

from rtos_provision.core.models.process import ProcessSpec, StepResult, StreamKind
from rtos_provision.core.services.provisioning.data.constants import (
    CREATE_NO_WINDOW,
    READ_CHUNK,
    TAIL_LINES,
)
from rtos_provision.core.services.provisioning.execution.lines import LineAssembler
from rtos_provision.core.services.provisioning.execution.sink import LogSink

logger = logging.getLogger(__name__)

# Signature shared by run_process and the fakes used in tests.
Runner = Callable[[ProcessSpec, LogSink], StepResult]


class _TailBuffer:
    """Last N lines of combined output, shared by both readers."""

    def __init__(self, size: int = TAIL_LINES) -> None:
        self._lines: deque[str] = deque(maxlen=size)
        self._lock = threading.Lock()

    def add(self, line: str) -> None:
        with self._lock:
            self._lines.append(line.rstrip("\r\n"))

    def snapshot(self) -> list[str]:
        with self._lock:
            return list(self._lines)


def _pump(
    pipe: IO[bytes],
    stream: StreamKind,
    sink: LogSink,
    tail: _TailBuffer,
) -> None:
    """Reader thread body: pipe → lines → sink, until end of stream.

    A read error ends the stream early: the partial line is flushed, then
    a one-line note on the same stream marks the cut. The exit status
    alone decides the step.
    """
    assembler = LineAssembler()
    seq = 0
    read_error: Exception | None = None

    def deliver(lines: list[str]) -> None:
        nonlocal seq
        for line in lines:
            seq += 1
            tail.add(line)
            sink.emit(stream, line, seq)

    try:
        while True:
            chunk = pipe.read1(READ_CHUNK) if hasattr(pipe, "read1") else pipe.read(READ_CHUNK)
            if not chunk:
                break
            deliver(assembler.feed(chunk))
    except (OSError, ValueError) as e:
        read_error = e
        logger.warning("Read error on %s: %s", stream.value, e)
    finally:
        deliver(assembler.close())
        if read_error is not None:
            deliver([f"[{stream.value} read error: {read_error}]\n"])
        try:
            pipe.close()
        except OSError:
            pass


def _spawn_kwargs(spec: ProcessSpec) -> dict:
    env = os.environ.copy()
    for key in spec.env_unset:
        env.pop(key, None)
    env.update(spec.env)

    kwargs: dict = {
        "stdin": subprocess.DEVNULL,
        "stdout": subprocess.PIPE,
        "stderr": subprocess.PIPE,
        "env": env,
        "cwd": str(spec.cwd) if spec.cwd is not None else None,
    }
    if sys.platform == "win32" and spec.hide_window:
        kwargs["creationflags"] = CREATE_NO_WINDOW
    return kwargs


def run_process(spec: ProcessSpec, sink: LogSink) -> StepResult:
    """Run one command, streaming its output to ``sink``.

    Args:
        spec: The command, its working directory and environment overlay.
        sink: Receives one event per output line while the call runs.

    Returns:
        ``StepResult`` — ok, failed with the exit code, or failed with
        a spawn error (no process was started, no events were emitted).
    """
    command = spec.display()

    if spec.cwd is not None and not spec.cwd.is_dir():
        logger.info("Not starting %s: working directory %s does not exist", command, spec.cwd)
        return StepResult.spawn_failure(
            command, f"working directory does not exist: {spec.cwd}",
        )

    logger.debug("Executing: %s (cwd=%s)", command, spec.cwd)
    start = time.monotonic()

    try:
        proc = subprocess.Popen(spec.argv, **_spawn_kwargs(spec))
    except FileNotFoundError:
        return StepResult.spawn_failure(command, f"executable not found: {spec.executable}")
    except PermissionError as e:
        return StepResult.spawn_failure(command, f"permission denied: {e}")
    except OSError as e:
        return StepResult.spawn_failure(command, str(e))

    tail = _TailBuffer()
    readers = [
        threading.Thread(
            target=_pump,
            args=(proc.stdout, StreamKind.STDOUT, sink, tail),
            name=f"stdout:{spec.label or spec.executable}",
            daemon=True,
        ),
        threading.Thread(
            target=_pump,
            args=(proc.stderr, StreamKind.STDERR, sink, tail),
            name=f"stderr:{spec.label or spec.executable}",
            daemon=True,
        ),
    ]
    for reader in readers:
        reader.start()

    returncode = proc.wait()
    for reader in readers:
        reader.join()

    elapsed_ms = int((time.monotonic() - start) * 1000)
    logger.debug("%s exited with %d after %dms", command, returncode, elapsed_ms)

    if returncode == 0:
        return StepResult.success(command, duration_ms=elapsed_ms, tail=tail.snapshot())
    return StepResult.failure(
        command, returncode, duration_ms=elapsed_ms, tail=tail.snapshot(),
    )


def run_capture(
    argv: list[str],
    *,
    timeout: int = 10,
) -> tuple[int | None, str]:
    """One-shot capture for read-only probes.

    Returns:
        ``(returncode, stdout)``; ``(None, "")`` when the command could not
        run at all (missing binary, timeout, OS error). Never raises.
    """
    kwargs: dict = {}
    if sys.platform == "win32":
        kwargs["creationflags"] = CREATE_NO_WINDOW
    try:
        r = subprocess.run(
            argv,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
            stdin=subprocess.DEVNULL,
            **kwargs,
        )
    except FileNotFoundError:
        return None, ""
    except subprocess.TimeoutExpired:
        logger.warning("Probe timed out after %ss: %s", timeout, argv)
        return None, ""
    except OSError as e:
        logger.warning("Probe could not run %s: %s", argv, e)
        return None, ""
    return r.returncode, r.stdout or ""
