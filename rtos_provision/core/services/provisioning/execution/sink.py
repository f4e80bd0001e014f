"""
L2 Execution — Log sinks.

A sink is the single append-only channel that receives every line
produced during a pipeline run: child process output from the two
reader threads plus the pipeline's own milestone lines.

Thread safety model
───────────────────
Readers for stdout and stderr call ``emit()`` concurrently. Every sink
serializes ``emit()`` with its own lock, so a line is always delivered
whole. Cross-line ordering between streams is NOT guaranteed.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable

import click

from rtos_provision.core.models.process import LogEvent, StreamKind

logger = logging.getLogger(__name__)


class LogSink:
    """Base sink. Subclasses implement ``_write``."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def emit(self, stream: StreamKind, text: str, seq: int = 0) -> None:
        event = LogEvent(stream=stream, text=text, seq=seq)
        with self._lock:
            self._write(event)

    def info(self, message: str) -> None:
        """Emit a human-readable milestone line."""
        self.emit(StreamKind.INFO, message + "\n")

    def _write(self, event: LogEvent) -> None:
        raise NotImplementedError


class CallbackSink(LogSink):
    """Forward every event to a callable (e.g. a GUI event emitter)."""

    def __init__(self, callback: Callable[[LogEvent], None]) -> None:
        super().__init__()
        self._callback = callback

    def _write(self, event: LogEvent) -> None:
        self._callback(event)


class CollectingSink(LogSink):
    """Keep events in memory."""

    def __init__(self) -> None:
        super().__init__()
        self.events: list[LogEvent] = []

    def _write(self, event: LogEvent) -> None:
        self.events.append(event)

    def texts(self, stream: StreamKind | None = None) -> list[str]:
        with self._lock:
            return [e.text for e in self.events if stream is None or e.stream == stream]

    @property
    def output(self) -> str:
        return "".join(self.texts())


class ConsoleSink(LogSink):
    """Print events to the terminal.

    stdout and milestone lines go to stdout, stderr lines to stderr.
    With ``crlf=True`` line terminators are rewritten to ``\\r\\n`` for
    consumers that emulate a raw terminal.
    """

    def __init__(self, *, crlf: bool = False, color: bool = True) -> None:
        super().__init__()
        self.crlf = crlf
        self.color = color

    def _write(self, event: LogEvent) -> None:
        text = _to_crlf(event.text) if self.crlf else event.text
        if event.stream == StreamKind.INFO:
            click.secho(text, fg="cyan" if self.color else None, bold=self.color, nl=False)
        elif event.stream == StreamKind.STDERR:
            click.echo(text, nl=False, err=True)
        else:
            click.echo(text, nl=False)


class LoggingSink(LogSink):
    """Send lines to a logger at DEBUG (for log files)."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        super().__init__()
        self._log = log or logger

    def _write(self, event: LogEvent) -> None:
        self._log.debug("[%s] %s", event.stream.value, event.text.rstrip("\r\n"))


class TeeSink(LogSink):
    """Fan one event out to several sinks."""

    def __init__(self, *sinks: LogSink) -> None:
        super().__init__()
        self._sinks: tuple[LogSink, ...] = sinks

    def _write(self, event: LogEvent) -> None:
        for sink in self._sinks:
            sink.emit(event.stream, event.text, event.seq)

    @property
    def sinks(self) -> Iterable[LogSink]:
        return self._sinks


def _to_crlf(text: str) -> str:
    if text.endswith("\r\n"):
        return text
    if text.endswith("\n") or text.endswith("\r"):
        return text[:-1] + "\r\n"
    return text
