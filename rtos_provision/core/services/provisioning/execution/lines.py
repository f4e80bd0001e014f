"""
L2 Execution — Incremental line assembly.

Pipe reads return arbitrary byte chunks. ``LineAssembler`` decodes them
incrementally and cuts complete lines, keeping each terminator intact:

  ``\\n``    end of line
  ``\\r\\n``  end of line (one event, not two)
  ``\\r``    end of line when NOT followed by ``\\n`` (progress redraws)

A ``\\r`` at the very end of a chunk is held back until the next chunk
shows whether a ``\\n`` follows. ``close()`` flushes whatever is left,
so a final line without a terminator is never lost.

Only newly decoded text is scanned; an unterminated line accumulates as
a list of fragments and is joined once, when its terminator arrives.
"""

from __future__ import annotations

import codecs
import re

_TERMINATOR = re.compile(r"\r\n|\r|\n")


class LineAssembler:
    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._parts: list[str] = []
        self._held_cr = False

    def feed(self, data: bytes) -> list[str]:
        """Add a chunk; return the lines it completed."""
        return self._split(self._decoder.decode(data))

    def close(self) -> list[str]:
        """End of stream; return the remaining complete and partial lines."""
        lines = self._split(self._decoder.decode(b"", final=True))
        if self._held_cr:
            self._held_cr = False
            lines.append(self._take("\r"))
        elif self._parts:
            lines.append(self._take(""))
        return lines

    @property
    def pending(self) -> str:
        """Text received but not yet emitted as a line."""
        return "".join(self._parts) + ("\r" if self._held_cr else "")

    def _take(self, terminator: str) -> str:
        line = "".join(self._parts) + terminator
        self._parts = []
        return line

    def _split(self, text: str) -> list[str]:
        lines: list[str] = []
        if not text:
            return lines

        start = 0
        if self._held_cr:
            self._held_cr = False
            if text[0] == "\n":
                lines.append(self._take("\r\n"))
                start = 1
            else:
                lines.append(self._take("\r"))

        end = len(text)
        for m in _TERMINATOR.finditer(text, start):
            if m.start() > start:
                self._parts.append(text[start:m.start()])
            if m.group() == "\r" and m.end() == end:
                self._held_cr = True
                return lines
            lines.append(self._take(m.group()))
            start = m.end()

        if start < end:
            self._parts.append(text[start:])
        return lines
