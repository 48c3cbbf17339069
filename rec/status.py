"""Progress messages on stderr, kept apart from the transcript on stdout."""

from __future__ import annotations

import sys
from typing import TextIO

CLEAR_LINE = "\r\x1b[K"


class StatusChannel:
    """Single-line status display.

    On a terminal each message replaces the previous one in place. Otherwise
    every message is written on its own line. Messages are also kept in
    ``messages`` in the order they were shown.
    """

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream if stream is not None else sys.stderr
        self.messages: list[str] = []
        self._dirty = False

    def is_tty(self) -> bool:
        isatty = getattr(self.stream, "isatty", None)
        try:
            return bool(isatty and isatty())
        except ValueError:
            # Closed stream
            return False

    def show(self, message: str) -> None:
        self.messages.append(message)
        if self.is_tty():
            self.stream.write(f"{CLEAR_LINE}{message}")
            self._dirty = True
        else:
            self.stream.write(f"{message}\n")
        self.stream.flush()

    def clear(self) -> None:
        """Erase the current status line, if any."""
        if self._dirty and self.is_tty():
            self.stream.write(CLEAR_LINE)
            self.stream.flush()
        self._dirty = False

    def line(self, message: str = "") -> None:
        """Write a permanent line (not replaced by the next status)."""
        self.clear()
        self.stream.write(f"{message}\n")
        self.stream.flush()
