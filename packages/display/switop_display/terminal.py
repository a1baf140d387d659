"""ANSI terminal output for rendered frames."""

from __future__ import annotations

import sys
import threading
from typing import TextIO

from blessed import Terminal

from switop_renderer.models import Frame


class TerminalDisplay:
    """Thin wrapper over a ``blessed`` terminal that owns cursor visibility."""

    def __init__(self, term: Terminal | None = None, stream: TextIO | None = None) -> None:
        self.stream = stream or sys.stdout
        self.term = term or Terminal(stream=self.stream)
        self._lock = threading.Lock()
        self._cursor_hidden = False
        self._restored = False
        self.frames_drawn = 0
        self.restore_count = 0

    @property
    def restored(self) -> bool:
        return self._restored

    def draw(self, frame: Frame) -> None:
        with self._lock:
            if self._restored:
                return
            t = self.term
            self.stream.write(t.home + t.clear + t.hide_cursor + frame.text + "\n")
            self.stream.flush()
            self._cursor_hidden = True
            self.frames_drawn += 1

    def restore(self) -> bool:
        """Make the cursor visible again. Only the first call writes anything."""
        with self._lock:
            if self._restored:
                return False
            self._restored = True
            self.restore_count += 1
            self.stream.write(self.term.normal_cursor)
            self.stream.flush()
            return True

    def message(self, text: str) -> None:
        with self._lock:
            self.stream.write(text + "\n")
            self.stream.flush()
