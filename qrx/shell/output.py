"""
Output Sink Module

Where command output ends up: the user's terminal, a capture buffer or
nowhere.

Author: YSNRFD
Version: 1.0.0
"""

import io
import sys
from abc import ABC, abstractmethod
from typing import Optional, TextIO


class OutputSink(ABC):
    """Append-only text stream."""

    @abstractmethod
    def write(self, text: str) -> None:
        pass

    def writeln(self, text: str = "") -> None:
        self.write(f"{text}\n")

    def clear(self) -> None:
        """Clear the display. Ignored by sinks without one."""


class TerminalSink(OutputSink):
    """
    Writes to a text stream, flushing after every write.

    clear() emits the ANSI clear-screen sequence when the stream is a TTY.
    """

    CLEAR_SCREEN = '\033[2J\033[H'

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        # Resolved lazily so a replaced sys.stdout is picked up.
        return self._stream if self._stream is not None else sys.stdout

    def write(self, text: str) -> None:
        stream = self.stream
        stream.write(str(text))
        stream.flush()

    def clear(self) -> None:
        stream = self.stream
        if hasattr(stream, 'isatty') and stream.isatty():
            self.write(self.CLEAR_SCREEN)


class BufferSink(OutputSink):
    """Captures everything written to it."""

    def __init__(self):
        self._buffer = io.StringIO()

    def write(self, text: str) -> None:
        self._buffer.write(str(text))

    def getvalue(self) -> str:
        return self._buffer.getvalue()


class NullSink(OutputSink):
    """Discards everything."""

    def write(self, text: str) -> None:
        pass
