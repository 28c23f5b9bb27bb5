"""Line-atomic text output shared by native and foreign speakers."""

import io
import sys
import threading
from typing import Optional, TextIO


class OutputSink:
    """Writes whole lines to a stream under a lock.

    Speakers on different threads share one sink; each line lands in a
    single write so lines never interleave. When no stream is given the
    current ``sys.stdout`` is resolved at write time.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream
        self._lock = threading.Lock()

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def write_line(self, text: str) -> None:
        line = text if text.endswith("\n") else text + "\n"
        with self._lock:
            stream = self.stream
            stream.write(line)
            stream.flush()

    def write_text(self, text: str) -> None:
        """Write ``text`` as-is in one locked write, without adding a newline."""
        with self._lock:
            stream = self.stream
            stream.write(text)
            stream.flush()


class LineBuffer:
    """Collects partial writes and forwards complete lines to a sink.

    Not locked: the owning runtime only writes while holding the gate.
    """

    def __init__(self, sink: OutputSink):
        self.sink = sink
        self._partial = ""

    def write(self, text: str) -> None:
        if not text:
            return
        pieces = (self._partial + text).split("\n")
        self._partial = pieces.pop()
        for line in pieces:
            self.sink.write_line(line)

    def flush(self) -> None:
        """Emit a trailing partial line exactly as written."""
        if self._partial:
            text, self._partial = self._partial, ""
            self.sink.write_text(text)


class BufferSink(OutputSink):
    """Sink backed by an in-memory buffer."""

    def __init__(self):
        super().__init__(io.StringIO())

    def getvalue(self) -> str:
        return self._stream.getvalue()

    def lines(self) -> list[str]:
        return self.getvalue().splitlines()


_default_sink: Optional[OutputSink] = None


def get_default_sink() -> OutputSink:
    """Process-wide sink writing to stdout."""
    global _default_sink
    if _default_sink is None:
        _default_sink = OutputSink()
    return _default_sink
