"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

# Add project root to Python path so 'capadapt' is findable without installing
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import threading
from typing import Generator

import pytest

from capadapt.core.output import BufferSink
from capadapt.ducks import DUCK_SOURCE
from capadapt.runtime.embedded import EmbeddedRuntime
from capadapt.runtime.gate import ForeignGate


class InstrumentedGate(ForeignGate):
    """Gate that records how many threads are inside foreign calls at once."""

    def __init__(self):
        super().__init__("instrumented")
        self._meter = threading.Lock()
        self.inside = 0
        self.max_inside = 0

    def enter_foreign(self):
        with self._meter:
            self.inside += 1
            self.max_inside = max(self.max_inside, self.inside)

    def leave_foreign(self):
        with self._meter:
            self.inside -= 1


@pytest.fixture
def gate() -> InstrumentedGate:
    """A fresh gate so tests never share acquisition counts."""
    return InstrumentedGate()


@pytest.fixture
def sink() -> BufferSink:
    """Collects everything speakers write."""
    return BufferSink()


@pytest.fixture
def runtime(gate, sink) -> Generator[EmbeddedRuntime, None, None]:
    """Embedded runtime preloaded with the duck source."""
    rt = EmbeddedRuntime(gate=gate, sink=sink)
    rt.load(DUCK_SOURCE, "<ducks>")
    yield rt
    rt.close()


@pytest.fixture
def slow_duck_source() -> str:
    """Foreign source whose speak() lingers so overlapping calls would be visible."""
    return '''
import time


class SlowDuck:
    def __init__(self, name, meter, delay):
        self.name = name
        self.meter = meter
        self.delay = delay

    def speak(self):
        self.meter.enter_foreign()
        try:
            time.sleep(self.delay)
            print("Quack, " + self.name + "!")
        finally:
            self.meter.leave_foreign()
'''