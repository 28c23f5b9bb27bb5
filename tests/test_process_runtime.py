"""Tests for the subprocess-backed foreign runtime."""

from typing import Generator

import pytest

from capadapt.adapter import CapabilityAdapter
from capadapt.core.errors import (
    ForeignInvocationError,
    ForeignRuntimeError,
    UnexpectedForeignShape,
)
from capadapt.ducks import DUCK_SOURCE
from capadapt.runtime.process import ProcessRuntime
from capadapt.runtime.sandbox import SandboxError


@pytest.fixture
def process_runtime(gate, sink) -> Generator[ProcessRuntime, None, None]:
    rt = ProcessRuntime(gate=gate, sink=sink)
    rt.load(DUCK_SOURCE, "<ducks>")
    yield rt
    rt.close()


class TestProcessRuntime:
    """Adapters behave the same when the duck lives in a child process."""

    def test_child_is_running(self, process_runtime):
        assert process_runtime.alive
        assert process_runtime.pid is not None

    def test_checked_adapter_speaks(self, process_runtime, sink):
        adapter = CapabilityAdapter.from_foreign_checked(process_runtime.construct("Duck"), owned=True)
        adapter.speak()
        assert sink.lines() == ["Quack, Python!"]

    def test_any_adapter_missing_method(self, process_runtime):
        adapter = CapabilityAdapter.from_foreign_any(process_runtime.construct("Goose"), owned=True)
        with pytest.raises(ForeignInvocationError) as exc_info:
            adapter.speak()
        assert exc_info.value.method == "speak"
        assert exc_info.value.type_name == "Goose"

    def test_checked_rejects_wrong_type(self, process_runtime):
        with pytest.raises(UnexpectedForeignShape):
            CapabilityAdapter.from_foreign_checked(process_runtime.construct("Parrot"))

    def test_reference_counts_live_in_child(self, process_runtime):
        adapter = CapabilityAdapter.from_foreign_any(process_runtime.lookup("python_duck"), owned=True)
        assert process_runtime.stats().live_objects == 1

        adapter.close()
        assert process_runtime.stats().live_objects == 0

    def test_construct_unknown_class(self, process_runtime):
        with pytest.raises(ForeignRuntimeError) as exc_info:
            process_runtime.construct("Swan")
        assert exc_info.value.runtime == process_runtime.name

    def test_load_error_keeps_type(self, process_runtime):
        with pytest.raises(SandboxError):
            process_runtime.load("class (:")

    def test_dead_child(self, gate, sink):
        """Calls into a killed child raise ForeignRuntimeError instead of hanging."""
        rt = ProcessRuntime(gate=gate, sink=sink)
        rt.load(DUCK_SOURCE)
        adapter = CapabilityAdapter.from_foreign_any(rt.construct("Duck"), owned=True)

        rt._process.kill()
        rt._process.join(timeout=5)

        with pytest.raises(ForeignRuntimeError):
            adapter.speak()
        rt.close()
        assert not rt.alive

    def test_close_stops_child(self, gate, sink):
        rt = ProcessRuntime(gate=gate, sink=sink)
        rt.close()
        assert rt.closed
        assert not rt.alive

    def test_partial_prints_cross_back_whole(self, process_runtime, sink):
        """Output printed in pieces in the child arrives as one line."""
        process_runtime.load('''
class PiecewiseDuck:
    def speak(self):
        print("Quack, ", end="")
        print("Python!")
''')
        adapter = CapabilityAdapter.from_foreign_any(process_runtime.construct("PiecewiseDuck"), owned=True)
        adapter.speak()
        assert sink.getvalue() == "Quack, Python!\n"
