"""In-process foreign runtime.

Foreign objects live in an ``ObjectSpace`` owned by this runtime. They share
the host interpreter but are only reachable through ``ForeignRef`` values and
the gate-checked primitives of ``ForeignRuntime``.
"""

import itertools
from typing import Optional

from capadapt.core.output import OutputSink
from .base import ForeignRuntime
from .gate import ForeignGate
from .space import ObjectSpace

_runtime_ids = itertools.count(1)


class EmbeddedRuntime(ForeignRuntime):
    """Foreign runtime backed by a sandboxed namespace in this process.

    Usage:
        runtime = EmbeddedRuntime()
        runtime.load(DUCK_SOURCE)
        ref = runtime.construct("Duck", "Python")
    """

    def __init__(
        self,
        restricted: bool = False,
        gate: Optional[ForeignGate] = None,
        sink: Optional[OutputSink] = None,
        name: Optional[str] = None,
    ):
        super().__init__(name or f"embedded-{next(_runtime_ids)}", gate=gate, sink=sink)
        self.restricted = restricted
        self._space = ObjectSpace(self.output.write, restricted=restricted, name=self.name)

    def _load(self, source: str, filename: str) -> None:
        self._space.load(source, filename)

    def _construct(self, type_name: str, args: tuple) -> tuple[int, str]:
        return self._space.construct(type_name, args)

    def _lookup(self, name: str) -> tuple[int, str]:
        return self._space.lookup(name)

    def _call_method(self, object_id: int, method: str) -> None:
        self._space.call_method(object_id, method)

    def _is_instance(self, object_id: int, type_name: str) -> bool:
        return self._space.is_instance(object_id, type_name)

    def _missing_methods(self, object_id: int, methods: list[str]) -> list[str]:
        return self._space.missing_methods(object_id, methods)

    def _incref(self, object_id: int) -> None:
        self._space.incref(object_id)

    def _decref(self, object_id: int) -> None:
        self._space.decref(object_id)

    def _table_stats(self) -> tuple[int, int]:
        return self._space.stats()

    def _shutdown(self) -> None:
        self._space.clear()
