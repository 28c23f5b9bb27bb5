"""Foreign object space: a sandboxed namespace plus a counted object table.

Used directly by ``EmbeddedRuntime`` and inside the child interpreter of
``ProcessRuntime``. It knows nothing about the gate; callers serialize
access.
"""

import itertools
import traceback
from typing import Any, Callable

from capadapt.core.errors import ForeignInvocationError, ForeignRuntimeError
from .sandbox import Sandbox


class ObjectSpace:
    """Objects owned by one foreign runtime.

    The table maps object ids to ``[object, count]``. Counts are native
    contributions only; foreign-side holders (globals, containers) keep the
    object alive independently.
    """

    def __init__(self, write: Callable[[str], None], restricted: bool = False, name: str = "foreign"):
        self.name = name
        self._sandbox = Sandbox(restricted=restricted)
        self._namespace = self._sandbox.create_namespace(write)
        self._table: dict[int, list] = {}
        self._ids = itertools.count(1)

    def load(self, source: str, filename: str = "<foreign>") -> None:
        self._sandbox.execute(source, self._namespace, filename)

    def construct(self, type_name: str, args: tuple) -> tuple[int, str]:
        cls = self._namespace.get(type_name)
        if not isinstance(cls, type):
            raise ForeignRuntimeError(
                f"No foreign class named '{type_name}'",
                runtime=self.name,
                suggestion="Load source defining the class before constructing it",
            )
        try:
            obj = cls(*args)
        except Exception as e:
            raise ForeignRuntimeError(
                f"Constructing {type_name} raised {type(e).__name__}: {e}",
                runtime=self.name,
                foreign_traceback=traceback.format_exc(),
            ) from e
        return self._adopt(obj)

    def lookup(self, name: str) -> tuple[int, str]:
        if name not in self._namespace or name.startswith("__"):
            raise ForeignRuntimeError(f"No foreign global named '{name}'", runtime=self.name)
        return self._adopt(self._namespace[name])

    def call_method(self, object_id: int, method: str) -> Any:
        obj = self._get(object_id)
        type_name = type(obj).__name__
        try:
            bound = getattr(obj, method)
        except AttributeError as e:
            raise ForeignInvocationError(
                f"'{type_name}' object has no method '{method}'",
                method=method,
                type_name=type_name,
            ) from e
        if not callable(bound):
            raise ForeignInvocationError(
                f"'{type_name}.{method}' is not callable",
                method=method,
                type_name=type_name,
            )
        try:
            return bound()
        except Exception as e:
            raise ForeignInvocationError(
                f"{type_name}.{method}() raised {type(e).__name__}: {e}",
                method=method,
                type_name=type_name,
                foreign_traceback=traceback.format_exc(),
            ) from e

    def is_instance(self, object_id: int, type_name: str) -> bool:
        cls = self._namespace.get(type_name)
        if not isinstance(cls, type):
            return False
        return isinstance(self._get(object_id), cls)

    def missing_methods(self, object_id: int, methods: list[str]) -> list[str]:
        obj = self._get(object_id)
        return [m for m in methods if not callable(getattr(obj, m, None))]

    def incref(self, object_id: int) -> None:
        self._entry(object_id)[1] += 1

    def decref(self, object_id: int) -> None:
        entry = self._entry(object_id)
        entry[1] -= 1
        if entry[1] <= 0:
            del self._table[object_id]

    def stats(self) -> tuple[int, int]:
        return len(self._table), sum(entry[1] for entry in self._table.values())

    def clear(self) -> None:
        self._table.clear()
        self._namespace.clear()

    def _adopt(self, obj: Any) -> tuple[int, str]:
        object_id = next(self._ids)
        self._table[object_id] = [obj, 1]
        return object_id, type(obj).__name__

    def _entry(self, object_id: int) -> list:
        try:
            return self._table[object_id]
        except KeyError:
            raise ForeignRuntimeError(
                f"Object #{object_id} is not live in this runtime",
                runtime=self.name,
            ) from None

    def _get(self, object_id: int) -> Any:
        return self._entry(object_id)[0]
