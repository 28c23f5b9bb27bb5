"""Foreign runtime contract.

A foreign runtime owns an object space the host process cannot reach
directly. Host code names foreign objects through ``ForeignRef`` values and
asks the runtime to act on them. Primitive operations require the calling
thread to already hold the gate; ``ForeignHandle`` is the component that
acquires it.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Optional

from capadapt.core.errors import ForeignRuntimeError
from capadapt.core.logging import get_logger
from capadapt.core.output import LineBuffer, OutputSink, get_default_sink
from capadapt.models.runtime import RuntimeStats
from .gate import ForeignGate, get_gate

logger = get_logger("runtime")


@dataclass(frozen=True)
class ForeignRef:
    """Reference to an object living in a foreign runtime.

    Carries no ownership: counts are taken and dropped by ``ForeignHandle``.
    """
    runtime: "ForeignRuntime" = field(repr=False)
    object_id: int
    type_name: str

    def __repr__(self) -> str:
        return f"<ForeignRef {self.runtime.name}#{self.object_id} type={self.type_name}>"


class ForeignRuntime(ABC):
    """Base class for foreign runtimes.

    Subclasses implement the underscore primitives; this class adds gate
    discipline, the pending-release pool, call accounting and lifecycle.
    """

    def __init__(
        self,
        name: str,
        gate: Optional[ForeignGate] = None,
        sink: Optional[OutputSink] = None,
    ):
        self.name = name
        self.gate = gate or get_gate()
        self.sink = sink or get_default_sink()
        # Foreign print() output; whole lines reach the sink, the rest waits for flush
        self.output = LineBuffer(self.sink)
        self._pending: deque[int] = deque()
        self._pending_lock = threading.Lock()
        self._calls = 0
        self._failed_calls = 0
        self._closed = False
        self.gate.on_enter(self.drain_pending)

    # -- primitives implemented by subclasses (gate already held) --------

    @abstractmethod
    def _load(self, source: str, filename: str) -> None:
        pass

    @abstractmethod
    def _construct(self, type_name: str, args: tuple) -> tuple[int, str]:
        """Build an object and return (object_id, type_name) holding one count."""
        pass

    @abstractmethod
    def _lookup(self, name: str) -> tuple[int, str]:
        """Resolve a global and return (object_id, type_name) holding one count."""
        pass

    @abstractmethod
    def _call_method(self, object_id: int, method: str) -> None:
        """Call a zero-argument method. Printed text goes to ``self.output``."""
        pass

    @abstractmethod
    def _is_instance(self, object_id: int, type_name: str) -> bool:
        pass

    @abstractmethod
    def _missing_methods(self, object_id: int, methods: list[str]) -> list[str]:
        pass

    @abstractmethod
    def _incref(self, object_id: int) -> None:
        pass

    @abstractmethod
    def _decref(self, object_id: int) -> None:
        pass

    @abstractmethod
    def _table_stats(self) -> tuple[int, int]:
        """Return (live_objects, native_refs)."""
        pass

    @abstractmethod
    def _shutdown(self) -> None:
        pass

    # -- foreign-side construction path (acquires the gate itself) -------

    def load(self, source: str, filename: str = "<foreign>") -> None:
        """Execute module source inside the foreign object space."""
        with self.gate.hold():
            self._ensure_open()
            try:
                self._load(source, filename)
            finally:
                self.output.flush()
        logger.debug(f"Loaded {filename}", component="runtime", runtime=self.name)

    def construct(self, type_name: str, *args: Any) -> ForeignRef:
        """Instantiate a foreign class. The returned ref carries one count."""
        with self.gate.hold():
            self._ensure_open()
            try:
                object_id, actual_type = self._construct(type_name, args)
            finally:
                self.output.flush()
        return ForeignRef(self, object_id, actual_type)

    def lookup(self, name: str) -> ForeignRef:
        """Reference a foreign global. The returned ref carries one count."""
        with self.gate.hold():
            self._ensure_open()
            object_id, actual_type = self._lookup(name)
        return ForeignRef(self, object_id, actual_type)

    # -- primitives for handles and the registry (gate required) ---------

    def call_method(self, ref: ForeignRef, method: str) -> None:
        self.gate.ensure_held("call_method")
        self._ensure_open()
        self._check_owner(ref)
        self._calls += 1
        try:
            self._call_method(ref.object_id, method)
        except Exception:
            self._failed_calls += 1
            raise
        finally:
            self.output.flush()

    def is_instance(self, ref: ForeignRef, type_name: str) -> bool:
        self.gate.ensure_held("is_instance")
        self._ensure_open()
        self._check_owner(ref)
        return self._is_instance(ref.object_id, type_name)

    def missing_methods(self, ref: ForeignRef, methods: list[str]) -> list[str]:
        self.gate.ensure_held("missing_methods")
        self._ensure_open()
        self._check_owner(ref)
        return self._missing_methods(ref.object_id, list(methods))

    def incref(self, ref: ForeignRef) -> None:
        self.gate.ensure_held("incref")
        self._ensure_open()
        self._check_owner(ref)
        self._incref(ref.object_id)

    def decref(self, ref: ForeignRef) -> None:
        self.gate.ensure_held("decref")
        self._check_owner(ref)
        if self._closed:
            # The object space is gone; nothing left to release
            return
        self._decref(ref.object_id)

    # -- pending-release pool --------------------------------------------

    def defer_release(self, ref: ForeignRef) -> None:
        """Queue a release for the next time any thread holds the gate.

        Safe to call from finalizers on any thread without the gate.
        """
        with self._pending_lock:
            self._pending.append(ref.object_id)

    def drain_pending(self) -> int:
        """Apply queued releases. Runs under the gate."""
        if not self._pending or self._closed:
            return 0
        self.gate.ensure_held("drain_pending")
        with self._pending_lock:
            object_ids = list(self._pending)
            self._pending.clear()
        for object_id in object_ids:
            try:
                self._decref(object_id)
            except ForeignRuntimeError as e:
                # Best effort: the runtime's own teardown reclaims the object
                logger.warning(
                    f"Deferred release of #{object_id} failed: {e.message}",
                    component="runtime",
                    runtime=self.name,
                )
        logger.debug(
            f"Released {len(object_ids)} deferred reference(s)",
            component="runtime",
            runtime=self.name,
        )
        return len(object_ids)

    # -- lifecycle ---------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        with self.gate.hold():
            self.drain_pending()
            self._closed = True
            self._shutdown()
        self.gate.remove_on_enter(self.drain_pending)
        logger.debug("Runtime closed", component="runtime", runtime=self.name)

    def __enter__(self) -> "ForeignRuntime":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def stats(self) -> RuntimeStats:
        with self.gate.hold():
            live, native_refs = (0, 0) if self._closed else self._table_stats()
            with self._pending_lock:
                pending = len(self._pending)
        return RuntimeStats(
            runtime=self.name,
            live_objects=live,
            native_refs=native_refs,
            pending_releases=pending,
            calls=self._calls,
            failed_calls=self._failed_calls,
        )

    def _ensure_open(self) -> None:
        if self._closed:
            raise ForeignRuntimeError("Foreign runtime is closed", runtime=self.name)

    def _check_owner(self, ref: ForeignRef) -> None:
        if ref.runtime is not self:
            raise ForeignRuntimeError(
                f"{ref!r} belongs to another runtime",
                runtime=self.name,
            )
