"""Foreign handle - the sole native owner of one foreign reference.

The handle is the only component that acquires the gate to touch a foreign
object. Everything above it (backends, adapters) goes through
``invoke_method`` and ``release``.
"""

import threading
import time
import weakref
from typing import Optional

from capadapt.core.errors import ForeignRuntimeError, HandleReleasedError
from capadapt.core.logging import get_logger
from .base import ForeignRef, ForeignRuntime

logger = get_logger("handle")


def _finalize_ref(ref: ForeignRef) -> None:
    """Release a reference whose handle was collected without ``release()``.

    Finalizers may run on any thread, possibly during interpreter teardown,
    so the gate is only tried, never waited for. When another thread holds
    it, or this thread is already inside a gated operation, the release is
    queued and applied the next time a thread takes the gate from free.
    """
    runtime = ref.runtime
    if runtime.closed:
        return
    gate = runtime.gate
    if not gate.held_by_current_thread() and gate.acquire(blocking=False):
        try:
            runtime.decref(ref)
        except ForeignRuntimeError as e:
            logger.warning(
                f"Finalizer could not release {ref!r}: {e.message}",
                component="handle",
                runtime=runtime.name,
            )
        finally:
            gate.release()
        return
    runtime.defer_release(ref)
    logger.debug(
        f"Deferred release of {ref!r}",
        component="handle",
        runtime=runtime.name,
    )


class ForeignHandle:
    """Owns one strong count on a foreign object.

    Args:
        ref: Reference to the foreign object
        owned: True when ``ref`` already carries a count the handle adopts
            (as returned by ``construct``/``lookup``); False to take a new one
    """

    def __init__(self, ref: ForeignRef, owned: bool = False):
        self._ref = ref
        self._lock = threading.Lock()
        self._released = False

        if not owned:
            with self.runtime.gate.hold():
                self.runtime.incref(ref)

        self._finalizer = weakref.finalize(self, _finalize_ref, ref)

    @property
    def ref(self) -> ForeignRef:
        return self._ref

    @property
    def runtime(self) -> ForeignRuntime:
        return self._ref.runtime

    @property
    def type_name(self) -> str:
        return self._ref.type_name

    @property
    def released(self) -> bool:
        return self._released

    def invoke_method(self, name: str) -> None:
        """Call ``name`` with no arguments on the held object under the gate.

        Raises:
            ForeignInvocationError: method missing, not callable, or raised
            HandleReleasedError: the handle no longer owns its reference
        """
        start = time.perf_counter()
        success = False
        with self.runtime.gate.hold():
            # release() marks the handle before it waits for the gate
            if self._released:
                raise HandleReleasedError(
                    f"Cannot call '{name}' on a released handle",
                    details=repr(self._ref),
                )
            try:
                self.runtime.call_method(self._ref, name)
                success = True
            finally:
                logger.invocation(
                    name,
                    self._ref.type_name,
                    success,
                    (time.perf_counter() - start) * 1000,
                )

    def release(self) -> None:
        """Drop the native count under the gate. Idempotent."""
        with self._lock:
            if self._released:
                return
            self._released = True
        self._finalizer.detach()
        with self.runtime.gate.hold():
            self.runtime.decref(self._ref)

    def __repr__(self) -> str:
        state = "released" if self._released else "live"
        return f"<ForeignHandle {self._ref!r} {state}>"
