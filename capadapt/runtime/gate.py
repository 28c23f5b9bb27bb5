"""The serialized-access gate for foreign runtimes.

Every interaction with a foreign object, across all runtimes and all threads
in the process, happens while holding one re-entrant lock. Only
``ForeignHandle`` and runtime housekeeping acquire it; runtime primitives
merely check that the calling thread already holds it.
"""

import threading
import types
import weakref
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from capadapt.core.errors import GateMisuseError
from capadapt.models.runtime import GateStats


class ForeignGate:
    """Re-entrant, process-wide mutual exclusion around foreign objects.

    Blocking acquisition has no timeout: a hung foreign call blocks the
    acquiring thread indefinitely.
    """

    def __init__(self, name: str = "gate"):
        self.name = name
        self._lock = threading.RLock()
        self._owner: Optional[int] = None
        self._owner_name: Optional[str] = None
        self._depth = 0
        self._acquisitions = 0
        # Each entry returns the callback, or None once its owner is collected
        self._on_enter: list[Callable[[], Optional[Callable[[], None]]]] = []
        self._callbacks_lock = threading.RLock()

    def acquire(self, blocking: bool = True) -> bool:
        if not self._lock.acquire(blocking):
            return False
        self._depth += 1
        if self._depth == 1:
            current = threading.current_thread()
            self._owner = current.ident
            self._owner_name = current.name
            self._acquisitions += 1
            try:
                self._entered()
            except BaseException:
                self.release()
                raise
        return True

    def release(self) -> None:
        if not self.held_by_current_thread():
            raise GateMisuseError(
                "Gate released by a thread that does not hold it",
                operation="release",
            )
        self._depth -= 1
        if self._depth == 0:
            self._owner = None
            self._owner_name = None
        self._lock.release()

    @contextmanager
    def hold(self) -> Iterator["ForeignGate"]:
        """Hold the gate for the duration of the block."""
        self.acquire()
        try:
            yield self
        finally:
            self.release()

    def __enter__(self) -> "ForeignGate":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

    def held_by_current_thread(self) -> bool:
        return self._owner == threading.get_ident()

    def ensure_held(self, operation: str) -> None:
        """Raise GateMisuseError unless the calling thread holds the gate."""
        if not self.held_by_current_thread():
            raise GateMisuseError(
                f"'{operation}' touched a foreign object without holding the gate",
                operation=operation,
            )

    def on_enter(self, callback: Callable[[], None]) -> None:
        """Register a callback run each time a thread takes the gate from free.

        Runtimes use this to drain releases queued by finalizers. Bound
        methods are held weakly so the gate never keeps a runtime alive.
        """
        if isinstance(callback, types.MethodType):
            entry = weakref.WeakMethod(callback)
        else:
            entry = lambda: callback
        with self._callbacks_lock:
            self._on_enter.append(entry)

    def remove_on_enter(self, callback: Callable[[], None]) -> None:
        with self._callbacks_lock:
            self._on_enter = [
                entry for entry in self._on_enter
                if entry() is not None and entry() != callback
            ]

    def callback_count(self) -> int:
        """Number of registered callbacks whose owners are still alive."""
        with self._callbacks_lock:
            return sum(1 for entry in self._on_enter if entry() is not None)

    def _entered(self) -> None:
        live = []
        with self._callbacks_lock:
            for entry in self._on_enter:
                callback = entry()
                if callback is not None:
                    live.append((entry, callback))
            self._on_enter = [entry for entry, _ in live]
        for _, callback in live:
            callback()

    def stats(self) -> GateStats:
        return GateStats(
            acquisitions=self._acquisitions,
            held=self._owner is not None,
            holder=self._owner_name,
            depth=self._depth if self._owner is not None else 0,
        )

    def __repr__(self) -> str:
        return f"<ForeignGate {self.name} acquisitions={self._acquisitions}>"


# The process-wide gate shared by every runtime unless one is injected
GATE = ForeignGate("global")


def get_gate() -> ForeignGate:
    return GATE
