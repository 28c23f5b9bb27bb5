"""Subprocess-backed foreign runtime.

Foreign objects live in a child interpreter started with ``multiprocessing``:
- Separate process = separate address space and object model
- Every operation is one request/response pair over a pipe
- Requests are only sent while holding the gate, so pairs never interleave
"""

import itertools
import multiprocessing
import weakref
from multiprocessing.connection import Connection
from typing import Any, Optional

from capadapt.core.errors import AdapterError, ForeignInvocationError, ForeignRuntimeError
from capadapt.core.logging import get_logger
from capadapt.core.output import OutputSink
from .base import ForeignRuntime
from .gate import ForeignGate
from .sandbox import SandboxError, SecurityViolation
from .space import ObjectSpace

logger = get_logger("runtime.process")

_runtime_ids = itertools.count(1)

_ERROR_TYPES = {
    "ForeignInvocationError": ForeignInvocationError,
    "SandboxError": SandboxError,
    "SecurityViolation": SecurityViolation,
}


def _error_payload(error: Exception) -> dict[str, Any]:
    if isinstance(error, AdapterError):
        return {
            "kind": type(error).__name__,
            "message": error.message,
            "suggestion": error.suggestion,
            "method": getattr(error, "method", None),
            "type_name": getattr(error, "type_name", None),
            "foreign_traceback": getattr(error, "foreign_traceback", None),
        }
    return {
        "kind": "ForeignRuntimeError",
        "message": f"{type(error).__name__}: {error}",
    }


def _dispatch(space: ObjectSpace, op: str, args: tuple) -> Any:
    if op == "load":
        space.load(*args)
        return None
    if op == "construct":
        type_name, ctor_args = args
        return space.construct(type_name, ctor_args)
    if op == "lookup":
        return space.lookup(*args)
    if op == "call":
        # Return values stay in the child; only printed text crosses back
        space.call_method(*args)
        return None
    if op == "is_instance":
        return space.is_instance(*args)
    if op == "missing_methods":
        return space.missing_methods(*args)
    if op == "incref":
        space.incref(*args)
        return None
    if op == "decref":
        space.decref(*args)
        return None
    if op == "stats":
        return space.stats()
    raise ForeignRuntimeError(f"Unknown operation '{op}'")


def _serve(conn: Connection, restricted: bool, name: str) -> None:
    """Request loop of the child interpreter.

    This function runs in a separate process and owns the object space.
    """
    captured: list[str] = []
    space = ObjectSpace(captured.append, restricted=restricted, name=name)

    while True:
        try:
            op, args = conn.recv()
        except (EOFError, OSError):
            break

        if op == "shutdown":
            space.clear()
            conn.send(("ok", None, ""))
            break

        captured.clear()
        try:
            value = _dispatch(space, op, args)
            reply = ("ok", value, "".join(captured))
        except Exception as e:
            reply = ("error", _error_payload(e), "".join(captured))
        conn.send(reply)

    conn.close()


def _reap(process, conn: Connection) -> None:
    """Stop the child of a runtime collected without ``close()``."""
    conn.close()
    process.join(timeout=1)
    if process.is_alive():
        process.terminate()
        process.join(timeout=1)


class ProcessRuntime(ForeignRuntime):
    """Foreign runtime hosted in a child process.

    Usage:
        with ProcessRuntime() as runtime:
            runtime.load(DUCK_SOURCE)
            ref = runtime.construct("Duck", "Python")
    """

    def __init__(
        self,
        restricted: bool = False,
        gate: Optional[ForeignGate] = None,
        sink: Optional[OutputSink] = None,
        name: Optional[str] = None,
        start_method: Optional[str] = None,
        shutdown_timeout: float = 5.0,
    ):
        super().__init__(name or f"process-{next(_runtime_ids)}", gate=gate, sink=sink)
        self.restricted = restricted
        self._shutdown_timeout = shutdown_timeout

        ctx = multiprocessing.get_context(start_method)
        self._conn, child_conn = ctx.Pipe()
        self._process = ctx.Process(
            target=_serve,
            args=(child_conn, restricted, self.name),
            name=f"capadapt-{self.name}",
            daemon=True,
        )
        self._process.start()
        child_conn.close()
        self._reaper = weakref.finalize(self, _reap, self._process, self._conn)

        logger.debug(
            f"Started foreign process pid={self._process.pid}",
            component="runtime",
            runtime=self.name,
        )

    @property
    def alive(self) -> bool:
        return self._process.is_alive()

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid

    def _request(self, op: str, *args: Any) -> Any:
        """Send one operation to the child and return its value.

        Text the child printed while serving the request is fed to
        ``self.output`` on success and on failure.
        """
        self.gate.ensure_held(op)
        try:
            self._conn.send((op, args))
            status, value, output = self._conn.recv()
        except (EOFError, OSError) as e:
            raise ForeignRuntimeError(
                "Foreign process is not responding",
                runtime=self.name,
                details=f"Operation: {op}, pid: {self._process.pid}",
            ) from e

        self.output.write(output)
        if status == "ok":
            return value
        raise self._rebuild_error(value)

    def _rebuild_error(self, payload: dict[str, Any]) -> AdapterError:
        kind = payload.get("kind")
        if kind == "ForeignInvocationError":
            return ForeignInvocationError(
                payload["message"],
                method=payload.get("method"),
                type_name=payload.get("type_name"),
                foreign_traceback=payload.get("foreign_traceback"),
            )
        error_type = _ERROR_TYPES.get(kind, ForeignRuntimeError)
        return error_type(
            payload["message"],
            runtime=self.name,
            foreign_traceback=payload.get("foreign_traceback"),
            suggestion=payload.get("suggestion"),
        )

    def _load(self, source: str, filename: str) -> None:
        self._request("load", source, filename)

    def _construct(self, type_name: str, args: tuple) -> tuple[int, str]:
        value = self._request("construct", type_name, args)
        return tuple(value)

    def _lookup(self, name: str) -> tuple[int, str]:
        value = self._request("lookup", name)
        return tuple(value)

    def _call_method(self, object_id: int, method: str) -> None:
        self._request("call", object_id, method)

    def _is_instance(self, object_id: int, type_name: str) -> bool:
        value = self._request("is_instance", object_id, type_name)
        return value

    def _missing_methods(self, object_id: int, methods: list[str]) -> list[str]:
        value = self._request("missing_methods", object_id, methods)
        return value

    def _incref(self, object_id: int) -> None:
        self._request("incref", object_id)

    def _decref(self, object_id: int) -> None:
        self._request("decref", object_id)

    def _table_stats(self) -> tuple[int, int]:
        value = self._request("stats")
        return tuple(value)

    def _shutdown(self) -> None:
        self._reaper.detach()
        try:
            self._conn.send(("shutdown", ()))
            self._conn.recv()
        except (EOFError, OSError) as e:
            logger.warning(
                f"Foreign process gone before shutdown: {e}",
                component="runtime",
                runtime=self.name,
            )

        self._process.join(timeout=self._shutdown_timeout)
        if self._process.is_alive():
            self._process.terminate()
            self._process.join(timeout=1)
            if self._process.is_alive():
                self._process.kill()
        self._conn.close()
