"""Runtime package - foreign object spaces, the gate and foreign handles."""

from .gate import ForeignGate, GATE, get_gate
from .base import ForeignRef, ForeignRuntime
from .embedded import EmbeddedRuntime
from .process import ProcessRuntime
from .handle import ForeignHandle
from .sandbox import Sandbox, SandboxError, SecurityViolation

__all__ = [
    "ForeignGate",
    "GATE",
    "get_gate",
    "ForeignRef",
    "ForeignRuntime",
    "EmbeddedRuntime",
    "ProcessRuntime",
    "ForeignHandle",
    "Sandbox",
    "SandboxError",
    "SecurityViolation",
]
