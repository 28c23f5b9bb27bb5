"""capadapt: one capability interface, native or foreign backends.

A ``CapabilityAdapter`` stores either a native speaker or a speaker backed by
an object in an embedded foreign runtime, and exposes only ``speak()``.
Every touch of a foreign object holds the process-wide gate.
"""

__version__ = "0.1.0"

from .adapter import CapabilityAdapter
from .capabilities import ForeignSpeaker, NativeSpeaker, Speaker
from .core.errors import (
    AdapterClosedError,
    AdapterError,
    ForeignInvocationError,
    ForeignRuntimeError,
    GateMisuseError,
    HandleReleasedError,
    UnexpectedForeignShape,
)
from .registry import ShapeRegistry, get_registry
from .runtime import EmbeddedRuntime, ForeignGate, ForeignHandle, ForeignRef, GATE, ProcessRuntime

__all__ = [
    "__version__",
    "CapabilityAdapter",
    "Speaker",
    "NativeSpeaker",
    "ForeignSpeaker",
    "AdapterError",
    "AdapterClosedError",
    "ForeignInvocationError",
    "ForeignRuntimeError",
    "GateMisuseError",
    "HandleReleasedError",
    "UnexpectedForeignShape",
    "ShapeRegistry",
    "get_registry",
    "EmbeddedRuntime",
    "ProcessRuntime",
    "ForeignGate",
    "ForeignHandle",
    "ForeignRef",
    "GATE",
]
