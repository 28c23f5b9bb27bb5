"""Capability adapter - one uniform holder for native or foreign speakers.

Callers build an adapter through one of the construction paths and then only
ever call ``speak()``. Whether that crosses into a foreign runtime is decided
once, at construction, by the backend stored in the adapter's slot.
"""

from typing import Optional

from capadapt.capabilities.base import Speaker
from capadapt.capabilities.foreign import ForeignSpeaker
from capadapt.capabilities.native import NativeSpeaker
from capadapt.core.errors import AdapterClosedError
from capadapt.core.logging import get_logger
from capadapt.core.output import OutputSink
from capadapt.models.capability import CapabilityDescriptor
from capadapt.registry import ShapeRegistry, get_registry
from capadapt.runtime.base import ForeignRef
from capadapt.runtime.handle import ForeignHandle

logger = get_logger("adapter")


class CapabilityAdapter:
    """Owns exactly one ``Speaker`` and forwards ``speak()`` to it.

    The backend slot is filled at construction and cannot be reassigned.
    Closing the adapter closes the backend, which for foreign speakers
    releases the foreign reference under the gate.

    Usage:
        with CapabilityAdapter.from_native("Rust") as native:
            native.speak()

        ref = runtime.construct("Duck", "Python")
        with CapabilityAdapter.from_foreign_checked(ref, owned=True) as duck:
            duck.speak()
    """

    __slots__ = ("_backend", "_closed")

    def __init__(self, backend: Speaker):
        if not isinstance(backend, Speaker):
            raise TypeError(f"backend must be a Speaker, got {type(backend).__name__}")
        object.__setattr__(self, "_backend", backend)
        object.__setattr__(self, "_closed", False)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable after construction")

    # -- construction paths ------------------------------------------------

    @classmethod
    def from_native(cls, name: str = "Rust", sink: Optional[OutputSink] = None) -> "CapabilityAdapter":
        """Build an adapter around a native speaker. Always succeeds."""
        adapter = cls(NativeSpeaker(name, sink=sink))
        logger.adapter_created("native", "speak", name)
        return adapter

    @classmethod
    def from_foreign_checked(
        cls,
        ref: ForeignRef,
        shape: str = "Duck",
        registry: Optional[ShapeRegistry] = None,
        owned: bool = False,
    ) -> "CapabilityAdapter":
        """Build an adapter around a foreign object that matches ``shape``.

        Args:
            ref: Foreign object reference
            shape: Registered shape name the object must match
            registry: Shape registry (default registry if None)
            owned: Adopt the count carried by ``ref`` instead of taking one

        Raises:
            UnexpectedForeignShape: the object does not match; no adapter is
                produced and no count is taken or adopted
        """
        (registry or get_registry()).check(ref, shape)
        handle = ForeignHandle(ref, owned=owned)
        adapter = cls(ForeignSpeaker(handle, checked=True))
        logger.adapter_created("foreign", "speak", ref.type_name)
        return adapter

    @classmethod
    def from_foreign_any(cls, ref: ForeignRef, owned: bool = False) -> "CapabilityAdapter":
        """Build an adapter around any foreign object.

        No shape check happens here; a missing ``speak`` method surfaces as
        ``ForeignInvocationError`` from the first ``speak()``.
        """
        handle = ForeignHandle(ref, owned=owned)
        adapter = cls(ForeignSpeaker(handle))
        logger.adapter_created("foreign", "speak", ref.type_name)
        return adapter

    @classmethod
    def from_backend(cls, backend: Speaker) -> "CapabilityAdapter":
        """Wrap any ``Speaker`` implementation."""
        return cls(backend)

    # -- call-through ------------------------------------------------------

    def speak(self) -> None:
        if self._closed:
            raise AdapterClosedError()
        self._backend.speak()

    def describe(self) -> CapabilityDescriptor:
        return self._backend.describe()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        object.__setattr__(self, "_closed", True)
        self._backend.close()

    def __enter__(self) -> "CapabilityAdapter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "ready"
        return f"<CapabilityAdapter {self._backend!r} {state}>"
