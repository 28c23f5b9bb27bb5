"""Foreign speaker - dispatches ``speak()`` into a foreign runtime."""

from capadapt.models.capability import BackendKind, CapabilityDescriptor
from capadapt.runtime.handle import ForeignHandle
from .base import Speaker


class ForeignSpeaker(Speaker):
    """Speaker backed by a foreign object.

    Holds exactly one ``ForeignHandle`` and no other state. Failures of the
    foreign call surface as ``ForeignInvocationError`` from ``speak()``.
    """

    def __init__(self, handle: ForeignHandle, method: str = "speak", checked: bool = False):
        self._handle = handle
        self._method = method
        self._checked = checked

    @property
    def handle(self) -> ForeignHandle:
        return self._handle

    def speak(self) -> None:
        self._handle.invoke_method(self._method)

    def describe(self) -> CapabilityDescriptor:
        return CapabilityDescriptor(
            backend=BackendKind.FOREIGN,
            target=self._handle.type_name,
            runtime=self._handle.runtime.name,
            checked=self._checked,
        )

    def close(self) -> None:
        self._handle.release()

    def __repr__(self) -> str:
        return f"ForeignSpeaker({self._handle!r}, method={self._method!r})"
