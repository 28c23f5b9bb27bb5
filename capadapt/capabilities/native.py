"""Native speaker - implemented entirely with host data."""

from typing import Optional

from capadapt.core.output import OutputSink, get_default_sink
from capadapt.models.capability import BackendKind, CapabilityDescriptor
from .base import Speaker


class NativeSpeaker(Speaker):
    """Speaks with a label it owns. Never touches the gate."""

    def __init__(self, name: str = "Rust", sink: Optional[OutputSink] = None):
        self._label = name
        self._sink = sink or get_default_sink()

    @property
    def label(self) -> str:
        return self._label

    def speak(self) -> None:
        self._sink.write_line(f"Quack, {self._label}!")

    def describe(self) -> CapabilityDescriptor:
        return CapabilityDescriptor(backend=BackendKind.NATIVE, target=self._label)

    def __repr__(self) -> str:
        return f"NativeSpeaker({self._label!r})"
