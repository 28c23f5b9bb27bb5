"""Base capability interface.

A capability is one synchronous operation, ``speak()``, that any backend can
implement. The set of backends is open: native and foreign speakers ship
with capadapt, and any other ``Speaker`` subclass can be stored in an
adapter.
"""

from abc import ABC, abstractmethod

from capadapt.models.capability import CapabilityDescriptor


class Speaker(ABC):
    """Abstract base class for all speaking backends.

    ``speak()`` takes no arguments and returns nothing; its effect is the
    text it writes. It may raise if the underlying implementation fails.
    """

    @abstractmethod
    def speak(self) -> None:
        """Perform the capability's side effect."""
        pass

    @abstractmethod
    def describe(self) -> CapabilityDescriptor:
        """Return metadata about this backend."""
        pass

    def close(self) -> None:
        """Release resources held by the backend. No-op by default."""
        pass

    @property
    def name(self) -> str:
        """Shortcut to get capability name."""
        return self.describe().name
