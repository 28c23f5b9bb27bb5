"""Shape registry - which foreign types count as which capability shapes.

The checked construction path asks the registry whether a foreign reference
is an instance of a registered shape before wrapping it.
"""

import threading
from typing import Optional

from capadapt.core.errors import UnexpectedForeignShape
from capadapt.core.logging import get_logger
from capadapt.models.capability import Shape
from capadapt.runtime.base import ForeignRef

logger = get_logger("registry")


class ShapeRegistry:
    """Maps shape names to the foreign types and methods they require."""

    def __init__(self) -> None:
        self._shapes: dict[str, Shape] = {}
        self._lock = threading.Lock()

    def register(self, shape: Shape) -> Shape:
        with self._lock:
            self._shapes[shape.name] = shape
        return shape

    def unregister(self, name: str) -> None:
        with self._lock:
            self._shapes.pop(name, None)

    def get(self, name: str) -> Shape:
        with self._lock:
            shape = self._shapes.get(name)
        if shape is None:
            raise UnexpectedForeignShape(
                f"No shape registered under '{name}'",
                shape=name,
                suggestion="Register the shape before using checked construction",
            )
        return shape

    def list_shapes(self) -> list[str]:
        with self._lock:
            return sorted(self._shapes)

    def mismatch(self, ref: ForeignRef, name: str) -> Optional[list[str]]:
        """Return None when ``ref`` matches, else the missing methods.

        The list is empty when only the foreign type is wrong.
        Caller must hold the gate.
        """
        shape = self.get(name)
        runtime = ref.runtime
        type_ok = runtime.is_instance(ref, shape.type_name)
        missing = runtime.missing_methods(ref, shape.methods)
        if type_ok and not missing:
            return None
        return missing

    def matches(self, ref: ForeignRef, name: str) -> bool:
        """Registered-type predicate. Caller must hold the gate."""
        return self.mismatch(ref, name) is None

    def check(self, ref: ForeignRef, name: str) -> Shape:
        """Validate ``ref`` against a shape, acquiring the gate.

        Raises:
            UnexpectedForeignShape: wrong type or missing methods
        """
        shape = self.get(name)
        with ref.runtime.gate.hold():
            missing = self.mismatch(ref, name)
        if missing is not None:
            logger.shape_rejected(name, ref.type_name)
            raise UnexpectedForeignShape(
                f"Foreign {ref.type_name} does not match shape {name}",
                shape=name,
                type_name=ref.type_name,
                missing_methods=missing,
            )
        return shape


# Default registry; the Duck shape matches objects built by a foreign `Duck` class
DEFAULT_REGISTRY = ShapeRegistry()
DEFAULT_REGISTRY.register(Shape(
    name="Duck",
    type_name="Duck",
    methods=["speak"],
    description="Objects constructed by the foreign Duck class",
))


def get_registry() -> ShapeRegistry:
    return DEFAULT_REGISTRY
