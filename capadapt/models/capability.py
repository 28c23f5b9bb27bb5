"""Capability data models."""

from enum import Enum
from pydantic import BaseModel, Field


class BackendKind(str, Enum):
    """Which side of the boundary implements a capability."""
    NATIVE = "native"
    FOREIGN = "foreign"


class CapabilityDescriptor(BaseModel):
    """Describes the backend an adapter dispatches to.

    This is metadata about a stored backend, not the backend itself.
    """
    name: str = Field(default="speak", description="Capability operation name")
    backend: BackendKind
    target: str = Field(..., description="Native label or foreign type name")
    runtime: str | None = Field(default=None, description="Foreign runtime name, if any")
    checked: bool = Field(
        default=False,
        description="Whether the foreign object was shape-checked at construction"
    )

    def to_display_string(self) -> str:
        """Format for CLI output."""
        where = f" in {self.runtime}" if self.runtime else ""
        check = " [checked]" if self.checked else ""
        return f"{self.name}() -> {self.backend.value}:{self.target}{where}{check}"


class Shape(BaseModel):
    """A registered foreign object shape.

    A foreign object matches when it is an instance of ``type_name`` in its
    runtime and exposes every method in ``methods``.
    """
    name: str = Field(..., description="Registry key, e.g. 'Duck'")
    type_name: str = Field(..., description="Foreign class name the object must be an instance of")
    methods: list[str] = Field(default_factory=lambda: ["speak"])
    description: str = Field(default="")
