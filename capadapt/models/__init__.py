"""Data models for capadapt."""

from .capability import BackendKind, CapabilityDescriptor, Shape
from .runtime import GateStats, RuntimeStats

__all__ = [
    "BackendKind",
    "CapabilityDescriptor",
    "Shape",
    "GateStats",
    "RuntimeStats",
]
