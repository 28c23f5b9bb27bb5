"""Core package - errors, logging and output shared by every layer."""

from .errors import (
    AdapterError,
    AdapterClosedError,
    ConfigError,
    ForeignInvocationError,
    ForeignRuntimeError,
    GateMisuseError,
    HandleReleasedError,
    UnexpectedForeignShape,
)
from .output import BufferSink, LineBuffer, OutputSink

__all__ = [
    "AdapterError",
    "AdapterClosedError",
    "ConfigError",
    "ForeignInvocationError",
    "ForeignRuntimeError",
    "GateMisuseError",
    "HandleReleasedError",
    "UnexpectedForeignShape",
    "BufferSink",
    "LineBuffer",
    "OutputSink",
]
