"""Custom exceptions for capadapt.

Provides user-friendly error messages and structured error handling.
"""

from typing import Optional


class AdapterError(Exception):
    """Base exception for all capadapt errors.

    Provides:
    - User-friendly message
    - Technical details for debugging
    - Suggested fixes when applicable
    """

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        suggestion: Optional[str] = None,
        cause: Optional[Exception] = None
    ):
        self.message = message
        self.details = details
        self.suggestion = suggestion
        self.cause = cause
        super().__init__(message)

    def format_user_friendly(self) -> str:
        """Format error for display to user."""
        parts = [f"Error: {self.message}"]

        if self.details:
            parts.append(f"   Details: {self.details}")

        if self.suggestion:
            parts.append(f"   Try: {self.suggestion}")

        return "\n".join(parts)

    def __str__(self) -> str:
        return self.format_user_friendly()


class ConfigError(AdapterError):
    """Configuration-related errors."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        suggestion = kwargs.pop("suggestion", None)
        if not suggestion and config_key:
            suggestion = f"Set the {config_key} environment variable or add it to .env"
        super().__init__(message, suggestion=suggestion, **kwargs)
        self.config_key = config_key


class UnexpectedForeignShape(AdapterError):
    """A foreign object did not match the registered shape it was checked against."""

    def __init__(
        self,
        message: str,
        shape: Optional[str] = None,
        type_name: Optional[str] = None,
        missing_methods: Optional[list[str]] = None,
        **kwargs
    ):
        details = kwargs.pop("details", None)
        if not details:
            parts = []
            if shape:
                parts.append(f"Expected shape: {shape}")
            if type_name:
                parts.append(f"Foreign type: {type_name}")
            if missing_methods:
                parts.append(f"Missing methods: {', '.join(missing_methods)}")
            if parts:
                details = ", ".join(parts)

        suggestion = kwargs.pop("suggestion", None)
        if not suggestion:
            suggestion = "Pass an object built by the shape's own constructor, or use from_foreign_any"

        super().__init__(message, details=details, suggestion=suggestion, **kwargs)
        self.shape = shape
        self.type_name = type_name
        self.missing_methods = list(missing_methods or [])


class ForeignInvocationError(AdapterError):
    """A named method could not be called on a foreign object, or the call raised."""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        type_name: Optional[str] = None,
        foreign_traceback: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", None)
        if not details:
            parts = []
            if method:
                parts.append(f"Method: {method}")
            if type_name:
                parts.append(f"Foreign type: {type_name}")
            if parts:
                details = ", ".join(parts)

        super().__init__(message, details=details, **kwargs)
        self.method = method
        self.type_name = type_name
        self.foreign_traceback = foreign_traceback


class GateMisuseError(AdapterError):
    """A foreign runtime primitive was used without holding the gate.

    This is a programming error inside capadapt, never a recoverable condition.
    """

    def __init__(self, message: str, operation: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", None)
        if not details and operation:
            details = f"Operation: {operation}"
        super().__init__(message, details=details, **kwargs)
        self.operation = operation


class HandleReleasedError(AdapterError):
    """A foreign handle was used after its reference was released."""
    pass


class AdapterClosedError(AdapterError):
    """A capability adapter was used after it was closed."""

    def __init__(self, message: str = "Adapter is closed", **kwargs):
        suggestion = kwargs.pop("suggestion", None)
        if not suggestion:
            suggestion = "Construct a new adapter; closed adapters cannot be reopened"
        super().__init__(message, suggestion=suggestion, **kwargs)


class ForeignRuntimeError(AdapterError):
    """The foreign runtime failed to load source, build an object, or stay alive."""

    def __init__(
        self,
        message: str,
        runtime: Optional[str] = None,
        foreign_traceback: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", None)
        if not details and runtime:
            details = f"Runtime: {runtime}"
        super().__init__(message, details=details, **kwargs)
        self.runtime = runtime
        self.foreign_traceback = foreign_traceback


def format_exception_chain(error: Exception, max_depth: int = 5) -> str:
    """Format an exception chain for display.

    Handles nested exceptions and provides clean output.
    """
    lines = []
    current = error
    depth = 0

    while current and depth < max_depth:
        if isinstance(current, AdapterError):
            lines.append(current.format_user_friendly())
        else:
            lines.append(f"Error: {type(current).__name__}: {current}")

        current = getattr(current, "__cause__", None) or getattr(current, "cause", None)
        depth += 1

        if current:
            lines.append("   Caused by:")

    return "\n".join(lines)
