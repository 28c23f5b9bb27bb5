"""Structured logging for capadapt.

Provides JSON-formatted logs with file and console output.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from logging.handlers import RotatingFileHandler


# Context fields that become record attributes instead of extra_data
CONTEXT_FIELDS = ("component", "backend", "capability", "runtime", "duration_ms", "success")


class JSONFormatter(logging.Formatter):
    """Format log records as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }

        for key in CONTEXT_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add any other extra fields
        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        return json.dumps(log_data, default=str)


class ColoredFormatter(logging.Formatter):
    """Colored console formatter for human-readable output."""

    COLORS = {
        "DEBUG": "\033[36m",    # Cyan
        "INFO": "\033[32m",     # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",    # Red
        "CRITICAL": "\033[35m", # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")

        timestamp = datetime.now().strftime("%H:%M:%S")
        prefix = f"{color}[{timestamp}] {record.levelname:8}{self.RESET}"

        if hasattr(record, "component"):
            prefix += f" [{record.component}]"

        message = record.getMessage()

        # Add extra context on same line if brief
        extras = []
        if hasattr(record, "backend"):
            extras.append(f"backend={record.backend}")
        if hasattr(record, "capability"):
            extras.append(f"cap={record.capability}")
        if hasattr(record, "runtime"):
            extras.append(f"rt={record.runtime}")
        if hasattr(record, "duration_ms"):
            extras.append(f"time={record.duration_ms:.1f}ms")

        if extras:
            message += f" ({', '.join(extras)})"

        return f"{prefix} {message}"


class AdapterLogger:
    """Logger wrapper with convenience methods for adapter-specific logging."""

    def __init__(self, name: str, logger: logging.Logger):
        self._name = name
        self._logger = logger

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs):
        self._log(logging.ERROR, message, **kwargs)

    def critical(self, message: str, **kwargs):
        self._log(logging.CRITICAL, message, **kwargs)

    def _log(self, level: int, message: str, **kwargs):
        """Log with extra context fields."""
        if not self._logger.isEnabledFor(level):
            return

        extra = {}
        for key in CONTEXT_FIELDS:
            if key in kwargs:
                extra[key] = kwargs.pop(key)

        # Remaining fields go into extra_data
        if kwargs:
            extra["extra_data"] = kwargs

        self._logger.log(level, message, extra=extra)

    # Convenience methods for common adapter events

    def adapter_created(self, backend: str, capability: str, target: str):
        self.debug(
            f"Adapter created for {target}",
            component="adapter",
            backend=backend,
            capability=capability,
        )

    def invocation(self, method: str, type_name: str, success: bool, duration_ms: float):
        level = logging.DEBUG if success else logging.WARNING
        self._log(
            level,
            f"Foreign call {type_name}.{method} {'completed' if success else 'failed'}",
            component="handle",
            capability=method,
            success=success,
            duration_ms=duration_ms,
        )

    def shape_rejected(self, shape: str, type_name: str):
        self.info(
            f"Rejected {type_name} for shape {shape}",
            component="registry",
            capability=shape,
        )


# Global logger registry
_loggers: dict[str, AdapterLogger] = {}
_initialized = False


def setup_logging(
    level: str = "INFO",
    format_type: str = "json",
    log_dir: Optional[Path] = None,
    file_enabled: bool = False,
    console_enabled: bool = True
) -> None:
    """Initialize the logging system.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: "json" or "text"
        log_dir: Directory for log files
        file_enabled: Write logs to file
        console_enabled: Write logs to console (stderr, so speaker output stays clean)
    """
    global _initialized

    if _initialized:
        return

    root = logging.getLogger("capadapt")
    root.setLevel(getattr(logging, level.upper()))
    root.handlers.clear()

    if console_enabled:
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(logging.DEBUG)

        if format_type == "json":
            console.setFormatter(JSONFormatter())
        else:
            console.setFormatter(ColoredFormatter())

        root.addHandler(console)

    if file_enabled and log_dir:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / "capadapt.log"

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter())
        root.addHandler(file_handler)

    _initialized = True


def reset_logging() -> None:
    """Drop installed handlers so setup_logging() can run again (useful for testing)."""
    global _initialized
    logging.getLogger("capadapt").handlers.clear()
    _initialized = False


def get_logger(name: str = "capadapt") -> AdapterLogger:
    """Get a capadapt logger instance."""
    if name not in _loggers:
        logger_name = name if name == "capadapt" else f"capadapt.{name}"
        _loggers[name] = AdapterLogger(name, logging.getLogger(logger_name))
    return _loggers[name]
