"""Centralized configuration for capadapt.

This module provides typed, validated configuration loaded from
environment variables and .env files.
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional
from dotenv import load_dotenv

from capadapt.core.errors import ConfigError
from capadapt.core.output import OutputSink
from capadapt.runtime.base import ForeignRuntime
from capadapt.runtime.gate import ForeignGate

# Load .env file if it exists
load_dotenv()

RUNTIME_KINDS = ("embedded", "process")
START_METHODS = ("fork", "spawn", "forkserver")


def _env_flag(name: str, default: bool) -> bool:
    return os.getenv(name, "true" if default else "false").lower() == "true"


@dataclass
class RuntimeConfig:
    """Foreign runtime configuration."""
    kind: str = "embedded"
    restricted: bool = False
    start_method: Optional[str] = None

    def __post_init__(self):
        self.kind = os.getenv("CAPADAPT_RUNTIME", self.kind).lower()
        self.restricted = _env_flag("CAPADAPT_RESTRICTED", self.restricted)
        self.start_method = os.getenv("CAPADAPT_START_METHOD", self.start_method or "") or None


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "WARNING"
    format: str = "text"  # "json" or "text"
    file_enabled: bool = False
    console_enabled: bool = True
    log_dir: Path = field(default_factory=lambda: Path("./logs"))

    def __post_init__(self):
        self.level = os.getenv("CAPADAPT_LOG_LEVEL", self.level).upper()
        self.format = os.getenv("CAPADAPT_LOG_FORMAT", self.format).lower()
        self.file_enabled = _env_flag("CAPADAPT_LOG_FILE", self.file_enabled)
        self.console_enabled = _env_flag("CAPADAPT_LOG_CONSOLE", self.console_enabled)
        log_dir = os.getenv("CAPADAPT_LOG_DIR")
        if log_dir:
            self.log_dir = Path(log_dir)


@dataclass
class Config:
    """Main configuration container."""
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    log: LogConfig = field(default_factory=LogConfig)

    def validate(self) -> list[str]:
        """Validate configuration and return list of issues."""
        issues = []

        if self.runtime.kind not in RUNTIME_KINDS:
            issues.append(f"CAPADAPT_RUNTIME must be one of {', '.join(RUNTIME_KINDS)}")

        if self.runtime.start_method and self.runtime.start_method not in START_METHODS:
            issues.append(f"CAPADAPT_START_METHOD must be one of {', '.join(START_METHODS)}")

        if self.log.level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            issues.append(f"Unknown log level: {self.log.level}")

        if self.log.format not in ("json", "text"):
            issues.append("CAPADAPT_LOG_FORMAT must be 'json' or 'text'")

        return issues

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return len(self.validate()) == 0


# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _config
    _config = None


def create_runtime(
    config: Optional[Config] = None,
    gate: Optional[ForeignGate] = None,
    sink: Optional[OutputSink] = None,
) -> ForeignRuntime:
    """Build the foreign runtime selected by configuration.

    Raises:
        ConfigError: unknown runtime kind
    """
    config = config or get_config()
    kind = config.runtime.kind

    if kind == "embedded":
        from capadapt.runtime.embedded import EmbeddedRuntime
        return EmbeddedRuntime(restricted=config.runtime.restricted, gate=gate, sink=sink)

    if kind == "process":
        from capadapt.runtime.process import ProcessRuntime
        return ProcessRuntime(
            restricted=config.runtime.restricted,
            gate=gate,
            sink=sink,
            start_method=config.runtime.start_method,
        )

    raise ConfigError(f"Unknown foreign runtime '{kind}'", config_key="CAPADAPT_RUNTIME")
