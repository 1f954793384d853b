"""
Exceptions raised by ff-logpipe.

Only construction-time problems surface to callers. Per-record write failures
are swallowed by the pipeline and never show up here.
"""

from pathlib import Path


class LoggingError(Exception):
    """Base exception for all ff-logpipe errors."""

    pass


class LogPathError(LoggingError):
    """Raised when the base log directory is missing and cannot be created."""

    def __init__(self, path: str | Path, reason: str | None = None):
        self.path = Path(path)
        self.reason = reason

        message = f"Log directory is not usable: {self.path}"
        if reason:
            message = f"{message} ({reason})"

        super().__init__(message)


class LogNameError(LoggingError):
    """Raised when a configuration source does not name the logger."""

    def __init__(self, key: str, source: str | Path | None = None):
        self.key = key
        self.source = source

        message = f"No logger name under '{key}'"
        if source:
            message = f"{message} in {source}"

        super().__init__(message)


class LoggerInitError(LoggingError):
    """Raised when the write pipeline cannot be built after path validation."""

    def __init__(self, name: str, reason: str | None = None):
        self.name = name
        self.reason = reason

        message = f"Failed to initialize logger '{name}'"
        if reason:
            message = f"{message}: {reason}"

        super().__init__(message)


class LoggerExistsError(LoggerInitError):
    """Raised when a logger name is registered twice."""

    def __init__(self, name: str):
        super().__init__(name, "a logger with this name is already registered")


class RotationEngineError(LoggingError):
    """Raised when a rotation rule cannot drive a rotation engine. Never leaves the resolver."""

    pass


class LoggerPanic(RuntimeError):
    """Raised after a panic (or development-mode dpanic) record has been written."""

    def __init__(self, message: str, level_name: str = "panic"):
        self.level_name = level_name
        super().__init__(message)
