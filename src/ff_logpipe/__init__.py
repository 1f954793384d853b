"""
ff-logpipe: Level-routed structured logging for Fenixflow services.

Routes records to rotating files and stdout by severity, keeps one registry of
named loggers per process and propagates correlation ids. Encoding uses
structlog.

The per-level functions (``ff_logpipe.info``, ``ff_logpipe.errorw``,
``ff_logpipe.infowc``, ...) write through the process default logger.
"""

__version__ = "0.1.0"

from typing import Any

from .config import Mode, Options
from .core import CoreTee, RoutingCore, build_core, build_tee
from .encoding import EncoderConfig
from .errors import (
    LoggerExistsError,
    LoggerInitError,
    LoggerPanic,
    LoggingError,
    LogNameError,
    LogPathError,
    RotationEngineError,
)
from .fields import Field
from .levels import Level
from .logger import LEVEL_METHODS, Logger
from .middleware import log_handler
from .null import InertLogger
from .registry import LoggerRegistry
from .rotation import (
    DEFAULT_ERROR_RULE,
    DEFAULT_OUTPUT_RULE,
    RotationPolicy,
    RotationRule,
    resolve,
)
from .sinks import HandlerSink, MemorySink, Sink, StreamSink
from .system import (
    LoggingSystem,
    default_logger,
    get_logger,
    get_system,
    new_logger,
    reset_system,
    set_request_id_key,
    sync,
)
from .trace import ABSENT, ContextTrace

__all__ = [
    "ABSENT",
    "ContextTrace",
    "CoreTee",
    "DEFAULT_ERROR_RULE",
    "DEFAULT_OUTPUT_RULE",
    "EncoderConfig",
    "Field",
    "HandlerSink",
    "InertLogger",
    "Level",
    "LogNameError",
    "LogPathError",
    "Logger",
    "LoggerExistsError",
    "LoggerInitError",
    "LoggerPanic",
    "LoggerRegistry",
    "LoggingError",
    "LoggingSystem",
    "MemorySink",
    "Mode",
    "Options",
    "RotationEngineError",
    "RotationPolicy",
    "RotationRule",
    "RoutingCore",
    "Sink",
    "StreamSink",
    "build_core",
    "build_tee",
    "default_logger",
    "get_logger",
    "get_system",
    "log_handler",
    "new_logger",
    "reset_system",
    "resolve",
    "set_request_id_key",
    "sync",
]


def __getattr__(name: str) -> Any:
    if name in LEVEL_METHODS:
        return getattr(default_logger(), name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
