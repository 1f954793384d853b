"""
LoggingSystem: owner of the registry, the correlation key, the base
directory and the default logger.

A process normally uses the singleton from ``get_system()``. Tests and
embedders can create their own instances; nothing here is shared between
systems.
"""

import logging
import os
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from .config import (
    DEFAULT_NAME_KEY,
    DEFAULT_PATH_KEY,
    Mode,
    Options,
    default_base_directory,
    load_env_config,
    options_from_config,
)
from .encoding import EncoderConfig
from .errors import LoggingError
from .logger import Logger
from .null import InertLogger
from .registry import LoggerRegistry, ensure_directory
from .rotation import DEFAULT_ERROR_RULE, DEFAULT_OUTPUT_RULE, RotationRule
from .sinks import DEFAULT_SYNC_TIMEOUT

logger = logging.getLogger(__name__)

DEFAULT_LOGGER_NAME = "default"


class LoggingSystem:
    """
    A self-contained logging setup.

    Usage:
        system = LoggingSystem(base_directory="/var/log/orders", mode="production")
        log = system.new_logger("orders")
        log.info("started")
    """

    def __init__(
        self,
        base_directory: str | Path | None = None,
        mode: Mode | str | None = None,
        encoder: EncoderConfig | None = None,
        output_rule: RotationRule = DEFAULT_OUTPUT_RULE,
        error_rule: RotationRule | None = DEFAULT_ERROR_RULE,
        environ: Mapping[str, str] | None = None,
    ):
        """
        Initialize a logging system.

        Args:
            base_directory: Log directory; resolved from the environment on
                first use when None
            mode: Default mode for loggers built by this system
            encoder: Default encoder settings
            output_rule: Template for main log files
            error_rule: Template for error mirrors; None disables mirroring
            environ: Environment to read (default: os.environ)
        """
        self._environ = os.environ if environ is None else environ
        env = load_env_config(self._environ)

        self.mode = Mode.from_name(mode or env.get("mode", Mode.LOCAL))
        self.encoder = encoder or EncoderConfig(
            format=env.get("format", "console"),
            colors=env.get("colors", False),
        )
        self.output_rule = output_rule
        self.error_rule = error_rule
        self.registry = LoggerRegistry()

        self._base_directory = Path(base_directory) if base_directory is not None else None
        self._base_lock = threading.Lock()
        self._default: Logger | None = None
        self._default_lock = threading.Lock()

    @property
    def trace(self):
        return self.registry.trace

    # ==================== Base directory ====================

    @property
    def base_directory(self) -> Path:
        """Log directory; resolved once from LOGGING_LOGGER_PATH or the working directory."""
        if self._base_directory is None:
            with self._base_lock:
                if self._base_directory is None:
                    self._base_directory = default_base_directory(self._environ)
                    logger.debug("Log directory resolved to %s", self._base_directory)
        return self._base_directory

    def set_base_directory(self, path: str | Path, create: bool = False) -> Path:
        """
        Set the directory used by loggers built from now on.

        Args:
            path: New base directory
            create: Create it immediately (raises LogPathError on failure)
        """
        directory = ensure_directory(path) if create else Path(path)
        with self._base_lock:
            self._base_directory = directory
        logger.info("Log directory set to %s", directory)
        return directory

    # ==================== Loggers ====================

    def options(self, **overrides: Any) -> Options:
        """Options carrying this system's defaults, with ``overrides`` applied."""
        values: dict[str, Any] = {
            "base_directory": self.base_directory,
            "mode": self.mode,
            "encoder": self.encoder,
            "output_rule": self.output_rule,
            "error_rule": self.error_rule,
        }
        values.update(overrides)
        return Options(**values)

    def new_logger(self, name: str, options: Options | None = None) -> Logger:
        """
        Construct and register a named logger.

        Raises:
            LoggerExistsError: If the name is taken
            LogPathError: If the base directory is unusable
            LoggerInitError: If the pipeline cannot be built
        """
        if options is None:
            options = self.options(service_name=name)
        return self.registry.construct(name, options)

    def get_logger(self, name: str | None = None) -> Logger:
        """The logger registered as ``name``, or the default logger."""
        if name is not None:
            found = self.registry.get(name)
            if found is not None:
                return found
        return self.default_logger()

    def default_logger(self) -> Logger:
        """
        The default logger, built on first use.

        Unlike named loggers it never fails: an unusable directory gives a
        stdout-only logger, and a failed pipeline gives an InertLogger.
        """
        if self._default is None:
            with self._default_lock:
                if self._default is None:
                    self._default = self._build_default()
        return self._default

    def _build_default(self) -> Logger:
        options = self.options(service_name=DEFAULT_LOGGER_NAME)
        try:
            return self.registry.get_or_construct(
                DEFAULT_LOGGER_NAME, options, require_directory=False
            )
        except LoggingError as e:
            logger.error("Default logger could not be built: %s", e)
            return InertLogger(
                DEFAULT_LOGGER_NAME,
                reason=str(e),
                trace=self.trace,
                development=options.mode.development,
            )

    def logger_from_config(
        self,
        config_file: str | Path,
        mode: Mode | str | None = None,
        name_key: str = DEFAULT_NAME_KEY,
        path_key: str = DEFAULT_PATH_KEY,
    ) -> Logger:
        """
        Construct a logger named and placed by a JSON or TOML config file.

        Raises:
            LogNameError: If the file has no logger name
            LogPathError: If the configured directory is unusable
        """
        name, options = options_from_config(
            config_file,
            mode=mode or self.mode,
            name_key=name_key,
            path_key=path_key,
            encoder=self.encoder,
            output_rule=self.output_rule,
            error_rule=self.error_rule,
        )
        if not options.base_directory:
            options.base_directory = self.base_directory
        return self.registry.construct(name, options)

    # ==================== Correlation ====================

    def set_request_id_key(self, key: str) -> bool:
        """Bind the correlation-id key. Only the first call has an effect."""
        return self.trace.set_key(key)

    # ==================== Lifecycle ====================

    def sync(self, timeout: float | None = DEFAULT_SYNC_TIMEOUT) -> bool:
        """Flush every logger built by this system."""
        ok = True
        for name in self.registry.names():
            registered = self.registry.get(name)
            if registered is not None:
                ok = registered.sync(timeout) and ok
        return ok

    def close(self) -> None:
        """Close all sinks. Call during shutdown."""
        self.registry.close()


_system: Optional[LoggingSystem] = None
_system_lock = threading.Lock()


def get_system() -> LoggingSystem:
    """Get or create the process-wide LoggingSystem."""
    global _system
    if _system is None:
        with _system_lock:
            if _system is None:
                _system = LoggingSystem()
    return _system


def reset_system() -> None:
    """
    Close and drop the process-wide LoggingSystem.
    The next get_system() call builds a fresh one. Intended for tests and
    orderly shutdown.
    """
    global _system
    with _system_lock:
        if _system is not None:
            _system.close()
            _system = None


def default_logger() -> Logger:
    """Default logger of the process-wide system."""
    return get_system().default_logger()


def get_logger(name: str | None = None) -> Logger:
    """Registered logger ``name`` of the process-wide system, or its default logger."""
    return get_system().get_logger(name)


def new_logger(name: str, options: Options | None = None) -> Logger:
    """Construct a named logger in the process-wide system."""
    return get_system().new_logger(name, options)


def set_request_id_key(key: str) -> bool:
    """Bind the process-wide correlation-id key. Only the first call has an effect."""
    return get_system().set_request_id_key(key)


def sync(timeout: float | None = DEFAULT_SYNC_TIMEOUT) -> bool:
    """Flush every logger of the process-wide system."""
    if _system is None:
        return True
    return _system.sync(timeout)
