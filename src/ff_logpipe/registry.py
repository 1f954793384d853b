"""
Named logger registry.

Each name is constructed at most once. Construction of different names runs
concurrently; construction of the same name is serialized by a per-name lock
so concurrent first users all get the one instance that was built.
"""

import logging
import threading
from pathlib import Path

from . import pipeline
from .config import Options
from .errors import LoggerExistsError, LoggerInitError, LogPathError
from .logger import Logger
from .trace import ContextTrace

logger = logging.getLogger(__name__)


def ensure_directory(path: str | Path) -> Path:
    """
    Make sure ``path`` exists as a directory, creating it if needed.

    Raises:
        LogPathError: If it cannot be created or is not a directory
    """
    directory = Path(path)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise LogPathError(directory, str(e)) from e
    if not directory.is_dir():
        raise LogPathError(directory, "not a directory")
    return directory


class LoggerRegistry:
    """Process-lifetime table of fully built loggers, keyed by name."""

    def __init__(self, trace: ContextTrace | None = None):
        self.trace = trace or ContextTrace()
        self._loggers: dict[str, Logger] = {}
        self._pending: dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def get(self, name: str) -> Logger | None:
        """Look up a logger. Never constructs."""
        with self._lock:
            return self._loggers.get(name)

    def names(self) -> list[str]:
        with self._lock:
            return list(self._loggers)

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._loggers)

    def construct(self, name: str, options: Options, *, require_directory: bool = True) -> Logger:
        """
        Build and register a logger.

        Args:
            name: Unique logger name
            options: Logger options
            require_directory: Fail with LogPathError on an unusable base
                directory; when False, fall back to a stdout-only pipeline

        Returns:
            The registered logger

        Raises:
            LoggerExistsError: If ``name`` is already registered
            LogPathError: If the base directory is missing and cannot be created
            LoggerInitError: If the pipeline cannot be built
        """
        logger_, created = self._get_or_build(name, options, require_directory)
        if not created:
            raise LoggerExistsError(name)
        return logger_

    def get_or_construct(self, name: str, options: Options, *, require_directory: bool = True) -> Logger:
        """Return the registered logger for ``name``, building it on first use."""
        logger_, _ = self._get_or_build(name, options, require_directory)
        return logger_

    def _get_or_build(self, name: str, options: Options, require_directory: bool) -> tuple[Logger, bool]:
        with self._lock:
            existing = self._loggers.get(name)
            if existing is not None:
                return existing, False
            name_lock = self._pending.setdefault(name, threading.Lock())

        with name_lock:
            # Another caller may have finished while we waited.
            with self._lock:
                existing = self._loggers.get(name)
                if existing is not None:
                    return existing, False

            try:
                built = self._build(name, options, require_directory)
            except BaseException:
                with self._lock:
                    self._release_pending(name, name_lock)
                raise

            with self._lock:
                self._release_pending(name, name_lock)
                # After a failed build, a caller queued on a newer lock may have won.
                existing = self._loggers.get(name)
                if existing is not None:
                    built.close()
                    return existing, False
                self._loggers[name] = built
            return built, True

    def _release_pending(self, name: str, name_lock: threading.Lock) -> None:
        # Caller holds self._lock.
        if self._pending.get(name) is name_lock:
            del self._pending[name]

    def _build(self, name: str, options: Options, require_directory: bool) -> Logger:
        stdout_only = False
        try:
            ensure_directory(options.base_directory)
        except LogPathError as e:
            if require_directory:
                raise
            logger.warning("Logger %r falls back to stdout only: %s", name, e)
            stdout_only = True

        try:
            tee = pipeline.build_logger_tee(name, options, stdout_only=stdout_only)
        except Exception as e:
            raise LoggerInitError(name, str(e)) from e

        return Logger(name, tee, trace=self.trace, development=options.mode.development)

    def close(self) -> None:
        """Close the sinks of every registered logger. Entries stay registered."""
        with self._lock:
            loggers = list(self._loggers.values())
        for registered in loggers:
            registered.close()
