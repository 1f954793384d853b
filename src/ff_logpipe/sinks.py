"""
Sinks: appendable destinations for rendered log lines.

Every sink serializes its own physical writes, so cores can fan out to them
from any thread without extra locking.
"""

import logging
import os
import sys
import threading
from abc import ABC, abstractmethod
from typing import Any, TextIO

logger = logging.getLogger(__name__)

DEFAULT_SYNC_TIMEOUT = 5.0


class Sink(ABC):
    """Base sink. Accepts one rendered line per call."""

    name: str = "sink"

    @abstractmethod
    def write(self, line: str) -> None: ...

    def sync(self, timeout: float | None = DEFAULT_SYNC_TIMEOUT) -> bool:
        """Flush buffered output. Returns False if it could not complete in time."""
        return True

    def close(self) -> None:
        """Release underlying resources."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class StreamSink(Sink):
    """
    Sink writing to a text stream.

    With no explicit stream, ``sys.stdout`` is looked up on every write so
    redirection (and pytest's capture) is honored.
    """

    def __init__(self, stream: TextIO | None = None, name: str = "stdout"):
        self.name = name
        self._stream = stream
        self._lock = threading.Lock()

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def write(self, line: str) -> None:
        with self._lock:
            stream = self.stream
            stream.write(line + "\n")
            stream.flush()

    def sync(self, timeout: float | None = DEFAULT_SYNC_TIMEOUT) -> bool:
        if not self._lock.acquire(timeout=-1 if timeout is None else timeout):
            return False
        try:
            self.stream.flush()
        finally:
            self._lock.release()
        return True


class HandlerSink(Sink):
    """
    Sink backed by a ``logging.Handler`` (the rotation engines).

    Lines are wrapped in a bare LogRecord and passed to ``handler.handle``,
    which takes the handler's lock and performs any rollover before writing.
    Write failures only reach the caller when the handler re-raises them from
    ``handleError``, as the rotation engines do.
    """

    def __init__(self, handler: logging.Handler, name: str | None = None):
        self.handler = handler
        self.handler.setFormatter(logging.Formatter("%(message)s"))
        self.name = name or getattr(handler, "baseFilename", handler.__class__.__name__)

    def write(self, line: str) -> None:
        record = logging.LogRecord(
            name=self.name,
            level=logging.INFO,
            pathname="",
            lineno=0,
            msg=line,
            args=None,
            exc_info=None,
        )
        self.handler.handle(record)

    def sync(self, timeout: float | None = DEFAULT_SYNC_TIMEOUT) -> bool:
        lock = self.handler.lock
        if lock is not None and not lock.acquire(timeout=-1 if timeout is None else timeout):
            logger.warning("Timed out waiting to sync %s", self.name)
            return False
        try:
            stream = getattr(self.handler, "stream", None)
            if stream is not None and not stream.closed:
                stream.flush()
                try:
                    os.fsync(stream.fileno())
                except (OSError, ValueError):
                    pass
        finally:
            if lock is not None:
                lock.release()
        return True

    def close(self) -> None:
        self.handler.close()


class MemorySink(Sink):
    """
    Sink that keeps lines in memory.
    Useful for verifying routing in tests.
    """

    def __init__(self, name: str = "memory"):
        self.name = name
        self._lines: list[str] = []
        self._lock = threading.Lock()

    def write(self, line: str) -> None:
        with self._lock:
            self._lines.append(line)

    @property
    def lines(self) -> list[str]:
        """Get a copy of the captured lines."""
        with self._lock:
            return list(self._lines)

    def clear(self) -> None:
        """Clear captured lines."""
        with self._lock:
            self._lines.clear()


class MultiSink:
    """
    structlog "wrapped logger" that fans a rendered line out to several sinks.

    A failing sink never stops the others and never raises to the caller:
    the line is written to stdout as a best-effort fallback instead.
    """

    def __init__(self, sinks: list[Sink]):
        self.sinks = tuple(sinks)

    def msg(self, message: str, *args: Any, **kwargs: Any) -> None:
        for sink in self.sinks:
            try:
                sink.write(message)
            except Exception:
                logger.exception("Write to %r failed, falling back to stdout", sink)
                write_fallback(message)

    log = debug = info = warn = warning = msg
    error = err = critical = exception = msg
    dpanic = panic = fatal = failure = msg

    def __repr__(self) -> str:
        return f"MultiSink({list(self.sinks)!r})"


def write_fallback(line: str) -> None:
    """Best-effort write to stdout. Errors here are reported, never raised."""
    try:
        sys.stdout.write(line + "\n")
        sys.stdout.flush()
    except Exception:
        logger.exception("Fallback write to stdout failed")
