"""
The Logger facade.

All message styles funnel into one ``_log`` entry point. The per-level
methods (``info``, ``infof``, ``infow``, ``infoc``, ``infofc``, ``infowc``,
and so on for every level) are generated from the ``emit*`` methods at import
time.
"""

import copy
import logging
import sys
from collections.abc import Callable, Mapping
from typing import Any

from .core import CoreTee
from .errors import LoggerPanic
from .fields import Field, merge, pair_up, sanitize_key
from .levels import TERMINAL_LEVELS, Level
from .sinks import DEFAULT_SYNC_TIMEOUT
from .trace import ContextTrace

logger = logging.getLogger(__name__)

# Distinguishes "no context given" from "context is None" (use contextvars).
_NO_CONTEXT = object()

FATAL_EXIT_CODE = 1

Context = Mapping[str, Any] | None


def _sprint(args: tuple[Any, ...]) -> str:
    return " ".join(str(arg) for arg in args)


def _sprintf(template: str, args: tuple[Any, ...]) -> str:
    if not args:
        return template
    try:
        return template % args
    except (TypeError, ValueError, KeyError) as e:
        logger.warning("Bad log format %r: %s", template, e)
        return f"{template} {args!r}"


class Logger:
    """
    Structured logger bound to a write pipeline.

    Immutable once built; ``bind`` returns a child that shares the pipeline.

    Example:
        log = system.new_logger("orders", Options(mode="production"))
        log.info("order placed")
        log.infof("order %s placed", order_id)
        log.infow("order placed", "order_id", order_id, amount=12.5)
        log.infowc(request_context, "order placed", order_id=order_id)
    """

    ok = True

    def __init__(
        self,
        name: str,
        tee: CoreTee,
        *,
        trace: ContextTrace | None = None,
        development: bool = False,
        context: Mapping[str, Any] | None = None,
    ):
        """
        Initialize a logger.

        Args:
            name: Logger name
            tee: Composed write pipeline
            trace: Correlation-id binding used by the context-aware methods
            development: Development mode; dpanic raises after writing
            context: Fields added to every record
        """
        self.name = name
        self.development = development
        self._tee = tee
        self._trace = trace or ContextTrace()
        self._context = merge(context)

    @property
    def tee(self) -> CoreTee:
        return self._tee

    @property
    def trace(self) -> ContextTrace:
        return self._trace

    @property
    def context(self) -> dict[str, Any]:
        """Get the fields bound to this logger."""
        return self._context.copy()

    def enabled(self, level: Level | int | str) -> bool:
        """Whether any core would write a record at ``level``."""
        return self._tee.enabled(Level.coerce(level))

    def bind(self, **fields: Any) -> "Logger":
        """
        Bind additional fields.
        Returns a new logger; this one is unchanged.
        """
        child = copy.copy(self)
        child._context = merge(self._context, fields)
        return child

    # Message styles. The generated per-level methods delegate here.

    def emit(self, level: Level | int | str, /, *args: Any) -> None:
        """Log a message built by joining ``args`` with spaces."""
        self._log(level, lambda: _sprint(args), ())

    def emitf(self, level: Level | int | str, template: str, /, *args: Any) -> None:
        """Log a ``%``-formatted message."""
        self._log(level, lambda: _sprintf(template, args), ())

    def emitw(self, level: Level | int | str, message: str, /, *key_values: Any, **fields: Any) -> None:
        """Log a message with key/value pairs and keyword fields."""
        self._log(level, lambda: message, pair_up(key_values) + list(fields.items()))

    def emitc(self, level: Level | int | str, ctx: Context, /, *args: Any) -> None:
        """Like emit, adding the correlation id from ``ctx``."""
        self._log(level, lambda: _sprint(args), (), ctx)

    def emitfc(self, level: Level | int | str, ctx: Context, template: str, /, *args: Any) -> None:
        """Like emitf, adding the correlation id from ``ctx``."""
        self._log(level, lambda: _sprintf(template, args), (), ctx)

    def emitwc(
        self, level: Level | int | str, ctx: Context, message: str, /, *key_values: Any, **fields: Any
    ) -> None:
        """Like emitw, adding the correlation id from ``ctx``."""
        self._log(level, lambda: message, pair_up(key_values) + list(fields.items()), ctx)

    def _log(
        self,
        level: Level | int | str,
        render: Callable[[], str],
        fields: list[Field] | tuple[()],
        ctx: Any = _NO_CONTEXT,
    ) -> None:
        level = Level.coerce(level)
        enabled = self._tee.enabled(level)
        if not enabled and level not in TERMINAL_LEVELS:
            return

        message = render()
        if enabled:
            event_dict = merge(self._context, fields)
            if ctx is not _NO_CONTEXT:
                key, value = self._trace.field(ctx)
                event_dict[sanitize_key(key)] = value
            event_dict["event"] = message
            self._tee.write(level, event_dict)

        self._finish(level, message)

    def _finish(self, level: Level, message: str) -> None:
        """Apply the control flow of panic, dpanic and fatal after writing."""
        if level is Level.PANIC or (level is Level.DPANIC and self.development):
            raise LoggerPanic(message, level.method_name)
        if level is Level.FATAL:
            self.sync()
            sys.exit(FATAL_EXIT_CODE)

    def sync(self, timeout: float | None = DEFAULT_SYNC_TIMEOUT) -> bool:
        """
        Flush every sink.

        Blocks until buffered writes are on disk or ``timeout`` seconds pass
        for a sink. May be called any number of times.
        """
        return self._tee.sync(timeout)

    def close(self) -> None:
        """Close every sink. The logger must not be used afterwards."""
        self._tee.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, context={self._context!r})"


_STYLES = {
    "": "emit",
    "f": "emitf",
    "w": "emitw",
    "c": "emitc",
    "fc": "emitfc",
    "wc": "emitwc",
}


def _level_method(level: Level, emit_name: str) -> Callable[..., None]:
    def method(self: Logger, /, *args: Any, **kwargs: Any) -> None:
        getattr(self, emit_name)(level, *args, **kwargs)

    doc = getattr(Logger, emit_name).__doc__.rstrip(".")
    method.__doc__ = f"{doc} at {level.method_name} level."
    return method


def _install_level_methods(cls: type) -> tuple[str, ...]:
    names = []
    for level in Level:
        for suffix, emit_name in _STYLES.items():
            name = level.method_name + suffix
            method = _level_method(level, emit_name)
            method.__name__ = name
            method.__qualname__ = f"{cls.__name__}.{name}"
            setattr(cls, name, method)
            names.append(name)
    return tuple(names)


# debug, debugf, debugw, debugc, debugfc, debugwc, info, ... fatalwc
LEVEL_METHODS = _install_level_methods(Logger)
