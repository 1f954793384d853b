"""
Correlation-id propagation.

The correlation key is bound once per LoggingSystem. Context-aware emit calls
look the key up in a request context (a mapping) or, when none is given, in
structlog's context variables, and always add the field, using ABSENT when the
request carries no id.
"""

import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

import structlog

DEFAULT_KEY = "request_id"


class _Absent:
    """Marker for a correlation id that is not present in the context."""

    _instance: "_Absent | None" = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "<absent>"

    __str__ = __repr__


ABSENT = _Absent()


class ContextTrace:
    """Holds the correlation-id key and extracts its value from contexts."""

    def __init__(self, default_key: str = DEFAULT_KEY):
        self._key = default_key
        self._bound = False
        self._lock = threading.Lock()

    @property
    def key(self) -> str:
        return self._key

    @property
    def bound(self) -> bool:
        """Whether set_key has already fixed the key."""
        return self._bound

    def set_key(self, key: str) -> bool:
        """
        Bind the correlation key. The first call wins.

        Returns:
            True if this call bound the key, False if it was already bound
        """
        with self._lock:
            if self._bound:
                return False
            self._key = key
            self._bound = True
            return True

    def extract(self, ctx: Mapping[str, Any] | None = None) -> Any:
        """
        Read the correlation id.

        Args:
            ctx: Request context; structlog context variables when None

        Returns:
            The value, or ABSENT
        """
        source = structlog.contextvars.get_contextvars() if ctx is None else ctx
        return source.get(self._key, ABSENT)

    def field(self, ctx: Mapping[str, Any] | None = None) -> tuple[str, Any]:
        """The ``(key, value)`` pair appended by context-aware emits."""
        return self._key, self.extract(ctx)

    @contextmanager
    def bind(self, value: Any) -> Iterator[None]:
        """Bind ``value`` as the correlation id in structlog's context variables."""
        with structlog.contextvars.bound_contextvars(**{self._key: value}):
            yield
