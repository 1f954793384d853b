"""
Inert logger used when a pipeline could not be built.
"""

import logging
import sys
import threading
from typing import Any

from .core import CoreTee
from .levels import TERMINAL_LEVELS, Level
from .logger import _NO_CONTEXT, Logger
from .trace import ContextTrace

logger = logging.getLogger(__name__)

PACKAGE_NAME = __name__.split(".")[0]


def find_call_site() -> tuple[str, int]:
    """Return ``(filename, lineno)`` of the first frame outside this package."""
    frame = sys._getframe(1)
    while frame is not None:
        module = frame.f_globals.get("__name__", "")
        if module != PACKAGE_NAME and not module.startswith(PACKAGE_NAME + "."):
            return frame.f_code.co_filename, frame.f_lineno
        frame = frame.f_back
    return "<unknown>", 0


class InertLogger(Logger):
    """
    A logger whose construction failed.

    Every emit is a no-op, but each distinct call site logs one diagnostic so
    total log loss is noticed during development. panic, dpanic and fatal keep
    their control flow.

    Example:
        log = InertLogger("orders", reason="log directory not writable")
        log.info("order placed")  # dropped, one warning for this line
    """

    ok = False

    def __init__(
        self,
        name: str,
        reason: str | None = None,
        *,
        trace: ContextTrace | None = None,
        development: bool = False,
    ):
        """
        Initialize an inert logger.

        Args:
            name: Logger name (for diagnostics)
            reason: Why construction failed
            trace: Correlation-id binding (kept for interface compatibility)
            development: Development mode; dpanic raises
        """
        super().__init__(name, CoreTee(()), trace=trace, development=development)
        self.reason = reason
        self._call_sites: set[tuple[str, int]] = set()
        self._call_sites_lock = threading.Lock()

    def enabled(self, level: Level | int | str) -> bool:
        return False

    def _log(self, level: Level | int | str, render: Any, fields: Any, ctx: Any = _NO_CONTEXT) -> None:
        self._diagnose()
        level = Level.coerce(level)
        if level in TERMINAL_LEVELS:
            self._finish(level, render())

    def _diagnose(self) -> None:
        site = find_call_site()
        with self._call_sites_lock:
            if site in self._call_sites:
                return
            self._call_sites.add(site)
        logger.warning(
            "Logger %r is not initialized (%s); dropping records from %s:%d",
            self.name,
            self.reason or "unknown reason",
            site[0],
            site[1],
        )

    def sync(self, timeout: float | None = None) -> bool:
        return True

    def __repr__(self) -> str:
        return f"InertLogger(name={self.name!r}, reason={self.reason!r})"
