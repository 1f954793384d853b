"""
Rotation rules and the writer resolver.

A RotationRule describes how one destination file rotates. ``resolve`` turns a
rule into a live sink backed by one of the standard library's rotating file
handlers, or returns None when the engine cannot start.
"""

import dataclasses
import gzip
import logging
import os
import shutil
import time
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path

from .errors import RotationEngineError
from .sinks import HandlerSink

logger = logging.getLogger(__name__)

MEGABYTE = 1024 * 1024
DEFAULT_MAX_SIZE_MB = 100
DEFAULT_ROTATION_INTERVAL = timedelta(hours=24)


class RotationPolicy(str, Enum):
    TIME = "time"
    SIZE = "size"


@dataclass(frozen=True)
class RotationRule:
    """
    Declarative rotation policy for one log file.

    ``policy`` decides which of ``max_size_mb`` and ``rotation_interval`` is
    used; the other is kept but ignored. Rules are frozen: per-logger
    directory and filename are filled in on a copy via ``resolved``.
    """

    policy: RotationPolicy = RotationPolicy.TIME
    directory: str | Path = ""
    filename: str = ""
    max_size_mb: float = DEFAULT_MAX_SIZE_MB
    max_backups: int = 10
    max_age_days: int = 7
    rotation_interval: timedelta = DEFAULT_ROTATION_INTERVAL
    compress: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "policy", RotationPolicy(self.policy))

    @property
    def full_path(self) -> Path:
        """``directory/filename.log``."""
        return Path(self.directory) / f"{self.filename}.log"

    @property
    def max_age(self) -> timedelta:
        return timedelta(days=self.max_age_days)

    @property
    def max_bytes(self) -> int:
        size = self.max_size_mb if self.max_size_mb > 0 else DEFAULT_MAX_SIZE_MB
        return max(1, int(size * MEGABYTE))

    def resolved(self, directory: str | Path | None = None, filename: str | None = None) -> "RotationRule":
        """
        Return a copy with an empty directory or filename filled in.

        Values already set on the rule take precedence.
        """
        return dataclasses.replace(
            self,
            directory=self.directory or directory or "",
            filename=self.filename or filename or "",
        )


# Templates used when Options carries no rule. Never mutated: see resolved().
DEFAULT_OUTPUT_RULE = RotationRule(max_size_mb=100, max_backups=10, max_age_days=100)
DEFAULT_ERROR_RULE = RotationRule(max_size_mb=1, max_backups=10, max_age_days=7)


def evict_expired(base_filename: str | Path, max_age: timedelta | None) -> list[Path]:
    """
    Delete rotated files of ``base_filename`` older than ``max_age``.

    Only files named ``<base_filename>.<suffix>`` are considered; the live
    file itself is never touched.

    Returns:
        The paths that were removed
    """
    if not max_age or max_age <= timedelta(0):
        return []

    base = Path(base_filename)
    cutoff = time.time() - max_age.total_seconds()
    removed = []
    for path in base.parent.glob(f"{base.name}.*"):
        try:
            if path.stat().st_mtime < cutoff:
                path.unlink()
                removed.append(path)
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning("Could not remove expired log file %s: %s", path, e)
    return removed


def _gzip_namer(name: str) -> str:
    return name + ".gz"


def _gzip_rotator(source: str, dest: str) -> None:
    with open(source, "rb") as src, gzip.open(dest, "wb") as dst:
        shutil.copyfileobj(src, dst)
    os.remove(source)


def _interval_unit(interval: timedelta) -> tuple[str, int]:
    """Map an interval onto TimedRotatingFileHandler's ``when``/``interval`` pair."""
    seconds = int(interval.total_seconds())
    if seconds <= 0:
        raise RotationEngineError(f"Rotation interval must be positive, got {interval}")
    if seconds == 86400:
        return "midnight", 1
    for when, unit in (("D", 86400), ("H", 3600), ("M", 60)):
        if seconds % unit == 0:
            return when, seconds // unit
    return "S", seconds


class _RaisingHandlerMixin:
    """
    Re-raise emit failures instead of printing them to stderr.

    ``logging.Handler.handleError`` swallows the exception; the sink layer
    needs it so the line can fall back to stdout.
    """

    def handleError(self, record: logging.LogRecord) -> None:
        raise


class TimeWindowFileHandler(_RaisingHandlerMixin, TimedRotatingFileHandler):
    """
    Rotates onto a new file at each interval boundary.

    The live file always sits at ``filename`` so it doubles as the stable
    "latest" path; rotated files get a date suffix and are evicted by age.
    """

    def __init__(
        self,
        filename: str | Path,
        interval: timedelta = DEFAULT_ROTATION_INTERVAL,
        max_age: timedelta | None = None,
        encoding: str = "utf-8",
    ):
        when, count = _interval_unit(interval)
        super().__init__(filename, when=when, interval=count, backupCount=0, encoding=encoding)
        self.max_age = max_age

    def doRollover(self) -> None:
        super().doRollover()
        evict_expired(self.baseFilename, self.max_age)


class SizeThresholdFileHandler(_RaisingHandlerMixin, RotatingFileHandler):
    """
    Rotates when the file would exceed ``max_bytes``.

    Keeps at most ``backup_count`` rotated files (``name.log.1`` newest),
    optionally gzipped, and evicts any older than ``max_age``.
    """

    def __init__(
        self,
        filename: str | Path,
        max_bytes: int,
        backup_count: int,
        max_age: timedelta | None = None,
        compress: bool = False,
        encoding: str = "utf-8",
    ):
        super().__init__(filename, maxBytes=max_bytes, backupCount=backup_count, encoding=encoding)
        self.max_age = max_age
        if compress:
            self.namer = _gzip_namer
            self.rotator = _gzip_rotator

    def doRollover(self) -> None:
        super().doRollover()
        evict_expired(self.baseFilename, self.max_age)


def build_handler(rule: RotationRule) -> logging.Handler:
    """Create the rotation engine for ``rule``. Raises on any failure."""
    if not rule.filename:
        raise RotationEngineError("Rotation rule has no filename")

    path = rule.full_path
    if rule.policy is RotationPolicy.TIME:
        return TimeWindowFileHandler(
            path,
            interval=rule.rotation_interval or DEFAULT_ROTATION_INTERVAL,
            max_age=rule.max_age,
        )
    if rule.policy is RotationPolicy.SIZE:
        return SizeThresholdFileHandler(
            path,
            max_bytes=rule.max_bytes,
            backup_count=max(1, rule.max_backups),
            max_age=rule.max_age,
            compress=rule.compress,
        )
    raise RotationEngineError(f"Unknown rotation policy: {rule.policy!r}")


def resolve(rule: RotationRule | None) -> HandlerSink | None:
    """
    Turn a rotation rule into a live sink.

    Args:
        rule: Rotation rule, or None

    Returns:
        A thread-safe sink, or None if the rule is absent or the engine could
        not start. Callers skip None sinks; it is never a pipeline failure.
    """
    if rule is None:
        return None

    try:
        handler = build_handler(rule)
    except (OSError, ValueError, RotationEngineError) as e:
        logger.warning("Rotation engine failed to start for %s: %s", rule.full_path, e)
        return None

    return HandlerSink(handler, name=str(rule.full_path))
