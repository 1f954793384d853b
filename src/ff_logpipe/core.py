"""
Routing cores.

A RoutingCore is a severity gate, a structlog encoder and a set of sinks. A
CoreTee evaluates several cores independently for every record, which is how
an errors-only file can sit next to a file that receives everything.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from .encoding import EncoderConfig
from .levels import Level
from .sinks import DEFAULT_SYNC_TIMEOUT, MultiSink, Sink, StreamSink, write_fallback

logger = logging.getLogger(__name__)


class RoutingCore:
    """
    Writes records at or above ``minimum`` to every sink.

    Records below the gate are dropped after a single comparison; nothing is
    rendered for them.
    """

    def __init__(
        self,
        sinks: Iterable[Sink],
        minimum: Level | int | str = Level.DEBUG,
        encoder: EncoderConfig | None = None,
        context: Mapping[str, Any] | None = None,
        name: str = "core",
    ):
        self.name = name
        self.minimum = Level.coerce(minimum)
        self.encoder = encoder or EncoderConfig()
        self.sinks = tuple(sinks)
        self._logger = structlog.wrap_logger(
            MultiSink(list(self.sinks)),
            processors=self.encoder.processors(),
            wrapper_class=structlog.BoundLogger,
            context_class=dict,
        ).bind(**dict(context or {}))

    def enabled(self, level: Level) -> bool:
        return level >= self.minimum

    def write(self, level: Level, event_dict: Mapping[str, Any]) -> bool:
        """
        Render and write one record if the gate passes.

        Returns:
            True if the record passed this core's gate
        """
        if level < self.minimum:
            return False

        try:
            getattr(self._logger, level.method_name)(**event_dict)
        except Exception:
            logger.exception("Core %r failed to encode a %s record", self.name, level.method_name)
            write_fallback(f"{level.method_name}\t{event_dict.get('event', '')}\t{dict(event_dict)!r}")
        return True

    def sync(self, timeout: float | None = DEFAULT_SYNC_TIMEOUT) -> bool:
        ok = True
        for sink in self.sinks:
            try:
                ok = sink.sync(timeout) and ok
            except Exception:
                logger.exception("Sync of %r failed", sink)
                ok = False
        return ok

    def close(self) -> None:
        for sink in self.sinks:
            try:
                sink.close()
            except Exception:
                logger.exception("Close of %r failed", sink)

    def __repr__(self) -> str:
        return f"RoutingCore(name={self.name!r}, minimum={self.minimum.method_name}, sinks={list(self.sinks)!r})"


class CoreTee:
    """A set of cores that each see every record and gate it on their own."""

    def __init__(self, cores: Iterable[RoutingCore]):
        self.cores = tuple(cores)

    @property
    def minimum(self) -> Level | None:
        """Lowest gate across cores, or None when there are no cores."""
        if not self.cores:
            return None
        return min(core.minimum for core in self.cores)

    def enabled(self, level: Level) -> bool:
        return any(core.enabled(level) for core in self.cores)

    def write(self, level: Level, event_dict: Mapping[str, Any]) -> int:
        """
        Offer one record to every core.

        Returns:
            Number of cores whose gate accepted the record
        """
        return sum(1 for core in self.cores if core.write(level, event_dict))

    def sync(self, timeout: float | None = DEFAULT_SYNC_TIMEOUT) -> bool:
        results = [core.sync(timeout) for core in self.cores]
        return all(results)

    def close(self) -> None:
        for core in self.cores:
            core.close()

    def __repr__(self) -> str:
        return f"CoreTee({list(self.cores)!r})"


def build_core(
    sinks: Iterable[Sink | None],
    minimum: Level | int | str,
    encoder: EncoderConfig | None = None,
    *,
    stdout: bool = False,
    context: Mapping[str, Any] | None = None,
    name: str = "core",
) -> RoutingCore:
    """
    Compose sinks, a severity gate and an encoder into a core.

    Args:
        sinks: Destinations; None entries (failed resolutions) are skipped
        minimum: Lowest level this core writes
        encoder: Encoder settings (default: plain console lines)
        stdout: Also write to standard output (debug/local mode)
        context: Fields bound to every record written by this core
        name: Name used in diagnostics

    Returns:
        The core
    """
    live = [sink for sink in sinks if sink is not None]
    if stdout:
        live.append(StreamSink())
    return RoutingCore(live, minimum=minimum, encoder=encoder, context=context, name=name)


def build_tee(*cores: RoutingCore | None) -> CoreTee:
    """Combine cores into a tee, skipping None."""
    return CoreTee(core for core in cores if core is not None)
