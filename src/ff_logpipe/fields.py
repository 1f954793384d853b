"""
Structured field helpers.

Fields travel through the pipeline as ordered ``(key, value)`` pairs. Loose
key/value sequences are paired up here, once, so a missing value can never
shift every following key onto the wrong value.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, NamedTuple

logger = logging.getLogger(__name__)

# Parameter names of structlog's bind()/method proxies. A field with one of
# these names would collide with the call signature.
RESERVED_FIELDS = frozenset({"self", "method_name"})

# Keys written by the logger and the encoder processors. User fields with
# these names would be overwritten, so they are renamed like reserved ones.
OWNED_FIELDS = frozenset({"event", "level", "timestamp", "caller", "filename", "lineno"})

# Field that collects a dangling key from an odd-length key/value sequence.
IGNORED_KEY = "ignored"


class Field(NamedTuple):
    """A single structured field."""

    key: str
    value: Any


def sanitize_key(key: Any) -> str:
    """Return ``key`` as a string that neither collides with a call signature nor a pipeline-owned key."""
    key = key if isinstance(key, str) else str(key)
    if key in RESERVED_FIELDS or key in OWNED_FIELDS:
        return f"x_{key}"
    return key


def pair_up(key_values: Sequence[Any]) -> list[Field]:
    """
    Pair a flat ``key, value, key, value, ...`` sequence.

    An odd trailing key is kept under ``ignored`` instead of being silently
    dropped or paired with nothing.

    Args:
        key_values: Alternating keys and values

    Returns:
        Ordered list of fields
    """
    result = [
        Field(sanitize_key(key_values[i]), key_values[i + 1])
        for i in range(0, len(key_values) - 1, 2)
    ]
    if len(key_values) % 2:
        dangling = key_values[-1]
        logger.warning("Ignored key without a value: %r", dangling)
        result.append(Field(IGNORED_KEY, dangling))
    return result


def merge(
    *sources: Iterable[tuple[Any, Any]] | Mapping[str, Any] | None,
) -> dict[str, Any]:
    """Merge field sources left to right into one ordered dict; later keys win."""
    merged: dict[str, Any] = {}
    for source in sources:
        if not source:
            continue
        items = source.items() if isinstance(source, Mapping) else source
        for key, value in items:
            merged[sanitize_key(key)] = value
    return merged
