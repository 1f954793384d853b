"""
Severity levels.

Ordering is ``debug < info < warn < error < dpanic < panic < fatal``.
Numeric values line up with the standard library where a counterpart exists.
"""

from enum import IntEnum


class Level(IntEnum):
    """Log severity, comparable by value."""

    DEBUG = 10
    INFO = 20
    WARN = 30
    ERROR = 40
    DPANIC = 45
    PANIC = 50
    FATAL = 60

    @property
    def method_name(self) -> str:
        """Lower-case name used for generated methods and the rendered ``level`` key."""
        return self.name.lower()

    @classmethod
    def from_name(cls, name: str) -> "Level":
        """Resolve a level from its name, case-insensitive. ``warning`` is accepted for ``warn``."""
        key = name.strip().upper()
        if key == "WARNING":
            key = "WARN"
        try:
            return cls[key]
        except KeyError:
            raise ValueError(
                f"Unknown log level '{name}'. Valid levels: {', '.join(m.method_name for m in cls)}"
            ) from None

    @classmethod
    def coerce(cls, value: "int | str | Level") -> "Level":
        """Accept a Level, its numeric value, or its name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls.from_name(value)
        if isinstance(value, int):
            return cls(value)
        raise TypeError(f"Expected Level, int or str, got {type(value).__name__}")


# Levels that end the caller's flow after the record is written.
TERMINAL_LEVELS = frozenset({Level.DPANIC, Level.PANIC, Level.FATAL})
