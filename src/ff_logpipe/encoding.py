"""
Record encoding.

Each core renders records through its own structlog processor chain, built
from an EncoderConfig.
"""

from dataclasses import dataclass
from typing import Any

import structlog
from structlog.types import EventDict, Processor

# Frames from this package are skipped when looking for the caller.
PACKAGE_NAME = __name__.split(".")[0]


def render_caller(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Collapse callsite filename/lineno into a single ``caller`` field."""
    filename = event_dict.pop("filename", None)
    lineno = event_dict.pop("lineno", None)
    if filename:
        event_dict["caller"] = f"{filename}:{lineno}"
    return event_dict


@dataclass(frozen=True)
class EncoderConfig:
    """
    Encoder settings for a core.

    Args:
        format: ``console`` for key=value lines, ``json`` for one JSON object per line
        colors: Colored console output (only sensible for a terminal)
        add_timestamp: Include an ISO-8601 ``timestamp``
        utc: Timestamp in UTC rather than local time
        add_caller: Include ``caller`` as ``file.py:line``
    """

    format: str = "console"
    colors: bool = False
    add_timestamp: bool = True
    utc: bool = True
    add_caller: bool = True

    def __post_init__(self) -> None:
        fmt = self.format.lower()
        if fmt not in ("console", "json"):
            raise ValueError(f"Unknown encoder format: {self.format}")
        object.__setattr__(self, "format", fmt)

    def processors(self) -> list[Processor]:
        """Build the processor chain, renderer last."""
        processors: list[Processor] = [structlog.stdlib.add_log_level]

        if self.add_timestamp:
            processors.append(structlog.processors.TimeStamper(fmt="iso", utc=self.utc))

        if self.add_caller:
            processors.extend(
                [
                    structlog.processors.CallsiteParameterAdder(
                        parameters=[
                            structlog.processors.CallsiteParameter.FILENAME,
                            structlog.processors.CallsiteParameter.LINENO,
                        ],
                        additional_ignores=[PACKAGE_NAME],
                    ),
                    render_caller,
                ]
            )

        processors.extend(
            [
                structlog.processors.StackInfoRenderer(),
                structlog.processors.UnicodeDecoder(),
            ]
        )

        # ConsoleRenderer formats exc_info itself.
        if self.format == "json":
            processors.extend(
                [
                    structlog.processors.format_exc_info,
                    structlog.processors.JSONRenderer(),
                ]
            )
        elif self.colors:
            processors.append(
                structlog.dev.ConsoleRenderer(
                    colors=True,
                    exception_formatter=structlog.dev.rich_traceback,
                )
            )
        else:
            processors.append(
                structlog.dev.ConsoleRenderer(
                    colors=False,
                    exception_formatter=structlog.dev.plain_traceback,
                )
            )

        return processors
