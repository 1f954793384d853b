"""
Configuration for ff-logpipe.

Supports environment variables, config files, and programmatic configuration.
"""

import json
import os
import socket
import tomllib
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from .encoding import EncoderConfig
from .errors import LogNameError
from .levels import Level
from .rotation import RotationRule

# Base directory override, consulted once when the default directory is resolved.
ENV_LOG_PATH = "LOGGING_LOGGER_PATH"
ENV_LOG_MODE = "FF_LOG_MODE"
ENV_LOG_FORMAT = "FF_LOG_FORMAT"
ENV_LOG_COLORS = "FF_LOG_COLORS"

# Directory created under the base path (or the working directory).
LOG_DIR_NAME = "log"

# Dotted keys looked up in config files.
DEFAULT_NAME_KEY = "service.log_name"
DEFAULT_PATH_KEY = "service.log_path"


class Mode(str, Enum):
    """Operating mode. Local runs log everything and echo to stdout."""

    LOCAL = "local"
    PRODUCTION = "production"

    @classmethod
    def from_name(cls, name: "str | Mode") -> "Mode":
        if isinstance(name, cls):
            return name
        key = name.strip().lower()
        if key in ("local", "dev", "development", "debug"):
            return cls.LOCAL
        if key in ("production", "prod", "pro"):
            return cls.PRODUCTION
        raise ValueError(f"Unknown mode: {name}")

    @property
    def development(self) -> bool:
        return self is Mode.LOCAL

    @property
    def level(self) -> Level:
        """Minimum severity implied by this mode."""
        return Level.DEBUG if self is Mode.LOCAL else Level.INFO


@dataclass
class Options:
    """
    Configuration for one logger.

    Args:
        service_name: Service name, added to every record as ``service``
        logger_name: Base name of the log files (default: the registry name)
        base_directory: Directory for log files when a rule sets none
        mode: Operating mode; picks the minimum severity unless overridden
        minimum_severity: Explicit minimum severity
        output_rule: Rotation rule for the main file (default template when None)
        error_rule: Rotation rule for the error mirror; None disables mirroring
        extra_fields: Ordered (key, value) pairs added to every record
        encoder: Encoder settings shared by all cores of the logger
        add_hostname: Add ``hostname`` to every record
    """

    service_name: str = ""
    logger_name: str = ""
    base_directory: str | Path = ""
    mode: Mode = Mode.LOCAL
    minimum_severity: Level | None = None
    output_rule: RotationRule | None = None
    error_rule: RotationRule | None = None
    extra_fields: Sequence[tuple[str, Any]] = ()
    encoder: EncoderConfig = field(default_factory=EncoderConfig)
    add_hostname: bool = False

    def __post_init__(self) -> None:
        self.mode = Mode.from_name(self.mode)
        if self.minimum_severity is not None:
            self.minimum_severity = Level.coerce(self.minimum_severity)

    @property
    def level(self) -> Level:
        """Effective minimum severity."""
        if self.minimum_severity is not None:
            return self.minimum_severity
        return self.mode.level

    def file_name(self, name: str) -> str:
        return self.logger_name or name

    def context_fields(self) -> list[tuple[str, Any]]:
        """Fields bound to every record: service, hostname, then extra_fields."""
        context: list[tuple[str, Any]] = []
        if self.service_name:
            context.append(("service", self.service_name))
        if self.add_hostname:
            context.append(("hostname", socket.gethostname()))
        context.extend(self.extra_fields)
        return context


def _env_flag(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


def load_env_config(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Load configuration from environment variables."""
    environ = os.environ if environ is None else environ
    config: dict[str, Any] = {}

    # LOGGING_LOGGER_PATH
    if log_path := environ.get(ENV_LOG_PATH):
        config["log_path"] = log_path

    # FF_LOG_MODE
    if mode := environ.get(ENV_LOG_MODE):
        config["mode"] = Mode.from_name(mode)

    # FF_LOG_FORMAT
    if fmt := environ.get(ENV_LOG_FORMAT):
        config["format"] = fmt.lower()

    # FF_LOG_COLORS
    if colors := environ.get(ENV_LOG_COLORS):
        config["colors"] = _env_flag(colors)

    return config


def default_base_directory(environ: Mapping[str, str] | None = None) -> Path:
    """
    Resolve the default log directory.

    ``$LOGGING_LOGGER_PATH/log`` when the variable is set, otherwise ``log``
    under the current working directory.
    """
    config = load_env_config(environ)
    root = Path(config["log_path"]) if "log_path" in config else Path.cwd()
    return root / LOG_DIR_NAME


def load_config_file(config_file: str | Path) -> dict[str, Any]:
    """
    Read a JSON or TOML config file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the extension is not .json or .toml
    """
    config_path = Path(config_file)
    suffix = config_path.suffix.lower()
    if suffix == ".json":
        with open(config_path) as f:
            return json.load(f)
    if suffix == ".toml":
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    raise ValueError(f"Unsupported config file type: {config_path.name}")


def lookup(config: Mapping[str, Any], dotted_key: str, default: Any = None) -> Any:
    """Look up ``a.b.c`` in nested mappings."""
    node: Any = config
    for part in dotted_key.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return default
        node = node[part]
    return node


def options_from_config(
    config_file: str | Path,
    mode: Mode | str = Mode.LOCAL,
    name_key: str = DEFAULT_NAME_KEY,
    path_key: str = DEFAULT_PATH_KEY,
    **overrides: Any,
) -> tuple[str, Options]:
    """
    Build logger options from a config file.

    Args:
        config_file: JSON or TOML file
        mode: Operating mode
        name_key: Dotted key holding the logger name
        path_key: Dotted key holding the log directory
        **overrides: Extra Options fields

    Returns:
        Tuple of (logger name, options)

    Raises:
        LogNameError: If the file has no logger name
    """
    config = load_config_file(config_file)

    name = lookup(config, name_key)
    if not name:
        raise LogNameError(name_key, config_file)

    base_directory = lookup(config, path_key) or ""
    options = Options(
        service_name=overrides.pop("service_name", str(name)),
        base_directory=base_directory,
        mode=mode,
        **overrides,
    )
    return str(name), options
