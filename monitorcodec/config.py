"""Command-line settings and monitor definition file loading."""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .codec import unwrap_monitors
from .errors import DecodeError


class ConfigError(Exception):
    """Raised when settings are invalid or a definition file cannot be loaded."""

    pass


# Upper bound for JSON indentation in command output
MAX_INDENT = 8


@dataclass(frozen=True)
class OutputConfig:
    """Settings for the command-line tool."""

    indent: int = 2  # spaces per level in JSON output, 0 for compact
    skip_invalid: bool = False  # normalize: skip invalid monitors instead of aborting

    def __post_init__(self) -> None:
        if not (0 <= self.indent <= MAX_INDENT):
            raise ConfigError(f"Indent must be between 0 and {MAX_INDENT} (got {self.indent})")


def _parse_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


def load_output_config(indent: int | None = None, skip_invalid: bool | None = None) -> OutputConfig:
    """Build the output settings from defaults, environment and explicit arguments.

    Explicit arguments win over the environment.

    Supported environment variables:
    - MONITORCODEC_INDENT: Override indent
    - MONITORCODEC_SKIP_INVALID: Override skip_invalid (true/false)

    Raises:
        ConfigError: If a value is invalid.
    """
    values: dict[str, Any] = {}

    env_indent = os.environ.get("MONITORCODEC_INDENT")
    if env_indent is not None:
        try:
            values["indent"] = int(env_indent)
        except ValueError:
            raise ConfigError(f"MONITORCODEC_INDENT must be an integer, got '{env_indent}'")

    env_skip = os.environ.get("MONITORCODEC_SKIP_INVALID")
    if env_skip is not None:
        values["skip_invalid"] = _parse_bool(env_skip)

    if indent is not None:
        values["indent"] = indent
    if skip_invalid is not None:
        values["skip_invalid"] = skip_invalid

    return OutputConfig(**values)


def load_definitions(path: str) -> list[Any]:
    """Load raw monitor objects from a definition file.

    ``.json`` files are parsed as JSON, anything else as YAML. The
    document is either ``{"monitors": [...]}``, a list of monitors, or a
    single monitor object.

    Args:
        path: Path to the definition file.

    Returns:
        Raw monitor objects in file order, not yet decoded.

    Raises:
        ConfigError: If the file cannot be read or parsed, or has the wrong shape.
    """
    file_path = Path(path)

    if not file_path.exists():
        raise ConfigError(f"Definition file not found: {path}")

    try:
        with open(file_path, encoding="utf-8") as f:
            if file_path.suffix == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Failed to parse JSON definitions: {e}")
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML definitions: {e}")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Failed to read definition file: {e}")

    if data is None:
        raise ConfigError("Definition file is empty")

    # A single monitor object rather than a list document
    if isinstance(data, dict) and "monitors" not in data and "type" in data:
        return [data]

    try:
        return unwrap_monitors(data)
    except DecodeError as e:
        raise ConfigError(f"Invalid definition file: {e}")
