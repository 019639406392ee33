from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Configuration loader.

Responsibilities:
- Load YAML (default ``config/import.yml``)
- Validate it against ``config_schema.json`` (unknown keys rejected)
- Apply defaults for every optional key
"""

__all__ = [
    "SCHEMA_PATH",
    "DEFAULT_CONFIG_PATH",
    "ConfigError",
    "ValidationConfig",
    "ImportConfig",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")

DEFAULT_FILE_EXTENSIONS = (".csv", ".xlsx")
DEFAULT_MAX_FILE_SIZE_MB = 100
DEFAULT_BATCH_SIZE = 100
DEFAULT_SAMPLE_LINES = 20


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class ValidationConfig:
    """Format pre-check settings. ``strict_mode`` fails files whose sample does not validate."""
    enabled: bool = True
    sample_lines: int = DEFAULT_SAMPLE_LINES
    strict_mode: bool = False


@dataclass(frozen=True)
class ImportConfig:
    source_directory: str
    file_extensions: tuple[str, ...] = DEFAULT_FILE_EXTENSIONS
    max_file_size_mb: float = DEFAULT_MAX_FILE_SIZE_MB
    batch_size: int = DEFAULT_BATCH_SIZE
    timezone: str = "UTC"
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    error_log_directory: str = "./logs"
    output_directory: str | None = None

    @property
    def max_file_size_bytes(self) -> int:
        return int(self.max_file_size_mb * 1024 * 1024)

    @property
    def tz(self) -> tzinfo:
        if self.timezone.upper() == "UTC":
            return UTC
        return ZoneInfo(self.timezone)

    def today(self) -> date:
        """Current date in the configured timezone (future-date checks)."""
        return datetime.now(self.tz).date()


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or invalid, or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _normalize_extension(ext: str) -> str:
    ext = ext.strip().lower()
    return ext if ext.startswith(".") else f".{ext}"


def load_config(path: Path) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")

    _validate_config_schema(data)

    timezone = data.get("timezone", "UTC")
    if timezone.upper() != "UTC":
        try:
            ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigError(f"unknown timezone: {timezone}") from e

    validation_raw = data.get("validation") or {}
    validation = ValidationConfig(
        enabled=validation_raw.get("enabled", True),
        sample_lines=validation_raw.get("sample_lines", DEFAULT_SAMPLE_LINES),
        strict_mode=validation_raw.get("strict_mode", False),
    )
    extensions = data.get("file_extensions", list(DEFAULT_FILE_EXTENSIONS))
    return ImportConfig(
        source_directory=data["source_directory"],
        file_extensions=tuple(_normalize_extension(e) for e in extensions),
        max_file_size_mb=data.get("max_file_size_mb", DEFAULT_MAX_FILE_SIZE_MB),
        batch_size=data.get("batch_size", DEFAULT_BATCH_SIZE),
        timezone=timezone,
        validation=validation,
        error_log_directory=data.get("error_log_directory", "./logs"),
        output_directory=data.get("output_directory"),
    )
