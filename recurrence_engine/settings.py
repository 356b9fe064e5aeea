"""Settings management using Pydantic for type validation and configuration."""

import logging
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .enums import Weekday

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "recurrence_engine.yaml"


class EngineSettings(BaseSettings):
    """Recurrence engine settings with environment variable support."""

    # Generation limits
    default_safety_cap: int = Field(
        default=100, ge=1, description="Occurrence cap for open-ended unbounded generation"
    )
    max_window_occurrences: Optional[int] = Field(
        default=None,
        ge=1,
        description="Refuse window queries yielding more occurrences than this (None: no limit)",
    )

    # Calendar
    week_start: Weekday = Field(
        default=Weekday.SUNDAY, description="First day of the week used for weekly alignment"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level: DEBUG, INFO, WARNING, ERROR")
    debug: bool = Field(default=False, description="Enable debug logging for engine modules")

    model_config = SettingsConfigDict(
        env_prefix="RECURRENCE_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("week_start", mode="before")
    @classmethod
    def _parse_week_start(cls, value: Any) -> Any:
        """Accept weekday names ("monday") as well as numbers."""
        if isinstance(value, str):
            name = value.strip().upper()
            if name in Weekday.__members__:
                return Weekday[name]
            if name.isdigit():
                return int(name)
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.strip().upper()


def _find_config_file() -> Optional[Path]:
    """Find the first existing configuration file in the standard locations."""
    candidates = [
        Path.cwd() / "config" / CONFIG_FILE_NAME,
        Path.home() / ".config" / "recurrence_engine" / "config.yaml",
    ]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def _read_yaml_config(config_file: Path) -> dict[str, Any]:
    """Read a YAML mapping, returning an empty dict when the file is unusable."""
    try:
        with config_file.open(encoding="utf-8") as f:
            config_data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Could not load YAML config from %s: %s", config_file, e)
        return {}

    if not config_data:
        return {}
    if not isinstance(config_data, dict):
        logger.warning("Ignoring YAML config %s: top level is not a mapping", config_file)
        return {}
    return config_data


def load_settings(
    config_file: Optional[Union[str, Path]] = None, **overrides: Any
) -> EngineSettings:
    """Build settings from defaults, environment, an optional YAML file and overrides.

    Precedence, lowest first: defaults, environment variables
    (``RECURRENCE_ENGINE_*``), the YAML file, keyword overrides.

    Args:
        config_file: Explicit YAML path. When omitted the standard locations are
            searched (``./config/recurrence_engine.yaml`` then
            ``~/.config/recurrence_engine/config.yaml``).
        **overrides: Setting values that win over every other source.

    Returns:
        EngineSettings instance
    """
    path = Path(config_file) if config_file is not None else _find_config_file()

    config_data: dict[str, Any] = {}
    if path is not None:
        config_data = _read_yaml_config(path)
        logger.debug("Loaded %d settings from %s", len(config_data), path)

    known_fields = EngineSettings.model_fields
    unknown = sorted(key for key in config_data if key not in known_fields)
    if unknown:
        logger.warning("Ignoring unknown settings in %s: %s", path, ", ".join(unknown))

    values = {key: value for key, value in config_data.items() if key in known_fields}
    values.update(overrides)
    return EngineSettings(**values)
