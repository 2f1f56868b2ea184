# src/datacanvas/core/config.py
"""
Configuration schema and loading for DataCanvas.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

import os
import re
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from datacanvas.contracts.enums import ChartKind

# ${VAR} or ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")


class CanvasSettings(BaseModel):
    """Behavior of the canvas: accepted drops, node defaults, query placeholder.

    Example YAML:
        canvas:
          accepted_extensions: [".csv", ".parquet"]
          placeholder_token: input
          default_query: "SELECT * FROM input LIMIT 10"
    """

    model_config = {"frozen": True}

    accepted_extensions: tuple[str, ...] = Field(
        default=(".csv", ".parquet", ".json"),
        min_length=1,
        description="File extensions accepted from drop events (other paths are ignored)",
    )
    placeholder_token: str = Field(
        default="input",
        description="Word in query text that is replaced with the bound table name",
    )
    default_query: str = Field(
        default="SELECT * FROM input LIMIT 10",
        description="Query text of a newly added transform node",
    )
    transform_position: tuple[float, float] = Field(
        default=(500.0, 300.0),
        description="Canvas position of a transform node added without one",
    )
    sink_position: tuple[float, float] = Field(
        default=(900.0, 300.0),
        description="Canvas position of a sink node added without one",
    )
    default_chart_kind: ChartKind = Field(
        default=ChartKind.BAR,
        description="Chart kind of a newly added sink node",
    )

    @field_validator("accepted_extensions")
    @classmethod
    def validate_extensions(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Extensions are compared lowercased and must include the leading dot."""
        normalized = []
        for ext in v:
            if not ext.startswith(".") or len(ext) < 2:
                raise ValueError(f"extension {ext!r} must start with '.' and name a suffix")
            normalized.append(ext.lower())
        return tuple(normalized)

    @field_validator("placeholder_token")
    @classmethod
    def validate_placeholder(cls, v: str) -> str:
        """The placeholder is matched as a whole word, so it must be one."""
        if not re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]*", v):
            raise ValueError(f"placeholder_token {v!r} must be a single SQL identifier")
        return v


class LoggingSettings(BaseModel):
    """Structured logging configuration."""

    model_config = {"frozen": True}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Root log level",
    )
    json_output: bool = Field(default=False, description="Render JSON lines instead of console output")

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        """Accept lowercase level names from YAML/env."""
        return v.upper() if isinstance(v, str) else v


class DataCanvasSettings(BaseModel):
    """Top-level DataCanvas configuration.

    Every section has defaults, so an empty settings file is valid.
    """

    model_config = {"frozen": True}

    canvas: CanvasSettings = Field(default_factory=CanvasSettings, description="Canvas behavior")
    logging: LoggingSettings = Field(default_factory=LoggingSettings, description="Logging configuration")


def _expand_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Recursively expand ${VAR} and ${VAR:-default} patterns in string values.

    Unset variables without a default are left as written so that
    validation reports them.
    """

    def _expand_string(value: str) -> str:
        def replacer(match: re.Match[str]) -> str:
            env_value = os.environ.get(match.group(1))
            if env_value is not None:
                return env_value
            if match.group(2) is not None:
                return match.group(2)
            return match.group(0)

        return _ENV_VAR_PATTERN.sub(replacer, value)

    def _expand_value(value: Any) -> Any:
        if isinstance(value, str):
            return _expand_string(value)
        if isinstance(value, dict):
            return {k: _expand_value(v) for k, v in value.items()}
        if isinstance(value, list):
            return [_expand_value(item) for item in value]
        return value

    return {k: _expand_value(v) for k, v in config.items()}


def _lower_keys(value: Any) -> Any:
    """Lowercase mapping keys at every depth.

    Dynaconf keeps the casing of nested keys taken from environment
    variables. When an uppercase key collides with a lowercase one from the
    file, the uppercase (environment) value wins.
    """
    if isinstance(value, dict):
        lowered: dict[str, Any] = {}
        for key, item in value.items():
            name = str(key)
            if name == name.lower() and name in lowered:
                continue
            lowered[name.lower()] = _lower_keys(item)
        return lowered
    if isinstance(value, list):
        return [_lower_keys(item) for item in value]
    return value


def load_settings(config_path: Path) -> DataCanvasSettings:
    """Load settings from a YAML file with environment variable overrides.

    Precedence, highest first:
    1. Environment variables (DATACANVAS_*), ``__`` separating nested keys,
       e.g. DATACANVAS_CANVAS__PLACEHOLDER_TOKEN=src
    2. Config file
    3. Defaults from the Pydantic schema

    Raises:
        FileNotFoundError: If config file doesn't exist
        pydantic.ValidationError: If configuration fails validation
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="DATACANVAS",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k: v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}
    raw_config = _lower_keys(raw_config)
    raw_config = _expand_env_vars(raw_config)

    return DataCanvasSettings(**raw_config)
