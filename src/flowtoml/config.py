"""
Settings and logging setup for flowtoml.

Settings come from environment variables prefixed with FLOWTOML_:

    FLOWTOML_BASE_DIR        override the per-user configuration directory
    FLOWTOML_BACKUP_SUFFIX   suffix appended to backup files (default ".old")
    FLOWTOML_ENABLE_BACKUP   default backup policy for saves (default true)
    FLOWTOML_LOG_LEVEL       logging level name (default WARNING)
"""

import logging
import os
from pathlib import Path
from typing import Mapping

from pydantic import BaseModel, Field, ValidationError, field_validator

from flowtoml.core.exceptions import ConfigurationError

ENV_PREFIX = "FLOWTOML_"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


class Settings(BaseModel):
    """Runtime settings for the document store and CLI."""

    base_dir: Path | None = Field(
        default=None, description="Fixed base directory; platform default when unset"
    )
    backup_suffix: str = Field(default=".old", description="Appended to <name>.toml")
    enable_backup: bool = True
    log_level: str = "WARNING"

    @field_validator("backup_suffix")
    @classmethod
    def _check_suffix(cls, value: str) -> str:
        if len(value) < 2 or not value.startswith("."):
            raise ValueError("backup suffix must start with '.' and be non-empty")
        if "/" in value or "\\" in value:
            raise ValueError("backup suffix must not contain path separators")
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"unknown log level '{value}'")
        return level

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """
        Build settings from FLOWTOML_* environment variables.

        Raises:
            ConfigurationError: If a variable holds an invalid value
        """
        environ = os.environ if environ is None else environ
        values: dict[str, object] = {}

        base_dir = environ.get(f"{ENV_PREFIX}BASE_DIR", "")
        if base_dir:
            values["base_dir"] = Path(base_dir).expanduser()

        suffix = environ.get(f"{ENV_PREFIX}BACKUP_SUFFIX")
        if suffix is not None:
            values["backup_suffix"] = suffix

        enable_backup = environ.get(f"{ENV_PREFIX}ENABLE_BACKUP")
        if enable_backup is not None:
            values["enable_backup"] = _parse_bool(
                enable_backup, f"{ENV_PREFIX}ENABLE_BACKUP"
            )

        log_level = environ.get(f"{ENV_PREFIX}LOG_LEVEL")
        if log_level is not None:
            values["log_level"] = log_level

        try:
            return cls(**values)
        except ValidationError as e:
            first = e.errors()[0]
            field = str(first["loc"][0]) if first["loc"] else None
            raise ConfigurationError(
                f"Invalid flowtoml settings: {first['msg']}",
                env_var=f"{ENV_PREFIX}{field.upper()}" if field else None,
                config_key=field,
            ) from e


def _parse_bool(raw: str, env_var: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Expected a boolean, got '{raw}'", env_var=env_var)


def configure_logging(level: str = "WARNING") -> None:
    """Configure root logging with the package's format."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.WARNING), format=LOG_FORMAT)
