"""Configuration model for tasktree.

Settings are read from the ``[tasktree]`` table of a TOML file, with
environment variable overrides taking precedence over the file.
"""

import os
import sys
from pathlib import Path
from typing import Optional

# Use tomllib from stdlib in Python 3.11+, fallback to tomli for earlier versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from pydantic import BaseModel, Field, field_validator

from tasktree.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".tasktree" / "config.toml"

_LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class TaskTreeConfig(BaseModel):
    """Root tasktree configuration.

    Attributes:
        upcoming_days: Length of the "upcoming" window in days (0-365).
        log_level: Logging level name passed to setup_logging.
    """

    upcoming_days: int = Field(default=7, ge=0, le=365)
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the logging level name.

        Args:
            v: Level name to validate.

        Returns:
            The upper-cased level name.

        Raises:
            ValueError: If the name is not a standard logging level.
        """
        level = v.upper()
        if level not in _LEVEL_NAMES:
            raise ValueError(f"Invalid log level: '{v}'")
        return level

    @classmethod
    def from_toml_file(cls, path: Optional[Path] = None) -> "TaskTreeConfig":
        """Load configuration from TOML file with fallback to defaults.

        Environment variables override file values:
        - TASKTREE_UPCOMING_DAYS
        - TASKTREE_LOG_LEVEL

        Args:
            path: Path to the TOML configuration file. If None, defaults to
                  ~/.tasktree/config.toml.

        Returns:
            TaskTreeConfig instance loaded from file or with default values.
        """
        if path is None:
            path = DEFAULT_CONFIG_PATH

        data = {}
        if path.exists():
            with open(path, "rb") as f:
                data = dict(tomllib.load(f).get("tasktree", {}))
            logger.info(f"Loaded configuration from {path}")
        else:
            logger.info(f"Config not found at {path}. Using defaults.")

        upcoming_env = os.getenv("TASKTREE_UPCOMING_DAYS")
        if upcoming_env:
            data["upcoming_days"] = upcoming_env
        level_env = os.getenv("TASKTREE_LOG_LEVEL")
        if level_env:
            data["log_level"] = level_env

        config = cls(**data)
        logger.debug(
            f"Config: upcoming_days={config.upcoming_days}, log_level={config.log_level}"
        )
        return config
