"""
Configuration management for the HDLCd tools.

Configuration is optional: the tools run with built-in defaults and only
read a TOML file when one is named with --config.

    [session]
    keepalive_interval_s = 60.0
    linger_s = 2.0

    [logging]
    level = "WARNING"
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


class SessionConfig(BaseModel):
    """Session timing configuration."""

    keepalive_interval_s: float = Field(
        default=60.0, ge=0.0, description="Keep-alive period while open (0 disables)"
    )
    linger_s: float = Field(
        default=2.0, ge=0.0, description="Wait for the daemon to close after shutdown (0 = forever)"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="WARNING", description="Log level (DEBUG, INFO, WARNING, ERROR)")

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level '{value}'")
        return level


class ToolsConfig(BaseModel):
    """Complete HDLCd tools configuration."""

    session: SessionConfig = Field(default_factory=SessionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(path: Optional[Path] = None) -> ToolsConfig:
    """
    Load configuration from TOML file.

    Args:
        path: Configuration file path. If None, defaults are used.

    Returns:
        Loaded configuration object.

    Raises:
        FileNotFoundError: If an explicitly named file does not exist.
        tomli.TOMLDecodeError: If the file is not valid TOML.
        pydantic.ValidationError: If a value is out of range.
    """
    if path is None:
        return ToolsConfig()

    import tomli

    with open(path, "rb") as f:
        data = tomli.load(f)

    return ToolsConfig(**data)


def configure_logging(level: str) -> None:
    """Send log records to stderr so stdout carries tool output only."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, stream=sys.stderr)
