"""
Configuration loading for the Policy Engine.

Configuration is read from a YAML (or JSON) file and validated into an
EngineConfig. Every field has a default so an absent file section is never
an error.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import FixtureLoadError

logger = logging.getLogger(__name__)

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class EngineConfig(BaseModel):
    """Static configuration for the engine and its CLI."""
    log_level: str = Field("INFO", description="Root logging level")
    log_format: str = Field(DEFAULT_LOG_FORMAT, description="logging.Formatter format string")
    active_user_id: Optional[str] = Field(
        None, description="Account to activate when a fixture does not name one"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"):
            raise ValueError(f"Unknown log level: {v}")
        return level


def load_config(config_path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """
    Load engine configuration.

    Args:
        config_path: Path to a .yaml/.yml or .json file. If None, defaults are used.

    Returns:
        Validated EngineConfig

    Raises:
        FileNotFoundError: If config_path does not exist
        FixtureLoadError: If the file cannot be parsed or fails validation
    """
    if config_path is None:
        return EngineConfig()

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path, encoding="utf-8") as f:
            if config_path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise FixtureLoadError(str(config_path), str(e)) from e

    data = data or {}
    if not isinstance(data, dict):
        raise FixtureLoadError(str(config_path), "configuration must be a mapping")

    try:
        config = EngineConfig.model_validate(data)
    except ValidationError as e:
        raise FixtureLoadError(str(config_path), str(e)) from e

    logger.info(f"Loaded configuration from {config_path}")
    return config


def configure_logging(config: EngineConfig) -> None:
    """Apply the configured level and format to the root logger."""
    logging.basicConfig(level=config.log_level, format=config.log_format)
