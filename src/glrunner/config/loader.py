"""YAML configuration file loading with Pydantic validation."""

from pathlib import Path
from typing import TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from .models import ConnectionConfig, RunnerConfig

T = TypeVar("T", bound=BaseModel)


class ConfigError(Exception):
    """Raised when configuration loading or validation fails."""


def load_yaml(path: Path) -> dict:
    """Load a YAML file and return its contents as a dict.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML contents.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
            if data is None:
                return {}
            if not isinstance(data, dict):
                raise ConfigError(f"Expected a mapping at the top of {path}")
            return data
    except FileNotFoundError:
        raise ConfigError(f"Configuration file not found: {path}") from None
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e


def load_config(path: Path, model_class: type[T]) -> T:
    """Load and validate a YAML config file against a Pydantic model.

    Raises:
        ConfigError: If validation fails.
    """
    data = load_yaml(path)
    try:
        return model_class(**data)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed for {path}: {e}") from e


def load_runner_config(path: Path) -> RunnerConfig:
    """Load a runner configuration file."""
    return load_config(path, RunnerConfig)


def merge_overrides(config: RunnerConfig, **overrides) -> RunnerConfig:
    """Apply non-empty overrides (e.g. CLI flags) on top of a loaded config.

    Keys matching ConnectionConfig fields update the connection section;
    the rest update the runner section.

    Raises:
        ConfigError: If the merged values fail validation.
    """
    runner_values = config.model_dump(exclude={"connection"})
    connection_values = config.connection.model_dump()
    for key, value in overrides.items():
        if value is None or value == "" or value == {}:
            continue
        if key in ConnectionConfig.model_fields:
            connection_values[key] = value
        elif key == "additional_options":
            runner_values[key] = {**runner_values[key], **value}
        else:
            runner_values[key] = value
    try:
        return RunnerConfig(**runner_values, connection=connection_values)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
