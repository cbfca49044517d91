"""Configuration loading for glrunner."""

from .loader import ConfigError, load_config, load_runner_config, load_yaml, merge_overrides
from .models import ConnectionConfig, RunnerConfig

__all__ = [
    "ConfigError",
    "ConnectionConfig",
    "RunnerConfig",
    "load_config",
    "load_runner_config",
    "load_yaml",
    "merge_overrides",
]
