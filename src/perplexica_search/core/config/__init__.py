"""Configuration loading and validation."""

from .models import (
    DEFAULT_BASE_URL,
    # Enums
    OptimizationMode,
    # Config models
    AppConfig,
    BatchConfig,
    ClientConfig,
    LoggingConfig,
)
from .loader import ConfigError, load_app_config, validate_config_file

__all__ = [
    "DEFAULT_BASE_URL",
    # Enums
    "OptimizationMode",
    # Config models
    "AppConfig",
    "BatchConfig",
    "ClientConfig",
    "LoggingConfig",
    # Loaders
    "ConfigError",
    "load_app_config",
    "validate_config_file",
]
