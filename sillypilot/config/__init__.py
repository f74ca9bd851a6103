"""Configuration loading and validation."""

from .models import (
    SystemConfig,
    PathsConfig,
    CardConfig,
    RepositoryConfig,
)
from .loader import ConfigLoader, ConfigLoadError, ConfigValidationError

__all__ = [
    "SystemConfig",
    "PathsConfig",
    "CardConfig",
    "RepositoryConfig",
    "ConfigLoader",
    "ConfigLoadError",
    "ConfigValidationError",
]
