"""Application layer - project files and optimization workflow."""

from .config import (
    ConfigError,
    ProjectConfiguration,
    ValidationResult,
    load_config,
    load_config_from_dict,
    validate_config,
)
from .services import OptimizationService

__all__ = [
    "ConfigError",
    "OptimizationService",
    "ProjectConfiguration",
    "ValidationResult",
    "load_config",
    "load_config_from_dict",
    "validate_config",
]
