"""Configuration schema and loading system for cutlist projects.

This package provides JSON-based project file loading and validation. It
includes Pydantic models for schema validation, a loader with
comprehensive error handling, stock advisory checks and adapters to the
domain value objects.

Example:
    >>> from pathlib import Path
    >>> from cutlist.application.config import load_config, ConfigError
    >>>
    >>> try:
    ...     config = load_config(Path("kitchen.json"))
    ...     print(f"{len(config.parts)} parts")
    ... except ConfigError as e:
    ...     print(f"Error: {e}")
"""

from cutlist.application.config.adapter import (
    config_to_design_items,
    config_to_optimization,
    config_to_parts,
    config_to_stock_sheets,
)
from cutlist.application.config.loader import (
    ConfigError,
    load_config,
    load_config_from_dict,
)
from cutlist.application.config.schema import (
    SUPPORTED_VERSIONS,
    DesignItemConfig,
    EdgeBandingConfigSchema,
    MinimumUsableCutoffConfig,
    OptimizationSettingsConfig,
    PartConfig,
    ProjectConfiguration,
    StockSheetConfig,
)
from cutlist.application.config.validator import (
    ValidationError,
    ValidationResult,
    ValidationWarning,
    check_optimization_advisories,
    check_stock_coverage,
    validate_config,
)

__all__ = [
    # Schema models
    "SUPPORTED_VERSIONS",
    "DesignItemConfig",
    "EdgeBandingConfigSchema",
    "MinimumUsableCutoffConfig",
    "OptimizationSettingsConfig",
    "PartConfig",
    "ProjectConfiguration",
    "StockSheetConfig",
    # Loader
    "ConfigError",
    "load_config",
    "load_config_from_dict",
    # Validation
    "ValidationError",
    "ValidationResult",
    "ValidationWarning",
    "check_optimization_advisories",
    "check_stock_coverage",
    "validate_config",
    # Adapters
    "config_to_design_items",
    "config_to_optimization",
    "config_to_parts",
    "config_to_stock_sheets",
]
