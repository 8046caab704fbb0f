"""Domain layer - core optimization logic."""

from .exceptions import (
    ConcurrentModificationError,
    CutlistError,
    EstimationRequiredError,
    InsufficientStockError,
    InvalidConfigError,
    OffcutNotFoundError,
    OffcutUnavailableError,
    StockShortfall,
    UnplaceablePart,
    UnplaceablePartError,
)
from .services import detect, project, take_snapshot, validate_production
from .value_objects import (
    EstimationResult,
    GrainDirection,
    Offcut,
    OptimizationConfig,
    OptimizationState,
    Part,
    ProductionResult,
    StockSheet,
)

__all__ = [
    "ConcurrentModificationError",
    "CutlistError",
    "EstimationRequiredError",
    "EstimationResult",
    "GrainDirection",
    "InsufficientStockError",
    "InvalidConfigError",
    "Offcut",
    "OffcutNotFoundError",
    "OffcutUnavailableError",
    "OptimizationConfig",
    "OptimizationState",
    "Part",
    "ProductionResult",
    "StockShortfall",
    "StockSheet",
    "UnplaceablePart",
    "UnplaceablePartError",
    "detect",
    "project",
    "take_snapshot",
    "validate_production",
]
