"""Value objects for the cutlist domain.

This module provides immutable data types used throughout the optimizer.
All classes are re-exported from sub-modules for convenience.
"""

from __future__ import annotations

# Geometry
from ._geometry import (
    EPSILON,
    CutType,
    GrainDirection,
    Rect,
    SplitLine,
)

# Parts and stock
from ._parts import (
    Part,
    PlacementRequest,
    StockSheet,
    expand_parts,
)

# Configuration
from ._config import (
    EdgeBandConfig,
    MinimumUsableCutoff,
    OptimizationConfig,
)

# Results
from ._results import (
    CutOperation,
    EstimationResult,
    KatanaExport,
    NestingLayout,
    NestingSheet,
    OptimizationState,
    Placement,
    ProductionResult,
    ResultState,
    SheetSummary,
    WasteRegion,
)

# Offcut inventory
from ._offcuts import Offcut

# Snapshots, invalidation and readiness
from ._snapshots import (
    DesignItem,
    InvalidationReason,
    InvalidationResult,
    InvalidationTrigger,
    OptimizationRAG,
    OptimizationStage,
    OptimizationStatus,
    ProjectSnapshot,
    RAGStatus,
)

__all__ = [
    "CutOperation",
    "CutType",
    "DesignItem",
    "EPSILON",
    "EdgeBandConfig",
    "EstimationResult",
    "GrainDirection",
    "InvalidationReason",
    "InvalidationResult",
    "InvalidationTrigger",
    "KatanaExport",
    "MinimumUsableCutoff",
    "NestingLayout",
    "NestingSheet",
    "Offcut",
    "OptimizationConfig",
    "OptimizationRAG",
    "OptimizationStage",
    "OptimizationState",
    "OptimizationStatus",
    "Part",
    "Placement",
    "PlacementRequest",
    "ProductionResult",
    "ProjectSnapshot",
    "RAGStatus",
    "Rect",
    "ResultState",
    "SheetSummary",
    "SplitLine",
    "StockSheet",
    "WasteRegion",
    "expand_parts",
]
