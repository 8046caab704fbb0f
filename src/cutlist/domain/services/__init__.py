"""Domain services for cutlist optimization.

This package provides the pure services of the optimizer:
- Geometry and placement primitives
- Snapshot hashing and invalidation
- Readiness (RAG) projection
- Structural validation of production results
"""

from .geometry import (
    GuillotineSplit,
    allowed_orientations,
    best_split,
    classify_waste,
    fits,
    guillotine_split,
    is_grain_aligned,
    oriented_dimensions,
    preferred_orientations,
    rects_overlap,
    subtract_placement,
)
from .invalidation import (
    ReasonFormatter,
    apply_invalidation,
    detect,
    mark_stale,
    needs_reoptimization,
    optimization_status,
    result_state,
    stable_hash,
    take_snapshot,
)
from .readiness import project, project_state
from .validation import validate_production

__all__ = [
    "GuillotineSplit",
    "ReasonFormatter",
    "allowed_orientations",
    "apply_invalidation",
    "best_split",
    "classify_waste",
    "detect",
    "fits",
    "guillotine_split",
    "is_grain_aligned",
    "mark_stale",
    "needs_reoptimization",
    "optimization_status",
    "oriented_dimensions",
    "preferred_orientations",
    "project",
    "project_state",
    "rects_overlap",
    "result_state",
    "stable_hash",
    "subtract_placement",
    "take_snapshot",
    "validate_production",
]
