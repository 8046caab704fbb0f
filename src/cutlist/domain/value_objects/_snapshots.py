"""Snapshot, invalidation and readiness value objects."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from ._results import ResultState


class OptimizationStage(str, Enum):
    """Optimization stages that produce results."""

    ESTIMATION = "estimation"
    PRODUCTION = "production"


class InvalidationTrigger(str, Enum):
    """What caused previously computed results to become stale."""

    PART_ADDED = "PART_ADDED"
    PART_REMOVED = "PART_REMOVED"
    PART_DIMENSIONS_CHANGED = "PART_DIMENSIONS_CHANGED"
    PALETTE_MAPPING_CHANGED = "PALETTE_MAPPING_CHANGED"
    STOCK_CONFIG_CHANGED = "STOCK_CONFIG_CHANGED"
    DESIGN_ITEM_ADDED = "DESIGN_ITEM_ADDED"
    DESIGN_ITEM_REMOVED = "DESIGN_ITEM_REMOVED"
    DESIGN_ITEM_MODIFIED = "DESIGN_ITEM_MODIFIED"
    KATANA_BOM_OUTDATED = "KATANA_BOM_OUTDATED"


class RAGStatus(str, Enum):
    """Traffic light readiness status."""

    RED = "red"
    AMBER = "amber"
    GREEN = "green"
    GREY = "grey"


@dataclass(frozen=True)
class DesignItem:
    """A design item (cabinet, unit) linked to a project.

    Only its identity and content hash matter to invalidation.
    """

    id: str
    name: str = ""
    width: float = 0.0
    height: float = 0.0
    depth: float = 0.0
    revision: int = 0

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Design item id must not be empty")


@dataclass(frozen=True)
class ProjectSnapshot:
    """Content hashes of the mutable inputs of a project.

    Used only for equality comparison between successive edits.
    """

    parts_hash: str
    total_parts: int
    material_mappings_hash: str
    config_hash: str
    design_item_ids: frozenset[str]
    design_items_hash: str
    taken_at: datetime | None = None


@dataclass(frozen=True)
class InvalidationReason:
    """Structured reason for an invalidation.

    Attributes:
        trigger: The trigger that fired.
        previous_count: Part or design item count before the change.
        current_count: Part or design item count after the change.
        item_ids: Design item ids added or removed, when relevant.
    """

    trigger: InvalidationTrigger
    previous_count: int | None = None
    current_count: int | None = None
    item_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class InvalidationResult:
    """Outcome of comparing two project snapshots."""

    estimation_invalidated: bool = False
    production_invalidated: bool = False
    katana_bom_invalidated: bool = False
    triggers: tuple[InvalidationTrigger, ...] = ()
    reasons: tuple[InvalidationReason, ...] = ()

    @property
    def any_invalidated(self) -> bool:
        """True if any result was invalidated."""
        return (
            self.estimation_invalidated
            or self.production_invalidated
            or self.katana_bom_invalidated
        )


@dataclass(frozen=True)
class OptimizationRAG:
    """Readiness status of every optimization stage."""

    estimation: RAGStatus
    production: RAGStatus
    katana_bom: RAGStatus
    overall: RAGStatus


@dataclass(frozen=True)
class OptimizationStatus:
    """Summary of which optimization stages exist and can run."""

    estimation_status: ResultState
    production_status: ResultState
    can_run_production: bool
