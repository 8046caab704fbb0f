"""Snapshot hashing and invalidation of optimization results.

A project snapshot holds content hashes of every input that affects
optimization output. Comparing two snapshots decides which results became
stale. The decision is structural: ``detect`` returns trigger enums and
structured reasons, and text for people is produced separately by a
reason formatter.

Per result type the lifecycle is ``no-run -> current -> stale``. Only a
new run makes a stale result current again.
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol, TypeVar

from ..value_objects import (
    DesignItem,
    EstimationResult,
    InvalidationReason,
    InvalidationResult,
    InvalidationTrigger,
    OptimizationConfig,
    OptimizationStage,
    OptimizationState,
    OptimizationStatus,
    Part,
    ProductionResult,
    ProjectSnapshot,
    ResultState,
)

logger = logging.getLogger(__name__)

__all__ = [
    "ReasonFormatter",
    "apply_invalidation",
    "detect",
    "mark_stale",
    "needs_reoptimization",
    "optimization_status",
    "result_state",
    "stable_hash",
    "take_snapshot",
]

ResultT = TypeVar("ResultT", EstimationResult, ProductionResult)


class ReasonFormatter(Protocol):
    """Turns a structured invalidation reason into display text."""

    def format(self, reason: InvalidationReason) -> str: ...


def _canonical(value: Any) -> Any:
    """Convert a value into plain JSON types with a stable ordering."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: _canonical(getattr(value, f.name)) for f in dataclasses.fields(value)
        }
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): _canonical(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted(_canonical(v) for v in value)
    if isinstance(value, (list, tuple)):
        return [_canonical(v) for v in value]
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def stable_hash(value: Any) -> str:
    """SHA-256 hex digest of the canonical JSON form of ``value``.

    Dataclasses, enums, sets and datetimes are normalised first, and keys
    are sorted, so equal inputs always hash equal.
    """
    payload = json.dumps(
        _canonical(value), sort_keys=True, separators=(",", ":"), ensure_ascii=False
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def _sorted_by_id(items: Iterable[Any]) -> list[Any]:
    return sorted(items, key=lambda item: (item.id, stable_hash(item)))


def take_snapshot(
    parts: Iterable[Part],
    material_mappings: Mapping[str, str] | None,
    config: OptimizationConfig,
    design_items: Iterable[DesignItem] = (),
    taken_at: datetime | None = None,
) -> ProjectSnapshot:
    """Hash the mutable inputs of a project.

    Parts, stock sheets and design items are hashed independently of their
    order.

    Args:
        parts: Current parts list.
        material_mappings: Design material to inventory material mapping.
        config: Optimization configuration.
        design_items: Design items linked to the project.
        taken_at: Snapshot timestamp, defaults to now (UTC).

    Returns:
        The project snapshot.
    """
    parts = list(parts)
    design_items = list(design_items)
    config_slice = dataclasses.replace(
        config, stock_sheets=tuple(sorted(config.stock_sheets, key=lambda s: s.id))
    )
    return ProjectSnapshot(
        parts_hash=stable_hash(_sorted_by_id(parts)),
        total_parts=sum(part.quantity for part in parts),
        material_mappings_hash=stable_hash(dict(material_mappings or {})),
        config_hash=stable_hash(config_slice),
        design_item_ids=frozenset(item.id for item in design_items),
        design_items_hash=stable_hash(_sorted_by_id(design_items)),
        taken_at=taken_at or datetime.now(timezone.utc),
    )


def detect(
    previous: ProjectSnapshot | None,
    current: ProjectSnapshot,
    state: OptimizationState | None,
) -> InvalidationResult:
    """Compare two snapshots and decide which results are stale.

    Every rule is evaluated independently. Nothing is invalidated on a
    first run, that is without a previous snapshot or without any stored
    result.

    Args:
        previous: Snapshot taken when the results were computed.
        current: Snapshot of the current inputs.
        state: Stored optimization results.

    Returns:
        InvalidationResult with flags, triggers and structured reasons.
    """
    if previous is None or state is None or not state.has_results:
        return InvalidationResult()

    reasons: list[InvalidationReason] = []

    if previous.parts_hash != current.parts_hash:
        if current.total_parts > previous.total_parts:
            trigger = InvalidationTrigger.PART_ADDED
        elif current.total_parts < previous.total_parts:
            trigger = InvalidationTrigger.PART_REMOVED
        else:
            trigger = InvalidationTrigger.PART_DIMENSIONS_CHANGED
        reasons.append(
            InvalidationReason(
                trigger=trigger,
                previous_count=previous.total_parts,
                current_count=current.total_parts,
            )
        )

    if previous.material_mappings_hash != current.material_mappings_hash:
        reasons.append(InvalidationReason(InvalidationTrigger.PALETTE_MAPPING_CHANGED))

    if previous.config_hash != current.config_hash:
        reasons.append(InvalidationReason(InvalidationTrigger.STOCK_CONFIG_CHANGED))

    if previous.design_items_hash != current.design_items_hash:
        added = current.design_item_ids - previous.design_item_ids
        removed = previous.design_item_ids - current.design_item_ids
        counts = {
            "previous_count": len(previous.design_item_ids),
            "current_count": len(current.design_item_ids),
        }
        if added:
            reasons.append(
                InvalidationReason(
                    InvalidationTrigger.DESIGN_ITEM_ADDED, item_ids=tuple(sorted(added)), **counts
                )
            )
        if removed:
            reasons.append(
                InvalidationReason(
                    InvalidationTrigger.DESIGN_ITEM_REMOVED, item_ids=tuple(sorted(removed)), **counts
                )
            )
        if not added and not removed:
            reasons.append(InvalidationReason(InvalidationTrigger.DESIGN_ITEM_MODIFIED, **counts))

    if not reasons:
        return InvalidationResult()

    katana_bom_invalidated = bool(state.production and state.production.katana_bom_id)
    if katana_bom_invalidated:
        reasons.append(InvalidationReason(InvalidationTrigger.KATANA_BOM_OUTDATED))

    result = InvalidationResult(
        estimation_invalidated=True,
        production_invalidated=True,
        katana_bom_invalidated=katana_bom_invalidated,
        triggers=tuple(reason.trigger for reason in reasons),
        reasons=tuple(reasons),
    )
    logger.info(
        "Optimization results invalidated: %s",
        ", ".join(t.value for t in result.triggers),
    )
    return result


def result_state(result: EstimationResult | ProductionResult | None) -> ResultState:
    """Lifecycle state of a stored result."""
    if result is None:
        return ResultState.NO_RUN
    if result.invalidated_at is None:
        return ResultState.CURRENT
    return ResultState.STALE


def mark_stale(result: ResultT, reasons: Iterable[str], at: datetime) -> ResultT:
    """Mark a result stale.

    A result that is already stale keeps its original ``invalidated_at``
    and gains any new reasons.
    """
    merged = list(result.invalidation_reasons)
    for reason in reasons:
        if reason not in merged:
            merged.append(reason)
    return dataclasses.replace(
        result,
        invalidated_at=result.invalidated_at or at,
        invalidation_reasons=tuple(merged),
    )


def apply_invalidation(
    state: OptimizationState,
    invalidation: InvalidationResult,
    formatter: ReasonFormatter | None = None,
    at: datetime | None = None,
) -> OptimizationState:
    """Apply an invalidation decision to stored results.

    Args:
        state: Stored optimization results.
        invalidation: Decision returned by ``detect``.
        formatter: Produces the reason text stored on results. Trigger
            names are stored when omitted.
        at: Invalidation timestamp, defaults to now (UTC).

    Returns:
        The updated optimization state.
    """
    if not invalidation.any_invalidated:
        return state
    at = at or datetime.now(timezone.utc)
    texts = [
        formatter.format(reason) if formatter else reason.trigger.value
        for reason in invalidation.reasons
    ]

    estimation = state.estimation
    if estimation is not None and invalidation.estimation_invalidated:
        estimation = mark_stale(estimation, texts, at)

    production = state.production
    if production is not None and invalidation.production_invalidated:
        production = mark_stale(production, texts, at)
    if production is not None and invalidation.katana_bom_invalidated:
        production = dataclasses.replace(
            production,
            katana_bom_invalidated_at=production.katana_bom_invalidated_at or at,
        )

    return OptimizationState(estimation=estimation, production=production)


def needs_reoptimization(state: OptimizationState | None, stage: OptimizationStage) -> bool:
    """True if a stage has never run or its result is stale."""
    if state is None:
        return True
    result = state.estimation if stage == OptimizationStage.ESTIMATION else state.production
    return result_state(result) != ResultState.CURRENT


def optimization_status(state: OptimizationState | None) -> OptimizationStatus:
    """Summarise stage states; production may only run on a current estimate."""
    state = state or OptimizationState()
    estimation_status = result_state(state.estimation)
    return OptimizationStatus(
        estimation_status=estimation_status,
        production_status=result_state(state.production),
        can_run_production=estimation_status == ResultState.CURRENT,
    )
