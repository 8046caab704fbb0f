"""Structural validation of production results."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from ..value_objects import Part, ProductionResult, expand_parts
from .geometry import rects_overlap

__all__ = ["validate_production"]

# Relative tolerance for the per-sheet area balance
AREA_TOLERANCE = 1e-6


def validate_production(
    result: ProductionResult,
    parts: Iterable[Part],
    kerf: float,
) -> list[str]:
    """Check the structural invariants of a production result.

    A result is valid when every placement request of the input parts
    appears exactly once, no two placements on a sheet overlap when inflated
    by half the kerf, every placement lies within its sheet, and placements
    plus waste regions account for the whole sheet area.

    Args:
        result: Production result to check.
        parts: Parts the result was computed for.
        kerf: Saw blade kerf in mm.

    Returns:
        Human-readable violations, empty when the result is valid.
    """
    violations: list[str] = []

    expected = Counter(request.request_id for request in expand_parts(list(parts)))
    placed = Counter(
        placement.request_id
        for sheet in result.nesting_sheets
        for placement in sheet.placements
    )
    for request_id in sorted(expected.keys() - placed.keys()):
        violations.append(f"{request_id} is not placed")
    for request_id in sorted(placed.keys() - expected.keys()):
        violations.append(f"{request_id} does not belong to any input part")
    for request_id, count in sorted(placed.items()):
        if count > 1:
            violations.append(f"{request_id} is placed {count} times")

    for sheet in result.nesting_sheets:
        bounds = sheet.bounds
        placements = sheet.placements
        for placement in placements:
            if not bounds.contains(placement.rect):
                violations.append(
                    f"{placement.request_id} lies outside sheet {sheet.id}"
                )
        for i, first in enumerate(placements):
            for second in placements[i + 1:]:
                if rects_overlap(first.rect, second.rect, kerf):
                    violations.append(
                        f"{first.request_id} overlaps {second.request_id} on sheet {sheet.id}"
                    )
        accounted = sheet.used_area + sheet.waste_area
        if abs(accounted - sheet.area) > AREA_TOLERANCE * sheet.area:
            violations.append(
                f"Sheet {sheet.id} area mismatch: placements and waste cover "
                f"{accounted:.3f}mm² of {sheet.area:.3f}mm²"
            )

    return violations
