"""Exception taxonomy for the cutlist engine.

Every error raised by the packers, the nester and the offcut tracker derives
from CutlistError so callers can catch engine failures in one place while
still distinguishing the cases that need different handling:

- UnplaceablePartError: one or more parts fit no configured sheet. Raised
  after every other part has been processed, enumerating all offenders.
- InsufficientStockError: capped stock cannot cover the required area.
  Aborts the run; partial nestings are not useful to production.
- ConcurrentModificationError: an offcut claim lost a compare-and-swap race.
  Retry the claim against fresh state, never the whole nesting.
- InvalidConfigError: rejected before any packing attempt.
- EstimationRequiredError: production requested while the estimate is
  missing or stale.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class CutlistError(Exception):
    """Base class for all cutlist engine errors."""


@dataclass(frozen=True)
class UnplaceablePart:
    """Description of a single part that cannot be placed.

    Attributes:
        part_id: Identifier of the offending part.
        length: Part length in mm.
        width: Part width in mm.
        material_id: Material the part was grouped under.
        thickness: Part thickness in mm.
        quantity: Number of instances affected.
        reason: Human-readable explanation.
    """

    part_id: str
    length: float
    width: float
    material_id: str
    thickness: float
    quantity: int
    reason: str


class UnplaceablePartError(CutlistError):
    """Raised when parts cannot fit any configured sheet in any orientation.

    Attributes:
        unplaceable: Every part that could not be placed.
        partial_result: Result computed for the remaining parts, if any.
    """

    def __init__(
        self,
        unplaceable: list[UnplaceablePart] | tuple[UnplaceablePart, ...],
        partial_result: Any = None,
    ) -> None:
        self.unplaceable = tuple(unplaceable)
        self.partial_result = partial_result
        lines = [f"{len(self.unplaceable)} part(s) cannot be placed:"]
        for entry in self.unplaceable:
            lines.append(
                f"  - {entry.part_id} ({entry.length}x{entry.width}x{entry.thickness} "
                f"{entry.material_id}, qty {entry.quantity}): {entry.reason}"
            )
        super().__init__("\n".join(lines))

    @property
    def part_ids(self) -> tuple[str, ...]:
        """Identifiers of all unplaceable parts."""
        return tuple(entry.part_id for entry in self.unplaceable)


@dataclass(frozen=True)
class StockShortfall:
    """Area shortfall for one (material, thickness) group, in mm²."""

    material_id: str
    thickness: float
    required_area: float
    available_area: float

    @property
    def shortfall(self) -> float:
        """Missing area in mm²."""
        return max(self.required_area - self.available_area, 0.0)


class InsufficientStockError(CutlistError):
    """Raised when capped stock cannot supply the area the parts need.

    Attributes:
        shortfalls: Per-group shortfall details.
    """

    def __init__(self, shortfalls: list[StockShortfall] | tuple[StockShortfall, ...]) -> None:
        self.shortfalls = tuple(shortfalls)
        groups = ", ".join(
            f"{s.material_id} {s.thickness}mm short {s.shortfall:.0f}mm²"
            for s in self.shortfalls
        )
        super().__init__(f"Insufficient stock: {groups}")

    @property
    def shortfall(self) -> float:
        """Total missing area across all groups in mm²."""
        return sum(s.shortfall for s in self.shortfalls)


class ConcurrentModificationError(CutlistError):
    """Raised when an offcut changed between read and write."""

    def __init__(self, offcut_id: str, message: str | None = None) -> None:
        self.offcut_id = offcut_id
        super().__init__(message or f"Offcut {offcut_id} was modified concurrently")


class OffcutUnavailableError(ConcurrentModificationError):
    """Raised when claiming an offcut another project already consumed."""

    def __init__(self, offcut_id: str, consumed_by: str | None) -> None:
        self.consumed_by = consumed_by
        super().__init__(
            offcut_id,
            f"Offcut {offcut_id} is already consumed by project {consumed_by}",
        )


class OffcutNotFoundError(CutlistError, KeyError):
    """Raised when an offcut id is not present in the store."""

    def __init__(self, offcut_id: str) -> None:
        self.offcut_id = offcut_id
        super().__init__(offcut_id)

    def __str__(self) -> str:
        return f"Offcut not found: {self.offcut_id}"


class InvalidConfigError(CutlistError, ValueError):
    """Raised when optimization configuration is invalid."""


class EstimationRequiredError(CutlistError):
    """Raised when production nesting is requested without a current estimate."""
