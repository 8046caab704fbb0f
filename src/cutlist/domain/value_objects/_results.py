"""Estimation and production result value objects.

Results are versioned and carry the time they became valid. A result is
current until ``invalidated_at`` is set; only a new run makes it current
again.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from ._geometry import CutType, Rect, SplitLine


class ResultState(str, Enum):
    """Lifecycle state of an estimation or production result."""

    NO_RUN = "no-run"
    CURRENT = "current"
    STALE = "stale"


@dataclass(frozen=True)
class Placement:
    """A part instance placed on a sheet.

    Length and width are the placed extents along X and Y, so they are
    swapped relative to the part when ``rotated`` is True.
    """

    request_id: str
    part_id: str
    design_item_id: str
    x: float
    y: float
    length: float
    width: float
    rotated: bool = False
    grain_aligned: bool = True

    def __post_init__(self) -> None:
        if self.x < 0 or self.y < 0:
            raise ValueError("Position coordinates must be non-negative")

    @property
    def rect(self) -> Rect:
        """Placed rectangle."""
        return Rect(self.x, self.y, self.length, self.width)

    @property
    def area(self) -> float:
        """Placed area in mm²."""
        return self.length * self.width


@dataclass(frozen=True)
class WasteRegion:
    """Unused rectangular region of a sheet."""

    x: float
    y: float
    length: float
    width: float
    reusable: bool = False

    @property
    def area(self) -> float:
        """Region area in mm²."""
        return self.length * self.width

    @property
    def rect(self) -> Rect:
        """Region as a rectangle."""
        return Rect(self.x, self.y, self.length, self.width)


@dataclass(frozen=True)
class NestingSheet:
    """One physical sheet in a production nesting.

    Attributes:
        id: Sheet identifier, unique within a result.
        sheet_index: Zero-based index of the sheet in the result.
        stock_sheet_id: Stock sheet type this sheet was taken from.
        material_id: Sheet material.
        thickness: Sheet thickness in mm.
        length: Sheet length in mm.
        width: Sheet width in mm.
        placements: Placed part instances in placement order.
        waste_regions: Regions left after cutting, kerf strips included.
        utilization_percent: Placed area as a percentage of sheet area.
        split_lines: Guillotine splits in the order they were made.
    """

    id: str
    sheet_index: int
    stock_sheet_id: str
    material_id: str
    thickness: float
    length: float
    width: float
    placements: tuple[Placement, ...]
    waste_regions: tuple[WasteRegion, ...]
    utilization_percent: float
    split_lines: tuple[SplitLine, ...] = ()

    def __post_init__(self) -> None:
        if self.sheet_index < 0:
            raise ValueError("Sheet index must be non-negative")

    @property
    def area(self) -> float:
        """Sheet area in mm²."""
        return self.length * self.width

    @property
    def used_area(self) -> float:
        """Area covered by placements in mm²."""
        return sum(p.area for p in self.placements)

    @property
    def waste_area(self) -> float:
        """Area of all waste regions in mm²."""
        return sum(w.area for w in self.waste_regions)

    @property
    def bounds(self) -> Rect:
        """The whole sheet as a rectangle."""
        return Rect(0.0, 0.0, self.length, self.width)


@dataclass(frozen=True)
class CutOperation:
    """An ordered guillotine cut on one sheet.

    Sequence numbers are dense per sheet and start at 0. The placements a
    cut frees are listed by part id and, per instance, by request id.
    """

    id: str
    sheet_id: str
    sequence: int
    type: CutType
    start_x: float
    start_y: float
    end_x: float
    end_y: float
    resulting_part_ids: tuple[str, ...] = ()
    resulting_request_ids: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.sequence < 0:
            raise ValueError("Cut sequence must be non-negative")

    @property
    def length(self) -> float:
        """Length of the cut in mm."""
        return math.hypot(self.end_x - self.start_x, self.end_y - self.start_y)

    @property
    def is_vertical(self) -> bool:
        """True for cuts along Y at constant X."""
        return abs(self.start_x - self.end_x) < 1e-9


@dataclass(frozen=True)
class SheetSummary:
    """Estimated sheet usage for one (material, thickness) group.

    A group whose parts need different stock sheet types lists every type
    used; sheet counts, areas and cost are totals over all of them.
    """

    material_id: str
    thickness: float
    stock_sheet_ids: tuple[str, ...]
    sheets_required: int
    sheet_area: float
    parts_count: int
    parts_area: float
    utilization_percent: float
    waste_area: float
    estimated_cost: float


@dataclass(frozen=True)
class NestingLayout:
    """Sheets produced by a production nesting run.

    Attributes:
        sheets: Nested sheets in creation order.
        optimized_yield: Placed area as a percentage of total sheet area.
    """

    sheets: tuple[NestingSheet, ...]
    optimized_yield: float

    @property
    def placements(self) -> tuple[Placement, ...]:
        """All placements across sheets."""
        return tuple(p for sheet in self.sheets for p in sheet.placements)


@dataclass(frozen=True)
class EstimationResult:
    """Fast approximate estimate used for quoting."""

    sheet_summary: tuple[SheetSummary, ...]
    total_sheets_count: int
    total_parts_count: int
    waste_estimate: float
    material_cost: float
    rough_cost: float
    valid_at: datetime
    version: int = 1
    invalidated_at: datetime | None = None
    invalidation_reasons: tuple[str, ...] = ()

    @property
    def is_current(self) -> bool:
        """True until the result has been invalidated."""
        return self.invalidated_at is None


@dataclass(frozen=True)
class ProductionResult:
    """Exact production nesting with its cut sequence."""

    nesting_sheets: tuple[NestingSheet, ...]
    cut_sequence: tuple[CutOperation, ...]
    optimized_yield: float
    target_yield: float
    total_cutting_length: float
    estimated_cut_time: int
    valid_at: datetime
    version: int = 1
    invalidated_at: datetime | None = None
    invalidation_reasons: tuple[str, ...] = ()
    katana_bom_id: str | None = None
    katana_bom_exported_at: datetime | None = None
    katana_order_number: str | None = None
    katana_bom_invalidated_at: datetime | None = None

    @property
    def is_current(self) -> bool:
        """True until the result has been invalidated."""
        return self.invalidated_at is None

    @property
    def meets_target_yield(self) -> bool:
        """True if the optimized yield reaches the configured target."""
        return self.optimized_yield >= self.target_yield

    @property
    def total_sheets(self) -> int:
        """Number of sheets in the nesting."""
        return len(self.nesting_sheets)

    @property
    def total_placements(self) -> int:
        """Number of placed part instances."""
        return sum(len(sheet.placements) for sheet in self.nesting_sheets)


@dataclass(frozen=True)
class KatanaExport:
    """Exported bill of materials derived from a production result."""

    bom_id: str
    exported_at: datetime | None = None
    order_number: str | None = None
    invalidated_at: datetime | None = None

    @property
    def is_current(self) -> bool:
        """True until the export has been invalidated."""
        return self.invalidated_at is None

    @classmethod
    def from_production(cls, production: ProductionResult | None) -> KatanaExport | None:
        """Build the export record of a production result, if it was exported."""
        if production is None or not production.katana_bom_id:
            return None
        return cls(
            bom_id=production.katana_bom_id,
            exported_at=production.katana_bom_exported_at,
            order_number=production.katana_order_number,
            invalidated_at=production.katana_bom_invalidated_at,
        )


@dataclass(frozen=True)
class OptimizationState:
    """Persisted optimization results of a project."""

    estimation: EstimationResult | None = None
    production: ProductionResult | None = None

    @property
    def has_results(self) -> bool:
        """True if any optimization has ever been run."""
        return self.estimation is not None or self.production is not None
