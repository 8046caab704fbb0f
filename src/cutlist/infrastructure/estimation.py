"""Fast shelf-packing estimator for quoting.

The estimator never promises exact placements. Each (material, thickness)
group is packed in a single pass onto the cheapest stock sheet that can
hold each part, using a shelf algorithm: shelves run along the sheet
length, each shelf's height is set by the first piece placed on it, and
pieces are placed left-to-right. Runs in O(n log n) so it can be
re-executed on every edit.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from itertools import groupby

from cutlist.domain.exceptions import UnplaceablePart, UnplaceablePartError
from cutlist.domain.services.geometry import oriented_dimensions, preferred_orientations
from cutlist.domain.value_objects import (
    EPSILON,
    EstimationResult,
    OptimizationConfig,
    Part,
    PlacementRequest,
    SheetSummary,
    StockSheet,
    expand_parts,
)

from .clock import Clock, utc_now

logger = logging.getLogger(__name__)

# Buffer applied to material cost for quoting
DEFAULT_QUOTE_BUFFER = 1.15


def group_key(part: Part) -> tuple[str, float]:
    """Grouping key of a part: (material, thickness)."""
    return (part.material_id.casefold(), part.thickness)


@dataclass
class _Shelf:
    """Current shelf of the sheet being filled.

    Attributes:
        height: Height of the shelf, set by the first piece.
        used_length: Length consumed along X, kerf included.
    """

    height: float
    used_length: float = 0.0


@dataclass
class _ShelfSheetState:
    """Single-pass shelf state for one stock sheet type."""

    stock: StockSheet
    kerf: float
    sheets: int = 0
    current_y: float = 0.0
    shelf: _Shelf | None = None
    parts_area: float = 0.0
    parts_count: int = 0

    def _fits_on_shelf(self, length: float, width: float) -> bool:
        if self.shelf is None or width > self.shelf.height + EPSILON:
            return False
        return self.shelf.used_length + self.kerf + length <= self.stock.length + EPSILON

    def _fits_new_shelf(self, length: float, width: float) -> bool:
        if self.shelf is None or length > self.stock.length + EPSILON:
            return False
        next_y = self.current_y + self.shelf.height + self.kerf
        return next_y + width <= self.stock.width + EPSILON

    def add(self, request: PlacementRequest, orientations: list[bool]) -> None:
        """Add one piece, opening a shelf or sheet when required."""
        dims = [oriented_dimensions(request.part, rotated) for rotated in orientations]

        for length, width in dims:
            if self._fits_on_shelf(length, width):
                self.shelf.used_length += self.kerf + length
                self._record(request)
                return

        for length, width in dims:
            if self._fits_new_shelf(length, width):
                self.current_y += self.shelf.height + self.kerf
                self.shelf = _Shelf(height=width, used_length=length)
                self._record(request)
                return

        length, width = next(
            (length, width)
            for length, width in dims
            if length <= self.stock.length + EPSILON and width <= self.stock.width + EPSILON
        )
        self.sheets += 1
        self.current_y = 0.0
        self.shelf = _Shelf(height=width, used_length=length)
        self._record(request)

    def _record(self, request: PlacementRequest) -> None:
        self.parts_area += request.part.area
        self.parts_count += 1


class EstimationPacker:
    """Approximate sheet count and cost estimator.

    Attributes:
        config: Optimization configuration.
        quote_buffer: Multiplier applied to material cost for the rough cost.
    """

    def __init__(
        self,
        config: OptimizationConfig,
        quote_buffer: float = DEFAULT_QUOTE_BUFFER,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize the estimator.

        Args:
            config: Optimization configuration with the stock catalog.
            quote_buffer: Multiplier applied to material cost.
            clock: Source of result timestamps.
        """
        if quote_buffer < 1:
            raise ValueError("Quote buffer must be at least 1")
        self.config = config
        self.quote_buffer = quote_buffer
        self.clock = clock

    def estimate(self, parts: Sequence[Part]) -> EstimationResult:
        """Estimate sheets, waste and cost for a parts list.

        Args:
            parts: Parts to estimate.

        Returns:
            EstimationResult covering every part.

        Raises:
            UnplaceablePartError: If parts fit no matching stock sheet. The
                estimate of the remaining parts is attached as
                ``partial_result``.
        """
        states: dict[tuple[str, float, str], _ShelfSheetState] = {}
        unplaceable: list[UnplaceablePart] = []

        ordered = sorted(parts, key=group_key)
        for key, group in groupby(ordered, key=group_key):
            group_parts = list(group)
            requests = sorted(expand_parts(group_parts), key=lambda r: r.sort_key)
            logger.debug(
                "Estimating %d pieces of %s %smm", len(requests), key[0], key[1]
            )
            rejected: dict[str, str] = {}
            for request in requests:
                part = request.part
                if part.id in rejected:
                    continue
                choice = self._choose_stock(part)
                if choice is None:
                    rejected[part.id] = self._rejection_reason(part)
                    continue
                stock, orientations = choice
                state_key = (key[0], key[1], stock.id)
                if state_key not in states:
                    states[state_key] = _ShelfSheetState(stock=stock, kerf=self.config.kerf)
                states[state_key].add(request, orientations)

            for part in group_parts:
                if part.id in rejected:
                    unplaceable.append(
                        UnplaceablePart(
                            part_id=part.id,
                            length=part.length,
                            width=part.width,
                            material_id=part.material_id,
                            thickness=part.thickness,
                            quantity=part.quantity,
                            reason=rejected[part.id],
                        )
                    )

        result = self._build_result(states)
        logger.info(
            "Estimated %d sheet(s) for %d part(s), %.1f%% waste, rough cost %.2f",
            result.total_sheets_count,
            result.total_parts_count,
            result.waste_estimate,
            result.rough_cost,
        )

        if unplaceable:
            logger.warning("%d part(s) cannot be estimated", len(unplaceable))
            raise UnplaceablePartError(unplaceable, partial_result=result)
        return result

    def _choose_stock(self, part: Part) -> tuple[StockSheet, list[bool]] | None:
        """Cheapest matching stock the part fits, with usable orientations."""
        orientations = preferred_orientations(part, self.config)
        for stock in self.config.stock_for(part.material_id, part.thickness):
            usable = [
                rotated for rotated in orientations
                if self._fits_sheet(part, rotated, stock)
            ]
            if usable:
                return stock, usable
        return None

    @staticmethod
    def _fits_sheet(part: Part, rotated: bool, stock: StockSheet) -> bool:
        length, width = oriented_dimensions(part, rotated)
        return length <= stock.length + EPSILON and width <= stock.width + EPSILON

    def _rejection_reason(self, part: Part) -> str:
        stock = self.config.stock_for(part.material_id, part.thickness)
        if not stock:
            return f"no stock sheet for {part.material_id} {part.thickness}mm"
        if not preferred_orientations(part, self.config):
            return "no orientation satisfies the grain and rotation settings"
        return "exceeds every matching stock sheet in every allowed orientation"

    def _build_result(
        self, states: dict[tuple[str, float, str], _ShelfSheetState]
    ) -> EstimationResult:
        summaries: list[SheetSummary] = []
        group_states = groupby(sorted(states.items()), key=lambda item: item[0][:2])
        for _, items in group_states:
            used = [state for _, state in items]
            sheet_area = sum(s.stock.area * s.sheets for s in used)
            parts_area = sum(s.parts_area for s in used)
            summaries.append(
                SheetSummary(
                    material_id=used[0].stock.material_id,
                    thickness=used[0].stock.thickness,
                    stock_sheet_ids=tuple(s.stock.id for s in used),
                    sheets_required=sum(s.sheets for s in used),
                    sheet_area=sheet_area,
                    parts_count=sum(s.parts_count for s in used),
                    parts_area=parts_area,
                    utilization_percent=parts_area / sheet_area * 100 if sheet_area else 0.0,
                    waste_area=sheet_area - parts_area,
                    estimated_cost=sum(s.sheets * s.stock.cost_per_sheet for s in used),
                )
            )

        total_sheet_area = sum(s.sheet_area for s in summaries)
        total_parts_area = sum(s.parts_area for s in summaries)
        material_cost = sum(s.estimated_cost for s in summaries)
        waste = (1 - total_parts_area / total_sheet_area) * 100 if total_sheet_area else 0.0

        return EstimationResult(
            sheet_summary=tuple(summaries),
            total_sheets_count=sum(s.sheets_required for s in summaries),
            total_parts_count=sum(s.parts_count for s in summaries),
            waste_estimate=waste,
            material_cost=material_cost,
            rough_cost=material_cost * self.quote_buffer,
            valid_at=self.clock(),
        )
