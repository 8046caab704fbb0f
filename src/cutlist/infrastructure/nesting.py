"""Best-fit guillotine nesting for production.

Every placement request gets an exact position on a concrete sheet. Each
open sheet keeps a list of free rectangles; a request goes into the free
rectangle that leaves the least area over, and the rectangle is then split
guillotine-style around it. The splits are recorded on the sheet so the cut
sequencer can replay them on the saw.

Identical inputs always produce identical output: requests, groups, stock
and candidate positions are all visited in a fixed order and every
comparison has a total tie-break.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field
from itertools import groupby

from cutlist.domain.exceptions import (
    InsufficientStockError,
    StockShortfall,
    UnplaceablePart,
    UnplaceablePartError,
)
from cutlist.domain.services.geometry import (
    allowed_orientations,
    best_split,
    classify_waste,
    fits,
    is_grain_aligned,
    oriented_dimensions,
)
from cutlist.domain.value_objects import (
    NestingLayout,
    NestingSheet,
    OptimizationConfig,
    Part,
    Placement,
    PlacementRequest,
    Rect,
    SplitLine,
    StockSheet,
    WasteRegion,
    expand_parts,
)

from .estimation import group_key

logger = logging.getLogger(__name__)


@dataclass
class _OpenSheet:
    """Mutable packing state of one sheet."""

    index: int
    stock: StockSheet
    free: list[Rect]
    placements: list[Placement] = field(default_factory=list)
    kerf_strips: list[Rect] = field(default_factory=list)
    split_lines: list[SplitLine] = field(default_factory=list)

    @property
    def sheet_id(self) -> str:
        return f"sheet-{self.index + 1}"


@dataclass(frozen=True)
class _Candidate:
    """A possible position for a request, ordered by fit quality."""

    score: tuple[float, float, int, float, float, bool]
    sheet: _OpenSheet | None
    stock: StockSheet | None
    free: Rect
    rotated: bool


class _StockExhausted(Exception):
    """Internal signal: the request fits stock whose supply is used up."""


class GuillotineNester:
    """Exact production nesting with best-fit guillotine packing.

    Attributes:
        config: Optimization configuration.
    """

    def __init__(self, config: OptimizationConfig) -> None:
        """Initialize the nester with configuration.

        Args:
            config: Optimization configuration specifying the stock catalog,
                kerf, rotation and grain policy.
        """
        self.config = config

    def nest(self, parts: Sequence[Part]) -> NestingLayout:
        """Place every part instance on a concrete sheet.

        Args:
            parts: Parts to nest.

        Returns:
            NestingLayout with every sheet used.

        Raises:
            InsufficientStockError: If capped stock cannot supply the parts.
                Checked per group before packing and again while packing.
            UnplaceablePartError: If parts fit no matching sheet. Raised after
                all other parts are nested; the layout of those is attached
                as ``partial_result``.
        """
        groups = [
            (key, list(group))
            for key, group in groupby(sorted(parts, key=group_key), key=group_key)
        ]

        shortfalls = [
            shortfall
            for _, group_parts in groups
            if (shortfall := self._check_stock(group_parts)) is not None
        ]
        if shortfalls:
            logger.warning("Insufficient stock for %d group(s)", len(shortfalls))
            raise InsufficientStockError(shortfalls)

        sheets: list[NestingSheet] = []
        unplaceable: list[UnplaceablePart] = []
        for key, group_parts in groups:
            open_sheets, rejected = self._nest_group(group_parts, first_index=len(sheets))
            sheets.extend(self._finalize(sheet) for sheet in open_sheets)
            unplaceable.extend(rejected)
            logger.info(
                "Nested %s %smm onto %d sheet(s)", key[0], key[1], len(open_sheets)
            )

        total_area = sum(sheet.area for sheet in sheets)
        used_area = sum(sheet.used_area for sheet in sheets)
        layout = NestingLayout(
            sheets=tuple(sheets),
            optimized_yield=used_area / total_area * 100 if total_area else 0.0,
        )

        if unplaceable:
            logger.warning(
                "%d part(s) cannot be placed: %s",
                len(unplaceable),
                ", ".join(entry.part_id for entry in unplaceable),
            )
            raise UnplaceablePartError(unplaceable, partial_result=layout)
        return layout

    def _check_stock(self, parts: list[Part]) -> StockShortfall | None:
        """Compare required area with the area of capped stock."""
        sample = parts[0]
        stock = self.config.stock_for(sample.material_id, sample.thickness)
        if not stock or any(s.is_unbounded for s in stock):
            return None
        required = sum(
            part.total_area
            for part in parts
            if any(self._orientations_fitting(part, s) for s in stock)
        )
        available = sum(s.area * (s.quantity or 0) for s in stock)
        if required > available:
            return StockShortfall(
                material_id=sample.material_id,
                thickness=sample.thickness,
                required_area=required,
                available_area=available,
            )
        return None

    def _orientations_fitting(self, part: Part, stock: StockSheet) -> list[bool]:
        aligned_only = self.config.grain_matching and not self.config.prioritize_grain
        return [
            rotated
            for rotated in allowed_orientations(part, self.config.allow_rotation, aligned_only)
            if fits(*oriented_dimensions(part, rotated), Rect(0, 0, stock.length, stock.width))
        ]

    def _phases(self, part: Part) -> list[tuple[list[bool], bool]]:
        """Orientation sets to try, each on open sheets then a new sheet."""
        allow_rotation = self.config.allow_rotation
        every = allowed_orientations(part, allow_rotation)
        aligned = allowed_orientations(part, allow_rotation, aligned_only=True)
        if self.config.prioritize_grain:
            sets = [aligned, every] if aligned != every else [every]
        elif self.config.grain_matching:
            sets = [aligned]
        else:
            sets = [every]
        return [(orientations, new_sheet) for orientations in sets for new_sheet in (False, True)]

    def _nest_group(
        self, parts: list[Part], first_index: int
    ) -> tuple[list[_OpenSheet], list[UnplaceablePart]]:
        sample = parts[0]
        stock = self.config.stock_for(sample.material_id, sample.thickness)
        used: dict[str, int] = defaultdict(int)
        open_sheets: list[_OpenSheet] = []
        failed: dict[str, int] = defaultdict(int)

        requests = sorted(expand_parts(parts), key=lambda r: r.sort_key)
        for position, request in enumerate(requests):
            try:
                candidate = self._find_position(request, open_sheets, stock, used)
            except _StockExhausted:
                remaining = sum(r.part.area for r in requests[position:])
                consumed = sum(sheet.stock.area for sheet in open_sheets)
                available = sum(s.area * (s.quantity or 0) for s in stock)
                logger.warning(
                    "Stock for %s %smm ran out while nesting %s",
                    sample.material_id,
                    sample.thickness,
                    request.request_id,
                )
                raise InsufficientStockError(
                    [
                        StockShortfall(
                            material_id=sample.material_id,
                            thickness=sample.thickness,
                            required_area=consumed + remaining,
                            available_area=available,
                        )
                    ]
                ) from None

            if candidate is None:
                failed[request.part.id] += 1
                continue

            sheet = candidate.sheet
            if sheet is None:
                sheet = _OpenSheet(
                    index=first_index + len(open_sheets),
                    stock=candidate.stock,
                    free=[candidate.free],
                )
                used[candidate.stock.id] += 1
                open_sheets.append(sheet)
                logger.debug("Opened %s from stock %s", sheet.sheet_id, candidate.stock.id)
            self._place(sheet, request, candidate.free, candidate.rotated)

        rejected = [
            UnplaceablePart(
                part_id=part.id,
                length=part.length,
                width=part.width,
                material_id=part.material_id,
                thickness=part.thickness,
                quantity=failed[part.id],
                reason=self._rejection_reason(part, stock),
            )
            for part in sorted(parts, key=lambda p: p.id)
            if failed[part.id]
        ]
        return open_sheets, rejected

    def _find_position(
        self,
        request: PlacementRequest,
        open_sheets: list[_OpenSheet],
        stock: list[StockSheet],
        used: dict[str, int],
    ) -> _Candidate | None:
        """Best candidate position for a request, or None if it fits nowhere."""
        exhausted = False
        for orientations, new_sheet in self._phases(request.part):
            if not orientations:
                continue
            if not new_sheet:
                candidate = self._best_on_open_sheets(request.part, open_sheets, orientations)
                if candidate is not None:
                    return candidate
                continue
            for sheet_stock in stock:
                bounds = Rect(0.0, 0.0, sheet_stock.length, sheet_stock.width)
                candidate = self._best_in(request.part, bounds, orientations, None, sheet_stock)
                if candidate is None:
                    continue
                if sheet_stock.quantity is not None and used[sheet_stock.id] >= sheet_stock.quantity:
                    exhausted = True
                    continue
                return candidate
        if exhausted:
            raise _StockExhausted()
        return None

    def _best_on_open_sheets(
        self, part: Part, open_sheets: list[_OpenSheet], orientations: list[bool]
    ) -> _Candidate | None:
        best: _Candidate | None = None
        for sheet in open_sheets:
            for free in sheet.free:
                candidate = self._best_in(part, free, orientations, sheet, sheet.stock)
                if candidate is not None and (best is None or candidate.score < best.score):
                    best = candidate
        return best

    def _best_in(
        self,
        part: Part,
        free: Rect,
        orientations: list[bool],
        sheet: _OpenSheet | None,
        stock: StockSheet,
    ) -> _Candidate | None:
        """Best orientation of a part in one free rectangle.

        Scored by leftover area, then shorter leftover side, then sheet
        index, y, x, with the unrotated orientation first.
        """
        best: _Candidate | None = None
        for rotated in orientations:
            length, width = oriented_dimensions(part, rotated)
            if not fits(length, width, free, self.config.kerf):
                continue
            score = (
                free.area - length * width,
                min(free.length - length, free.width - width),
                sheet.index if sheet is not None else -1,
                free.y,
                free.x,
                rotated,
            )
            candidate = _Candidate(score, sheet, stock, free, rotated)
            if best is None or candidate.score < best.score:
                best = candidate
        return best

    def _place(
        self, sheet: _OpenSheet, request: PlacementRequest, free: Rect, rotated: bool
    ) -> None:
        part = request.part
        length, width = oriented_dimensions(part, rotated)
        length = min(length, free.length)
        width = min(width, free.width)
        placement = Placement(
            request_id=request.request_id,
            part_id=part.id,
            design_item_id=part.design_item_id,
            x=free.x,
            y=free.y,
            length=length,
            width=width,
            rotated=rotated,
            grain_aligned=is_grain_aligned(part.grain_direction, rotated),
        )
        split = best_split(free, placement.rect, self.config.kerf)
        sheet.free.remove(free)
        sheet.free.extend(split.residuals)
        sheet.kerf_strips.extend(split.kerf_strips)
        sheet.split_lines.extend(split.split_lines)
        sheet.placements.append(placement)

        if not placement.grain_aligned and self.config.prioritize_grain:
            logger.warning(
                "Placed %s against the grain on %s", request.request_id, sheet.sheet_id
            )
        logger.debug(
            "Placed %s at (%s, %s) on %s%s",
            request.request_id,
            placement.x,
            placement.y,
            sheet.sheet_id,
            " rotated" if rotated else "",
        )

    def _rejection_reason(self, part: Part, stock: list[StockSheet]) -> str:
        if not stock:
            return f"no stock sheet for {part.material_id} {part.thickness}mm"
        aligned_only = self.config.grain_matching and not self.config.prioritize_grain
        if not allowed_orientations(part, self.config.allow_rotation, aligned_only):
            return "no orientation satisfies the grain and rotation settings"
        return "exceeds every matching stock sheet in every allowed orientation"

    def _finalize(self, sheet: _OpenSheet) -> NestingSheet:
        cutoff = self.config.minimum_usable_cutoff
        waste = [
            WasteRegion(
                x=free.x,
                y=free.y,
                length=free.length,
                width=free.width,
                reusable=classify_waste(free, cutoff),
            )
            for free in sorted(sheet.free, key=lambda r: (r.y, r.x))
        ]
        waste.extend(
            WasteRegion(x=strip.x, y=strip.y, length=strip.length, width=strip.width)
            for strip in sheet.kerf_strips
        )
        used_area = sum(p.area for p in sheet.placements)
        stock = sheet.stock
        return NestingSheet(
            id=sheet.sheet_id,
            sheet_index=sheet.index,
            stock_sheet_id=stock.id,
            material_id=stock.material_id,
            thickness=stock.thickness,
            length=stock.length,
            width=stock.width,
            placements=tuple(sheet.placements),
            waste_regions=tuple(waste),
            utilization_percent=used_area / stock.area * 100,
            split_lines=tuple(sheet.split_lines),
        )
