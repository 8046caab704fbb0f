"""Tests for best-fit guillotine production nesting.

Tests cover:
- Placement of every part instance without overlap
- Sheet overflow, grouping and sheet numbering
- Grain policies (prioritize, strict matching, ignored)
- Stock caps checked before and during packing
- Unplaceable parts with partial layouts
- Determinism
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

import pytest

from cutlist.domain import InsufficientStockError, UnplaceablePartError
from cutlist.domain.services import rects_overlap, validate_production
from cutlist.domain.value_objects import (
    GrainDirection,
    NestingLayout,
    OptimizationConfig,
    Part,
    ProductionResult,
    StockSheet,
)
from cutlist.infrastructure import GuillotineNester


def _as_result(layout: NestingLayout) -> ProductionResult:
    """Wrap a layout so it can be checked with validate_production."""
    return ProductionResult(
        nesting_sheets=layout.sheets,
        cut_sequence=(),
        optimized_yield=layout.optimized_yield,
        target_yield=85.0,
        total_cutting_length=0.0,
        estimated_cut_time=0,
        valid_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def nester(config: OptimizationConfig) -> GuillotineNester:
    return GuillotineNester(config)


class TestBasicNesting:
    """Tests for placing parts on sheets."""

    def test_four_parts_on_one_sheet(
        self, nester: GuillotineNester, make_part: Callable[..., Part]
    ) -> None:
        parts = [make_part(quantity=4)]
        layout = nester.nest(parts)

        assert len(layout.sheets) == 1
        sheet = layout.sheets[0]
        assert sheet.id == "sheet-1"
        assert sheet.stock_sheet_id == "mdf-18"
        assert len(sheet.placements) == 4
        assert sheet.utilization_percent > 30
        assert layout.optimized_yield == pytest.approx(4 * 600 * 400 / (2440 * 1220) * 100)
        assert validate_production(_as_result(layout), parts, kerf=3.2) == []

    def test_placements_do_not_overlap(
        self, nester: GuillotineNester, make_part: Callable[..., Part]
    ) -> None:
        layout = nester.nest(
            [
                make_part("A", quantity=6),
                make_part("B", length=900, width=300, quantity=5),
                make_part("C", length=250, width=250, quantity=9),
            ]
        )

        for sheet in layout.sheets:
            bounds = sheet.bounds
            for i, first in enumerate(sheet.placements):
                assert bounds.contains(first.rect)
                for second in sheet.placements[i + 1:]:
                    assert not rects_overlap(first.rect, second.rect, kerf=3.2)

    def test_every_instance_placed_once(
        self, nester: GuillotineNester, make_part: Callable[..., Part]
    ) -> None:
        parts = [make_part("A", quantity=3), make_part("B", length=900, width=300, quantity=2)]
        layout = nester.nest(parts)

        request_ids = sorted(p.request_id for p in layout.placements)
        assert request_ids == ["A#0", "A#1", "A#2", "B#0", "B#1"]

    def test_waste_and_placements_cover_sheet(
        self, nester: GuillotineNester, make_part: Callable[..., Part]
    ) -> None:
        layout = nester.nest([make_part(quantity=4)])
        sheet = layout.sheets[0]

        assert sheet.used_area + sheet.waste_area == pytest.approx(sheet.area)
        assert any(region.reusable for region in sheet.waste_regions)

    def test_perfect_tiling_without_kerf(
        self, mdf_stock: StockSheet, make_part: Callable[..., Part]
    ) -> None:
        config = OptimizationConfig(kerf=0, stock_sheets=(mdf_stock,))
        layout = GuillotineNester(config).nest([make_part(length=1220, width=610, quantity=4)])

        assert len(layout.sheets) == 1
        assert layout.sheets[0].utilization_percent == pytest.approx(100.0)
        assert layout.sheets[0].waste_regions == ()

    def test_overflow_to_second_sheet(
        self, nester: GuillotineNester, make_part: Callable[..., Part]
    ) -> None:
        layout = nester.nest([make_part(length=1200, width=600, quantity=5)])

        assert [s.id for s in layout.sheets] == ["sheet-1", "sheet-2"]
        assert [s.sheet_index for s in layout.sheets] == [0, 1]
        assert [len(s.placements) for s in layout.sheets] == [4, 1]

    def test_groups_nest_on_separate_sheets(
        self,
        mdf_stock: StockSheet,
        plywood_stock: StockSheet,
        make_part: Callable[..., Part],
    ) -> None:
        config = OptimizationConfig(stock_sheets=(plywood_stock, mdf_stock))
        layout = GuillotineNester(config).nest(
            [make_part("ply", material_id="Plywood"), make_part("mdf")]
        )

        assert [s.material_id for s in layout.sheets] == ["MDF", "Plywood"]
        assert [s.id for s in layout.sheets] == ["sheet-1", "sheet-2"]

    def test_empty_parts_list(self, nester: GuillotineNester) -> None:
        layout = nester.nest([])
        assert layout.sheets == ()
        assert layout.optimized_yield == 0.0

    def test_deterministic(
        self, nester: GuillotineNester, make_part: Callable[..., Part]
    ) -> None:
        parts = [
            make_part("A", quantity=6),
            make_part("B", length=900, width=300, quantity=5),
            make_part("C", length=250, width=250, quantity=9),
        ]
        first = nester.nest(parts)
        assert nester.nest(parts) == first
        assert nester.nest(list(reversed(parts))) == first


class TestGrainPolicy:
    """Tests for grain-aware orientation choices."""

    def test_length_grain_stays_unrotated(
        self, nester: GuillotineNester, make_part: Callable[..., Part]
    ) -> None:
        layout = nester.nest(
            [make_part(length=2000, width=300, grain_direction=GrainDirection.LENGTH)]
        )
        placement = layout.placements[0]
        assert not placement.rotated
        assert placement.grain_aligned

    def test_width_grain_is_rotated(
        self, nester: GuillotineNester, make_part: Callable[..., Part]
    ) -> None:
        layout = nester.nest(
            [make_part(length=300, width=2000, grain_direction=GrainDirection.WIDTH)]
        )
        placement = layout.placements[0]
        assert placement.rotated
        assert placement.grain_aligned
        assert (placement.length, placement.width) == (2000, 300)

    def test_prioritize_grain_falls_back_to_misaligned(
        self, nester: GuillotineNester, make_part: Callable[..., Part]
    ) -> None:
        # Too wide for the sheet unless rotated against the grain
        layout = nester.nest(
            [make_part(length=1000, width=2000, grain_direction=GrainDirection.LENGTH)]
        )
        placement = layout.placements[0]
        assert placement.rotated
        assert not placement.grain_aligned

    def test_strict_grain_matching_rejects_misaligned(
        self, mdf_stock: StockSheet, make_part: Callable[..., Part]
    ) -> None:
        config = OptimizationConfig(
            stock_sheets=(mdf_stock,), grain_matching=True, prioritize_grain=False
        )
        with pytest.raises(UnplaceablePartError) as exc_info:
            GuillotineNester(config).nest(
                [make_part(length=1000, width=2000, grain_direction=GrainDirection.LENGTH)]
            )
        assert exc_info.value.part_ids == ("P1",)

    def test_grain_ignored_without_either_flag(
        self, mdf_stock: StockSheet, make_part: Callable[..., Part]
    ) -> None:
        config = OptimizationConfig(
            stock_sheets=(mdf_stock,), grain_matching=False, prioritize_grain=False
        )
        layout = GuillotineNester(config).nest(
            [make_part(length=1000, width=2000, grain_direction=GrainDirection.LENGTH)]
        )
        assert layout.placements[0].rotated


class TestNestingFailures:
    """Tests for unplaceable parts and stock limits."""

    def test_unplaceable_part_reported_with_partial_layout(
        self, nester: GuillotineNester, make_part: Callable[..., Part]
    ) -> None:
        with pytest.raises(UnplaceablePartError) as exc_info:
            nester.nest([make_part("ok", quantity=2), make_part("big", length=3000, width=3000)])

        error = exc_info.value
        assert error.part_ids == ("big",)
        assert error.unplaceable[0].quantity == 1
        assert isinstance(error.partial_result, NestingLayout)
        assert len(error.partial_result.placements) == 2

    def test_part_without_stock_is_unplaceable(
        self, nester: GuillotineNester, make_part: Callable[..., Part]
    ) -> None:
        with pytest.raises(UnplaceablePartError) as exc_info:
            nester.nest([make_part("oak", material_id="Oak")])
        assert "no stock sheet" in exc_info.value.unplaceable[0].reason

    def test_rotation_disabled_part_too_wide(
        self, mdf_stock: StockSheet, make_part: Callable[..., Part]
    ) -> None:
        config = OptimizationConfig(stock_sheets=(mdf_stock,), allow_rotation=False)
        with pytest.raises(UnplaceablePartError):
            GuillotineNester(config).nest([make_part(length=1000, width=2000)])

    def test_capped_stock_checked_before_packing(self, make_part: Callable[..., Part]) -> None:
        stock = StockSheet(
            id="mdf-18", material_id="MDF", length=2440, width=1220, thickness=18, quantity=1
        )
        config = OptimizationConfig(stock_sheets=(stock,))

        with pytest.raises(InsufficientStockError) as exc_info:
            GuillotineNester(config).nest([make_part(length=1200, width=600, quantity=5)])

        error = exc_info.value
        assert len(error.shortfalls) == 1
        assert error.shortfall == pytest.approx(5 * 1200 * 600 - 2440 * 1220)

    def test_capped_stock_exhausted_while_packing(self, make_part: Callable[..., Part]) -> None:
        # Enough area in total, but two pieces cannot share one sheet
        stock = StockSheet(
            id="mdf-18", material_id="MDF", length=2440, width=1220, thickness=18, quantity=1
        )
        config = OptimizationConfig(stock_sheets=(stock,))

        with pytest.raises(InsufficientStockError):
            GuillotineNester(config).nest([make_part(length=1300, width=1000, quantity=2)])

    def test_capped_stock_falls_back_to_next_stock(self, make_part: Callable[..., Part]) -> None:
        cheap = StockSheet(
            id="cheap", material_id="MDF", length=2440, width=1220, thickness=18,
            quantity=1, cost_per_sheet=30,
        )
        dear = StockSheet(
            id="dear", material_id="MDF", length=2440, width=1220, thickness=18,
            cost_per_sheet=50,
        )
        config = OptimizationConfig(stock_sheets=(dear, cheap))
        layout = GuillotineNester(config).nest([make_part(length=1300, width=1000, quantity=2)])

        assert [s.stock_sheet_id for s in layout.sheets] == ["cheap", "dear"]
