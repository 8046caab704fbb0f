"""Tests for result formatters and the JSON exporter."""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import datetime

import pytest

from cutlist.domain.value_objects import (
    EstimationResult,
    InvalidationReason,
    InvalidationTrigger,
    OptimizationConfig,
    Part,
    ProductionResult,
)
from cutlist.infrastructure import (
    CutSequencer,
    EstimationFormatter,
    EstimationPacker,
    GuillotineNester,
    InvalidationReasonFormatter,
    JsonExporter,
    NestingFormatter,
    estimated_cut_time,
    total_cutting_length,
)


@pytest.fixture
def estimate(
    config: OptimizationConfig,
    fixed_clock: Callable[[], datetime],
    make_part: Callable[..., Part],
) -> EstimationResult:
    return EstimationPacker(config, clock=fixed_clock).estimate([make_part(quantity=4)])


@pytest.fixture
def production(
    config: OptimizationConfig,
    fixed_now: datetime,
    make_part: Callable[..., Part],
) -> ProductionResult:
    layout = GuillotineNester(config).nest([make_part(quantity=4)])
    cuts = CutSequencer(config.kerf).sequence_all(layout.sheets)
    return ProductionResult(
        nesting_sheets=layout.sheets,
        cut_sequence=cuts,
        optimized_yield=layout.optimized_yield,
        target_yield=config.target_yield,
        total_cutting_length=total_cutting_length(cuts),
        estimated_cut_time=estimated_cut_time(cuts),
        valid_at=fixed_now,
    )


class TestInvalidationReasonFormatter:
    """Tests for InvalidationReasonFormatter."""

    @pytest.mark.parametrize(
        ("reason", "expected"),
        [
            (
                InvalidationReason(InvalidationTrigger.PART_ADDED, 2, 3),
                "Parts added (2 -> 3 pieces)",
            ),
            (
                InvalidationReason(InvalidationTrigger.PART_REMOVED, 3, 2),
                "Parts removed (3 -> 2 pieces)",
            ),
            (
                InvalidationReason(InvalidationTrigger.DESIGN_ITEM_ADDED, item_ids=("a", "b")),
                "Design items added: a, b",
            ),
            (
                InvalidationReason(InvalidationTrigger.STOCK_CONFIG_CHANGED),
                "Stock sheets or optimization settings changed",
            ),
            (
                InvalidationReason(InvalidationTrigger.KATANA_BOM_OUTDATED),
                "Exported BOM is outdated and must be re-exported",
            ),
        ],
    )
    def test_format(self, reason: InvalidationReason, expected: str) -> None:
        assert InvalidationReasonFormatter().format(reason) == expected

    def test_every_trigger_has_text(self) -> None:
        formatter = InvalidationReasonFormatter()
        texts = formatter.format_all([InvalidationReason(t) for t in InvalidationTrigger])

        assert len(texts) == len(InvalidationTrigger)
        assert all(texts)


class TestEstimationFormatter:
    """Tests for EstimationFormatter."""

    def test_report_lists_groups_and_totals(self, estimate: EstimationResult) -> None:
        report = EstimationFormatter().format(estimate)

        assert report.startswith("ESTIMATE")
        assert "mdf-18" in report
        assert "Total sheets:  1" in report
        assert "Total parts:   4" in report
        assert "Material cost: 45.00" in report
        assert "Rough cost:    51.75" in report


class TestNestingFormatter:
    """Tests for NestingFormatter."""

    def test_report_lists_sheets_and_placements(self, production: ProductionResult) -> None:
        report = NestingFormatter().format(production)

        assert report.startswith("PRODUCTION NESTING")
        assert "sheet-1 (mdf-18, MDF 18mm, 2440x1220)" in report
        assert "P1#3" in report
        assert "below target 85.0%" in report
        assert "Cuts:" not in report

    def test_cuts_included_on_request(self, production: ProductionResult) -> None:
        report = NestingFormatter().format(production, include_cuts=True)

        assert "Cuts:" in report
        assert "rip" in report.lower()

    def test_empty_nesting(self, production_result: ProductionResult) -> None:
        assert NestingFormatter().format(production_result) == "No sheets in nesting."


class TestJsonExporter:
    """Tests for JsonExporter."""

    def test_export_estimation(self, estimate: EstimationResult, fixed_now: datetime) -> None:
        data = json.loads(JsonExporter().export_estimation(estimate))

        assert data["version"] == 1
        assert data["valid_at"] == fixed_now.isoformat()
        assert data["invalidated_at"] is None
        assert data["total_sheets_count"] == 1
        assert data["sheet_summary"][0]["stock_sheet_ids"] == ["mdf-18"]

    def test_export_production(self, production: ProductionResult) -> None:
        data = json.loads(JsonExporter().export_production(production))

        assert data["meets_target_yield"] is False
        sheet = data["nesting_sheets"][0]
        assert sheet["id"] == "sheet-1"
        assert len(sheet["placements"]) == 4
        assert any(region["reusable"] for region in sheet["waste_regions"])
        assert len(data["cut_sequence"]) == len(production.cut_sequence)
        first_cut = data["cut_sequence"][0]
        assert first_cut["sequence"] == 0
        assert set(first_cut["start"]) == {"x", "y"}
