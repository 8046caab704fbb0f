"""Pytest configuration and shared fixtures for cutlist tests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

import pytest

from cutlist.domain.value_objects import (
    EstimationResult,
    GrainDirection,
    OptimizationConfig,
    Part,
    ProductionResult,
    StockSheet,
)

FIXED_NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)

PROJECT_FIXTURES = Path(__file__).parent / "fixtures" / "projects"


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: end-to-end workflow tests")
    config.addinivalue_line("markers", "slow: tests that take a long time to run")


# =============================================================================
# Clock and configuration
# =============================================================================


@pytest.fixture
def project_fixtures() -> Path:
    """Directory of JSON project files used by integration tests."""
    return PROJECT_FIXTURES


@pytest.fixture
def fixed_now() -> datetime:
    """The timestamp returned by fixed_clock."""
    return FIXED_NOW


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Clock that always returns FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def mdf_stock() -> StockSheet:
    """Full 2440x1220 sheet of 18mm MDF."""
    return StockSheet(
        id="mdf-18",
        material_id="MDF",
        length=2440,
        width=1220,
        thickness=18,
        cost_per_sheet=45.0,
    )


@pytest.fixture
def plywood_stock() -> StockSheet:
    """Full 2440x1220 sheet of 18mm birch plywood."""
    return StockSheet(
        id="ply-18",
        material_id="Plywood",
        length=2440,
        width=1220,
        thickness=18,
        cost_per_sheet=80.0,
    )


@pytest.fixture
def config(mdf_stock: StockSheet) -> OptimizationConfig:
    """Default configuration with a single MDF stock sheet."""
    return OptimizationConfig(kerf=3.2, stock_sheets=(mdf_stock,))


# =============================================================================
# Builders
# =============================================================================


@pytest.fixture
def make_part() -> Callable[..., Part]:
    """Factory for MDF parts with sensible defaults."""

    def _make(
        part_id: str = "P1",
        length: float = 600,
        width: float = 400,
        quantity: int = 1,
        material_id: str = "MDF",
        thickness: float = 18,
        grain_direction: GrainDirection = GrainDirection.NONE,
        design_item_id: str = "",
    ) -> Part:
        return Part(
            id=part_id,
            length=length,
            width=width,
            thickness=thickness,
            material_id=material_id,
            quantity=quantity,
            grain_direction=grain_direction,
            design_item_id=design_item_id,
        )

    return _make


@pytest.fixture
def estimation_result() -> EstimationResult:
    """A current, empty estimation result."""
    return EstimationResult(
        sheet_summary=(),
        total_sheets_count=0,
        total_parts_count=0,
        waste_estimate=0.0,
        material_cost=0.0,
        rough_cost=0.0,
        valid_at=FIXED_NOW,
    )


@pytest.fixture
def production_result() -> ProductionResult:
    """A current, empty production result that was never exported."""
    return ProductionResult(
        nesting_sheets=(),
        cut_sequence=(),
        optimized_yield=0.0,
        target_yield=85.0,
        total_cutting_length=0.0,
        estimated_cut_time=0,
        valid_at=FIXED_NOW,
    )
