"""Tests for the estimation and production workflow service."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

import pytest

from cutlist.application.config import load_config_from_dict
from cutlist.application.services import OptimizationService
from cutlist.domain import EstimationRequiredError, UnplaceablePartError
from cutlist.domain.services import mark_stale
from cutlist.domain.value_objects import (
    OptimizationConfig,
    OptimizationState,
    Part,
    ProductionResult,
)


@pytest.fixture
def service(config: OptimizationConfig, fixed_clock: Callable[[], datetime]) -> OptimizationService:
    return OptimizationService(config, material_mappings={"Oak Veneer": "MDF"}, clock=fixed_clock)


class TestMaterialMapping:
    """Tests for map_parts()."""

    def test_mapped_case_insensitively(
        self, service: OptimizationService, make_part: Callable[..., Part]
    ) -> None:
        mapped = service.map_parts([make_part("A", material_id="oak veneer"), make_part("B")])
        assert [p.material_id for p in mapped] == ["MDF", "MDF"]

    def test_estimate_uses_mapped_material(
        self, service: OptimizationService, make_part: Callable[..., Part]
    ) -> None:
        result = service.estimate([make_part(material_id="Oak Veneer", quantity=2)])
        assert result.total_parts_count == 2


class TestRuns:
    """Tests for estimate(), produce() and the staged workflow."""

    def test_estimate_versions_increment(
        self, service: OptimizationService, make_part: Callable[..., Part]
    ) -> None:
        first = service.estimate([make_part()])
        second = service.estimate([make_part()], previous=first)

        assert (first.version, second.version) == (1, 2)

    def test_produce_sequences_cuts(
        self,
        service: OptimizationService,
        make_part: Callable[..., Part],
        fixed_now: datetime,
    ) -> None:
        parts = [make_part(quantity=4)]
        result = service.produce(parts)

        assert result.total_sheets == 1
        assert result.total_placements == 4
        assert result.cut_sequence
        assert result.total_cutting_length > 0
        assert result.estimated_cut_time >= 1
        assert result.valid_at == fixed_now
        assert result.target_yield == 85.0
        assert service.validate(result, parts) == []

    def test_low_yield_logged(
        self,
        service: OptimizationService,
        make_part: Callable[..., Part],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="cutlist.application.services.optimization"):
            service.produce([make_part()])

        assert "below the 85.0% target" in caplog.text

    def test_unplaceable_partial_is_production_result(
        self, service: OptimizationService, make_part: Callable[..., Part]
    ) -> None:
        with pytest.raises(UnplaceablePartError) as exc_info:
            service.produce([make_part("ok"), make_part("huge", length=5000, width=5000)])

        partial = exc_info.value.partial_result
        assert isinstance(partial, ProductionResult)
        assert partial.total_placements == 1

    def test_production_requires_estimate(
        self, service: OptimizationService, make_part: Callable[..., Part]
    ) -> None:
        with pytest.raises(EstimationRequiredError):
            service.run_production(None, [make_part()])

    def test_production_requires_current_estimate(
        self,
        service: OptimizationService,
        make_part: Callable[..., Part],
        fixed_now: datetime,
    ) -> None:
        parts = [make_part()]
        state = service.run_estimation(None, parts)
        stale = OptimizationState(estimation=mark_stale(state.estimation, ["edited"], fixed_now))

        with pytest.raises(EstimationRequiredError):
            service.run_production(stale, parts)

    def test_staged_workflow(
        self, service: OptimizationService, make_part: Callable[..., Part]
    ) -> None:
        parts = [make_part(quantity=2)]
        state = service.run_estimation(None, parts)
        state = service.run_production(state, parts)

        assert state.estimation.version == 1
        assert state.production.version == 1

        state = service.run_estimation(state, parts)
        assert state.estimation.version == 2
        assert state.production.version == 1

        state = service.run_production(state, parts)
        assert state.production.version == 2

    def test_snapshot_uses_service_inputs(
        self,
        service: OptimizationService,
        make_part: Callable[..., Part],
        fixed_now: datetime,
    ) -> None:
        snapshot = service.snapshot([make_part(quantity=3)])

        assert snapshot.total_parts == 3
        assert snapshot.taken_at == fixed_now


class TestFromConfig:
    """Tests for OptimizationService.from_config()."""

    def test_builds_from_project_file(self, fixed_clock: Callable[[], datetime]) -> None:
        project = load_config_from_dict(
            {
                "schema_version": "1.1",
                "stock_sheets": [
                    {
                        "id": "ply-18",
                        "material_id": "Plywood",
                        "length": 2440,
                        "width": 1220,
                        "thickness": 18,
                    }
                ],
                "optimization": {"kerf": 4, "target_yield": 70},
                "material_mappings": {"Birch": "Plywood"},
            }
        )
        service = OptimizationService.from_config(project, clock=fixed_clock)

        assert service.config.kerf == 4
        assert service.config.target_yield == 70
        assert service.material_mappings == {"Birch": "Plywood"}
