"""Optimization service orchestrating estimation and production runs.

Wires the packers, the cut sequencer and the invalidation rules into the
two-stage workflow: a fast estimate for quoting, then an exact production
nesting that is only allowed while the estimate is current.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING

from cutlist.domain.exceptions import EstimationRequiredError, UnplaceablePartError
from cutlist.domain.services import (
    optimization_status,
    take_snapshot,
    validate_production,
)
from cutlist.domain.value_objects import (
    DesignItem,
    EstimationResult,
    NestingLayout,
    OptimizationConfig,
    OptimizationState,
    Part,
    ProductionResult,
    ProjectSnapshot,
)
from cutlist.infrastructure import (
    DEFAULT_QUOTE_BUFFER,
    Clock,
    CutSequencer,
    EstimationPacker,
    GuillotineNester,
    estimated_cut_time,
    total_cutting_length,
    utc_now,
)

if TYPE_CHECKING:
    from cutlist.application.config import ProjectConfiguration

logger = logging.getLogger(__name__)


class OptimizationService:
    """Runs estimation and production for one project configuration.

    Design materials are mapped onto inventory materials before packing,
    case-insensitively.

    Attributes:
        config: Optimization configuration.
        material_mappings: Design material to inventory material mapping.
        clock: Source of result timestamps.
    """

    def __init__(
        self,
        config: OptimizationConfig,
        material_mappings: Mapping[str, str] | None = None,
        clock: Clock = utc_now,
        quote_buffer: float = DEFAULT_QUOTE_BUFFER,
    ) -> None:
        self.config = config
        self.material_mappings = dict(material_mappings or {})
        self.clock = clock
        self._estimator = EstimationPacker(config, quote_buffer=quote_buffer, clock=clock)
        self._nester = GuillotineNester(config)
        self._sequencer = CutSequencer(config.kerf)

    @classmethod
    def from_config(cls, config: "ProjectConfiguration", clock: Clock = utc_now) -> OptimizationService:
        """Create a service from a loaded project file."""
        from cutlist.application.config import config_to_optimization

        return cls(
            config_to_optimization(config),
            material_mappings=config.material_mappings,
            clock=clock,
        )

    def map_parts(self, parts: Iterable[Part]) -> list[Part]:
        """Apply material mappings to parts."""
        if not self.material_mappings:
            return list(parts)
        mappings = {k.casefold(): v for k, v in self.material_mappings.items()}
        return [
            part.with_material(mappings[part.material_id.casefold()])
            if part.material_id.casefold() in mappings
            else part
            for part in parts
        ]

    def snapshot(
        self, parts: Iterable[Part], design_items: Iterable[DesignItem] = ()
    ) -> ProjectSnapshot:
        """Snapshot the current inputs for later invalidation checks."""
        return take_snapshot(
            parts,
            self.material_mappings,
            self.config,
            design_items,
            taken_at=self.clock(),
        )

    def estimate(
        self, parts: Sequence[Part], previous: EstimationResult | None = None
    ) -> EstimationResult:
        """Run a fast estimate.

        Args:
            parts: Parts to estimate.
            previous: Estimate being replaced, its version is incremented.

        Returns:
            A current EstimationResult.
        """
        result = self._estimator.estimate(self.map_parts(parts))
        version = previous.version + 1 if previous is not None else 1
        logger.info(
            "Estimate v%d: %d sheet(s), rough cost %.2f",
            version,
            result.total_sheets_count,
            result.rough_cost,
        )
        return dataclasses.replace(result, version=version)

    def produce(
        self, parts: Sequence[Part], previous: ProductionResult | None = None
    ) -> ProductionResult:
        """Run exact production nesting and sequence the cuts.

        Args:
            parts: Parts to nest.
            previous: Production result being replaced, its version is
                incremented.

        Returns:
            A current ProductionResult.

        Raises:
            UnplaceablePartError: With a ProductionResult for the placed
                parts as ``partial_result``.
            InsufficientStockError: If capped stock cannot supply the parts.
        """
        version = previous.version + 1 if previous is not None else 1
        try:
            layout = self._nester.nest(self.map_parts(parts))
        except UnplaceablePartError as e:
            partial = e.partial_result
            if isinstance(partial, NestingLayout):
                partial = self._build_production(partial, version)
            raise UnplaceablePartError(e.unplaceable, partial_result=partial) from e

        result = self._build_production(layout, version)
        if not result.meets_target_yield:
            logger.warning(
                "Yield %.1f%% is below the %.1f%% target",
                result.optimized_yield,
                result.target_yield,
            )
        logger.info(
            "Production v%d: %d sheet(s), %d cut(s), yield %.1f%%",
            version,
            result.total_sheets,
            len(result.cut_sequence),
            result.optimized_yield,
        )
        return result

    def _build_production(self, layout: NestingLayout, version: int) -> ProductionResult:
        cuts = self._sequencer.sequence_all(layout.sheets)
        return ProductionResult(
            nesting_sheets=layout.sheets,
            cut_sequence=cuts,
            optimized_yield=layout.optimized_yield,
            target_yield=self.config.target_yield,
            total_cutting_length=total_cutting_length(cuts),
            estimated_cut_time=estimated_cut_time(cuts),
            valid_at=self.clock(),
            version=version,
        )

    def run_estimation(
        self, state: OptimizationState | None, parts: Sequence[Part]
    ) -> OptimizationState:
        """Replace the stored estimate with a fresh one.

        The stored production result is kept as it is.
        """
        state = state or OptimizationState()
        estimation = self.estimate(parts, previous=state.estimation)
        return OptimizationState(estimation=estimation, production=state.production)

    def run_production(
        self, state: OptimizationState | None, parts: Sequence[Part]
    ) -> OptimizationState:
        """Replace the stored production result with a fresh one.

        Raises:
            EstimationRequiredError: If there is no current estimate.
        """
        state = state or OptimizationState()
        if not optimization_status(state).can_run_production:
            raise EstimationRequiredError(
                "Production nesting requires a current estimate, run estimation first"
            )
        production = self.produce(parts, previous=state.production)
        return OptimizationState(estimation=state.estimation, production=production)

    def validate(self, result: ProductionResult, parts: Sequence[Part]) -> list[str]:
        """Check a production result against the parts it was computed for."""
        return validate_production(result, self.map_parts(parts), self.config.kerf)
