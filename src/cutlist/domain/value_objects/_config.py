"""Optimization configuration value objects."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..exceptions import InvalidConfigError
from ._parts import StockSheet


@dataclass(frozen=True)
class MinimumUsableCutoff:
    """Smallest waste region worth keeping as an offcut, in mm."""

    length: float = 150.0
    width: float = 75.0

    def __post_init__(self) -> None:
        if self.length < 0 or self.width < 0:
            raise InvalidConfigError("Minimum usable cutoff must be non-negative")


@dataclass(frozen=True)
class EdgeBandConfig:
    """Edge banding settings carried with the optimization config."""

    default_material: str = "PVC"
    default_thickness: float = 0.5
    default_width: float = 22.0
    apply_to_all_exposed: bool = True
    material_mappings: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class OptimizationConfig:
    """Configuration for estimation and production nesting.

    Supplied by the caller and never mutated by the engine.

    Attributes:
        kerf: Saw blade kerf in mm.
        stock_sheets: Available stock sheet catalog.
        grain_matching: Reject placements that break grain alignment.
        edge_banding: Edge banding settings.
        target_yield: Target sheet utilization percentage.
        allow_rotation: Whether parts may be rotated 90 degrees.
        prioritize_grain: Prefer grain-aligned placements, falling back to
            misaligned ones instead of failing.
        minimum_usable_cutoff: Smallest reusable waste region.
    """

    kerf: float = 3.2
    stock_sheets: tuple[StockSheet, ...] = ()
    grain_matching: bool = True
    edge_banding: EdgeBandConfig = field(default_factory=EdgeBandConfig)
    target_yield: float = 85.0
    allow_rotation: bool = True
    prioritize_grain: bool = True
    minimum_usable_cutoff: MinimumUsableCutoff = field(default_factory=MinimumUsableCutoff)

    def __post_init__(self) -> None:
        if self.kerf < 0:
            raise InvalidConfigError("Kerf must be non-negative")
        if not self.stock_sheets:
            raise InvalidConfigError("Stock sheet catalog must not be empty")
        if not 0 <= self.target_yield <= 100:
            raise InvalidConfigError("Target yield must be between 0 and 100")
        ids = [sheet.id for sheet in self.stock_sheets]
        if len(ids) != len(set(ids)):
            raise InvalidConfigError("Stock sheet ids must be unique")

    def stock_for(self, material_id: str, thickness: float) -> list[StockSheet]:
        """Stock sheets compatible with a (material, thickness) group.

        Ordered cheapest first, then larger area, then id.
        """
        matching = [s for s in self.stock_sheets if s.matches(material_id, thickness)]
        return sorted(matching, key=lambda s: (s.cost_per_sheet, -s.area, s.id))
