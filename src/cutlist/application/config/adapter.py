"""Adapters converting ProjectConfiguration into domain objects.

The engine works on frozen domain dataclasses; these functions map the
Pydantic configuration onto them. Domain validation runs on construction,
so a configuration that passes schema validation can still raise
InvalidConfigError here.
"""

from cutlist.application.config.schema import (
    OptimizationSettingsConfig,
    ProjectConfiguration,
)
from cutlist.domain.value_objects import (
    DesignItem,
    EdgeBandConfig,
    MinimumUsableCutoff,
    OptimizationConfig,
    Part,
    StockSheet,
)


def config_to_parts(config: ProjectConfiguration) -> list[Part]:
    """Convert configured parts to domain parts.

    Material mappings are not applied here; see
    OptimizationService.map_parts.
    """
    return [
        Part(
            id=part.id,
            name=part.name,
            length=part.length,
            width=part.width,
            thickness=part.thickness,
            material_id=part.material_id,
            quantity=part.quantity,
            grain_direction=part.grain_direction,
            design_item_id=part.design_item_id,
        )
        for part in config.parts
    ]


def config_to_stock_sheets(config: ProjectConfiguration) -> tuple[StockSheet, ...]:
    """Convert the configured stock catalog to domain stock sheets."""
    return tuple(
        StockSheet(
            id=sheet.id,
            material_id=sheet.material_id,
            length=sheet.length,
            width=sheet.width,
            thickness=sheet.thickness,
            quantity=sheet.quantity,
            cost_per_sheet=sheet.cost_per_sheet,
        )
        for sheet in config.stock_sheets
    )


def _edge_banding(settings: OptimizationSettingsConfig) -> EdgeBandConfig:
    banding = settings.edge_banding
    return EdgeBandConfig(
        default_material=banding.default_material,
        default_thickness=banding.default_thickness,
        default_width=banding.default_width,
        apply_to_all_exposed=banding.apply_to_all_exposed,
        material_mappings=tuple(sorted(banding.material_mappings.items())),
    )


def config_to_optimization(config: ProjectConfiguration) -> OptimizationConfig:
    """Convert configuration to an OptimizationConfig.

    Raises:
        InvalidConfigError: If the settings fail domain validation.
    """
    settings = config.optimization
    return OptimizationConfig(
        kerf=settings.kerf,
        stock_sheets=config_to_stock_sheets(config),
        grain_matching=settings.grain_matching,
        edge_banding=_edge_banding(settings),
        target_yield=settings.target_yield,
        allow_rotation=settings.allow_rotation,
        prioritize_grain=settings.prioritize_grain,
        minimum_usable_cutoff=MinimumUsableCutoff(
            length=settings.minimum_usable_cutoff.length,
            width=settings.minimum_usable_cutoff.width,
        ),
    )


def config_to_design_items(config: ProjectConfiguration) -> list[DesignItem]:
    """Convert configured design items to domain design items."""
    return [
        DesignItem(
            id=item.id,
            name=item.name,
            width=item.width,
            height=item.height,
            depth=item.depth,
            revision=item.revision,
        )
        for item in config.design_items
    ]
