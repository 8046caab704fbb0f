"""Readiness (RAG) projection of optimization results."""

from __future__ import annotations

from ..value_objects import (
    EstimationResult,
    KatanaExport,
    OptimizationRAG,
    ProductionResult,
    RAGStatus,
)

__all__ = ["project", "project_state"]


def _stage_status(
    result: EstimationResult | ProductionResult | KatanaExport | None,
    upstream_present: bool,
) -> RAGStatus:
    if result is None:
        return RAGStatus.RED if upstream_present else RAGStatus.GREY
    if result.invalidated_at is not None:
        return RAGStatus.AMBER
    return RAGStatus.GREEN


def _overall(estimation: RAGStatus, production: RAGStatus, katana_bom: RAGStatus) -> RAGStatus:
    statuses = (estimation, production, katana_bom)
    if RAGStatus.RED in statuses:
        return RAGStatus.RED
    if RAGStatus.AMBER in statuses:
        return RAGStatus.AMBER
    if estimation == RAGStatus.GREEN and production == RAGStatus.GREEN:
        return RAGStatus.GREEN
    return RAGStatus.GREY


def project(
    estimation: EstimationResult | None,
    production: ProductionResult | None,
    katana_export: KatanaExport | None = None,
) -> OptimizationRAG:
    """Map result presence and staleness to red/amber/green/grey.

    A missing estimation is red and a missing production is red once an
    estimation exists, grey before that. A missing BOM export is always
    grey and never affects the overall status, so a current estimation and
    production are enough for an overall green. A present but invalidated
    result is amber and a current one green.

    Args:
        estimation: Stored estimation result.
        production: Stored production result.
        katana_export: Exported BOM record.

    Returns:
        OptimizationRAG with per-stage and overall status.
    """
    estimation_status = _stage_status(estimation, upstream_present=True)
    production_status = _stage_status(production, upstream_present=estimation is not None)
    bom_status = _stage_status(katana_export, upstream_present=False)
    return OptimizationRAG(
        estimation=estimation_status,
        production=production_status,
        katana_bom=bom_status,
        overall=_overall(estimation_status, production_status, bom_status),
    )


def project_state(
    estimation: EstimationResult | None,
    production: ProductionResult | None,
) -> OptimizationRAG:
    """Project readiness deriving the BOM export from the production result."""
    return project(estimation, production, KatanaExport.from_production(production))
