"""Output formatters and exporters for optimization results."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from cutlist.domain.value_objects import (
    CutOperation,
    EstimationResult,
    InvalidationReason,
    InvalidationTrigger,
    NestingSheet,
    OptimizationRAG,
    ProductionResult,
    RAGStatus,
)


class InvalidationReasonFormatter:
    """Formats structured invalidation reasons for display."""

    def format(self, reason: InvalidationReason) -> str:
        """Format a single reason as one sentence."""
        trigger = reason.trigger
        if trigger == InvalidationTrigger.PART_ADDED:
            return f"Parts added ({reason.previous_count} -> {reason.current_count} pieces)"
        if trigger == InvalidationTrigger.PART_REMOVED:
            return f"Parts removed ({reason.previous_count} -> {reason.current_count} pieces)"
        if trigger == InvalidationTrigger.PART_DIMENSIONS_CHANGED:
            return "Part dimensions or materials changed"
        if trigger == InvalidationTrigger.PALETTE_MAPPING_CHANGED:
            return "Material mapping changed"
        if trigger == InvalidationTrigger.STOCK_CONFIG_CHANGED:
            return "Stock sheets or optimization settings changed"
        if trigger == InvalidationTrigger.DESIGN_ITEM_ADDED:
            return f"Design items added: {', '.join(reason.item_ids)}"
        if trigger == InvalidationTrigger.DESIGN_ITEM_REMOVED:
            return f"Design items removed: {', '.join(reason.item_ids)}"
        if trigger == InvalidationTrigger.DESIGN_ITEM_MODIFIED:
            return "Design items modified"
        return "Exported BOM is outdated and must be re-exported"

    def format_all(self, reasons: tuple[InvalidationReason, ...] | list[InvalidationReason]) -> list[str]:
        """Format every reason in order."""
        return [self.format(reason) for reason in reasons]


class RAGMessageFormatter:
    """Per-stage readiness messages for the UI."""

    _MESSAGES: dict[str, dict[RAGStatus, str]] = {
        "estimation": {
            RAGStatus.RED: "Estimation not run",
            RAGStatus.AMBER: "Estimation is outdated, re-run required",
            RAGStatus.GREEN: "Estimation is current",
            RAGStatus.GREY: "Estimation unavailable",
        },
        "production": {
            RAGStatus.RED: "Production nesting not run",
            RAGStatus.AMBER: "Production nesting is outdated, re-run required",
            RAGStatus.GREEN: "Production nesting is current",
            RAGStatus.GREY: "Waiting for estimation",
        },
        "katana_bom": {
            RAGStatus.RED: "BOM export missing",
            RAGStatus.AMBER: "Exported BOM is outdated",
            RAGStatus.GREEN: "BOM exported",
            RAGStatus.GREY: "BOM not exported",
        },
    }

    def format(self, rag: OptimizationRAG) -> dict[str, str]:
        """Messages keyed by stage name."""
        return {
            "estimation": self._MESSAGES["estimation"][rag.estimation],
            "production": self._MESSAGES["production"][rag.production],
            "katana_bom": self._MESSAGES["katana_bom"][rag.katana_bom],
        }


class EstimationFormatter:
    """Formats estimation results as a report."""

    def format(self, result: EstimationResult) -> str:
        """Format sheet summaries and totals."""
        lines = [
            "ESTIMATE",
            "=" * 78,
            f"{'Material':<16} {'Thick':<7} {'Stock':<14} {'Sheets':<7} "
            f"{'Parts':<6} {'Util %':<8} {'Cost'}",
            "-" * 78,
        ]
        for summary in result.sheet_summary:
            lines.append(
                f"{summary.material_id:<16} {summary.thickness:<7g} "
                f"{', '.join(summary.stock_sheet_ids):<14} "
                f"{summary.sheets_required:<7} {summary.parts_count:<6} "
                f"{summary.utilization_percent:<8.1f} {summary.estimated_cost:.2f}"
            )
        lines.append("-" * 78)
        lines.append(f"Total sheets:  {result.total_sheets_count}")
        lines.append(f"Total parts:   {result.total_parts_count}")
        lines.append(f"Waste:         {result.waste_estimate:.1f}%")
        lines.append(f"Material cost: {result.material_cost:.2f}")
        lines.append(f"Rough cost:    {result.rough_cost:.2f}")
        return "\n".join(lines)


class NestingFormatter:
    """Formats production nestings and cut sequences."""

    def format(self, result: ProductionResult, include_cuts: bool = False) -> str:
        """Format sheets, placements and optionally the cut sequence."""
        if not result.nesting_sheets:
            return "No sheets in nesting."

        lines = ["PRODUCTION NESTING", "=" * 70]
        for sheet in result.nesting_sheets:
            lines.extend(self._format_sheet(sheet))
            if include_cuts:
                cuts = [c for c in result.cut_sequence if c.sheet_id == sheet.id]
                lines.extend(self._format_cuts(cuts))
            lines.append("")

        lines.append("-" * 70)
        target = "meets" if result.meets_target_yield else "below"
        lines.append(
            f"Yield: {result.optimized_yield:.1f}% ({target} target {result.target_yield:.1f}%)"
        )
        lines.append(f"Sheets: {result.total_sheets}  Parts: {result.total_placements}")
        lines.append(
            f"Cutting length: {result.total_cutting_length:.0f}mm  "
            f"Estimated cut time: {result.estimated_cut_time} min"
        )
        return "\n".join(lines)

    def _format_sheet(self, sheet: NestingSheet) -> list[str]:
        reusable = sum(1 for w in sheet.waste_regions if w.reusable)
        lines = [
            f"{sheet.id} ({sheet.stock_sheet_id}, {sheet.material_id} {sheet.thickness:g}mm, "
            f"{sheet.length:g}x{sheet.width:g}) {sheet.utilization_percent:.1f}% used, "
            f"{reusable} offcut(s)",
            f"  {'Part':<20} {'X':>8} {'Y':>8} {'Length':>8} {'Width':>8}  Notes",
        ]
        for placement in sheet.placements:
            notes = []
            if placement.rotated:
                notes.append("rotated")
            if not placement.grain_aligned:
                notes.append("against grain")
            lines.append(
                f"  {placement.request_id:<20} {placement.x:>8.1f} {placement.y:>8.1f} "
                f"{placement.length:>8.1f} {placement.width:>8.1f}  {', '.join(notes)}"
            )
        return lines

    def _format_cuts(self, cuts: list[CutOperation]) -> list[str]:
        lines = ["  Cuts:"]
        for cut in cuts:
            parts = f" -> {', '.join(cut.resulting_request_ids)}" if cut.resulting_request_ids else ""
            lines.append(
                f"  {cut.sequence:>4}. {cut.type.value:<9} ({cut.start_x:.1f}, {cut.start_y:.1f})"
                f" to ({cut.end_x:.1f}, {cut.end_y:.1f}){parts}"
            )
        return lines


def _timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class JsonExporter:
    """Exports optimization results as JSON."""

    def export_estimation(self, result: EstimationResult) -> str:
        """Export an estimation result as a JSON string."""
        data = {
            "version": result.version,
            "valid_at": _timestamp(result.valid_at),
            "invalidated_at": _timestamp(result.invalidated_at),
            "invalidation_reasons": list(result.invalidation_reasons),
            "total_sheets_count": result.total_sheets_count,
            "total_parts_count": result.total_parts_count,
            "waste_estimate": result.waste_estimate,
            "material_cost": result.material_cost,
            "rough_cost": result.rough_cost,
            "sheet_summary": [
                {
                    "material_id": s.material_id,
                    "thickness": s.thickness,
                    "stock_sheet_ids": list(s.stock_sheet_ids),
                    "sheets_required": s.sheets_required,
                    "sheet_area": s.sheet_area,
                    "parts_count": s.parts_count,
                    "utilization_percent": s.utilization_percent,
                    "waste_area": s.waste_area,
                    "estimated_cost": s.estimated_cost,
                }
                for s in result.sheet_summary
            ],
        }
        return json.dumps(data, indent=2)

    def export_production(self, result: ProductionResult) -> str:
        """Export a production result as a JSON string."""
        data = {
            "version": result.version,
            "valid_at": _timestamp(result.valid_at),
            "invalidated_at": _timestamp(result.invalidated_at),
            "invalidation_reasons": list(result.invalidation_reasons),
            "optimized_yield": result.optimized_yield,
            "target_yield": result.target_yield,
            "meets_target_yield": result.meets_target_yield,
            "total_cutting_length": result.total_cutting_length,
            "estimated_cut_time": result.estimated_cut_time,
            "nesting_sheets": [self._format_sheet(sheet) for sheet in result.nesting_sheets],
            "cut_sequence": [self._format_cut(cut) for cut in result.cut_sequence],
        }
        return json.dumps(data, indent=2)

    def _format_sheet(self, sheet: NestingSheet) -> dict[str, Any]:
        return {
            "id": sheet.id,
            "sheet_index": sheet.sheet_index,
            "stock_sheet_id": sheet.stock_sheet_id,
            "material_id": sheet.material_id,
            "thickness": sheet.thickness,
            "length": sheet.length,
            "width": sheet.width,
            "utilization_percent": sheet.utilization_percent,
            "placements": [
                {
                    "request_id": p.request_id,
                    "part_id": p.part_id,
                    "design_item_id": p.design_item_id,
                    "x": p.x,
                    "y": p.y,
                    "length": p.length,
                    "width": p.width,
                    "rotated": p.rotated,
                    "grain_aligned": p.grain_aligned,
                }
                for p in sheet.placements
            ],
            "waste_regions": [
                {
                    "x": w.x,
                    "y": w.y,
                    "length": w.length,
                    "width": w.width,
                    "area": w.area,
                    "reusable": w.reusable,
                }
                for w in sheet.waste_regions
            ],
        }

    def _format_cut(self, cut: CutOperation) -> dict[str, Any]:
        return {
            "id": cut.id,
            "sheet_id": cut.sheet_id,
            "sequence": cut.sequence,
            "type": cut.type.value,
            "start": {"x": cut.start_x, "y": cut.start_y},
            "end": {"x": cut.end_x, "y": cut.end_y},
            "length": cut.length,
            "resulting_part_ids": list(cut.resulting_part_ids),
            "resulting_request_ids": list(cut.resulting_request_ids),
        }
