"""Validation structures and stock advisory checks.

Pydantic validates the structure of a project file. The checks here look
at how parts and the stock catalog relate: parts with no matching stock or
too large for every matching sheet are errors, stock that no part uses and
mappings that map nothing are warnings.
"""

from dataclasses import dataclass, field
from typing import Any

from cutlist.application.config.schema import (
    PartConfig,
    ProjectConfiguration,
    StockSheetConfig,
)
from cutlist.domain.value_objects import GrainDirection


@dataclass
class ValidationError:
    """Represents a blocking validation error.

    Attributes:
        path: JSON path to the invalid field (e.g., "parts[0].material_id")
        message: Human-readable description of the error
        value: The invalid value that caused the error
    """

    path: str
    message: str
    value: Any = None


@dataclass
class ValidationWarning:
    """Represents a non-blocking validation warning.

    Attributes:
        path: JSON path to the concerning field
        message: Human-readable description of the concern
        suggestion: Optional suggested remediation
    """

    path: str
    message: str
    suggestion: str | None = None


@dataclass
class ValidationResult:
    """Container for validation errors and warnings.

    Attributes:
        errors: List of blocking validation errors
        warnings: List of non-blocking validation warnings
    """

    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationWarning] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """Check if the configuration has no blocking errors."""
        return len(self.errors) == 0

    @property
    def has_warnings(self) -> bool:
        """Check if the configuration has any warnings."""
        return len(self.warnings) > 0

    @property
    def exit_code(self) -> int:
        """Get the CLI exit code based on validation status.

        Returns:
            0 if valid with no warnings
            1 if there are errors
            2 if valid but has warnings
        """
        if self.errors:
            return 1
        if self.warnings:
            return 2
        return 0

    def add_error(
        self, path: str, message: str, value: Any = None
    ) -> "ValidationResult":
        """Add a validation error and return self for chaining."""
        self.errors.append(ValidationError(path=path, message=message, value=value))
        return self

    def add_warning(
        self, path: str, message: str, suggestion: str | None = None
    ) -> "ValidationResult":
        """Add a validation warning and return self for chaining."""
        self.warnings.append(
            ValidationWarning(path=path, message=message, suggestion=suggestion)
        )
        return self

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        """Merge another validation result into this one."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        return self


def _mapped_material(config: ProjectConfiguration, material_id: str) -> str:
    mappings = {k.casefold(): v for k, v in config.material_mappings.items()}
    return mappings.get(material_id.casefold(), material_id)


def _sheet_matches(sheet: StockSheetConfig, material_id: str, thickness: float) -> bool:
    return (
        sheet.material_id.casefold() == material_id.casefold()
        and abs(sheet.thickness - thickness) < 1e-6
    )


def _fits_sheet(part: PartConfig, sheet: StockSheetConfig, allow_rotation: bool) -> bool:
    if part.length <= sheet.length and part.width <= sheet.width:
        return True
    if not allow_rotation:
        return False
    return part.width <= sheet.length and part.length <= sheet.width


def check_stock_coverage(config: ProjectConfiguration) -> ValidationResult:
    """Check that every part has stock it can be cut from.

    Args:
        config: A validated ProjectConfiguration

    Returns:
        ValidationResult with an error per uncovered part and a warning per
        unused stock sheet
    """
    result = ValidationResult()
    used_sheets: set[str] = set()
    allow_rotation = config.optimization.allow_rotation

    for i, part in enumerate(config.parts):
        material_id = _mapped_material(config, part.material_id)
        matching = [
            sheet
            for sheet in config.stock_sheets
            if _sheet_matches(sheet, material_id, part.thickness)
        ]
        if not matching:
            result.add_error(
                f"parts[{i}].material_id",
                f"No stock sheet for {material_id} at {part.thickness:g}mm",
                part.material_id,
            )
            continue

        used_sheets.update(sheet.id for sheet in matching)
        if not any(_fits_sheet(part, sheet, allow_rotation) for sheet in matching):
            result.add_error(
                f"parts[{i}]",
                f"Part {part.id} ({part.length:g}x{part.width:g}) is larger than "
                f"every {material_id} sheet",
                f"{part.length:g}x{part.width:g}",
            )

    for i, sheet in enumerate(config.stock_sheets):
        if sheet.id not in used_sheets:
            result.add_warning(
                f"stock_sheets[{i}]",
                f"Stock sheet {sheet.id} is not used by any part",
                "Remove it or check part materials and thicknesses",
            )
        elif sheet.quantity == 0:
            result.add_warning(
                f"stock_sheets[{i}].quantity",
                f"Stock sheet {sheet.id} has no sheets in stock",
            )

    return result


def check_optimization_advisories(config: ProjectConfiguration) -> ValidationResult:
    """Check settings that are valid but likely unintended."""
    result = ValidationResult()
    settings = config.optimization

    if settings.grain_matching and not settings.allow_rotation:
        for i, part in enumerate(config.parts):
            if part.grain_direction == GrainDirection.WIDTH:
                result.add_warning(
                    f"parts[{i}].grain_direction",
                    f"Part {part.id} needs rotation to align its grain, "
                    "but rotation is disabled",
                    "Enable allow_rotation or change the grain direction",
                )

    if settings.kerf == 0:
        result.add_warning(
            "optimization.kerf",
            "Kerf is 0, layouts will not leave room for the saw blade",
        )

    part_materials = {part.material_id.casefold() for part in config.parts}
    for source in config.material_mappings:
        if source.casefold() not in part_materials:
            result.add_warning(
                f"material_mappings.{source}",
                f"Material mapping for {source} matches no part",
            )

    design_item_ids = {item.id for item in config.design_items}
    if design_item_ids:
        for i, part in enumerate(config.parts):
            if part.design_item_id and part.design_item_id not in design_item_ids:
                result.add_warning(
                    f"parts[{i}].design_item_id",
                    f"Part {part.id} references unknown design item {part.design_item_id}",
                )

    return result


def validate_config(config: ProjectConfiguration) -> ValidationResult:
    """Perform full validation of a project configuration.

    Args:
        config: A ProjectConfiguration instance (already validated by Pydantic)

    Returns:
        ValidationResult containing any errors or warnings
    """
    result = ValidationResult()
    result.merge(check_stock_coverage(config))
    result.merge(check_optimization_advisories(config))
    return result
