"""Tests for project configuration schema, loading, adapters and checks."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from pydantic import ValidationError as PydanticValidationError

from cutlist.application.config import (
    ConfigError,
    ProjectConfiguration,
    check_optimization_advisories,
    check_stock_coverage,
    config_to_design_items,
    config_to_optimization,
    config_to_parts,
    load_config,
    load_config_from_dict,
    validate_config,
)
from cutlist.domain.value_objects import GrainDirection


def _project(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "schema_version": "1.1",
        "project_id": "kitchen",
        "parts": [
            {
                "id": "side",
                "length": 720,
                "width": 560,
                "thickness": 18,
                "material_id": "MDF",
                "quantity": 2,
                "grain_direction": "length",
            }
        ],
        "stock_sheets": [
            {
                "id": "mdf-18",
                "material_id": "MDF",
                "length": 2440,
                "width": 1220,
                "thickness": 18,
                "cost_per_sheet": 45,
            }
        ],
    }
    data.update(overrides)
    return data


# =============================================================================
# Schema
# =============================================================================


class TestProjectConfiguration:
    """Tests for the Pydantic project schema."""

    def test_minimal_project(self) -> None:
        config = ProjectConfiguration.model_validate(_project())

        assert config.parts[0].grain_direction == GrainDirection.LENGTH
        assert config.optimization.kerf == 3.2
        assert config.optimization.minimum_usable_cutoff.length == 150
        assert config.stock_sheets[0].quantity is None

    @pytest.mark.parametrize("version", ["1.0", "1.1", "1.7"])
    def test_supported_versions(self, version: str) -> None:
        assert ProjectConfiguration.model_validate(_project(schema_version=version))

    @pytest.mark.parametrize("version", ["2.0", "1", "one"])
    def test_unsupported_versions(self, version: str) -> None:
        with pytest.raises(PydanticValidationError):
            ProjectConfiguration.model_validate(_project(schema_version=version))

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            ProjectConfiguration.model_validate(_project(colour="red"))

    def test_empty_stock_catalog_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            ProjectConfiguration.model_validate(_project(stock_sheets=[]))

    def test_duplicate_part_ids_rejected(self) -> None:
        part = _project()["parts"][0]
        with pytest.raises(PydanticValidationError, match="Duplicate part id 'side'"):
            ProjectConfiguration.model_validate(_project(parts=[part, part]))

    def test_kerf_out_of_range(self) -> None:
        with pytest.raises(PydanticValidationError):
            ProjectConfiguration.model_validate(_project(optimization={"kerf": 25}))


# =============================================================================
# Loader
# =============================================================================


class TestLoadConfig:
    """Tests for load_config() and load_config_from_dict()."""

    def test_load_valid_file(self, tmp_path: Path) -> None:
        path = tmp_path / "project.json"
        path.write_text(json.dumps(_project()))

        config = load_config(path)
        assert config.project_id == "kitchen"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path / "missing.json")

        assert exc_info.value.error_type == "file_not_found"
        assert "Project file not found" in str(exc_info.value)

    def test_invalid_json_reports_position(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text('{\n  "schema_version": "1.0",\n  "parts": [\n}')

        with pytest.raises(ConfigError) as exc_info:
            load_config(path)

        error = exc_info.value
        assert error.error_type == "json_parse"
        assert error.details[0]["line"] == 4

    def test_validation_errors_have_json_paths(self, tmp_path: Path) -> None:
        data = _project()
        data["parts"][0]["length"] = -5
        path = tmp_path / "invalid.json"
        path.write_text(json.dumps(data))

        with pytest.raises(ConfigError) as exc_info:
            load_config(path)

        error = exc_info.value
        assert error.error_type == "validation"
        assert error.details[0]["path"] == "parts[0].length"
        assert error.details[0]["value"] == -5
        assert str(error).startswith("Configuration validation failed:")

    def test_json_root_must_be_object(self, tmp_path: Path) -> None:
        path = tmp_path / "list.json"
        path.write_text("[]")

        with pytest.raises(ConfigError) as exc_info:
            load_config(path)

        assert exc_info.value.error_type == "validation"
        assert "must hold a JSON object, got list" in str(exc_info.value)

    def test_load_from_dict(self) -> None:
        assert load_config_from_dict(_project()).parts[0].id == "side"

        with pytest.raises(ConfigError) as exc_info:
            load_config_from_dict({"schema_version": "1.0"})
        assert exc_info.value.details[0]["path"] == "stock_sheets"


# =============================================================================
# Adapters
# =============================================================================


class TestAdapters:
    """Tests for configuration to domain adapters."""

    def test_parts(self) -> None:
        parts = config_to_parts(ProjectConfiguration.model_validate(_project()))

        assert len(parts) == 1
        assert parts[0].quantity == 2
        assert parts[0].grain_direction == GrainDirection.LENGTH

    def test_optimization(self) -> None:
        data = _project(
            optimization={
                "kerf": 4,
                "allow_rotation": False,
                "edge_banding": {"material_mappings": {"Oak": "Oak Veneer"}},
            }
        )
        optimization = config_to_optimization(ProjectConfiguration.model_validate(data))

        assert optimization.kerf == 4
        assert not optimization.allow_rotation
        assert optimization.stock_sheets[0].id == "mdf-18"
        assert optimization.stock_sheets[0].cost_per_sheet == 45
        assert optimization.edge_banding.material_mappings == (("Oak", "Oak Veneer"),)

    def test_design_items(self) -> None:
        data = _project(design_items=[{"id": "base-1", "name": "Sink base", "revision": 3}])
        items = config_to_design_items(ProjectConfiguration.model_validate(data))

        assert [(i.id, i.revision) for i in items] == [("base-1", 3)]


# =============================================================================
# Stock and advisory checks
# =============================================================================


class TestValidateConfig:
    """Tests for check_stock_coverage(), check_optimization_advisories() and validate_config()."""

    def test_valid_project(self) -> None:
        result = validate_config(ProjectConfiguration.model_validate(_project()))

        assert result.is_valid
        assert not result.has_warnings
        assert result.exit_code == 0

    def test_part_without_stock(self) -> None:
        data = _project()
        data["parts"][0]["material_id"] = "Walnut"
        result = check_stock_coverage(ProjectConfiguration.model_validate(data))

        assert result.exit_code == 1
        assert result.errors[0].path == "parts[0].material_id"
        assert "No stock sheet for Walnut at 18mm" in result.errors[0].message
        # The MDF sheet is now unused
        assert result.warnings[0].path == "stock_sheets[0]"

    def test_material_mapping_applied(self) -> None:
        data = _project(material_mappings={"oak": "MDF"})
        data["parts"][0]["material_id"] = "Oak"
        result = check_stock_coverage(ProjectConfiguration.model_validate(data))

        assert result.is_valid

    def test_part_larger_than_every_sheet(self) -> None:
        data = _project()
        data["parts"][0]["length"] = 3000
        result = check_stock_coverage(ProjectConfiguration.model_validate(data))

        assert result.errors[0].path == "parts[0]"
        assert "larger than every MDF sheet" in result.errors[0].message

    def test_rotation_needed_to_fit(self) -> None:
        data = _project()
        data["parts"][0].update(length=1000, width=2000)
        assert check_stock_coverage(ProjectConfiguration.model_validate(data)).is_valid

        data["optimization"] = {"allow_rotation": False}
        assert not check_stock_coverage(ProjectConfiguration.model_validate(data)).is_valid

    def test_empty_stock_warning(self) -> None:
        data = _project()
        data["stock_sheets"][0]["quantity"] = 0
        result = check_stock_coverage(ProjectConfiguration.model_validate(data))

        assert result.exit_code == 2
        assert result.warnings[0].path == "stock_sheets[0].quantity"

    def test_advisories(self) -> None:
        data = _project(
            optimization={"kerf": 0, "allow_rotation": False},
            material_mappings={"Cherry": "MDF"},
            design_items=[{"id": "base-1"}],
        )
        data["parts"][0].update(grain_direction="width", design_item_id="base-9")
        result = check_optimization_advisories(ProjectConfiguration.model_validate(data))

        paths = [w.path for w in result.warnings]
        assert paths == [
            "parts[0].grain_direction",
            "optimization.kerf",
            "material_mappings.Cherry",
            "parts[0].design_item_id",
        ]
        assert result.is_valid

    def test_unknown_design_item_ignored_without_design_items(self) -> None:
        data = _project()
        data["parts"][0]["design_item_id"] = "base-9"
        result = check_optimization_advisories(ProjectConfiguration.model_validate(data))

        assert not result.has_warnings

    def test_merge_chains(self) -> None:
        data = _project()
        data["parts"][0]["material_id"] = "Walnut"
        data["optimization"] = {"kerf": 0}
        result = validate_config(ProjectConfiguration.model_validate(data))

        assert len(result.errors) == 1
        assert len(result.warnings) == 2
        assert result.exit_code == 1
