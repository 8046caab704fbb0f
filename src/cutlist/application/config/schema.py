"""Pydantic models for cutlist project configuration files.

A project file describes the parts to cut, the stock sheet catalog, the
optimization settings and the design items the parts belong to. All models
forbid unknown keys so typos surface as validation errors.
"""

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from cutlist.domain.value_objects import GrainDirection

# Supported schema versions for project files
# Version 1.0: Parts, stock sheets and optimization settings
# Version 1.1: Added design items and material mappings
SUPPORTED_VERSIONS: frozenset[str] = frozenset({"1.0", "1.1"})

# Alias of the domain enum for schema consumers
GrainDirectionConfig = GrainDirection


class PartConfig(BaseModel):
    """A required rectangular part.

    Attributes:
        id: Unique part identifier.
        name: Display name.
        length: Part length in mm.
        width: Part width in mm.
        thickness: Material thickness in mm.
        material_id: Material the part is cut from.
        quantity: Number of identical pieces.
        grain_direction: Grain constraint.
        design_item_id: Design item the part belongs to.
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1, description="Unique part identifier")
    name: str = Field(default="", description="Display name")
    length: float = Field(..., gt=0, description="Part length in mm")
    width: float = Field(..., gt=0, description="Part width in mm")
    thickness: float = Field(..., gt=0, description="Material thickness in mm")
    material_id: str = Field(..., min_length=1, description="Material identifier")
    quantity: int = Field(default=1, ge=1, description="Number of pieces")
    grain_direction: GrainDirectionConfig = Field(
        default=GrainDirectionConfig.NONE, description="Grain constraint"
    )
    design_item_id: str = Field(default="", description="Owning design item")


class StockSheetConfig(BaseModel):
    """A purchasable stock sheet type.

    Attributes:
        id: Stock sheet identifier.
        material_id: Material of the sheet.
        length: Sheet length in mm, along the grain.
        width: Sheet width in mm.
        thickness: Sheet thickness in mm.
        quantity: Sheets in stock, omitted for unlimited supply.
        cost_per_sheet: Cost of one sheet.
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1, description="Stock sheet identifier")
    material_id: str = Field(..., min_length=1, description="Material identifier")
    length: float = Field(..., gt=0, description="Sheet length in mm")
    width: float = Field(..., gt=0, description="Sheet width in mm")
    thickness: float = Field(..., gt=0, description="Sheet thickness in mm")
    quantity: int | None = Field(
        default=None, ge=0, description="Sheets available, unlimited when omitted"
    )
    cost_per_sheet: float = Field(default=0.0, ge=0, description="Cost per sheet")


class MinimumUsableCutoffConfig(BaseModel):
    """Smallest waste region kept as an offcut."""

    model_config = ConfigDict(extra="forbid")

    length: float = Field(default=150.0, ge=0, description="Minimum length in mm")
    width: float = Field(default=75.0, ge=0, description="Minimum width in mm")


class EdgeBandingConfigSchema(BaseModel):
    """Edge banding defaults."""

    model_config = ConfigDict(extra="forbid")

    default_material: str = Field(default="PVC", description="Default banding material")
    default_thickness: float = Field(default=0.5, gt=0, description="Banding thickness in mm")
    default_width: float = Field(default=22.0, gt=0, description="Banding width in mm")
    apply_to_all_exposed: bool = Field(
        default=True, description="Band every exposed edge"
    )
    material_mappings: dict[str, str] = Field(
        default_factory=dict, description="Panel material to banding material"
    )


class OptimizationSettingsConfig(BaseModel):
    """Optimization settings.

    Attributes:
        kerf: Saw blade kerf in mm.
        grain_matching: Reject placements that break grain alignment.
        target_yield: Target sheet utilization percentage.
        allow_rotation: Allow 90 degree rotation.
        prioritize_grain: Prefer grain-aligned placements with fallback.
        minimum_usable_cutoff: Smallest reusable offcut.
        edge_banding: Edge banding defaults.
    """

    model_config = ConfigDict(extra="forbid")

    kerf: float = Field(default=3.2, ge=0, le=20, description="Saw kerf in mm")
    grain_matching: bool = Field(default=True, description="Enforce grain alignment")
    target_yield: float = Field(
        default=85.0, ge=0, le=100, description="Target yield percentage"
    )
    allow_rotation: bool = Field(default=True, description="Allow part rotation")
    prioritize_grain: bool = Field(
        default=True, description="Prefer grain alignment, fall back when needed"
    )
    minimum_usable_cutoff: MinimumUsableCutoffConfig = Field(
        default_factory=MinimumUsableCutoffConfig,
        description="Minimum reusable offcut size",
    )
    edge_banding: EdgeBandingConfigSchema = Field(
        default_factory=EdgeBandingConfigSchema,
        description="Edge banding defaults",
    )


class DesignItemConfig(BaseModel):
    """A design item linked to the project."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1, description="Design item identifier")
    name: str = Field(default="", description="Display name")
    width: float = Field(default=0.0, ge=0, description="Overall width in mm")
    height: float = Field(default=0.0, ge=0, description="Overall height in mm")
    depth: float = Field(default=0.0, ge=0, description="Overall depth in mm")
    revision: int = Field(default=0, ge=0, description="Design revision")


class ProjectConfiguration(BaseModel):
    """Root configuration model for a cutlist project.

    Example:
        >>> config = ProjectConfiguration(
        ...     schema_version="1.0",
        ...     stock_sheets=[StockSheetConfig(
        ...         id="mdf-18", material_id="MDF", length=2440, width=1220, thickness=18
        ...     )],
        ... )
    """

    model_config = ConfigDict(extra="forbid")

    schema_version: str = Field(..., pattern=r"^\d+\.\d+$")
    project_id: str = Field(default="", description="Project identifier")
    parts: list[PartConfig] = Field(default_factory=list, description="Required parts")
    stock_sheets: list[StockSheetConfig] = Field(
        ..., min_length=1, description="Stock sheet catalog"
    )
    optimization: OptimizationSettingsConfig = Field(
        default_factory=OptimizationSettingsConfig,
        description="Optimization settings",
    )
    material_mappings: dict[str, str] = Field(
        default_factory=dict, description="Design material to inventory material"
    )
    design_items: list[DesignItemConfig] = Field(
        default_factory=list, description="Linked design items"
    )

    @field_validator("schema_version")
    @classmethod
    def validate_supported_version(cls, v: str) -> str:
        """Validate that schema version is supported.

        Newer minor versions within a supported major version are accepted.
        """
        if v in SUPPORTED_VERSIONS:
            return v

        major_version = int(v.split(".")[0])
        supported_majors = {int(sv.split(".")[0]) for sv in SUPPORTED_VERSIONS}
        if major_version in supported_majors:
            return v

        raise ValueError(
            f"Unsupported schema version '{v}'. "
            f"Supported versions: {sorted(SUPPORTED_VERSIONS)}"
        )

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "ProjectConfiguration":
        """Part, stock sheet and design item ids must be unique."""
        for label, items in (
            ("part", self.parts),
            ("stock sheet", self.stock_sheets),
            ("design item", self.design_items),
        ):
            seen: set[str] = set()
            for item in items:
                if item.id in seen:
                    raise ValueError(f"Duplicate {label} id '{item.id}'")
                seen.add(item.id)
        return self
