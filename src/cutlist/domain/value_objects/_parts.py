"""Part and stock sheet value objects."""

from __future__ import annotations

from dataclasses import dataclass, replace

from ._geometry import GrainDirection


@dataclass(frozen=True)
class Part:
    """A rectangular panel to be cut from sheet material.

    Attributes:
        id: Unique part identifier.
        length: Part length in mm.
        width: Part width in mm.
        thickness: Material thickness in mm.
        material_id: Material the part is cut from.
        quantity: Number of identical instances required.
        grain_direction: Grain constraint of the part.
        design_item_id: Design item (cabinet, unit) the part belongs to.
        name: Display name.
    """

    id: str
    length: float
    width: float
    thickness: float
    material_id: str
    quantity: int = 1
    grain_direction: GrainDirection = GrainDirection.NONE
    design_item_id: str = ""
    name: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Part id must not be empty")
        if self.length <= 0 or self.width <= 0:
            raise ValueError("Part dimensions must be positive")
        if self.thickness <= 0:
            raise ValueError("Part thickness must be positive")
        if self.quantity < 1:
            raise ValueError("Quantity must be at least 1")

    @property
    def area(self) -> float:
        """Area of a single instance in mm²."""
        return self.length * self.width

    @property
    def total_area(self) -> float:
        """Area of all instances in mm²."""
        return self.area * self.quantity

    @property
    def longest_edge(self) -> float:
        """Longest edge of the part in mm."""
        return max(self.length, self.width)

    def with_material(self, material_id: str) -> Part:
        """Return a copy of this part mapped onto another material."""
        return replace(self, material_id=material_id)


@dataclass(frozen=True)
class StockSheet:
    """A purchasable sheet type.

    Attributes:
        id: Stock sheet identifier.
        material_id: Material of the sheet.
        length: Sheet length in mm (grain runs along the length).
        width: Sheet width in mm.
        thickness: Sheet thickness in mm.
        quantity: Available sheets, or None for unbounded supply.
        cost_per_sheet: Cost of one sheet.
    """

    id: str
    material_id: str
    length: float
    width: float
    thickness: float
    quantity: int | None = None
    cost_per_sheet: float = 0.0

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Stock sheet id must not be empty")
        if self.length <= 0 or self.width <= 0:
            raise ValueError("Stock sheet dimensions must be positive")
        if self.thickness <= 0:
            raise ValueError("Stock sheet thickness must be positive")
        if self.quantity is not None and self.quantity < 0:
            raise ValueError("Stock sheet quantity must be non-negative")
        if self.cost_per_sheet < 0:
            raise ValueError("Stock sheet cost must be non-negative")

    @property
    def area(self) -> float:
        """Sheet area in mm²."""
        return self.length * self.width

    @property
    def is_unbounded(self) -> bool:
        """True if supply of this sheet is unlimited."""
        return self.quantity is None

    def matches(self, material_id: str, thickness: float) -> bool:
        """Check whether this sheet can supply a (material, thickness) group."""
        return (
            self.material_id.casefold() == material_id.casefold()
            and abs(self.thickness - thickness) < 1e-6
        )


@dataclass(frozen=True)
class PlacementRequest:
    """One physical instance of a part needing a location.

    Attributes:
        part: The part being placed.
        instance: Zero-based instance index within the part quantity.
    """

    part: Part
    instance: int

    @property
    def request_id(self) -> str:
        """Stable identifier of this instance."""
        return f"{self.part.id}#{self.instance}"

    @property
    def sort_key(self) -> tuple[float, float, str, int]:
        """Deterministic packing order: area desc, longest edge desc."""
        return (-self.part.area, -self.part.longest_edge, self.part.id, self.instance)


def expand_parts(parts: list[Part] | tuple[Part, ...]) -> list[PlacementRequest]:
    """Expand part quantities into individual placement requests."""
    return [
        PlacementRequest(part=part, instance=i)
        for part in parts
        for i in range(part.quantity)
    ]
