"""Offcut inventory value object."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Offcut:
    """A reusable leftover piece of stock material.

    Offcuts live independently of any project. ``version`` increases with
    every stored change and is used for compare-and-swap updates.

    Attributes:
        id: Offcut identifier.
        material: Material of the offcut.
        length: Offcut length in mm.
        width: Offcut width in mm.
        thickness: Offcut thickness in mm.
        available: False while consumed by a project.
        origin_project_id: Project whose nesting produced the offcut.
        origin_sheet_id: Nesting sheet the offcut was cut from.
        consumed_by_project_id: Project currently using the offcut.
        consumed_at: When the offcut was claimed.
        created_at: When the offcut was harvested.
        version: Optimistic concurrency version.
    """

    id: str
    material: str
    length: float
    width: float
    thickness: float
    available: bool = True
    origin_project_id: str | None = None
    origin_sheet_id: str | None = None
    consumed_by_project_id: str | None = None
    consumed_at: datetime | None = None
    created_at: datetime | None = None
    version: int = 0

    def __post_init__(self) -> None:
        if self.length <= 0 or self.width <= 0:
            raise ValueError("Offcut dimensions must be positive")
        if self.thickness <= 0:
            raise ValueError("Offcut thickness must be positive")

    @property
    def area(self) -> float:
        """Offcut area in mm²."""
        return self.length * self.width
