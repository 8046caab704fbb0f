"""Geometry and placement primitives for guillotine nesting.

Pure functions over the geometry value objects. Coordinates use the sheet
frame: length runs along X (the sheet grain), width along Y.

Kerf handling follows the panel saw. A cut at ``position`` removes
``[position, position + kerf]``; a leftover thinner than the kerf is
consumed by the cut and never becomes a free rectangle.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ..value_objects import (
    EPSILON,
    CutType,
    GrainDirection,
    MinimumUsableCutoff,
    OptimizationConfig,
    Part,
    Rect,
    SplitLine,
)

__all__ = [
    "GuillotineSplit",
    "classify_waste",
    "fits",
    "guillotine_split",
    "best_split",
    "allowed_orientations",
    "is_grain_aligned",
    "oriented_dimensions",
    "preferred_orientations",
    "rects_overlap",
    "subtract_placement",
]


class _Sized(Protocol):
    length: float
    width: float


@dataclass(frozen=True)
class GuillotineSplit:
    """Outcome of splitting a free rectangle around a placement.

    Attributes:
        residuals: Free rectangles left over, in left, right, below, above
            order (missing sides are omitted).
        kerf_strips: Material removed by the blade.
        split_lines: The cuts made, in the order they are made.
    """

    residuals: tuple[Rect, ...]
    kerf_strips: tuple[Rect, ...]
    split_lines: tuple[SplitLine, ...]

    @property
    def largest_residual_area(self) -> float:
        """Area of the largest residual, 0 if none remain."""
        return max((r.area for r in self.residuals), default=0.0)


def fits(length: float, width: float, free_space: Rect, kerf: float = 0.0) -> bool:
    """Check whether a piece fits inside a free rectangle.

    A leftover strip on any side is either empty, wide enough to leave a
    residual after the blade, or thinner than the kerf and consumed by the
    cut, so the kerf never prevents an exact fit.

    Args:
        length: Piece extent along X in mm.
        width: Piece extent along Y in mm.
        free_space: Free rectangle to test against.
        kerf: Saw blade kerf in mm.

    Returns:
        True if the piece can be placed at the free rectangle's origin.

    Raises:
        ValueError: If the kerf is negative.
    """
    if kerf < 0:
        raise ValueError("Kerf must be non-negative")
    return length <= free_space.length + EPSILON and width <= free_space.width + EPSILON


def _margin(value: float) -> float:
    return 0.0 if value <= EPSILON else value


def guillotine_split(free: Rect, placed: Rect, kerf: float, rip_first: bool = True) -> GuillotineSplit:
    """Split a free rectangle around a placed rectangle.

    With ``rip_first`` the vertical cuts run the full width of the free
    rectangle and the horizontal cuts are confined to the column holding
    the placement; otherwise the horizontal cuts run the full length and the
    vertical cuts are confined to the placement's row.

    Args:
        free: Free rectangle the placement was made in.
        placed: Placed rectangle, contained in ``free``.
        kerf: Saw blade kerf in mm.
        rip_first: Make the vertical cuts first.

    Returns:
        GuillotineSplit with up to 4 residuals.

    Raises:
        ValueError: If the placement is outside the free rectangle, or a
            left/bottom margin is thinner than the kerf.
    """
    if not free.contains(placed):
        raise ValueError(f"Placement {placed} is outside free rectangle {free}")

    left = _margin(placed.x - free.x)
    bottom = _margin(placed.y - free.y)
    right = _margin(free.right - placed.right)
    top = _margin(free.top - placed.top)
    if 0 < left < kerf - EPSILON or 0 < bottom < kerf - EPSILON:
        raise ValueError("Leading margins must be zero or at least one kerf wide")

    residuals: dict[str, Rect] = {}
    strips: list[Rect] = []
    lines: list[SplitLine] = []

    def rip_cuts(y0: float, y1: float) -> None:
        if left:
            cut = placed.x - kerf
            lines.append(SplitLine(CutType.RIP, cut, y0, y1))
            strips.append(Rect(cut, y0, kerf, y1 - y0))
            if cut - free.x > EPSILON:
                residuals["left"] = Rect(free.x, y0, cut - free.x, y1 - y0)
        if right:
            cut = placed.right
            lines.append(SplitLine(CutType.RIP, cut, y0, y1))
            strips.append(Rect(cut, y0, min(kerf, right), y1 - y0))
            if right - kerf > EPSILON:
                residuals["right"] = Rect(cut + kerf, y0, right - kerf, y1 - y0)

    def crosscuts(x0: float, x1: float) -> None:
        if bottom:
            cut = placed.y - kerf
            lines.append(SplitLine(CutType.CROSSCUT, cut, x0, x1))
            strips.append(Rect(x0, cut, x1 - x0, kerf))
            if cut - free.y > EPSILON:
                residuals["below"] = Rect(x0, free.y, x1 - x0, cut - free.y)
        if top:
            cut = placed.top
            lines.append(SplitLine(CutType.CROSSCUT, cut, x0, x1))
            strips.append(Rect(x0, cut, x1 - x0, min(kerf, top)))
            if top - kerf > EPSILON:
                residuals["above"] = Rect(x0, cut + kerf, x1 - x0, top - kerf)

    if rip_first:
        rip_cuts(free.y, free.top)
        crosscuts(placed.x, placed.right)
    else:
        crosscuts(free.x, free.right)
        rip_cuts(placed.y, placed.top)

    ordered = tuple(
        residuals[side] for side in ("left", "right", "below", "above") if side in residuals
    )
    return GuillotineSplit(
        residuals=ordered,
        kerf_strips=tuple(s for s in strips if not s.is_empty),
        split_lines=tuple(lines),
    )


def best_split(free: Rect, placed: Rect, kerf: float) -> GuillotineSplit:
    """Split keeping the largest residual as large as possible.

    Ties favour ripping first.
    """
    rip = guillotine_split(free, placed, kerf, rip_first=True)
    cross = guillotine_split(free, placed, kerf, rip_first=False)
    if cross.largest_residual_area > rip.largest_residual_area + EPSILON:
        return cross
    return rip


def subtract_placement(free: Rect, placed: Rect, kerf: float) -> list[Rect]:
    """Residual free rectangles after placing ``placed`` inside ``free``.

    Returns up to 4 rectangles (left, right, below, above) that do not
    overlap each other, the placement, or the kerf removed between them.
    """
    return list(best_split(free, placed, kerf).residuals)


def classify_waste(region: _Sized, minimum_usable_cutoff: MinimumUsableCutoff) -> bool:
    """Decide whether a waste region is a reusable offcut.

    The longer side is compared with the cutoff length and the shorter side
    with the cutoff width; both must exceed their limit.
    """
    longer = max(region.length, region.width)
    shorter = min(region.length, region.width)
    return longer > minimum_usable_cutoff.length and shorter > minimum_usable_cutoff.width


def rects_overlap(a: Rect, b: Rect, kerf: float = 0.0) -> bool:
    """Check overlap with each rectangle inflated by half the kerf."""
    half = kerf / 2
    return a.inflate(half).overlaps(b.inflate(half))


def is_grain_aligned(grain: GrainDirection, rotated: bool) -> bool:
    """Check whether an orientation keeps the part grain on the sheet grain.

    Sheet grain runs along X. LENGTH grain parts must stay unrotated and
    WIDTH grain parts must be rotated.
    """
    if grain == GrainDirection.NONE:
        return True
    if grain == GrainDirection.LENGTH:
        return not rotated
    return rotated


def oriented_dimensions(part: Part, rotated: bool) -> tuple[float, float]:
    """Placed (length, width) of a part in the given orientation."""
    if rotated:
        return part.width, part.length
    return part.length, part.width


def allowed_orientations(part: Part, allow_rotation: bool, aligned_only: bool = False) -> list[bool]:
    """Rotation flags a part may be placed with, unrotated first.

    Square parts without grain gain nothing from rotating and only get the
    unrotated orientation.
    """
    options = [False]
    if allow_rotation and (part.length != part.width or part.grain_direction != GrainDirection.NONE):
        options.append(True)
    if aligned_only:
        options = [r for r in options if is_grain_aligned(part.grain_direction, r)]
    return options


def preferred_orientations(part: Part, config: OptimizationConfig) -> list[bool]:
    """Orientations to try for a part under the configured grain policy.

    With ``prioritize_grain`` aligned orientations come first and misaligned
    ones remain as a fallback. Otherwise ``grain_matching`` restricts the
    part to aligned orientations, and without either flag grain is ignored.
    """
    options = allowed_orientations(part, config.allow_rotation)
    if config.prioritize_grain:
        aligned = [r for r in options if is_grain_aligned(part.grain_direction, r)]
        return aligned + [r for r in options if r not in aligned]
    if config.grain_matching:
        return [r for r in options if is_grain_aligned(part.grain_direction, r)]
    return options
