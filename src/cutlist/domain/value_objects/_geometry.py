"""Core geometry value objects."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# Tolerance for floating point comparisons in mm
EPSILON = 1e-6


class GrainDirection(str, Enum):
    """Grain direction constraint for parts.

    Sheet grain runs along the sheet length (the X axis).

    Attributes:
        NONE: No grain constraint, part can rotate freely.
        LENGTH: Grain runs parallel to the part length.
        WIDTH: Grain runs parallel to the part width.
    """

    NONE = "none"
    LENGTH = "length"
    WIDTH = "width"


class CutType(str, Enum):
    """Type of a guillotine cut.

    RIP cuts are vertical (constant X), CROSSCUT cuts are horizontal
    (constant Y). TRIM cuts only remove excess material from a piece.
    """

    RIP = "rip"
    CROSSCUT = "crosscut"
    TRIM = "trim"


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle on a sheet.

    Length runs along X (sheet length), width along Y (sheet width).
    """

    x: float
    y: float
    length: float
    width: float

    def __post_init__(self) -> None:
        if self.length < 0 or self.width < 0:
            raise ValueError("Rectangle dimensions must be non-negative")

    @property
    def area(self) -> float:
        """Area in mm²."""
        return self.length * self.width

    @property
    def right(self) -> float:
        """X coordinate of the right edge."""
        return self.x + self.length

    @property
    def top(self) -> float:
        """Y coordinate of the top edge."""
        return self.y + self.width

    @property
    def is_empty(self) -> bool:
        """True if the rectangle has no usable extent."""
        return self.length <= EPSILON or self.width <= EPSILON

    def contains(self, other: Rect) -> bool:
        """Check whether ``other`` lies entirely within this rectangle."""
        return (
            other.x >= self.x - EPSILON
            and other.y >= self.y - EPSILON
            and other.right <= self.right + EPSILON
            and other.top <= self.top + EPSILON
        )

    def overlaps(self, other: Rect) -> bool:
        """Check whether the interiors of two rectangles intersect."""
        return not (
            self.right <= other.x + EPSILON
            or other.right <= self.x + EPSILON
            or self.top <= other.y + EPSILON
            or other.top <= self.y + EPSILON
        )

    def inflate(self, margin: float) -> Rect:
        """Grow the rectangle by ``margin`` on every side."""
        return Rect(
            x=self.x - margin,
            y=self.y - margin,
            length=self.length + 2 * margin,
            width=self.width + 2 * margin,
        )

    def same_as(self, other: Rect) -> bool:
        """Compare two rectangles within floating point tolerance."""
        return (
            abs(self.x - other.x) <= EPSILON
            and abs(self.y - other.y) <= EPSILON
            and abs(self.length - other.length) <= EPSILON
            and abs(self.width - other.width) <= EPSILON
        )


@dataclass(frozen=True)
class SplitLine:
    """A guillotine split recorded while packing.

    The blade removes ``[position, position + kerf]`` across the split axis.
    For a RIP the position is an X coordinate and ``start``/``end`` are the Y
    extent of the region being split; for a CROSSCUT it is the reverse.

    Attributes:
        orientation: CutType.RIP or CutType.CROSSCUT.
        position: Coordinate of the leading edge of the kerf.
        start: Start of the cut along the cut direction.
        end: End of the cut along the cut direction.
    """

    orientation: CutType
    position: float
    start: float
    end: float

    def __post_init__(self) -> None:
        if self.orientation == CutType.TRIM:
            raise ValueError("Split lines must be rip or crosscut")
        if self.end < self.start:
            raise ValueError("Split line end must not precede start")

    @property
    def length(self) -> float:
        """Length of the cut in mm."""
        return self.end - self.start
