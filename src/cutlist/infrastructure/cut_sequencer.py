"""Cut sequence generation for nested sheets.

Turns the guillotine splits made while nesting into an ordered list of saw
cuts. Every cut splits exactly one piece of the sheet into two, so each
cut's resulting pieces exist before any later cut refers to them, and
replaying the sequence on a fresh sheet reproduces every placement.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence

from cutlist.domain.services.geometry import guillotine_split
from cutlist.domain.value_objects import (
    EPSILON,
    CutOperation,
    CutType,
    NestingSheet,
    Placement,
    Rect,
    SplitLine,
)

logger = logging.getLogger(__name__)

# Saw feed time in seconds per 100mm of cut
SECONDS_PER_100MM = 2.0


def total_cutting_length(cuts: Iterable[CutOperation]) -> float:
    """Sum of cut lengths in mm."""
    return sum(cut.length for cut in cuts)


def estimated_cut_time(cuts: Iterable[CutOperation]) -> int:
    """Estimated saw time in whole minutes, rounded up."""
    return math.ceil(total_cutting_length(cuts) / 100 * SECONDS_PER_100MM / 60)


def _split_piece(piece: Rect, line: SplitLine, kerf: float) -> tuple[Rect | None, Rect | None]:
    """Split a piece at a line into its lower and upper remainders."""
    if line.orientation == CutType.RIP:
        low = Rect(piece.x, piece.y, max(line.position - piece.x, 0.0), piece.width)
        high_start = line.position + kerf
        high = Rect(high_start, piece.y, max(piece.right - high_start, 0.0), piece.width)
    else:
        low = Rect(piece.x, piece.y, piece.length, max(line.position - piece.y, 0.0))
        high_start = line.position + kerf
        high = Rect(piece.x, high_start, piece.length, max(piece.top - high_start, 0.0))
    return (None if low.is_empty else low, None if high.is_empty else high)


def _find_piece(pieces: list[Rect], line: SplitLine) -> int:
    """Index of the piece a split line cuts through."""
    for i, piece in enumerate(pieces):
        if line.orientation == CutType.RIP:
            span_start, span_end, low, high = piece.y, piece.top, piece.x, piece.right
        else:
            span_start, span_end, low, high = piece.x, piece.right, piece.y, piece.top
        if (
            abs(span_start - line.start) <= EPSILON
            and abs(span_end - line.end) <= EPSILON
            and low - EPSILON <= line.position < high - EPSILON
        ):
            return i
    raise ValueError(
        f"{line.orientation.value} at {line.position} does not cut through any piece"
    )


def _line_from_cut(cut: CutOperation) -> SplitLine:
    if cut.is_vertical:
        return SplitLine(CutType.RIP, cut.start_x, cut.start_y, cut.end_y)
    return SplitLine(CutType.CROSSCUT, cut.start_y, cut.start_x, cut.end_x)


def replay(length: float, width: float, cuts: Sequence[CutOperation], kerf: float) -> list[Rect]:
    """Apply cuts in sequence order to a fresh sheet.

    Args:
        length: Sheet length in mm.
        width: Sheet width in mm.
        cuts: Cuts of one sheet.
        kerf: Saw blade kerf in mm.

    Returns:
        The pieces left after every cut.

    Raises:
        ValueError: If a cut does not cut through a piece.
    """
    pieces = [Rect(0.0, 0.0, length, width)]
    for cut in sorted(cuts, key=lambda c: c.sequence):
        line = _line_from_cut(cut)
        index = _find_piece(pieces, line)
        low, high = _split_piece(pieces.pop(index), line, kerf)
        pieces.extend(p for p in (low, high) if p is not None)
    return pieces


class CutSequencer:
    """Derives ordered guillotine cuts for nested sheets.

    Attributes:
        kerf: Saw blade kerf in mm.
    """

    def __init__(self, kerf: float) -> None:
        if kerf < 0:
            raise ValueError("Kerf must be non-negative")
        self.kerf = kerf

    def sequence(self, sheet: NestingSheet) -> tuple[CutOperation, ...]:
        """Ordered cuts isolating every placement on a sheet.

        Uses the splits recorded while nesting when present, and otherwise
        partitions the placements recursively.

        Args:
            sheet: Nested sheet.

        Returns:
            Cuts numbered from 0 in the order they are made.

        Raises:
            ValueError: If the placements cannot be separated by guillotine
                cuts.
        """
        lines = list(sheet.split_lines)
        if not lines and sheet.placements:
            logger.debug("No recorded splits for %s, partitioning placements", sheet.id)
            lines = self._partition(sheet.bounds, list(sheet.placements))

        placed = [p.rect for p in sheet.placements]
        pieces = [sheet.bounds]
        cuts: list[CutOperation] = []
        for line in lines:
            index = _find_piece(pieces, line)
            low, high = _split_piece(pieces.pop(index), line, self.kerf)
            sides = [p for p in (low, high) if p is not None]
            pieces.extend(sides)

            separates = sum(
                1 for side in (low, high)
                if side is not None and any(side.contains(rect) for rect in placed)
            )
            cut_type = line.orientation if separates == 2 else CutType.TRIM
            isolated = [
                p for p in sheet.placements if any(side.same_as(p.rect) for side in sides)
            ]
            cuts.append(self._operation(sheet.id, len(cuts), cut_type, line, isolated))

        missing = [
            p.request_id
            for p in sheet.placements
            if not any(piece.same_as(p.rect) for piece in pieces)
        ]
        if missing:
            raise ValueError(
                f"Cut sequence for {sheet.id} does not isolate {', '.join(missing)}"
            )
        logger.debug("Sequenced %d cuts for %s", len(cuts), sheet.id)
        return tuple(cuts)

    def sequence_all(self, sheets: Iterable[NestingSheet]) -> tuple[CutOperation, ...]:
        """Cuts for several sheets, grouped by sheet in sheet order."""
        cuts: list[CutOperation] = []
        for sheet in sheets:
            cuts.extend(self.sequence(sheet))
        return tuple(cuts)

    def _operation(
        self,
        sheet_id: str,
        sequence: int,
        cut_type: CutType,
        line: SplitLine,
        isolated: list[Placement],
    ) -> CutOperation:
        if line.orientation == CutType.RIP:
            start = (line.position, line.start)
            end = (line.position, line.end)
        else:
            start = (line.start, line.position)
            end = (line.end, line.position)
        return CutOperation(
            id=f"{sheet_id}-cut-{sequence}",
            sheet_id=sheet_id,
            sequence=sequence,
            type=cut_type,
            start_x=start[0],
            start_y=start[1],
            end_x=end[0],
            end_y=end[1],
            resulting_part_ids=tuple(p.part_id for p in isolated),
            resulting_request_ids=tuple(p.request_id for p in isolated),
        )

    def _partition(self, region: Rect, placements: list[Placement]) -> list[SplitLine]:
        """Recursive binary-space partition of a region's placements.

        Rips are preferred over crosscuts, and lower positions over higher
        ones.
        """
        if not placements:
            return []
        if len(placements) == 1:
            placed = placements[0].rect
            if placed.same_as(region):
                return []
            return list(guillotine_split(region, placed, self.kerf).split_lines)

        for orientation in (CutType.RIP, CutType.CROSSCUT):
            line = self._separating_line(region, placements, orientation)
            if line is None:
                continue
            low, high = _split_piece(region, line, self.kerf)
            lower = [p for p in placements if low is not None and low.contains(p.rect)]
            upper = [p for p in placements if high is not None and high.contains(p.rect)]
            lines = [line]
            if low is not None:
                lines.extend(self._partition(low, lower))
            if high is not None:
                lines.extend(self._partition(high, upper))
            return lines

        raise ValueError("Placements cannot be separated by guillotine cuts")

    def _separating_line(
        self, region: Rect, placements: list[Placement], orientation: CutType
    ) -> SplitLine | None:
        kerf = self.kerf
        if orientation == CutType.RIP:
            spans = [(p.rect.x, p.rect.right) for p in placements]
            span_start, span_end = region.y, region.top
        else:
            spans = [(p.rect.y, p.rect.top) for p in placements]
            span_start, span_end = region.x, region.right

        for position in sorted({end for _, end in spans}):
            below = sum(1 for _, end in spans if end <= position + EPSILON)
            above = sum(1 for start, _ in spans if start >= position + kerf - EPSILON)
            if below and above and below + above == len(spans):
                return SplitLine(orientation, position, span_start, span_end)
        return None
