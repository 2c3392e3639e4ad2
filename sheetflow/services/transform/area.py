"""Rectangular template regions and their expansion."""

# Module responsibilities:
# - Own the static cells and the command sub-rectangles of a template region.
# - Expand the region at a target anchor, shifting later content when a
#   command emits more (or less) than its template footprint.

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, List

from sheetflow.core.common import CellRange, Pos, Size
from sheetflow.core.context import Context
from sheetflow.core.errors import ConfigurationError, EvaluationError, StructuralError

if TYPE_CHECKING:
    from .commands import Command
    from .transformer import Transformer

LOGGER = logging.getLogger(__name__)


class Direction(str, Enum):
    DOWN = "DOWN"
    RIGHT = "RIGHT"

    @classmethod
    def parse(cls, value: "Direction | str | None") -> "Direction":
        if value is None:
            return cls.DOWN
        if isinstance(value, Direction):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError as exc:
            raise ConfigurationError(f"Invalid direction '{value}' (expected DOWN or RIGHT)") from exc


@dataclass
class CommandData:
    """A command bound to a sub-rectangle of its parent area."""

    start: Pos
    size: Size
    command: "Command"

    @property
    def cell_range(self) -> CellRange:
        return CellRange.from_pos(self.start, self.size)


@dataclass
class _Band:
    """Commands whose spans overlap along the growth axis."""

    first: int
    last: int
    excess: int | None = None

    def record(self, excess: int) -> None:
        self.excess = excess if self.excess is None else max(self.excess, excess)


class Area:
    """Source rectangle holding static cells and non-overlapping commands."""

    def __init__(
        self,
        start: Pos,
        size: Size,
        transformer: "Transformer",
        *,
        direction: Direction | str = Direction.DOWN,
    ) -> None:
        self.start = start
        self.size = size
        self.transformer = transformer
        self.direction = Direction.parse(direction)
        self.command_data: List[CommandData] = []

    @property
    def cell_range(self) -> CellRange:
        return CellRange.from_pos(self.start, self.size)

    def add_command(self, start: Pos, size: Size, command: "Command") -> CommandData:
        data = CommandData(start, size, command)
        region = data.cell_range
        if size.is_empty() or not self.cell_range.contains_range(region):
            raise StructuralError(f"Command '{command.name}' at {start} is outside area {self.cell_range}")
        for existing in self.command_data:
            if existing.cell_range.overlaps(region):
                raise StructuralError(
                    f"Command '{command.name}' at {start} overlaps command "
                    f"'{existing.command.name}' at {existing.start}"
                )
        self.command_data.append(data)
        return data

    def find_command_data(self, pos: Pos) -> CommandData | None:
        return next((data for data in self.command_data if data.cell_range.contains(pos)), None)

    def _along(self, row: int, col: int) -> int:
        return row if self.direction is Direction.DOWN else col

    def _bands(self) -> List[_Band]:
        spans = sorted(
            (
                self._along(d.start.row - self.start.row, d.start.col - self.start.col),
                self._along(d.cell_range.last_row - self.start.row, d.cell_range.last_col - self.start.col),
            )
            for d in self.command_data
        )
        bands: List[_Band] = []
        for first, last in spans:
            if bands and first <= bands[-1].last:
                bands[-1].last = max(bands[-1].last, last)
            else:
                bands.append(_Band(first, last))
        return bands

    def apply_at(self, anchor: Pos, context: Context) -> Size:
        """Expand the area with its top-left at *anchor* and return the emitted size."""

        LOGGER.debug("area.apply_at source=%s anchor=%s", self.cell_range, anchor)
        bands = self._bands()

        def shift_before(offset: int) -> int:
            # sum of completed band growth strictly before this offset
            return sum(b.excess or 0 for b in bands if b.last < offset)

        def band_for(offset: int) -> _Band:
            return next(b for b in bands if b.first <= offset <= b.last)

        down = self.direction is Direction.DOWN
        outer = range(self.size.height) if down else range(self.size.width)
        inner = range(self.size.width) if down else range(self.size.height)
        cross_extent = self.size.width if down else self.size.height

        for i in outer:
            for j in inner:
                row, col = (i, j) if down else (j, i)
                source = self.start.shift(row, col)
                data = self.find_command_data(source)
                delta = shift_before(self._along(row, col))
                target = anchor.shift(delta, 0) if down else anchor.shift(0, delta)
                target = target.shift(row, col)
                if data is None:
                    self.transformer.transform(source, target, context)
                    continue
                if source != data.start:
                    continue
                try:
                    emitted = data.command.apply_at(target, context)
                except EvaluationError as exc:
                    # command attributes live on the command's start cell
                    if exc.pos is not None:
                        raise
                    raise exc.with_pos(data.start) from exc
                if down:
                    excess = emitted.height - data.size.height
                    cross_extent = max(cross_extent, col + emitted.width)
                else:
                    excess = emitted.width - data.size.width
                    cross_extent = max(cross_extent, row + emitted.height)
                band_for(self._along(row, col)).record(excess)

        growth = sum(b.excess or 0 for b in bands)
        if down:
            return Size(cross_extent, max(0, self.size.height + growth))
        return Size(max(0, self.size.width + growth), cross_extent)

    def clear_cells(self) -> None:
        """Blank every ingested template cell inside the area."""

        for row in range(self.size.height):
            for col in range(self.size.width):
                self.transformer.clear_cell(self.start.shift(row, col))

    def __repr__(self) -> str:
        return f"Area({self.cell_range}, commands={len(self.command_data)}, direction={self.direction.value})"
