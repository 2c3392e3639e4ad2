"""Grid value types shared by the transformation engine."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class Pos:
    """Zero-based cell address on a named sheet."""

    sheet_name: str
    row: int
    col: int

    def __post_init__(self) -> None:
        if self.row < 0 or self.col < 0:
            raise ValueError(f"Cell position must be non-negative: row={self.row} col={self.col}")

    def shift(self, rows: int = 0, cols: int = 0) -> "Pos":
        return Pos(self.sheet_name, self.row + rows, self.col + cols)

    def on_sheet(self, sheet_name: str) -> "Pos":
        return Pos(sheet_name, self.row, self.col)

    def __str__(self) -> str:
        return f"{self.sheet_name}!R{self.row}C{self.col}"


@dataclass(frozen=True)
class Size:
    """Width and height, in cells, of an expanded block."""

    width: int = 0
    height: int = 0

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Size must be non-negative: {self.width}x{self.height}")

    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0


ZERO_SIZE = Size(0, 0)


@dataclass(frozen=True)
class CellRange:
    """Inclusive rectangle of cells, used for merged regions and markup ranges."""

    sheet_name: str
    first_row: int
    last_row: int
    first_col: int
    last_col: int

    @classmethod
    def from_pos(cls, start: Pos, size: Size) -> "CellRange":
        return cls(
            start.sheet_name,
            start.row,
            start.row + size.height - 1,
            start.col,
            start.col + size.width - 1,
        )

    @property
    def anchor(self) -> Pos:
        return Pos(self.sheet_name, self.first_row, self.first_col)

    @property
    def size(self) -> Size:
        return Size(self.last_col - self.first_col + 1, self.last_row - self.first_row + 1)

    def contains(self, pos: Pos) -> bool:
        return (
            pos.sheet_name == self.sheet_name
            and self.first_row <= pos.row <= self.last_row
            and self.first_col <= pos.col <= self.last_col
        )

    def contains_range(self, other: "CellRange") -> bool:
        return self.contains(other.anchor) and self.contains(
            Pos(other.sheet_name, other.last_row, other.last_col)
        )

    def overlaps(self, other: "CellRange") -> bool:
        if self.sheet_name != other.sheet_name:
            return False
        return not (
            other.last_row < self.first_row
            or other.first_row > self.last_row
            or other.last_col < self.first_col
            or other.first_col > self.last_col
        )

    def translate(self, rows: int, cols: int, sheet_name: str | None = None) -> "CellRange":
        return CellRange(
            sheet_name or self.sheet_name,
            self.first_row + rows,
            self.last_row + rows,
            self.first_col + cols,
            self.last_col + cols,
        )
