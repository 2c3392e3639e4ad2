"""Evaluate-and-write step with target-position bookkeeping."""

# Module responsibilities:
# - Keep the ingested template cells, row/column sizes and merged regions.
# - Evaluate a template cell and write it to a destination through a GridWorkbook.
# - Record every destination of every source cell for a later formula pass.

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol

from sheetflow.core.common import CellRange, Pos
from sheetflow.core.context import Context

from .cell_data import CellData, CellType
from .expression import DEFAULT_EVALUATOR, ExpressionEvaluator

LOGGER = logging.getLogger(__name__)


class GridWorkbook(Protocol):
    """Physical workbook operations the transformer writes through."""

    def get_cell(self, pos: Pos) -> Any: ...

    def set_cell_value(self, pos: Pos, cell_type: CellType, value: Any) -> None: ...

    def set_cell_formula(self, pos: Pos, text: str) -> None: ...

    def get_row_height(self, sheet_name: str, row: int) -> Optional[float]: ...

    def set_row_height(self, sheet_name: str, row: int, height: Optional[float]) -> None: ...

    def get_column_width(self, sheet_name: str, col: int) -> Optional[float]: ...

    def set_column_width(self, sheet_name: str, col: int, width: Optional[float]) -> None: ...

    def create_sheet(self, name: str) -> Any: ...

    def get_sheet(self, name: str) -> Any: ...

    def add_merged_region(self, region: CellRange) -> None: ...

    def get_merged_regions(self, sheet_name: str) -> List[CellRange]: ...

    def remove_merged_region(self, region: CellRange) -> None: ...

    def remove_sheet(self, name: str) -> None: ...


@dataclass
class SheetData:
    """Per-sheet layout captured at ingestion."""

    name: str
    row_heights: Dict[int, float] = field(default_factory=dict)
    column_widths: Dict[int, float] = field(default_factory=dict)
    merged_regions: List[CellRange] = field(default_factory=list)

    def merged_region_at(self, pos: Pos) -> Optional[CellRange]:
        return next((region for region in self.merged_regions if region.anchor == pos), None)


class Transformer:
    """Write evaluated template cells into a GridWorkbook.

    State is scoped to one generation run and is not thread-safe.
    """

    def __init__(
        self,
        workbook: GridWorkbook,
        cells: Optional[Iterable[CellData]] = None,
        sheets: Optional[Mapping[str, SheetData]] = None,
        *,
        evaluator: ExpressionEvaluator | None = None,
        ignore_row_props: bool = False,
        ignore_column_props: bool = False,
    ) -> None:
        self.workbook = workbook
        self.evaluator = evaluator or DEFAULT_EVALUATOR
        self.ignore_row_props = ignore_row_props
        self.ignore_column_props = ignore_column_props
        self._cells: Dict[Pos, CellData] = {}
        self.sheets: Dict[str, SheetData] = dict(sheets or {})
        for cell in cells or ():
            self.add_cell_data(cell)

    def add_cell_data(self, cell: CellData) -> None:
        self._cells[cell.pos] = cell
        self.sheets.setdefault(cell.pos.sheet_name, SheetData(cell.pos.sheet_name))

    def get_cell_data(self, pos: Pos) -> Optional[CellData]:
        return self._cells.get(pos)

    def source_cells(self) -> List[CellData]:
        return list(self._cells.values())

    def transform(self, source: Pos, target: Pos, context: Context) -> None:
        cell = self._cells.get(source)
        if cell is None:
            return
        result = cell.evaluate(context, self.evaluator)
        if result.cell_type is CellType.FORMULA:
            self.workbook.set_cell_formula(target, str(result.value))
        else:
            self.workbook.set_cell_value(target, result.cell_type, result.value)
        cell.add_target_pos(target)
        LOGGER.debug("transform %s -> %s type=%s", source, target, result.cell_type.value)

        sheet = self.sheets.get(source.sheet_name)
        if sheet is None:
            return
        self._copy_layout(sheet, source, target)
        region = sheet.merged_region_at(source)
        if region is not None:
            self.workbook.add_merged_region(
                region.translate(target.row - source.row, target.col - source.col, target.sheet_name)
            )

    def _copy_layout(self, sheet: SheetData, source: Pos, target: Pos) -> None:
        try:
            if not self.ignore_row_props and source.row in sheet.row_heights:
                self.workbook.set_row_height(target.sheet_name, target.row, sheet.row_heights[source.row])
            if not self.ignore_column_props and source.col in sheet.column_widths:
                self.workbook.set_column_width(target.sheet_name, target.col, sheet.column_widths[source.col])
        except (KeyError, ValueError) as exc:
            LOGGER.warning("Skipped row/column size copy %s -> %s: %s", source, target, exc)

    def set_formula(self, pos: Pos, formula: str) -> None:
        self.workbook.set_cell_formula(pos, formula)

    def clear_cell(self, pos: Pos) -> None:
        """Blank the template cell at *pos* and unmerge a region anchored there."""

        sheet = self.sheets.get(pos.sheet_name)
        region = sheet.merged_region_at(pos) if sheet is not None else None
        if region is not None:
            self.workbook.remove_merged_region(region)
        if pos in self._cells:
            self.workbook.set_cell_value(pos, CellType.BLANK, None)

    def get_formula_cells(self) -> List[CellData]:
        return [cell for cell in self._cells.values() if cell.is_formula_cell]

    def get_target_pos(self, source: Pos) -> List[Pos]:
        cell = self._cells.get(source)
        return list(cell.target_pos) if cell is not None else []

    def reset_target_cells(self) -> None:
        for cell in self._cells.values():
            cell.reset_target_pos()
