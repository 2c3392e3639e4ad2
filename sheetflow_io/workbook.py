"""openpyxl-backed grid workbook used as the transformer's write target."""

# Module responsibilities:
# - Translate zero-based engine positions to openpyxl's one-based cells.
# - Create destination sheets on demand and keep merged ranges consistent.

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional

from openpyxl import Workbook
from openpyxl.cell.cell import MergedCell
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from sheetflow.core.common import CellRange, Pos
from sheetflow.services.transform.cell_data import CellType

from .utils.log import get_logger

logger = get_logger("workbook")


def _to_range(region: CellRange) -> dict[str, int]:
    return {
        "start_row": region.first_row + 1,
        "end_row": region.last_row + 1,
        "start_column": region.first_col + 1,
        "end_column": region.last_col + 1,
    }


class OpenpyxlWorkbook:
    """Grid workbook operations over an ``openpyxl.Workbook``."""

    def __init__(self, workbook: Optional[Workbook] = None) -> None:
        self.workbook = workbook if workbook is not None else Workbook()

    @property
    def sheet_names(self) -> List[str]:
        return list(self.workbook.sheetnames)

    def get_sheet(self, name: str) -> Optional[Worksheet]:
        if name not in self.workbook.sheetnames:
            return None
        return self.workbook[name]

    def create_sheet(self, name: str) -> Worksheet:
        existing = self.get_sheet(name)
        if existing is not None:
            return existing
        logger.info("Creating sheet", extra={"sheet": name})
        return self.workbook.create_sheet(title=name)

    def remove_sheet(self, name: str) -> None:
        sheet = self.get_sheet(name)
        if sheet is None:
            raise KeyError(f"Sheet '{name}' not found")
        self.workbook.remove(sheet)

    def _require_sheet(self, name: str) -> Worksheet:
        sheet = self.get_sheet(name)
        if sheet is None:
            raise KeyError(f"Sheet '{name}' not found")
        return sheet

    def get_cell(self, pos: Pos) -> Any:
        sheet = self.get_sheet(pos.sheet_name)
        if sheet is None:
            return None
        return sheet.cell(row=pos.row + 1, column=pos.col + 1).value

    def _writable_cell(self, pos: Pos):
        sheet = self.create_sheet(pos.sheet_name)
        cell = sheet.cell(row=pos.row + 1, column=pos.col + 1)
        if not isinstance(cell, MergedCell):
            return cell
        for merged in list(sheet.merged_cells.ranges):
            if cell.coordinate in merged:
                logger.warning(
                    "Unmerging range to write a covered cell",
                    extra={"sheet": pos.sheet_name, "range": merged.coord, "cell": cell.coordinate},
                )
                sheet.unmerge_cells(merged.coord)
                break
        return sheet.cell(row=pos.row + 1, column=pos.col + 1)

    def set_cell_value(self, pos: Pos, cell_type: CellType, value: Any) -> None:
        if cell_type is CellType.FORMULA:
            self.set_cell_formula(pos, "" if value is None else str(value))
            return
        if cell_type is CellType.BLANK or value is None:
            sheet = self.get_sheet(pos.sheet_name)
            if sheet is None:
                self.create_sheet(pos.sheet_name)
                return
            cell = sheet.cell(row=pos.row + 1, column=pos.col + 1)
            if not isinstance(cell, MergedCell):
                cell.value = None
            return

        cell = self._writable_cell(pos)
        if cell_type is CellType.STRING:
            text = value if isinstance(value, str) else str(value)
            cell.value = text
            if text.startswith("="):
                cell.data_type = "s"
        elif cell_type is CellType.BOOLEAN:
            cell.value = bool(value)
        else:
            cell.value = value

    def set_cell_formula(self, pos: Pos, text: str) -> None:
        cell = self._writable_cell(pos)
        cell.value = text if text.startswith("=") else f"={text}"

    def get_row_height(self, sheet_name: str, row: int) -> Optional[float]:
        sheet = self._require_sheet(sheet_name)
        if row + 1 not in sheet.row_dimensions:
            return None
        return sheet.row_dimensions[row + 1].height

    def set_row_height(self, sheet_name: str, row: int, height: Optional[float]) -> None:
        sheet = self._require_sheet(sheet_name)
        sheet.row_dimensions[row + 1].height = height

    def get_column_width(self, sheet_name: str, col: int) -> Optional[float]:
        sheet = self._require_sheet(sheet_name)
        letter = get_column_letter(col + 1)
        if letter not in sheet.column_dimensions:
            return None
        return sheet.column_dimensions[letter].width

    def set_column_width(self, sheet_name: str, col: int, width: Optional[float]) -> None:
        sheet = self._require_sheet(sheet_name)
        sheet.column_dimensions[get_column_letter(col + 1)].width = width

    def add_merged_region(self, region: CellRange) -> None:
        sheet = self.create_sheet(region.sheet_name)
        if region in self.get_merged_regions(region.sheet_name):
            return
        sheet.merge_cells(**_to_range(region))

    def remove_merged_region(self, region: CellRange) -> None:
        sheet = self.get_sheet(region.sheet_name)
        if sheet is None or region not in self.get_merged_regions(region.sheet_name):
            return
        sheet.unmerge_cells(**_to_range(region))

    def get_merged_regions(self, sheet_name: str) -> List[CellRange]:
        sheet = self.get_sheet(sheet_name)
        if sheet is None:
            return []
        return [
            CellRange(sheet_name, merged.min_row - 1, merged.max_row - 1, merged.min_col - 1, merged.max_col - 1)
            for merged in sheet.merged_cells.ranges
        ]

    def remove_comment(self, pos: Pos) -> None:
        sheet = self.get_sheet(pos.sheet_name)
        if sheet is None:
            return
        cell = sheet.cell(row=pos.row + 1, column=pos.col + 1)
        if not isinstance(cell, MergedCell):
            cell.comment = None

    def save(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.workbook.save(path)
        logger.info("Workbook saved", extra={"output": str(path)})
        return path
