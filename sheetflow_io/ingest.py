"""Template ingestion: openpyxl workbook -> transformer state."""

# Module responsibilities:
# - Load a template workbook from disk with formulas intact.
# - Capture every meaningful cell as CellData, plus row heights, column
#   widths and merged regions per sheet.

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterator, Optional
from zipfile import BadZipFile

from openpyxl import Workbook, load_workbook
from openpyxl.cell.cell import Cell, MergedCell
from openpyxl.utils import column_index_from_string
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.worksheet import Worksheet

from sheetflow.core.common import CellRange, Pos
from sheetflow.core.errors import TemplateError
from sheetflow.services.transform.cell_data import CellData, CellType
from sheetflow.services.transform.expression import ExpressionEvaluator
from sheetflow.services.transform.transformer import SheetData, Transformer

from .utils.log import get_logger
from .workbook import OpenpyxlWorkbook

logger = get_logger("ingest")


def load_template(path: Path) -> Workbook:
    """Open a template workbook.

    Raises:
        TemplateError: When the file is absent or cannot be parsed.
    """

    path = Path(path)
    if not path.exists():
        raise TemplateError(f"Template workbook not found: {path}")
    try:
        return load_workbook(path)
    except (InvalidFileException, BadZipFile, OSError, ValueError, KeyError) as exc:
        raise TemplateError(f"Unable to read template workbook {path}: {exc}") from exc


def detect_cell_type(cell: Cell) -> tuple[CellType, Any]:
    """Map an openpyxl cell to a template cell type and raw value."""

    value = cell.value
    if value is None:
        return CellType.BLANK, None
    if cell.data_type == "f":
        text = getattr(value, "text", value)
        text = "" if text is None else str(text)
        return CellType.FORMULA, text[1:] if text.startswith("=") else text
    if cell.data_type == "e":
        return CellType.ERROR, value
    if isinstance(value, bool):
        return CellType.BOOLEAN, value
    if isinstance(value, (int, float, Decimal)):
        return CellType.NUMBER, value
    if isinstance(value, (datetime, date, time)):
        return CellType.DATE, value
    return CellType.STRING, str(value)


def _sheet_data(sheet: Worksheet) -> SheetData:
    data = SheetData(sheet.title)
    for index, dimension in sheet.row_dimensions.items():
        if dimension.height is not None:
            data.row_heights[index - 1] = dimension.height
    for letter, dimension in sheet.column_dimensions.items():
        if not dimension.customWidth:
            continue
        first = column_index_from_string(letter)
        last = max(first, dimension.max or first)
        for col in range(first, last + 1):
            data.column_widths[col - 1] = dimension.width
    for merged in sheet.merged_cells.ranges:
        data.merged_regions.append(
            CellRange(sheet.title, merged.min_row - 1, merged.max_row - 1, merged.min_col - 1, merged.max_col - 1)
        )
    return data


def _iter_cells(sheet: Worksheet, merge_anchors: set[Pos]) -> Iterator[CellData]:
    for row in sheet.iter_rows():
        for cell in row:
            if isinstance(cell, MergedCell):
                continue
            pos = Pos(sheet.title, cell.row - 1, cell.column - 1)
            comment = cell.comment.text if cell.comment is not None else None
            if cell.value is None and comment is None and pos not in merge_anchors:
                continue
            cell_type, value = detect_cell_type(cell)
            yield CellData(pos, cell_type, value, comment=comment)


def create_transformer(
    workbook: Workbook | OpenpyxlWorkbook,
    *,
    evaluator: Optional[ExpressionEvaluator] = None,
    ignore_row_props: bool = False,
    ignore_column_props: bool = False,
) -> Transformer:
    """Ingest *workbook* and return a transformer that writes back into it."""

    grid = workbook if isinstance(workbook, OpenpyxlWorkbook) else OpenpyxlWorkbook(workbook)
    sheets: Dict[str, SheetData] = {}
    cells: list[CellData] = []
    for sheet in grid.workbook.worksheets:
        data = _sheet_data(sheet)
        sheets[sheet.title] = data
        anchors = {region.anchor for region in data.merged_regions}
        cells.extend(_iter_cells(sheet, anchors))

    logger.info(
        "Template ingested",
        extra={"sheets": list(sheets), "cells": len(cells)},
    )
    return Transformer(
        grid,
        cells,
        sheets,
        evaluator=evaluator,
        ignore_row_props=ignore_row_props,
        ignore_column_props=ignore_column_props,
    )
