from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, Tuple

import pytest
from openpyxl import Workbook

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Keep package log files out of the user's home directory.
os.environ.setdefault("SHEETFLOW_LOG_DIR", tempfile.mkdtemp(prefix="sheetflow-logs-"))
os.environ.setdefault("SHEETFLOW_WORK_DIR", tempfile.mkdtemp(prefix="sheetflow-work-"))

from sheetflow.core.common import Pos
from sheetflow.services.transform.cell_data import CellData, CellType
from sheetflow.services.transform.transformer import Transformer
from sheetflow_io.workbook import OpenpyxlWorkbook


@pytest.fixture()
def template_workbook() -> Workbook:
    """Template with plain values, expressions, a formula and a merged region."""

    wb = Workbook()
    ws = wb.active
    ws.title = "sheet 1"
    ws["A1"] = 1.5
    ws["B1"] = "${x}"
    ws["C1"] = "${x*y}"
    ws["D1"] = "Merged value"
    ws.merge_cells("D1:E2")
    ws.row_dimensions[1].height = 23
    ws.column_dimensions["B"].width = 12.3
    ws["B2"] = "=SUM(A1:A3)"
    ws["C2"] = "${y*y}"
    ws.row_dimensions[2].height = 45.6
    ws["A3"] = "XYZ"
    ws["B3"] = "${2*y}"
    ws["C3"] = "${4*4}"
    ws["D3"] = "${2*x}x and ${2*y}y"
    ws["E3"] = "$[${myvar}*SUM(A1:A5) + ${myvar2}]"
    return wb


def make_transformer(cells: Dict[Tuple[int, int], Any], sheet: str = "template") -> Transformer:
    """Transformer over a blank workbook holding *cells* as template data."""

    data = []
    for (row, col), value in cells.items():
        if isinstance(value, str):
            cell_type = CellType.STRING
        elif isinstance(value, bool):
            cell_type = CellType.BOOLEAN
        else:
            cell_type = CellType.NUMBER
        data.append(CellData(Pos(sheet, row, col), cell_type, value))
    return Transformer(OpenpyxlWorkbook(), data)
