"""`sheetflow_io` exposes the openpyxl workbook adapter, template ingestion and data readers."""

# Module responsibilities:
# - Re-export the IO-facing interfaces so consumers have a stable API surface.

from __future__ import annotations

from .data_reader import frame_to_records, load_data_source, read_document, read_table
from .ingest import create_transformer, detect_cell_type, load_template
from .workbook import OpenpyxlWorkbook

__all__ = [
    "OpenpyxlWorkbook",
    "create_transformer",
    "detect_cell_type",
    "load_template",
    "frame_to_records",
    "load_data_source",
    "read_document",
    "read_table",
]

__version__ = "0.1.0"
