"""Data-source helpers that feed the rendering context."""

# Module responsibilities:
# - Provide a thin wrapper around pandas.read_excel/read_csv with strong validation.
# - Load YAML/JSON documents as plain Python structures.
# - Emit structured logs for traceability.

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd
import yaml

from .utils.log import get_logger

logger = get_logger("data_reader")

SheetType = Union[str, int, None]
TABULAR_SUFFIXES = {".xlsx", ".xlsm", ".xls", ".csv"}
DOCUMENT_SUFFIXES = {".yaml", ".yml", ".json"}


def read_table(path: Path, sheet: SheetType = None) -> pd.DataFrame:
    """Load a DataFrame from an Excel workbook or CSV file.

    Args:
        path: Path to the workbook or CSV file.
        sheet: Sheet name or index; defaults to the first sheet.

    Returns:
        DataFrame containing the requested data.

    Raises:
        FileNotFoundError: When the file does not exist.
        ValueError: When pandas fails to parse the sheet requested.
    """

    if not path.exists():
        raise FileNotFoundError(f"Data source not found: {path}")

    logger.info("Reading table", extra={"path": str(path), "sheet": sheet})

    if path.suffix.lower() == ".csv":
        df = pd.read_csv(path)
    else:
        try:
            df = pd.read_excel(path, sheet_name=0 if sheet is None else sheet)
        except ValueError as exc:
            logger.error("Failed to read Excel workbook", extra={"error": str(exc)})
            raise

    if isinstance(df, dict):
        # pandas returns a dict when sheet_name is a list; this API expects a single sheet.
        raise ValueError("read_table expects a single sheet; received multiple sheets")

    logger.info(
        "Table loaded",
        extra={"rows": len(df.index), "columns": df.columns.tolist()},
    )
    return df


def frame_to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Convert a DataFrame to row dictionaries with NaN mapped to ``None``."""

    cleaned = df.astype(object).where(pd.notna(df), None)
    return cleaned.to_dict(orient="records")


def read_document(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"Data source not found: {path}")
    with path.open("r", encoding="utf-8") as fh:
        if path.suffix.lower() == ".json":
            return json.load(fh)
        return yaml.safe_load(fh)


def load_data_source(path: Path, sheet: SheetType = None, kind: Optional[str] = None) -> Any:
    """Load a data file as records (tabular) or a parsed document (YAML/JSON)."""

    path = Path(path)
    resolved_kind = kind or ("table" if path.suffix.lower() in TABULAR_SUFFIXES else "document")
    if resolved_kind == "table":
        return frame_to_records(read_table(path, sheet))
    if resolved_kind == "document":
        return read_document(path)
    raise ValueError(f"Unsupported data source kind '{kind}' for {path}")
