from __future__ import annotations

import math
from pathlib import Path

import pandas as pd
import pytest

from sheetflow_io.data_reader import frame_to_records, load_data_source, read_table


def test_read_table_from_excel_sheet(tmp_path: Path):
    path = tmp_path / "input.xlsx"
    with pd.ExcelWriter(path) as writer:
        pd.DataFrame({"a": [1]}).to_excel(writer, sheet_name="First", index=False)
        pd.DataFrame({"name": ["Elsa", "Neil"], "payment": [1500, 2500]}).to_excel(
            writer, sheet_name="Staff", index=False
        )

    df = read_table(path, "Staff")

    assert df.columns.tolist() == ["name", "payment"]
    assert df["name"].tolist() == ["Elsa", "Neil"]


def test_read_table_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        read_table(tmp_path / "missing.csv")


def test_frame_to_records_maps_missing_values_to_none():
    frame = pd.DataFrame({"name": ["a", "b"], "score": [1.5, math.nan]})

    assert frame_to_records(frame) == [{"name": "a", "score": 1.5}, {"name": "b", "score": None}]


def test_load_data_source_by_suffix(tmp_path: Path):
    (tmp_path / "rows.csv").write_text("city,size\nOslo,1\n", encoding="utf-8")
    (tmp_path / "meta.yaml").write_text("title: Report\nitems: [1, 2]\n", encoding="utf-8")
    (tmp_path / "meta.json").write_text('{"title": "Json"}', encoding="utf-8")

    assert load_data_source(tmp_path / "rows.csv") == [{"city": "Oslo", "size": 1}]
    assert load_data_source(tmp_path / "meta.yaml") == {"title": "Report", "items": [1, 2]}
    assert load_data_source(tmp_path / "meta.json") == {"title": "Json"}


def test_load_data_source_rejects_unknown_kind(tmp_path: Path):
    (tmp_path / "rows.csv").write_text("a\n1\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_data_source(tmp_path / "rows.csv", kind="stream")
