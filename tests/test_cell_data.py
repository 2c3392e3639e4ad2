from __future__ import annotations

from datetime import datetime

import pytest

from sheetflow.core.common import Pos
from sheetflow.core.context import Context
from sheetflow.core.errors import EvaluationError
from sheetflow.services.transform.cell_data import CellData, CellType

POS = Pos("sheet 1", 2, 3)


@pytest.mark.parametrize(
    ("cell_type", "value"),
    [
        (CellType.NUMBER, 1.5),
        (CellType.BOOLEAN, True),
        (CellType.FORMULA, "SUM(A1:A3)"),
        (CellType.DATE, datetime(2024, 1, 2)),
        (CellType.BLANK, None),
    ],
)
def test_non_string_cells_pass_through(cell_type, value):
    cell = CellData(POS, cell_type, value)

    for context in (Context(), Context({"x": 1})):
        result = cell.evaluate(context)
        assert result.value == value
        assert result.cell_type is cell_type


def test_plain_text_is_returned_verbatim():
    result = CellData(POS, CellType.STRING, "Total amount").evaluate(Context({"x": 1}))

    assert result.value == "Total amount"
    assert result.cell_type is CellType.STRING


def test_whole_expression_keeps_number_type():
    result = CellData(POS, CellType.STRING, "${x*y}").evaluate(Context({"x": 3, "y": 5}))

    assert result.value == 15
    assert result.cell_type is CellType.NUMBER


def test_whole_expression_keeps_boolean_type():
    result = CellData(POS, CellType.STRING, "${flag}").evaluate(Context({"flag": True}))

    assert result.value is True
    assert result.cell_type is CellType.BOOLEAN


def test_whole_expression_with_text_result_stays_string():
    result = CellData(POS, CellType.STRING, "${x}").evaluate(Context({"x": "Abcde"}))

    assert result.value == "Abcde"
    assert result.cell_type is CellType.STRING


def test_mixed_text_and_expressions_are_substituted():
    result = CellData(POS, CellType.STRING, "${2*x}x and ${2*y}y").evaluate(Context({"x": 2, "y": 3}))

    assert result.value == "4x and 6y"
    assert result.cell_type is CellType.STRING


def test_leading_text_forces_string():
    result = CellData(POS, CellType.STRING, "Count: ${n}").evaluate(Context({"n": 7}))

    assert result.value == "Count: 7"
    assert result.cell_type is CellType.STRING


def test_user_formula_is_substituted_and_typed_as_formula():
    cell = CellData(POS, CellType.STRING, "$[${a}*SUM(A1:A5)+${b}]")

    result = cell.evaluate(Context({"a": 2, "b": 4}))

    assert result.value == "2*SUM(A1:A5)+4"
    assert result.cell_type is CellType.FORMULA


def test_none_result_is_blank():
    result = CellData(POS, CellType.STRING, "${x}").evaluate(Context({"x": None}))

    assert result.value is None
    assert result.cell_type is CellType.BLANK


def test_evaluation_leaves_raw_value_untouched():
    cell = CellData(POS, CellType.STRING, "${x}")

    first = cell.evaluate(Context({"x": 3}))
    second = cell.evaluate(Context({"x": "text"}))

    assert first.cell_type is CellType.NUMBER
    assert second.value == "text"
    assert second.cell_type is CellType.STRING
    assert cell.cell_value == "${x}"
    assert cell.cell_type is CellType.STRING


def test_failed_expression_reports_cell_position():
    cell = CellData(POS, CellType.STRING, "Value ${unknown + 1}")

    with pytest.raises(EvaluationError) as excinfo:
        cell.evaluate(Context())

    assert excinfo.value.pos == POS
    assert excinfo.value.expression == "unknown + 1"
    assert "sheet 1!R2C3" in str(excinfo.value)


def test_formula_field_is_derived_from_content():
    native = CellData(POS, CellType.FORMULA, "SUM(A1:A3)")
    user = CellData(POS, CellType.STRING, "$[SUM(B1:B${n})]")
    plain = CellData(POS, CellType.STRING, "SUM(A1)")

    assert native.formula == "SUM(A1:A3)"
    assert user.formula == "SUM(B1:B${n})"
    assert user.is_formula_cell
    assert not plain.is_formula_cell


def test_target_positions_are_recorded_and_reset():
    cell = CellData(POS, CellType.STRING, "x")

    cell.add_target_pos(Pos("out", 0, 0))
    cell.add_target_pos(Pos("out", 1, 0))
    assert cell.target_pos == [Pos("out", 0, 0), Pos("out", 1, 0)]

    cell.reset_target_pos()
    assert cell.target_pos == []


def test_equality_ignores_write_history():
    left = CellData(POS, CellType.NUMBER, 1)
    right = CellData(POS, CellType.NUMBER, 1)
    right.add_target_pos(Pos("out", 0, 0))

    assert left == right
    assert hash(left) == hash(right)
    assert left != CellData(POS, CellType.NUMBER, 2)


def test_mapping_keys_win_over_dict_methods():
    context = Context({"r": {"values": 42, "keys": "k1,k2", "items": ["a"]}})

    values = CellData(POS, CellType.STRING, "${r.values}").evaluate(context)
    keys = CellData(POS, CellType.STRING, "Keys: ${r.keys}").evaluate(context)

    assert values.value == 42
    assert values.cell_type is CellType.NUMBER
    assert keys.value == "Keys: k1,k2"
