"""Template cell model and per-cell expression substitution."""

# Module responsibilities:
# - Hold the raw content of one template cell together with its write history.
# - Resolve ${...} expressions and the $[...] user-formula wrapper into a value
#   and a target cell type without touching the raw template content.

from __future__ import annotations

import numbers
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from sheetflow.core.common import Pos
from sheetflow.core.context import Context
from sheetflow.core.errors import EvaluationError

from .expression import DEFAULT_EVALUATOR, ExpressionEvaluator

USER_FORMULA_PREFIX = "$["
USER_FORMULA_SUFFIX = "]"
EXPRESSION_PATTERN = re.compile(r"\$\{([^}]*)\}")


class CellType(str, Enum):
    STRING = "STRING"
    NUMBER = "NUMBER"
    BOOLEAN = "BOOLEAN"
    DATE = "DATE"
    FORMULA = "FORMULA"
    BLANK = "BLANK"
    ERROR = "ERROR"


def is_user_formula(text: str) -> bool:
    return (
        len(text) >= len(USER_FORMULA_PREFIX) + len(USER_FORMULA_SUFFIX)
        and text.startswith(USER_FORMULA_PREFIX)
        and text.endswith(USER_FORMULA_SUFFIX)
    )


def _strip_user_formula(text: str) -> str:
    return text[len(USER_FORMULA_PREFIX) : -len(USER_FORMULA_SUFFIX)]


@dataclass(frozen=True)
class EvaluatedCell:
    """Transient outcome of evaluating a template cell."""

    value: Any
    cell_type: CellType


@dataclass(eq=False)
class CellData:
    """A single ingested template cell."""

    pos: Pos
    cell_type: CellType = CellType.BLANK
    cell_value: Any = None
    comment: Optional[str] = None
    formula: Optional[str] = field(default=None, init=False)
    target_pos: List[Pos] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.cell_type is CellType.FORMULA:
            self.formula = "" if self.cell_value is None else str(self.cell_value)
        elif self.cell_type is CellType.STRING and isinstance(self.cell_value, str) and is_user_formula(self.cell_value):
            self.formula = _strip_user_formula(self.cell_value)

    @property
    def is_formula_cell(self) -> bool:
        return self.formula is not None

    def evaluate(self, context: Context, evaluator: ExpressionEvaluator | None = None) -> EvaluatedCell:
        """Resolve the cell against *context*.

        Non-string cells pass through unchanged. A string holding exactly one
        ``${...}`` that spans the whole text keeps the native type of the
        result; any other mix of literal text and expressions is substituted
        into a string. ``$[...]`` marks the substituted text as a formula.
        """

        if self.cell_type is not CellType.STRING or self.cell_value is None:
            return EvaluatedCell(self.cell_value, self.cell_type)

        evaluator = evaluator or DEFAULT_EVALUATOR
        text = str(self.cell_value)
        target_type = CellType.STRING
        if is_user_formula(text):
            target_type = CellType.FORMULA
            value, _ = self._substitute(_strip_user_formula(text), context, evaluator, target_type)
            if value is not None:
                value = str(value)
        else:
            value, target_type = self._substitute(text, context, evaluator, target_type)

        if value is None:
            target_type = CellType.BLANK
        return EvaluatedCell(value, target_type)

    def _substitute(
        self,
        text: str,
        context: Context,
        evaluator: ExpressionEvaluator,
        target_type: CellType,
    ) -> tuple[Any, CellType]:
        bindings = context.to_dict()
        matches = list(EXPRESSION_PATTERN.finditer(text))
        if not matches:
            return text, target_type

        results = [self._eval_expression(match.group(1), bindings, evaluator) for match in matches]
        whole = len(matches) == 1 and matches[0].start() == 0 and matches[0].end() == len(text)
        if whole:
            value = results[0]
            if target_type is CellType.FORMULA:
                return value, target_type
            if isinstance(value, bool):
                return value, CellType.BOOLEAN
            if isinstance(value, numbers.Number):
                return value, CellType.NUMBER
            return value, target_type

        parts: list[str] = []
        cursor = 0
        for match, result in zip(matches, results):
            parts.append(text[cursor : match.start()])
            parts.append("" if result is None else str(result))
            cursor = match.end()
        parts.append(text[cursor:])
        return "".join(parts), target_type

    def _eval_expression(self, expression: str, bindings: dict[str, Any], evaluator: ExpressionEvaluator) -> Any:
        try:
            return evaluator.evaluate(expression, bindings)
        except EvaluationError as exc:
            raise exc.with_pos(self.pos) from exc

    def add_target_pos(self, pos: Pos) -> None:
        self.target_pos.append(pos)

    def reset_target_pos(self) -> None:
        self.target_pos.clear()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CellData):
            return NotImplemented
        return (
            self.pos == other.pos
            and self.cell_type == other.cell_type
            and self.cell_value == other.cell_value
        )

    def __hash__(self) -> int:
        return hash((self.pos, self.cell_type, self.cell_value))
