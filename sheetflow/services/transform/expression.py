"""Expression evaluation backed by simpleeval."""

from __future__ import annotations

import ast
import logging
from typing import Any, Callable, Dict, Mapping, Optional

from simpleeval import DEFAULT_FUNCTIONS, EvalWithCompoundTypes, InvalidExpression

from sheetflow.core.errors import EvaluationError

LOGGER = logging.getLogger(__name__)

_EVAL_FAILURES = (
    InvalidExpression,
    SyntaxError,
    TypeError,
    ValueError,
    ArithmeticError,
    LookupError,
    AttributeError,
)


class _RecordEval(EvalWithCompoundTypes):
    """simpleeval variant where ``row.name`` reads a mapping key before any dict method."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.nodes[ast.Attribute] = self._eval_attribute

    def _eval_attribute(self, node: ast.Attribute) -> Any:
        if not node.attr.startswith("_"):
            value = self._eval(node.value)
            if isinstance(value, Mapping) and node.attr in value:
                return value[node.attr]
        return super()._eval_attribute(node)


class ExpressionEvaluator:
    """Evaluate template expressions against a variable binding."""

    def __init__(self, functions: Optional[Mapping[str, Callable[..., Any]]] = None) -> None:
        self.functions: Dict[str, Callable[..., Any]] = dict(DEFAULT_FUNCTIONS)
        if functions:
            self.functions.update(functions)

    def evaluate(self, expression: str, bindings: Mapping[str, Any]) -> Any:
        text = expression.strip()
        if not text:
            raise EvaluationError("empty expression", expression=expression)
        evaluator = _RecordEval(names=dict(bindings), functions=self.functions)
        try:
            return evaluator.eval(text)
        except _EVAL_FAILURES as exc:
            LOGGER.debug("expression failed expr=%r error=%s", text, exc)
            raise EvaluationError(str(exc) or exc.__class__.__name__, expression=expression) from exc

    def is_condition_true(self, expression: str, bindings: Mapping[str, Any]) -> bool:
        return bool(self.evaluate(expression, bindings))


DEFAULT_EVALUATOR = ExpressionEvaluator()
