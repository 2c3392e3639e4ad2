"""Custom exceptions used across SheetFlow."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .common import Pos


class SheetFlowError(Exception):
    """Base error for the application."""


class ConfigurationError(SheetFlowError):
    """Invalid command attributes or job configuration."""


class VariableLookupError(SheetFlowError, LookupError):
    """Context variable is missing or has the wrong type."""


class StructuralError(SheetFlowError):
    """Template structure cannot be expanded as declared."""


class TemplateError(SheetFlowError):
    """Raised when the template workbook cannot be loaded."""


class EvaluationError(SheetFlowError):
    """Raised when a template expression fails to evaluate."""

    def __init__(self, message: str, *, expression: str, pos: "Pos | None" = None) -> None:
        self.message = message
        self.expression = expression
        self.pos = pos
        super().__init__(self._render())

    def _render(self) -> str:
        location = f" at {self.pos}" if self.pos is not None else ""
        return f"Failed to evaluate '{self.expression}'{location}: {self.message}"

    def with_pos(self, pos: "Pos") -> "EvaluationError":
        """Return a copy of this error bound to the template cell *pos*."""

        return EvaluationError(self.message, expression=self.expression, pos=pos)
