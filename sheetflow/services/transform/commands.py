"""Structural template commands."""

# Module responsibilities:
# - Define the shared command interface (name, add_area, apply_at).
# - Implement iteration (each) and conditional (if) expansion of body areas.

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type

from sheetflow.core.common import Pos, Size, ZERO_SIZE
from sheetflow.core.context import Context
from sheetflow.core.errors import ConfigurationError

from .area import Area, Direction
from .cellref import CellRefGenerator, SheetNameGenerator
from .expression import DEFAULT_EVALUATOR, ExpressionEvaluator
from .grouping import group_collection, to_collection

LOGGER = logging.getLogger(__name__)

GROUP_DATA_KEY = "_group"


class Command(ABC):
    """Expand one or more body areas at an anchor and report the space used."""

    name: str = ""
    max_areas: int = 1

    def __init__(self, evaluator: ExpressionEvaluator | None = None) -> None:
        self.evaluator = evaluator or DEFAULT_EVALUATOR
        self.areas: List[Area] = []

    def add_area(self, area: Area) -> "Command":
        if len(self.areas) >= self.max_areas:
            raise ConfigurationError(
                f"Command '{self.name}' accepts at most {self.max_areas} area(s)"
            )
        self.areas.append(area)
        return self

    @abstractmethod
    def apply_at(self, anchor: Pos, context: Context) -> Size:
        """Expand the command with its top-left at *anchor*."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(areas={len(self.areas)})"


class EachCommand(Command):
    """Repeat the body area once per element of a collection.

    Attributes:
        items: Expression resolving to the collection, or a literal collection.
        var: Name bound to the current element (``_group`` for grouped
            iteration when omitted).
        select: Optional boolean filter; rejected elements emit nothing.
        group_by: Optional key expression; iteration then runs over
            :class:`GroupData` buckets.
        group_order: ``ASC``/``DESC`` to sort buckets by key.
        direction: ``DOWN`` stacks bodies vertically, ``RIGHT`` horizontally.
        cell_ref_generator: Overrides cursor placement per emission index.
        multisheet: Context variable holding sheet names; each element is
            written to the next sheet at the same row and column.
    """

    name = "each"

    def __init__(
        self,
        items: Any,
        var: Optional[str] = None,
        area: Optional[Area] = None,
        *,
        direction: Direction | str = Direction.DOWN,
        select: Optional[str] = None,
        group_by: Optional[str] = None,
        group_order: Optional[str] = None,
        cell_ref_generator: Optional[CellRefGenerator] = None,
        multisheet: Optional[str] = None,
        evaluator: ExpressionEvaluator | None = None,
    ) -> None:
        super().__init__(evaluator)
        self.items = items
        self.var = var
        self.direction = Direction.parse(direction)
        self.select = select
        self.group_by = group_by
        self.group_order = group_order
        self.cell_ref_generator = cell_ref_generator
        self.multisheet = multisheet
        if area is not None:
            self.add_area(area)

    @property
    def area(self) -> Area:
        if not self.areas:
            raise ConfigurationError("'each' command has no body area")
        return self.areas[0]

    def _resolve_items(self, context: Context) -> List[Any]:
        if not isinstance(self.items, str):
            return to_collection(self.items)
        expression = self.items.strip()
        if expression.isidentifier() and expression not in context:
            LOGGER.debug("each.items variable %r is not bound; iterating nothing", expression)
            return []
        return to_collection(self.evaluator.evaluate(expression, context.to_dict()))

    def _generator(self, anchor: Pos, context: Context) -> Optional[CellRefGenerator]:
        if self.cell_ref_generator is not None:
            return self.cell_ref_generator
        if self.multisheet:
            return SheetNameGenerator(context.require_list(self.multisheet), anchor)
        return None

    def apply_at(self, anchor: Pos, context: Context) -> Size:
        collection = self._resolve_items(context)
        var = self.var
        if self.group_by:
            var = var or GROUP_DATA_KEY
            collection = group_collection(
                collection,
                self.group_by,
                self.group_order,
                var=var,
                bindings=context.to_dict(),
                evaluator=self.evaluator,
            )
        if not var:
            raise ConfigurationError("'each' command requires 'var' unless 'groupBy' is set")
        return self._process(collection, anchor, context, var)

    def _process(self, collection: List[Any], anchor: Pos, context: Context, var: str) -> Size:
        generator = self._generator(anchor, context)
        width = height = 0
        index = 0
        cursor = anchor

        for element in collection:
            with context.bound(var, element):
                if self.select and not self.evaluator.is_condition_true(self.select, context.to_dict()):
                    continue
                target = generator.generate_pos(index, context) if generator is not None else cursor
                size = self.area.apply_at(target, context)
                index += 1
                if generator is not None:
                    width = max(width, size.width)
                    height = max(height, size.height)
                elif self.direction is Direction.DOWN:
                    cursor = cursor.shift(rows=size.height)
                    width = max(width, size.width)
                    height += size.height
                else:
                    cursor = cursor.shift(cols=size.width)
                    width += size.width
                    height = max(height, size.height)

        LOGGER.debug("each emitted %d element(s) at %s size=%dx%d", index, anchor, width, height)
        return Size(width, height)


class IfCommand(Command):
    """Expand the if-area when the condition holds, otherwise the else-area."""

    name = "if"
    max_areas = 2

    def __init__(
        self,
        condition: str,
        if_area: Optional[Area] = None,
        else_area: Optional[Area] = None,
        *,
        evaluator: ExpressionEvaluator | None = None,
    ) -> None:
        super().__init__(evaluator)
        self.condition = condition
        if if_area is not None:
            self.add_area(if_area)
        if else_area is not None:
            self.add_area(else_area)

    def apply_at(self, anchor: Pos, context: Context) -> Size:
        if self.evaluator.is_condition_true(self.condition, context.to_dict()):
            return self.areas[0].apply_at(anchor, context) if self.areas else ZERO_SIZE
        if len(self.areas) > 1:
            return self.areas[1].apply_at(anchor, context)
        return ZERO_SIZE


COMMANDS: Dict[str, Type[Command]] = {
    EachCommand.name: EachCommand,
    IfCommand.name: IfCommand,
}
