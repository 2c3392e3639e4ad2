"""Build area/command trees from markup held in template cell comments."""

# Module responsibilities:
# - Parse ``jx:area``/``jx:each``/``jx:if`` lines out of cell comments.
# - Nest every command into the innermost enclosing area.

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from openpyxl.utils.cell import column_index_from_string, coordinate_from_string
from openpyxl.utils.exceptions import CellCoordinatesException

from sheetflow.core.common import CellRange, Pos
from sheetflow.core.errors import StructuralError

from .area import Area, Direction
from .commands import COMMANDS, Command, EachCommand, IfCommand
from .expression import ExpressionEvaluator
from .transformer import Transformer

LOGGER = logging.getLogger(__name__)

MARKUP_PREFIX = "jx:"
AREA_COMMAND = "area"
_LINE_RE = re.compile(r"jx:(\w+)\s*\((.*)\)\s*$")
_ATTR_RE = re.compile(r'(\w+)\s*=\s*(?:"([^"]*)"|\[([^\]]*)\])')
_LIST_ITEM_RE = re.compile(r'"([^"]*)"')


@dataclass
class Markup:
    """One parsed markup line anchored at a template cell."""

    name: str
    pos: Pos
    attrs: Dict[str, str] = field(default_factory=dict)
    lists: Dict[str, List[str]] = field(default_factory=dict)

    def cell_range(self) -> CellRange:
        last = self.attrs.get("lastCell")
        if not last:
            raise StructuralError(f"jx:{self.name} at {self.pos} is missing 'lastCell'")
        end = parse_cell_ref(last, self.pos.sheet_name)
        if end.row < self.pos.row or end.col < self.pos.col:
            raise StructuralError(f"jx:{self.name} at {self.pos} has lastCell '{last}' before its start")
        return CellRange(self.pos.sheet_name, self.pos.row, end.row, self.pos.col, end.col)


def parse_cell_ref(ref: str, sheet_name: str) -> Pos:
    """Parse ``D4`` / ``$D$4`` / ``Sheet!D4`` into a zero-based position."""

    text = ref.strip()
    if "!" in text:
        sheet_part, text = text.rsplit("!", 1)
        sheet_name = sheet_part.strip("'") or sheet_name
    try:
        column, row = coordinate_from_string(text)
    except (CellCoordinatesException, ValueError) as exc:
        raise StructuralError(f"Invalid cell reference '{ref}'") from exc
    return Pos(sheet_name, row - 1, column_index_from_string(column) - 1)


def parse_range_ref(ref: str, sheet_name: str) -> CellRange:
    first, _, last = ref.partition(":")
    start = parse_cell_ref(first, sheet_name)
    end = parse_cell_ref(last or first, start.sheet_name)
    return CellRange(start.sheet_name, start.row, end.row, start.col, end.col)


def parse_markup(comment: str, pos: Pos) -> List[Markup]:
    markups: List[Markup] = []
    for raw_line in comment.splitlines():
        line = raw_line.strip()
        if not line.startswith(MARKUP_PREFIX):
            continue
        match = _LINE_RE.match(line)
        if match is None:
            raise StructuralError(f"Malformed markup at {pos}: {line!r}")
        markup = Markup(match.group(1), pos)
        for attr in _ATTR_RE.finditer(match.group(2)):
            if attr.group(3) is not None:
                markup.lists[attr.group(1)] = _LIST_ITEM_RE.findall(attr.group(3))
            else:
                markup.attrs[attr.group(1)] = attr.group(2)
        markups.append(markup)
    return markups


class CommentAreaBuilder:
    """Create root areas from ``jx:`` markup found in the transformer's cells."""

    def __init__(self, transformer: Transformer, evaluator: Optional[ExpressionEvaluator] = None) -> None:
        self.transformer = transformer
        self.evaluator = evaluator or transformer.evaluator

    def collect_markup(self) -> List[Markup]:
        markups: List[Markup] = []
        cells = sorted(self.transformer.source_cells(), key=lambda cell: cell.pos)
        for cell in cells:
            if cell.comment and MARKUP_PREFIX in cell.comment:
                markups.extend(parse_markup(cell.comment, cell.pos))
        return markups

    def _area(self, cell_range: CellRange, direction: Direction | str = Direction.DOWN) -> Area:
        return Area(cell_range.anchor, cell_range.size, self.transformer, direction=direction)

    def _command(self, markup: Markup, cell_range: CellRange) -> tuple[Command, List[Area]]:
        attrs = markup.attrs
        if markup.name == EachCommand.name:
            if "items" not in attrs:
                raise StructuralError(f"jx:each at {markup.pos} is missing 'items'")
            command: Command = EachCommand(
                attrs["items"],
                attrs.get("var"),
                direction=attrs.get("direction", Direction.DOWN),
                select=attrs.get("select"),
                group_by=attrs.get("groupBy"),
                group_order=attrs.get("groupOrder"),
                multisheet=attrs.get("multisheet"),
                evaluator=self.evaluator,
            )
        elif markup.name == IfCommand.name:
            if "condition" not in attrs:
                raise StructuralError(f"jx:if at {markup.pos} is missing 'condition'")
            command = IfCommand(attrs["condition"], evaluator=self.evaluator)
        else:
            raise StructuralError(
                f"Unknown command 'jx:{markup.name}' at {markup.pos} (known: {', '.join(sorted(COMMANDS))})"
            )

        ranges = [parse_range_ref(ref, markup.pos.sheet_name) for ref in markup.lists.get("areas", [])]
        areas = [self._area(r) for r in (ranges or [cell_range])]
        for area in areas:
            command.add_area(area)
        return command, areas

    def build(self) -> List[Area]:
        roots: List[Area] = []
        pending: List[tuple[Markup, CellRange]] = []
        for markup in self.collect_markup():
            cell_range = markup.cell_range()
            if markup.name == AREA_COMMAND:
                roots.append(self._area(cell_range, markup.attrs.get("direction", Direction.DOWN)))
            else:
                pending.append((markup, cell_range))

        def cell_count(cell_range: CellRange) -> int:
            size = cell_range.size
            return size.width * size.height

        known: List[Area] = list(roots)
        pending.sort(key=lambda item: cell_count(item[1]), reverse=True)
        for markup, cell_range in pending:
            parents = [area for area in known if area.cell_range.contains_range(cell_range)]
            if not parents:
                raise StructuralError(f"jx:{markup.name} at {markup.pos} is outside every jx:area")
            parent = min(parents, key=lambda area: cell_count(area.cell_range))
            command, areas = self._command(markup, cell_range)
            parent.add_command(cell_range.anchor, cell_range.size, command)
            known.extend(areas)

        LOGGER.debug("built %d root area(s) from markup", len(roots))
        return roots


def build_areas(transformer: Transformer) -> List[Area]:
    return CommentAreaBuilder(transformer).build()
