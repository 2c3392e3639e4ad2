"""Template transformation engine."""

from .area import Area, CommandData, Direction
from .area_builder import CommentAreaBuilder, build_areas
from .cell_data import CellData, CellType, EvaluatedCell
from .cellref import CellRefGenerator, SheetNameGenerator
from .commands import COMMANDS, Command, EachCommand, IfCommand
from .expression import ExpressionEvaluator
from .grouping import GroupData, group_collection, to_collection
from .transformer import GridWorkbook, SheetData, Transformer

__all__ = [
    "Area",
    "CommandData",
    "Direction",
    "CommentAreaBuilder",
    "build_areas",
    "CellData",
    "CellType",
    "EvaluatedCell",
    "CellRefGenerator",
    "SheetNameGenerator",
    "COMMANDS",
    "Command",
    "EachCommand",
    "IfCommand",
    "ExpressionEvaluator",
    "GroupData",
    "group_collection",
    "to_collection",
    "GridWorkbook",
    "SheetData",
    "Transformer",
]
