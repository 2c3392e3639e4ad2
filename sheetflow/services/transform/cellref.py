"""Target-position strategies for iteration commands."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from sheetflow.core.common import Pos
from sheetflow.core.context import Context
from sheetflow.core.errors import StructuralError


class CellRefGenerator(ABC):
    """Compute the destination anchor for the *index*-th emitted element."""

    @abstractmethod
    def generate_pos(self, index: int, context: Context) -> Pos:
        """Return the anchor for emission *index*."""


class SheetNameGenerator(CellRefGenerator):
    """Fan iterations out across sheets, keeping the anchor's row and column."""

    def __init__(self, sheet_names: Sequence[str], start_pos: Pos) -> None:
        self.sheet_names = [str(name) for name in sheet_names]
        self.start_pos = start_pos

    def generate_pos(self, index: int, context: Context) -> Pos:
        if index < 0 or index >= len(self.sheet_names):
            raise StructuralError(
                f"No sheet name for iteration {index}; only {len(self.sheet_names)} sheet names supplied"
            )
        return self.start_pos.on_sheet(self.sheet_names[index])
