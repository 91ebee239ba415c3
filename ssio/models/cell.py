from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

"""Format-agnostic sheet model.

A Sheet is an ordered list of rows, a Row an ordered list of cells. Missing
rows and missing cells are represented by None so that positions stay
zero-based and stable, the same way a spreadsheet reports sparse content.
Row 0, when present, is the header row.
"""

__all__ = [
    "Cell",
    "CellKind",
    "Row",
    "Sheet",
]


class CellKind(Enum):
    """Tag of a cell value.

    FORMULA and ERROR cells carry no usable value for mapping purposes.
    """
    BLANK = "blank"
    BOOLEAN = "boolean"
    NUMERIC = "numeric"
    TEXT = "text"
    FORMULA = "formula"
    ERROR = "error"


@dataclass(frozen=True)
class Cell:
    kind: CellKind
    value: bool | float | str | None = None  # formula text / error code kept for display only

    @classmethod
    def blank(cls) -> Cell:
        return cls(CellKind.BLANK)

    @classmethod
    def boolean(cls, value: bool) -> Cell:
        return cls(CellKind.BOOLEAN, bool(value))

    @classmethod
    def numeric(cls, value: float) -> Cell:
        return cls(CellKind.NUMERIC, float(value))

    @classmethod
    def text(cls, value: str) -> Cell:
        return cls(CellKind.TEXT, value)

    @classmethod
    def formula(cls, expression: str | None = None) -> Cell:
        return cls(CellKind.FORMULA, expression)

    @classmethod
    def error(cls, code: str | None = None) -> Cell:
        return cls(CellKind.ERROR, code)


@dataclass
class Row:
    cells: list[Cell | None] = field(default_factory=list)

    @property
    def last_cell_num(self) -> int:
        """One past the index of the last populated cell (0 for an empty row)."""
        for index in range(len(self.cells) - 1, -1, -1):
            if self.cells[index] is not None:
                return index + 1
        return 0

    def get_cell(self, column_index: int) -> Cell | None:
        if 0 <= column_index < len(self.cells):
            return self.cells[column_index]
        return None

    def append(self, cell: Cell | None) -> None:
        self.cells.append(cell)

    @classmethod
    def of_texts(cls, texts: list[str]) -> Row:
        return cls([Cell.text(t) for t in texts])


@dataclass
class Sheet:
    rows: list[Row | None] = field(default_factory=list)
    name: str = "Sheet1"

    @property
    def last_row_num(self) -> int:
        """Zero-based index of the last row, -1 when the sheet is empty."""
        return len(self.rows) - 1

    def get_row(self, row_index: int) -> Row | None:
        if 0 <= row_index < len(self.rows):
            return self.rows[row_index]
        return None

    def create_row(self) -> Row:
        row = Row()
        self.rows.append(row)
        return row

    def __len__(self) -> int:
        return len(self.rows)
