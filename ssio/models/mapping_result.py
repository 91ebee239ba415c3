from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from .cell import Row, Sheet
from .field_error import CellError, DatumError

"""Result models shared by the row mapper and the mapping facade."""

__all__ = [
    "ColumnMeta",
    "MappedRecord",
    "MappedRow",
    "SaveResult",
]

T = TypeVar("T")


@dataclass(frozen=True)
class ColumnMeta:
    """Association of one sheet column with a record field (one parse call)."""
    column_index: int
    field_name: str
    header_text: str


@dataclass(frozen=True)
class MappedRow:
    """One record converted to a row, plus the datum errors met on the way."""
    value: Row
    errors: list[DatumError] = field(default_factory=list)


@dataclass(frozen=True)
class MappedRecord(Generic[T]):
    """One data row converted to a record, plus the cell errors met on the way."""
    value: T
    errors: list[CellError] = field(default_factory=list)


@dataclass(frozen=True)
class SaveResult:
    """Outcome of a save call.

    sheet is None when strict mode discarded the output.
    """
    sheet: Sheet | None
    written: bool
    row_count: int  # header included
    datum_errors: list[DatumError] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.datum_errors)

    def summary(self) -> dict[str, Any]:
        return {
            "rows": self.row_count,
            "written": self.written,
            "errors": len(self.datum_errors),
        }
