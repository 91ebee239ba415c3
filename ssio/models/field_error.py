from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

"""Field-level error records.

CellError is produced while assigning a cell value to a record during parse,
DatumError while reading a record field during save. Both only ever get
appended to caller-owned lists; the engine never reads them back.

FieldError is the base of every exception that stays isolated to one field of
one record/row instead of aborting the whole call.
"""

__all__ = [
    "CellError",
    "DatumError",
    "FieldError",
]


class FieldError(Exception):
    """Failure confined to a single field; accumulated, never fatal."""


@dataclass(frozen=True)
class CellError:
    """Error attached to one cell of a data row.

    Attributes:
        row_index: zero-based sheet row index (the header is row 0)
        column_index: zero-based column index
        header_text: header text of the column
        field_name: record field the column is mapped to
        cause: the exception raised while assigning the cell value
    """
    row_index: int
    column_index: int
    header_text: str
    field_name: str
    cause: BaseException

    @property
    def row_index_one_based(self) -> int:
        return self.row_index + 1

    @property
    def column_index_one_based(self) -> int:
        return self.column_index + 1

    @property
    def message(self) -> str:
        return str(self.cause)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": "cell",
            "row": self.row_index,
            "column": self.column_index,
            "header": self.header_text,
            "field": self.field_name,
            "message": self.message,
        }

    def to_json_line(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


@dataclass(frozen=True)
class DatumError:
    """Error attached to one field of a record being saved.

    Attributes:
        record_index: zero-based position of the record in the input sequence
        field_name: the field that could not be read
        cause: the exception raised while reading it
    """
    record_index: int
    field_name: str
    cause: BaseException

    @property
    def message(self) -> str:
        return str(self.cause)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": "datum",
            "record": self.record_index,
            "field": self.field_name,
            "message": self.message,
        }

    def to_json_line(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)
