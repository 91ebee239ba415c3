from __future__ import annotations

import io
import logging
import re
import zipfile
from datetime import date, datetime, time
from pathlib import Path
from typing import IO, Any, Union

import pandas as pd
from openpyxl import load_workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE, TYPE_ERROR, TYPE_FORMULA
from openpyxl.utils.exceptions import InvalidFileException

from ..models.cell import Cell, CellKind, Row, Sheet

"""Spreadsheet decoding and cell text reading.

decode()/read_sheets() turn an .xlsx workbook into the format-agnostic Sheet
model; read_cell_as_string() normalizes any cell into optional text, which is
the only representation the mapping engine looks at.

Numeric cells are held as 64-bit floats, so large integers and long decimals
read from numeric cells come back rounded. Text cells keep full precision.
"""

__all__ = [
    "InvalidFormatError",
    "SheetSource",
    "decode",
    "read_cell_as_string",
    "read_sheets",
    "sheet_to_frame",
    "unescape_text",
]

logger = logging.getLogger(__name__)

SheetSource = Union[bytes, bytearray, str, Path, IO[bytes]]

_ESCAPED_CHAR_RE = re.compile(r"_x([0-9A-Fa-f]{4})_")


class InvalidFormatError(Exception):
    """Raised when the input is not a readable spreadsheet."""


def read_cell_as_string(cell: Cell | None) -> str | None:
    """Read a cell's text whatever its kind.

    Only boolean, numeric and text cells carry text; blank, formula and error
    cells read as None. Text is stripped and empty text reads as None.
    """
    if cell is None:
        return None
    kind = cell.kind
    if kind is CellKind.BOOLEAN:
        return "true" if cell.value else "false"
    if kind is CellKind.NUMERIC:
        return str(float(cell.value))  # type: ignore[arg-type]
    if kind is CellKind.TEXT:
        text = (cell.value or "").strip()  # type: ignore[union-attr]
        return text or None
    # BLANK / FORMULA / ERROR
    return None


def unescape_text(text: str) -> str:
    """Undo the _xHHHH_ escape of characters XML cannot hold; other escapes stay literal."""
    def replace(match: re.Match[str]) -> str:
        char = chr(int(match.group(1), 16))
        return char if ILLEGAL_CHARACTERS_RE.match(char) else match.group()
    return _ESCAPED_CHAR_RE.sub(replace, text)


def _to_cell(raw: Any) -> Cell | None:
    """Convert an openpyxl cell to a Cell (None for an empty position)."""
    value = raw.value
    data_type = getattr(raw, "data_type", None)
    if data_type == TYPE_FORMULA:
        return Cell.formula(str(value) if value is not None else None)
    if data_type == TYPE_ERROR:
        return Cell.error(str(value) if value is not None else None)
    if value is None:
        return None
    if isinstance(value, bool):
        return Cell.boolean(value)
    if isinstance(value, (int, float)):
        return Cell.numeric(value)
    if isinstance(value, datetime):
        return Cell.text(value.isoformat(sep=" ", timespec="seconds"))
    if isinstance(value, (date, time)):
        return Cell.text(value.isoformat())
    return Cell.text(unescape_text(str(value)))


def _open_source(source: SheetSource) -> IO[bytes]:
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(bytes(source))
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"spreadsheet not found: {path}")
        return io.BytesIO(path.read_bytes())
    if source is None:
        raise ValueError("the spreadsheet source can not be None")
    # openpyxl needs a seekable stream; buffer whatever we were given
    return io.BytesIO(source.read())


def read_sheets(source: SheetSource) -> list[Sheet]:
    """Decode every worksheet of an .xlsx workbook.

    Raises:
        InvalidFormatError: the bytes are not a readable workbook
    """
    stream = _open_source(source)
    try:
        wb = load_workbook(stream, data_only=False)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError, TypeError) as e:
        raise InvalidFormatError(f"not a readable spreadsheet: {e}") from e

    sheets: list[Sheet] = []
    try:
        for ws in wb.worksheets:
            sheet = Sheet(name=ws.title)
            for raw_row in ws.iter_rows():
                cells = [_to_cell(c) for c in raw_row]
                # trailing empty positions do not count as cells
                while cells and cells[-1] is None:
                    cells.pop()
                sheet.rows.append(Row(cells))
            # a fresh worksheet reports one empty row
            if len(sheet.rows) == 1 and not sheet.rows[0].cells:  # type: ignore[union-attr]
                sheet.rows.clear()
            logger.debug("decoded sheet '%s' rows=%d", sheet.name, len(sheet.rows))
            sheets.append(sheet)
    finally:
        wb.close()
    return sheets


def decode(source: SheetSource) -> Sheet | None:
    """Decode the first worksheet, None when the workbook holds no worksheet."""
    sheets = read_sheets(source)
    if not sheets:
        return None
    return sheets[0]


def sheet_to_frame(sheet: Sheet) -> pd.DataFrame:
    """DataFrame view of a sheet using row 0 as the column labels.

    Unlabelled header cells get positional names (col1, col2, ...). Blank,
    formula and error cells become None.
    """
    header = sheet.get_row(0)
    width = max((r.last_cell_num for r in sheet.rows if r is not None), default=0)
    columns = []
    for idx in range(width):
        text = read_cell_as_string(header.get_cell(idx)) if header is not None else None
        columns.append(text if text is not None else f"col{idx + 1}")

    data: list[list[Any]] = []
    for row in sheet.rows[1:]:
        values: list[Any] = []
        for idx in range(width):
            cell = row.get_cell(idx) if row is not None else None
            if cell is None or cell.kind in (CellKind.BLANK, CellKind.FORMULA, CellKind.ERROR):
                values.append(None)
            else:
                values.append(cell.value)
        data.append(values)
    return pd.DataFrame(data, columns=columns)
