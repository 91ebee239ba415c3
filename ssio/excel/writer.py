from __future__ import annotations

import io
import logging
from typing import IO

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE, TYPE_STRING

from ..models.cell import CellKind, Sheet

"""Spreadsheet encoding: Sheet -> .xlsx bytes.

The mapper only produces text cells, but every cell kind is written so that a
decoded sheet can be re-encoded.

Control characters XML does not allow (vertical tab, NUL, ...) are written as
the OOXML escape ``_xHHHH_``; the reader turns them back into characters.
"""

__all__ = [
    "encode",
    "encode_to_bytes",
    "escape_text",
]

logger = logging.getLogger(__name__)


def escape_text(text: str) -> str:
    return ILLEGAL_CHARACTERS_RE.sub(lambda m: f"_x{ord(m.group()):04X}_", text)


def encode(sheet: Sheet, sink: IO[bytes]) -> int:
    """Write a sheet as a single-worksheet .xlsx workbook to sink.

    Returns the number of bytes written.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = sheet.name or "Sheet1"
    for row_index, row in enumerate(sheet.rows, start=1):
        if row is None:
            continue
        for column_index, cell in enumerate(row.cells, start=1):
            if cell is None or cell.kind in (CellKind.BLANK, CellKind.ERROR):
                continue
            if cell.kind is CellKind.FORMULA:
                if cell.value:
                    ws.cell(row=row_index, column=column_index, value=str(cell.value))
                continue
            target = ws.cell(row=row_index, column=column_index)
            if cell.kind is CellKind.TEXT:
                # keep text that looks like a formula from being evaluated
                target.value = escape_text(cell.value or "")
                target.data_type = TYPE_STRING
            else:
                target.value = cell.value

    buffer = io.BytesIO()
    wb.save(buffer)
    payload = buffer.getvalue()
    sink.write(payload)
    logger.debug("encoded sheet '%s' rows=%d bytes=%d", ws.title, len(sheet.rows), len(payload))
    return len(payload)


def encode_to_bytes(sheet: Sheet) -> bytes:
    buffer = io.BytesIO()
    encode(sheet, buffer)
    return buffer.getvalue()
