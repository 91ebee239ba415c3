from __future__ import annotations

import logging
from collections.abc import Mapping

from ..excel.reader import read_cell_as_string
from ..models.cell import Row
from ..models.mapping_result import ColumnMeta

"""Header row resolution for parsing.

Columns are identified by their header text, not by position: unknown
columns are ignored, and a header row matching nothing is rejected because
it would silently drop every field.
"""

__all__ = [
    "InvalidHeaderRowError",
    "resolve_header",
]

logger = logging.getLogger(__name__)


class InvalidHeaderRowError(Exception):
    """Raised when no header cell matches the reverse label table."""


def resolve_header(reverse_label_table: Mapping[str, str], header_row: Row | None) -> dict[int, ColumnMeta]:
    """Build the column index -> ColumnMeta association for one parse call.

    Args:
        reverse_label_table: header text -> field name
        header_row: row 0 of the sheet

    Raises:
        InvalidHeaderRowError: no header text of the table was found
    """
    columns: dict[int, ColumnMeta] = {}
    seen: set[str] = set()
    if header_row is not None:
        for column_index in range(header_row.last_cell_num):
            header_text = read_cell_as_string(header_row.get_cell(column_index))
            if header_text is None:
                continue
            field_name = reverse_label_table.get(header_text)
            if field_name is None:
                continue
            if header_text in seen:
                # duplicated header: the first column keeps the field
                logger.warning("duplicated header '%s' at column %d ignored", header_text, column_index)
                continue
            seen.add(header_text)
            columns[column_index] = ColumnMeta(column_index, field_name, header_text)

    if not columns:
        raise InvalidHeaderRowError(
            f"no header text matches the label table (expected one of {sorted(reverse_label_table)})"
        )
    logger.debug("header resolved: %s", {i: m.field_name for i, m in columns.items()})
    return columns
