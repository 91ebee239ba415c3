from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, TypeVar

from ..excel.reader import read_cell_as_string
from ..models.cell import Cell, Row
from ..models.field_error import CellError, DatumError, FieldError
from ..models.mapping_result import ColumnMeta, MappedRecord, MappedRow
from .accessor import NoSuchAccessorError, accessor_for
from .coercion import can_convert, convert

"""Row mapping in both directions.

Save: one record -> one row of text cells, in label table order.
Parse: one data row -> one record, assigning each mapped cell by trying a
text setter first and then sweeping the typed setters of the field.

A failing field never drops its record or row; it degrades to a datum error
(placeholder text in the cell) or a cell error (field left at its default).
Both functions return the value together with the errors they collected.
"""

__all__ = [
    "NoSuitableSetterError",
    "assign_cell_text",
    "header_row",
    "map_record",
    "map_row",
    "new_record",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")


class NoSuitableSetterError(FieldError):
    """No setter of the field accepts the cell text."""


def header_row(label_table: Mapping[str, str]) -> Row:
    """Row 0 for save: the header texts in label table order."""
    return Row([Cell.text(header_text or "") for header_text in label_table.values()])


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def map_record(
    label_table: Mapping[str, str],
    record: Any,
    record_index: int,
    placeholder: str | None = None,
) -> MappedRow:
    """Convert one record into a row of text cells.

    Args:
        label_table: field name -> header text, in column order
        record: the record to read
        record_index: zero-based position of the record, used in errors
        placeholder: text written in place of an unreadable field
    """
    errors: list[DatumError] = []
    row = Row()
    accessor = accessor_for(type(record)) if record is not None else None
    for field_name in label_table:
        try:
            if accessor is None:
                raise NoSuchAccessorError(f"record {record_index} is None")
            value = accessor.get_field(record, field_name)
            text = _to_text(value)
        except FieldError as e:
            errors.append(DatumError(record_index=record_index, field_name=field_name, cause=e))
            text = placeholder if placeholder is not None else ""
        row.append(Cell.text(text))
    return MappedRow(value=row, errors=errors)


def assign_cell_text(record: Any, field_name: str, text: str | None) -> None:
    """Assign text to a record field, choosing the setter.

    Order: the first text setter; otherwise the typed setters in sweep order,
    the first one whose type accepts the text wins.

    Raises:
        NoSuitableSetterError: no setter exists or none accepts the text
        ConversionError / AssignmentError: the chosen setter failed
    """
    accessor = accessor_for(type(record))
    if accessor.set_field_as_text(record, field_name, text):
        return
    for setter in accessor.list_setters(field_name):
        if can_convert(text, setter.param_type):
            value = convert(text, setter.param_type)
            accessor.set_field(record, field_name, value, setter.param_type)
            return
    raise NoSuitableSetterError(f'No suitable setter for field "{field_name}" with cell text "{text}"')


def new_record(record_type: type[T]) -> T:
    try:
        return record_type()
    except TypeError as e:
        raise ValueError(
            f"record type {record_type.__name__} must be constructible without arguments: {e}"
        ) from e


def map_row(
    column_meta: Mapping[int, ColumnMeta],
    row: Row | None,
    row_index: int,
    record_type: type[T],
) -> MappedRecord[T]:
    """Convert one data row into a new record.

    Args:
        column_meta: result of header resolution
        row: the data row (None for a row without cells)
        row_index: zero-based sheet row index, used in errors
        record_type: record class, called without arguments
    """
    record = new_record(record_type)
    errors: list[CellError] = []
    if row is None:
        return MappedRecord(value=record, errors=errors)

    for column_index in range(row.last_cell_num):
        meta = column_meta.get(column_index)
        if meta is None:
            continue
        text = read_cell_as_string(row.get_cell(column_index))
        try:
            assign_cell_text(record, meta.field_name, text)
        except FieldError as e:
            errors.append(
                CellError(
                    row_index=row_index,
                    column_index=column_index,
                    header_text=meta.header_text,
                    field_name=meta.field_name,
                    cause=e,
                )
            )
    if errors:
        logger.debug("row %d: %d cell error(s)", row_index, len(errors))
    return MappedRecord(value=record, errors=errors)
