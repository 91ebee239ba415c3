from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import IO, Any, TypeVar

from ..excel.reader import InvalidFormatError, SheetSource, decode
from ..excel.writer import encode
from ..models.cell import Sheet
from ..models.field_error import CellError, DatumError
from ..models.mapping_result import SaveResult
from .header import InvalidHeaderRowError, resolve_header
from .row_mapper import header_row, map_record, map_row

"""Public entry points: save, save_if_no_datum_error, parse, parse_ignoring_errors.

save direction:
    label table (field name -> header text, ordered) + records -> sheet -> sink
parse direction:
    reverse label table (header text -> field name) + sheet -> records

Field-level errors are appended to the optional caller lists in record/row
order and never abort a call; only strict save discards its output when any
datum error occurred. Argument errors raise ValueError, structural errors
raise InvalidFormatError / InvalidHeaderRowError.
"""

__all__ = [
    "InvalidFormatError",
    "InvalidHeaderRowError",
    "build_sheet",
    "parse",
    "parse_ignoring_errors",
    "parse_sheet",
    "reverse_label_table",
    "save",
    "save_if_no_datum_error",
    "validate_label_table",
    "validate_reverse_label_table",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def validate_label_table(label_table: Mapping[str, str] | None) -> None:
    """Validate a save label table (field name -> header text)."""
    if not label_table:
        raise ValueError("the label table can not be None or empty")
    for column_index, field_name in enumerate(label_table):
        if _is_blank(field_name):
            raise ValueError(
                f"One header has a blank field name. Header Index (0-based) = {column_index}"
            )


def validate_reverse_label_table(reverse_label_table: Mapping[str, str] | None) -> None:
    """Validate a parse label table (header text -> field name)."""
    if not reverse_label_table:
        raise ValueError("the reverse label table can not be None or empty")
    for column_index, (header_text, field_name) in enumerate(reverse_label_table.items()):
        if _is_blank(header_text):
            raise ValueError(
                f"One header defined in the reverse label table has a blank header text. "
                f"Header Index (0-based) = {column_index}"
            )
        if _is_blank(field_name):
            raise ValueError(
                f"One header defined in the reverse label table has a blank field name. "
                f"Header Index (0-based) = {column_index}"
            )


def reverse_label_table(label_table: Mapping[str, str]) -> dict[str, str]:
    """Turn field name -> header text into header text -> field name."""
    return {header_text: field_name for field_name, header_text in label_table.items()}


def build_sheet(
    label_table: Mapping[str, str],
    records: Iterable[Any] | None,
    placeholder: str | None = None,
) -> tuple[Sheet, list[DatumError]]:
    """Build the header row and one row per record; no validation, no I/O."""
    sheet = Sheet()
    sheet.rows.append(header_row(label_table))
    errors: list[DatumError] = []
    for record_index, record in enumerate(records if records is not None else ()):
        mapped = map_record(label_table, record, record_index, placeholder)
        sheet.rows.append(mapped.value)
        errors.extend(mapped.errors)
    return sheet, errors


def save(
    label_table: Mapping[str, str],
    records: Iterable[Any] | None,
    sink: IO[bytes],
    placeholder: str | None = None,
    datum_errors: list[DatumError] | None = None,
    abort_on_error: bool = False,
) -> SaveResult:
    """Save records to a new single-sheet workbook written to sink.

    Every record produces one row; an unreadable field produces a datum error
    and the placeholder (or empty text) in its cell.

    Args:
        label_table: field name -> header text; its order is the column order
        records: records to save (None is treated as no records)
        sink: binary stream the workbook is written to
        placeholder: text written in place of an unreadable field
        datum_errors: optional list the datum errors are appended to
        abort_on_error: when True and any datum error occurred, nothing is
            written to sink

    Raises:
        ValueError: empty label table, blank field name or missing sink
    """
    validate_label_table(label_table)
    if sink is None:
        raise ValueError("the sink can not be None")

    sheet, errors = build_sheet(label_table, records, placeholder)
    if datum_errors is not None:
        datum_errors.extend(errors)

    if errors and abort_on_error:
        logger.warning("save aborted: %d datum error(s), nothing written", len(errors))
        return SaveResult(sheet=None, written=False, row_count=len(sheet), datum_errors=errors)

    encode(sheet, sink)
    logger.debug("saved rows=%d datum_errors=%d", len(sheet), len(errors))
    return SaveResult(sheet=sheet, written=True, row_count=len(sheet), datum_errors=errors)


def save_if_no_datum_error(
    label_table: Mapping[str, str],
    records: Iterable[Any] | None,
    sink: IO[bytes],
    placeholder: str | None = None,
    datum_errors: list[DatumError] | None = None,
) -> SaveResult:
    """Strict save: like save(), but writes nothing if any datum error occurred."""
    return save(label_table, records, sink, placeholder, datum_errors, abort_on_error=True)


def parse_sheet(
    reverse_label_table: Mapping[str, str],
    sheet: Sheet | None,
    record_type: type[T],
    cell_errors: list[CellError] | None = None,
) -> list[T]:
    """Parse an already decoded sheet; see parse()."""
    validate_reverse_label_table(reverse_label_table)
    if record_type is None:
        raise ValueError("the record type can not be None")
    if sheet is None:
        return []
    # less than two rows: no data rows
    if sheet.last_row_num < 1:
        return []

    column_meta = resolve_header(reverse_label_table, sheet.get_row(0))
    records: list[T] = []
    error_count = 0
    for row_index in range(1, sheet.last_row_num + 1):
        mapped = map_row(column_meta, sheet.get_row(row_index), row_index, record_type)
        records.append(mapped.value)
        error_count += len(mapped.errors)
        if cell_errors is not None:
            cell_errors.extend(mapped.errors)
    logger.debug("parsed records=%d cell_errors=%d", len(records), error_count)
    return records


def _to_sheet(source: Sheet | SheetSource | None) -> Sheet | None:
    if source is None:
        raise ValueError("the source can not be None")
    if isinstance(source, Sheet):
        return source
    return decode(source)


def parse(
    reverse_label_table: Mapping[str, str],
    source: Sheet | SheetSource,
    cell_errors: list[CellError] | None = None,
    record_type: type[T] | None = None,
) -> list[T]:
    """Parse the first sheet of a workbook into records.

    Columns are found by header text (row 0), not by position; unknown
    columns are ignored. One record is returned per data row, even when some
    of its cells could not be assigned.

    Args:
        reverse_label_table: header text -> field name
        source: a Sheet, or workbook bytes / binary stream / path
        cell_errors: optional list the cell errors are appended to
        record_type: record class, constructible without arguments

    Raises:
        ValueError: empty table, blank header text or field name
        InvalidFormatError: source is not a readable workbook
        InvalidHeaderRowError: no header cell matches the table
    """
    validate_reverse_label_table(reverse_label_table)
    if record_type is None:
        raise ValueError("the record type can not be None")
    return parse_sheet(reverse_label_table, _to_sheet(source), record_type, cell_errors)


def parse_ignoring_errors(
    reverse_label_table: Mapping[str, str],
    source: Sheet | SheetSource,
    record_type: type[T],
) -> list[T]:
    """parse() without error reporting.

    An unreadable workbook or an unusable header row gives an empty list;
    cell errors are dropped.
    """
    try:
        return parse(reverse_label_table, source, None, record_type)
    except (InvalidFormatError, InvalidHeaderRowError) as e:
        logger.debug("parse ignored: %s", e)
        return []
