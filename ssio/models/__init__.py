"""Domain models for the sheet <-> record mapper.

Sheet/Row/Cell form the format-agnostic table model, CellError/DatumError the
field-level error records, and the mapping results tie both together.
"""

from .cell import Cell, CellKind, Row, Sheet
from .field_error import CellError, DatumError, FieldError
from .mapping_result import ColumnMeta, MappedRecord, MappedRow, SaveResult

__all__ = [
    # Sheet model
    "Cell",
    "CellKind",
    "Row",
    "Sheet",
    # Errors
    "CellError",
    "DatumError",
    "FieldError",
    # Mapping results
    "ColumnMeta",
    "MappedRecord",
    "MappedRow",
    "SaveResult",
]
