from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Union

from ..models.field_error import CellError, DatumError

"""Error log buffering.

Cell and datum errors are kept in memory and written as JSON Lines on
flush(): one object per error, fixed keys per kind (see
CellError.to_dict / DatumError.to_dict). Without an explicit path the file is
``logs/errors-YYYYMMDD-HHMMSS.log`` (UTC), decided on first access.
Not thread-safe; one buffer per run.
"""

__all__ = [
    "ErrorLogBuffer",
    "FieldErrorRecord",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"

FieldErrorRecord = Union[CellError, DatumError]


class ErrorLogBuffer:
    """In-memory buffer for field errors. Flush writes JSON Lines."""

    def __init__(self, path: Path | None = None) -> None:
        self._records: list[FieldErrorRecord] = []
        self._file_path: Path | None = path

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            LOGS_DIR.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = LOGS_DIR / f"errors-{stamp}.log"
        return self._file_path

    def append(self, record: FieldErrorRecord) -> None:
        self._records.append(record)

    def extend(self, records: list[CellError] | list[DatumError]) -> None:
        self._records.extend(records)

    def __len__(self) -> int:
        return len(self._records)

    def flush(self) -> Path | None:
        """Append buffered errors to the log file and clear the buffer.

        Returns the file path, or None when there was nothing to write (no
        file is created in that case).
        """
        if not self._records:
            return None
        fp = self.file_path
        fp.parent.mkdir(parents=True, exist_ok=True)
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
