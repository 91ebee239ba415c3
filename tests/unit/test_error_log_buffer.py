from __future__ import annotations

import json
import re
from pathlib import Path

from ssio.logging.error_log import ErrorLogBuffer
from ssio.models.field_error import CellError, DatumError
from ssio.services.coercion import ConversionError


def _cell_error() -> CellError:
    return CellError(
        row_index=2,
        column_index=1,
        header_text="Age",
        field_name="age",
        cause=ConversionError("'abc' is not a valid int32"),
    )


def test_flush_writes_json_lines(temp_workdir: Path):
    buf = ErrorLogBuffer(temp_workdir / "errors.log")
    buf.append(_cell_error())
    buf.append(DatumError(record_index=0, field_name="ghost", cause=KeyError("ghost")))
    assert len(buf) == 2

    path = buf.flush()
    assert path == temp_workdir / "errors.log"
    assert len(buf) == 0
    lines = path.read_text(encoding="utf-8").splitlines()
    assert json.loads(lines[0]) == {
        "kind": "cell",
        "row": 2,
        "column": 1,
        "header": "Age",
        "field": "age",
        "message": "'abc' is not a valid int32",
    }
    assert json.loads(lines[1])["kind"] == "datum"


def test_flush_empty_creates_no_file(temp_workdir: Path):
    buf = ErrorLogBuffer()
    assert buf.flush() is None
    assert not (temp_workdir / "logs").exists()


def test_default_path_is_timestamped(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.extend([_cell_error()])
    path = buf.flush()
    assert path.parent.name == "logs"
    assert re.fullmatch(r"errors-\d{8}-\d{6}\.log", path.name)


def test_flush_appends(temp_workdir: Path):
    target = temp_workdir / "errors.log"
    for _ in range(2):
        buf = ErrorLogBuffer(target)
        buf.append(_cell_error())
        buf.flush()
    assert len(target.read_text(encoding="utf-8").splitlines()) == 2
