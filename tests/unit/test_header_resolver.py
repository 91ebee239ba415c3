from __future__ import annotations

import pytest

from ssio.models.cell import Cell, Row
from ssio.services.header import InvalidHeaderRowError, resolve_header

REVERSE = {"Name": "name", "Age": "age"}


def test_columns_found_by_header_text():
    row = Row.of_texts(["Comment", "Age", "Name"])
    meta = resolve_header(REVERSE, row)
    assert sorted(meta) == [1, 2]
    assert meta[1].field_name == "age"
    assert meta[2].header_text == "Name"


def test_header_text_is_trimmed():
    row = Row.of_texts(["  Name  "])
    meta = resolve_header(REVERSE, row)
    assert meta[0].field_name == "name"


def test_non_text_header_cells_are_skipped():
    row = Row([Cell.numeric(3), None, Cell.formula("A1"), Cell.text("Age")])
    meta = resolve_header(REVERSE, row)
    assert list(meta) == [3]


def test_duplicate_header_keeps_first_column(caplog):
    row = Row.of_texts(["Age", "Name", "Age"])
    with caplog.at_level("WARNING", logger="ssio"):
        meta = resolve_header(REVERSE, row)
    assert sorted(meta) == [0, 1]
    assert "duplicated header 'Age'" in caplog.text


def test_no_matching_header_is_rejected():
    with pytest.raises(InvalidHeaderRowError):
        resolve_header(REVERSE, Row.of_texts(["foo", "bar"]))


def test_missing_header_row_is_rejected():
    with pytest.raises(InvalidHeaderRowError):
        resolve_header(REVERSE, None)
