from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pytest

from ssio.models.cell import Cell, CellKind, Row
from ssio.models.mapping_result import ColumnMeta
from ssio.services.accessor import NoSuchAccessorError
from ssio.services.coercion import ConversionError
from ssio.services.row_mapper import (
    NoSuitableSetterError,
    assign_cell_text,
    header_row,
    map_record,
    map_row,
    new_record,
)


@dataclass
class Item:
    label: str | None = None
    count: np.int32 = np.int32(0)
    weight: float | None = None


class Fragile:
    @property
    def label(self) -> str:
        raise RuntimeError("no label")


class NeedsArgs:
    def __init__(self, value: int) -> None:
        self.value = value


LABELS = {"label": "Label", "count": "Count", "weight": "Weight"}
META = {
    0: ColumnMeta(0, "label", "Label"),
    1: ColumnMeta(1, "count", "Count"),
    3: ColumnMeta(3, "weight", "Weight"),
}


def test_header_row_in_label_table_order():
    row = header_row(LABELS)
    assert [c.value for c in row.cells] == ["Label", "Count", "Weight"]


def test_map_record_writes_text_cells():
    mapped = map_record(LABELS, Item("box", np.int32(3), None), 0)
    assert mapped.errors == []
    assert [c.kind for c in mapped.value.cells] == [CellKind.TEXT] * 3
    assert [c.value for c in mapped.value.cells] == ["box", "3", ""]


def test_map_record_unknown_field_uses_placeholder():
    mapped = map_record({"label": "Label", "ghost": "Ghost"}, Item("box"), 4, "!!ERROR!!")
    assert [c.value for c in mapped.value.cells] == ["box", "!!ERROR!!"]
    assert len(mapped.errors) == 1
    err = mapped.errors[0]
    assert (err.record_index, err.field_name) == (4, "ghost")
    assert isinstance(err.cause, NoSuchAccessorError)


def test_map_record_failing_getter_without_placeholder():
    mapped = map_record({"label": "Label"}, Fragile(), 0)
    assert [c.value for c in mapped.value.cells] == [""]
    assert "no label" in mapped.errors[0].message


def test_map_record_none_record_errors_every_field():
    mapped = map_record(LABELS, None, 2, "?")
    assert [c.value for c in mapped.value.cells] == ["?", "?", "?"]
    assert [e.field_name for e in mapped.errors] == ["label", "count", "weight"]


def test_assign_cell_text_converts_through_typed_setter():
    item = Item()
    assign_cell_text(item, "count", "12.0")
    assert item.count == 12
    assert isinstance(item.count, np.int32)


def test_assign_cell_text_no_suitable_setter():
    with pytest.raises(NoSuitableSetterError, match='No suitable setter for field "count" with cell text "abc"'):
        assign_cell_text(Item(), "count", "abc")


def test_assign_cell_text_primitive_rejects_missing_value():
    with pytest.raises(NoSuitableSetterError):
        assign_cell_text(Item(), "count", None)


def test_map_row_collects_cell_errors_and_keeps_record():
    row = Row([Cell.text("pen"), Cell.text("many"), Cell.text("ignored"), Cell.numeric(2.5)])
    mapped = map_row(META, row, 7, Item)
    assert mapped.value == Item("pen", np.int32(0), 2.5)
    assert len(mapped.errors) == 1
    err = mapped.errors[0]
    assert (err.row_index, err.column_index, err.header_text, err.field_name) == (7, 1, "Count", "count")
    assert err.row_index_one_based == 8
    assert err.column_index_one_based == 2


def test_map_row_blank_cells():
    row = Row([Cell.blank(), None, None, Cell.formula("A1*2")])
    mapped = map_row(META, row, 1, Item)
    assert mapped.value == Item()
    # nullable fields take the missing value, the primitive count does not
    assert [e.field_name for e in mapped.errors] == ["count"]
    assert isinstance(mapped.errors[0].cause, NoSuitableSetterError)


def test_map_row_missing_row_gives_default_record():
    mapped = map_row(META, None, 3, Item)
    assert mapped.value == Item()
    assert mapped.errors == []


def test_new_record_requires_no_arg_constructor():
    with pytest.raises(ValueError, match="constructible without arguments"):
        new_record(NeedsArgs)


def test_conversion_error_is_a_field_error():
    from ssio.models.field_error import FieldError

    assert issubclass(ConversionError, FieldError)
    assert issubclass(NoSuitableSetterError, FieldError)
