# Shared pytest fixtures
from __future__ import annotations

import tempfile
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from ssio.logging.init import reset_logging
from ssio.services.accessor import field_setter


@dataclass
class ITRecord:
    """Record covering every supported field type."""
    prim_short: np.int16 = np.int16(0)
    prim_int: np.int32 = np.int32(0)
    prim_long: np.int64 = np.int64(0)
    prim_float: np.float32 = np.float32(0)
    prim_double: float = 0.0
    prim_boolean: bool = False

    obj_short: np.int16 | None = None
    obj_int: np.int32 | None = None
    obj_long: np.int64 | None = None
    obj_float: np.float32 | None = None
    obj_double: float | None = None
    obj_boolean: bool | None = None

    big_integer: int | None = None
    big_decimal: Decimal | None = None
    text: str | None = None
    date: datetime | None = None

    @property
    def date_str(self) -> str | None:
        if self.date is None:
            return None
        return self.date.strftime("%Y-%m-%d %H:%M:%S")

    @field_setter("date")
    def set_date_text(self, text: str | None) -> None:
        if text is None:
            return
        self.date = datetime.strptime(text, "%Y-%m-%d %H:%M:%S")


IT_LABELS = {
    "prim_short": "Primitive Short",
    "prim_int": "Primitive Int",
    "prim_long": "Primitive Long",
    "prim_float": "Primitive Float",
    "prim_double": "Primitive Double",
    "prim_boolean": "Primitive Boolean",
    "obj_short": "Object Short",
    "obj_int": "Object Int",
    "obj_long": "Object Long",
    "obj_float": "Object Float",
    "obj_double": "Object Double",
    "obj_boolean": "Object Boolean",
    "big_integer": "Big Integer",
    "big_decimal": "Big Decimal",
    "text": "String",
    "date_str": "Date",
}


def it_reverse_labels() -> dict[str, str]:
    reverse = {header: name for name, header in IT_LABELS.items()}
    # saved through the date_str getter, parsed through the text setter of date
    reverse["Date"] = "date"
    return reverse


@pytest.fixture(autouse=True)
def clean_logging():
    # handlers bind sys.stdout at setup time; capsys swaps it per test
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def it_record() -> type[ITRecord]:
    return ITRecord


@pytest.fixture()
def it_labels() -> dict[str, str]:
    return dict(IT_LABELS)


@pytest.fixture()
def it_reverse() -> dict[str, str]:
    return it_reverse_labels()


@pytest.fixture()
def sample_mapping_yaml() -> str:
    return """record: Person
placeholder: "!!ERROR!!"
columns:
  - field: name
    header: Name
  - field: age
    header: Age
    type: int32?
  - field: score
    header: Score
    type: float
"""


@pytest.fixture()
def write_mapping(temp_workdir: Path, sample_mapping_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "mapping.yml"
    cfg.write_text(sample_mapping_yaml, encoding="utf-8")
    return cfg


def make_xlsx(path: Path, rows: list[list[object]], sheet_name: str = "Sheet1") -> Path:
    """Write rows (header first) to an .xlsx file with pandas, like a user would."""
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return path


@pytest.fixture()
def xlsx_factory(temp_workdir: Path):
    def _make(name: str, rows: list[list[object]]) -> Path:
        return make_xlsx(temp_workdir / "data" / name, rows)
    return _make
