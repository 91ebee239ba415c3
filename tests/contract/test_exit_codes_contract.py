from __future__ import annotations

from pathlib import Path

from ssio.cli.__main__ import EXIT_FATAL, EXIT_FIELD_ERRORS, EXIT_SUCCESS, main

"""Exit code contract: 0 success, 2 field-level errors, 1 fatal."""


def test_exit_code_values():
    assert (EXIT_SUCCESS, EXIT_FATAL, EXIT_FIELD_ERRORS) == (0, 1, 2)


def test_success(write_mapping, xlsx_factory):
    path = xlsx_factory("ok.xlsx", [["Name", "Age"], ["Ann", 1]])
    assert main(["parse", str(path)]) == EXIT_SUCCESS


def test_field_errors(write_mapping, xlsx_factory):
    path = xlsx_factory("bad.xlsx", [["Name", "Age"], ["Ann", "one"]])
    assert main(["parse", str(path)]) == EXIT_FIELD_ERRORS


def test_fatal_missing_workbook(write_mapping, temp_workdir: Path):
    assert main(["parse", str(temp_workdir / "data" / "missing.xlsx")]) == EXIT_FATAL
