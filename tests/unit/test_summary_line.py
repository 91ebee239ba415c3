from __future__ import annotations

from ssio.services.summary import RunStats, render_summary_line


def test_render_summary_parse():
    line = render_summary_line(RunStats("parse", 4, 3, 1, True, 0.1234))
    assert line == "SUMMARY mode=parse rows=4 records=3 errors=1 written=yes elapsed_sec=0.123"


def test_render_summary_save_not_written():
    line = render_summary_line(RunStats("save", 3, 2, 2, False, 0))
    assert line == "SUMMARY mode=save rows=3 records=2 errors=2 written=no elapsed_sec=0"


def test_render_summary_small_elapsed():
    line = render_summary_line(RunStats("parse", 1, 0, 0, False, 0.0042))
    assert line.endswith("elapsed_sec=0.0042")
