from __future__ import annotations

from dataclasses import dataclass

"""Summary line rendering for the command line.

Format:
SUMMARY mode={parse|save} rows={rows} records={records} errors={errors}
written={yes|no} elapsed_sec={elapsed}
"""


@dataclass(frozen=True)
class RunStats:
    mode: str  # "parse" or "save"
    rows: int  # sheet rows, header included
    records: int
    errors: int  # cell errors (parse) or datum errors (save)
    written: bool
    elapsed_seconds: float


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation for very small numbers
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(stats: RunStats) -> str:
    """Render the SUMMARY line of a run.

    Examples:
        >>> render_summary_line(RunStats("parse", 3, 2, 1, False, 2.0))
        'SUMMARY mode=parse rows=3 records=2 errors=1 written=no elapsed_sec=2'
    """
    return (
        f"SUMMARY mode={stats.mode} "
        f"rows={stats.rows} "
        f"records={stats.records} "
        f"errors={stats.errors} "
        f"written={'yes' if stats.written else 'no'} "
        f"elapsed_sec={_format_seconds(stats.elapsed_seconds)}"
    )
