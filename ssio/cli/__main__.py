from __future__ import annotations

import argparse
import io
import json
import os
import sys
import time
from pathlib import Path
from typing import Any

import numpy as np
from dotenv import load_dotenv

from ssio.config.loader import ConfigError, MappingConfig, load_mapping_config
from ssio.excel.reader import InvalidFormatError, decode, sheet_to_frame
from ssio.logging.error_log import ErrorLogBuffer
from ssio.logging.init import log_summary, set_level, setup_logging
from ssio.models.field_error import CellError, DatumError
from ssio.services.facade import parse_sheet, save
from ssio.services.header import InvalidHeaderRowError
from ssio.services.summary import RunStats, render_summary_line

"""Command line entrypoint.

    python -m ssio.cli inspect FILE [--rows N]
    python -m ssio.cli parse FILE --config MAP [--output OUT.jsonl] [--error-log PATH]
    python -m ssio.cli save INPUT.jsonl OUTPUT.xlsx --config MAP [--strict] [--error-log PATH]

The record type is generated from the mapping config. A ``.env`` file in the
working directory may set SSIO_CONFIG (default mapping path) and
SSIO_LOG_LEVEL.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_FIELD_ERRORS = 2

DEFAULT_CONFIG = Path("config/mapping.yml")


def _load_env_file(path: Path) -> None:
    """Load .env without overriding variables already set in the process."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=False)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="ssio", description="Spreadsheet <-> record mapper")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    ins = sub.add_parser("inspect", help="Print sheet headers & first rows then exit")
    ins.add_argument("file", type=Path)
    ins.add_argument("--rows", type=int, default=5, help="Number of data rows to show")

    prs = sub.add_parser("parse", help="Parse a workbook into JSON lines")
    prs.add_argument("file", type=Path)
    prs.add_argument("--config", type=Path, default=None, help="Mapping config (YAML)")
    prs.add_argument("--output", type=Path, default=None, help="JSON lines output (default stdout)")
    prs.add_argument("--error-log", type=Path, default=None, help="Write cell errors as JSON lines")

    sav = sub.add_parser("save", help="Save JSON lines records into a workbook")
    sav.add_argument("input", type=Path)
    sav.add_argument("output", type=Path)
    sav.add_argument("--config", type=Path, default=None, help="Mapping config (YAML)")
    sav.add_argument("--strict", action="store_true", help="Write nothing if any datum error occurred")
    sav.add_argument("--error-log", type=Path, default=None, help="Write datum errors as JSON lines")
    return p.parse_args(argv)


def _config_path(args: argparse.Namespace) -> Path:
    if args.config is not None:
        return args.config
    env = os.getenv("SSIO_CONFIG")
    return Path(env) if env else DEFAULT_CONFIG


def _json_default(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    # Decimal and anything else json does not know
    return str(value)


def _record_to_json(record: Any, cfg: MappingConfig) -> str:
    data = {c.field: getattr(record, c.field, None) for c in cfg.columns}
    return json.dumps(data, ensure_ascii=False, default=_json_default)


def _flush_errors(errors: list[CellError] | list[DatumError], path: Path | None, logger) -> None:
    if not errors:
        return
    buffer = ErrorLogBuffer(path)
    buffer.extend(errors)
    written = buffer.flush()
    logger.info(f"error log: {written}")


def _inspect(args: argparse.Namespace, logger) -> int:
    try:
        sheet = decode(args.file)
    except (InvalidFormatError, FileNotFoundError) as e:
        logger.error(f"inspect: {e}")
        return EXIT_FATAL
    if sheet is None:
        print("inspect: no worksheet")
        return EXIT_SUCCESS
    frame = sheet_to_frame(sheet)
    print(f"SHEET: {sheet.name} cols={list(frame.columns)} rows={len(frame)}")
    if not frame.empty:
        print(frame.head(args.rows).to_string(index=False))
    return EXIT_SUCCESS


def _parse(args: argparse.Namespace, cfg: MappingConfig, logger) -> int:
    start = time.perf_counter()
    try:
        sheet = decode(args.file)
    except (InvalidFormatError, FileNotFoundError) as e:
        logger.error(f"parse: {e}")
        return EXIT_FATAL

    cell_errors: list[CellError] = []
    try:
        records = parse_sheet(cfg.reverse_label_table(), sheet, cfg.record_type(), cell_errors)
    except InvalidHeaderRowError as e:
        logger.error(f"parse: {e}")
        return EXIT_FATAL

    lines = [_record_to_json(r, cfg) for r in records]
    if args.output is not None:
        try:
            args.output.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
        except OSError as e:
            logger.error(f"parse: cannot write output {args.output}: {e}")
            return EXIT_FATAL
    else:
        for line in lines:
            print(line)

    for err in cell_errors:
        logger.warning(
            f"row={err.row_index_one_based} column={err.column_index_one_based} "
            f"header={err.header_text} field={err.field_name}: {err.message}"
        )
    _flush_errors(cell_errors, args.error_log, logger)

    stats = RunStats(
        mode="parse",
        rows=len(sheet) if sheet is not None else 0,
        records=len(records),
        errors=len(cell_errors),
        written=args.output is not None,
        elapsed_seconds=time.perf_counter() - start,
    )
    log_summary(render_summary_line(stats)[len("SUMMARY "):])
    return EXIT_FIELD_ERRORS if cell_errors else EXIT_SUCCESS


def _read_records(path: Path, cfg: MappingConfig) -> list[Any]:
    """One record per non-empty JSON line; anything but an object becomes None."""
    record_type = cfg.record_type()
    names = {c.field for c in cfg.columns}
    records: list[Any] = []
    for line in path.read_text(encoding="utf-8").splitlines():
        if not line.strip():
            continue
        data = json.loads(line)
        if not isinstance(data, dict):
            records.append(None)
            continue
        record = record_type()
        for key, value in data.items():
            if key in names:
                setattr(record, key, value)
        records.append(record)
    return records


def _save(args: argparse.Namespace, cfg: MappingConfig, logger) -> int:
    start = time.perf_counter()
    if not args.input.exists():
        logger.error(f"save: input not found: {args.input}")
        return EXIT_FATAL
    try:
        records = _read_records(args.input, cfg)
    except json.JSONDecodeError as e:
        logger.error(f"save: invalid JSON lines input: {e}")
        return EXIT_FATAL

    datum_errors: list[DatumError] = []
    buffer = io.BytesIO()
    result = save(
        cfg.label_table(),
        records,
        buffer,
        placeholder=cfg.placeholder,
        datum_errors=datum_errors,
        abort_on_error=args.strict or cfg.strict,
    )
    if result.written:
        try:
            args.output.write_bytes(buffer.getvalue())
        except OSError as e:
            logger.error(f"save: cannot write output {args.output}: {e}")
            return EXIT_FATAL
        logger.info(f"saved {len(records)} record(s) to {args.output}")

    for err in datum_errors:
        logger.warning(f"record={err.record_index} field={err.field_name}: {err.message}")
    _flush_errors(datum_errors, args.error_log, logger)

    stats = RunStats(
        mode="save",
        rows=result.row_count,
        records=len(records),
        errors=len(datum_errors),
        written=result.written,
        elapsed_seconds=time.perf_counter() - start,
    )
    log_summary(render_summary_line(stats)[len("SUMMARY "):])
    return EXIT_FIELD_ERRORS if datum_errors else EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # an empty list from tests must not fall back to sys.argv
    if argv is None:
        argv = sys.argv[1:]
    _load_env_file(Path(".env"))
    args = _parse_args(argv)

    level = "DEBUG" if args.debug else os.getenv("SSIO_LOG_LEVEL")
    if level:
        set_level(level.upper())
    if args.debug:
        logger.debug("debug mode enabled")

    if args.command == "inspect":
        return _inspect(args, logger)

    config_path = _config_path(args)
    try:
        cfg = load_mapping_config(config_path)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.command == "parse":
        return _parse(args, cfg, logger)
    return _save(args, cfg, logger)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
