from __future__ import annotations

import json
import keyword
from dataclasses import dataclass, field, make_dataclass
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..services.coercion import resolve_type_name, zero_value

"""Mapping config loader.

A mapping file declares the columns of one sheet: which record field each
header maps to and, optionally, the field type used when the record type is
generated from the file (command line use). Example::

    record: Person
    placeholder: "!!ERROR!!"
    strict: false
    columns:
      - field: name
        header: Name
      - field: age
        header: Age
        type: int32?

Responsibilities:
- Load the YAML file
- Validate it against mapping_schema.json (shipped next to this module)
- Reject duplicate fields/headers and unknown type names
"""

SCHEMA_PATH = Path(__file__).with_name("mapping_schema.json")

DEFAULT_TYPE = "str?"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class ColumnConfig:
    field: str
    header: str
    type_name: str = DEFAULT_TYPE

    @property
    def annotation(self) -> Any:
        return resolve_type_name(self.type_name)


@dataclass(frozen=True)
class MappingConfig:
    columns: tuple[ColumnConfig, ...]
    record_name: str = "Record"
    placeholder: str | None = None
    strict: bool = False
    source: Path | None = field(default=None, compare=False)

    def label_table(self) -> dict[str, str]:
        """field name -> header text, in column order (save direction)."""
        return {c.field: c.header for c in self.columns}

    def reverse_label_table(self) -> dict[str, str]:
        """header text -> field name (parse direction)."""
        return {c.header: c.field for c in self.columns}

    def record_type(self) -> type:
        """Dataclass with one field per column, typed by the column type.

        Primitive (non-nullable) fields default to their zero value, nullable
        ones to None.
        """
        return _record_type(self)


_RECORD_TYPES: dict[MappingConfig, type] = {}


def _record_type(config: MappingConfig) -> type:
    cached = _RECORD_TYPES.get(config)
    if cached is not None:
        return cached
    fields = [
        (c.field, c.annotation, field(default=zero_value(c.annotation)))
        for c in config.columns
    ]
    cls = make_dataclass(config.record_name, fields)
    _RECORD_TYPES[config] = cls
    return cls


def _validate_config_schema(data: Any) -> None:
    """Validate mapping data against the JSON schema.

    Raises:
        ConfigError: the schema file is missing or invalid, or the data
            violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def parse_mapping_config(data: Any, source: Path | None = None) -> MappingConfig:
    """Build a MappingConfig from already loaded YAML/JSON data."""
    _validate_config_schema(data)

    columns: list[ColumnConfig] = []
    fields: set[str] = set()
    headers: set[str] = set()
    for raw in data["columns"]:
        col = ColumnConfig(
            field=raw["field"],
            header=raw["header"].strip(),
            type_name=raw.get("type", DEFAULT_TYPE),
        )
        if col.field in fields:
            raise ConfigError(f"duplicate field: {col.field}")
        if col.header in headers:
            raise ConfigError(f"duplicate header: {col.header}")
        if keyword.iskeyword(col.field):
            raise ConfigError(f"field name is a reserved word: {col.field}")
        try:
            resolve_type_name(col.type_name)
        except KeyError as e:
            raise ConfigError(f"unknown type '{col.type_name}' for field {col.field}") from e
        fields.add(col.field)
        headers.add(col.header)
        columns.append(col)

    return MappingConfig(
        columns=tuple(columns),
        record_name=data.get("record", "Record"),
        placeholder=data.get("placeholder"),
        strict=data.get("strict", False),
        source=source,
    )


def load_mapping_config(path: Path) -> MappingConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    return parse_mapping_config(data, source=path)
