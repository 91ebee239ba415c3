from __future__ import annotations

import json

import jsonschema
import pytest
import yaml
from jsonschema.exceptions import ValidationError

from ssio.config.loader import SCHEMA_PATH

"""Mapping config schema contract."""


@pytest.fixture(scope="module")
def schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_sample_mapping_is_valid(schema, sample_mapping_yaml):
    jsonschema.validate(yaml.safe_load(sample_mapping_yaml), schema)


def test_null_placeholder_is_valid(schema):
    jsonschema.validate({"placeholder": None, "columns": [{"field": "a", "header": "A"}]}, schema)


@pytest.mark.parametrize(
    "config",
    [
        {"columns": [{"field": "a", "header": "A", "width": 10}]},
        {"columns": [{"field": "a", "header": "A"}], "strict": "yes"},
        {"record": "my record", "columns": [{"field": "a", "header": "A"}]},
    ],
)
def test_invalid_mappings(schema, config):
    with pytest.raises(ValidationError):
        jsonschema.validate(config, schema)
