from __future__ import annotations

import types
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union, get_args, get_origin

import numpy as np

from ..models.field_error import FieldError

"""Type coercion registry: cell text -> typed field value.

Targets are type annotations. A bare annotation (``np.int32``) is the
primitive form and rejects a missing value; ``np.int32 | None`` /
``Optional[np.int32]`` is the nullable form and maps a missing value to None.
``str`` always accepts a missing value.

Fixed-width integers and 32-bit floats are expressed with numpy scalar types,
``int`` is the arbitrary-precision integer and ``Decimal`` the
arbitrary-precision decimal.

can_convert() is a pure predicate. REGISTRY order is the order in which
setters of one field are swept when no text setter exists.
"""

__all__ = [
    "REGISTRY",
    "TYPE_NAMES",
    "Coercion",
    "ConversionError",
    "can_convert",
    "convert",
    "is_text_type",
    "resolve_target",
    "resolve_type_name",
    "sweep_rank",
    "zero_value",
]


class ConversionError(FieldError):
    """Raised when text that passed can_convert() is still rejected."""


@dataclass(frozen=True)
class Coercion:
    """How to turn non-null text into one target type."""
    name: str
    target: type
    accepts: Callable[[str], bool]
    parse: Callable[[str], Any]
    zero: Any = None  # default value of the primitive form


_MAX_INT_DIGITS = 4000


def _integral(text: str) -> int | None:
    # integer literals may come from numeric cells, e.g. "12.0" or "1.2e+17";
    # digit separators ("1_000") are Python syntax, not cell text
    if "_" in text:
        return None
    try:
        number = Decimal(text.strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite() or number.adjusted() > _MAX_INT_DIGITS:
        return None
    if number != number.to_integral_value():
        return None
    return int(number)


def _fixed_int(target: type) -> tuple[Callable[[str], bool], Callable[[str], Any]]:
    info = np.iinfo(target)

    def accepts(text: str) -> bool:
        value = _integral(text)
        return value is not None and info.min <= value <= info.max

    def parse(text: str) -> Any:
        value = _integral(text)
        if value is None or not info.min <= value <= info.max:
            raise ConversionError(f"'{text}' is not a valid {target.__name__}")
        return target(value)

    return accepts, parse


def _float_literal(text: str) -> float | None:
    if "_" in text:
        return None
    try:
        return float(text.strip())
    except ValueError:
        return None


_FLOAT32_MAX = float(np.finfo(np.float32).max)


def _accepts_float32(text: str) -> bool:
    value = _float_literal(text)
    if value is None:
        return False
    return not (np.isfinite(value) and abs(value) > _FLOAT32_MAX)


def _parse_float32(text: str) -> np.float32:
    if not _accepts_float32(text):
        raise ConversionError(f"'{text}' is not a valid float32")
    return np.float32(float(text))


def _parse_float(text: str) -> float:
    value = _float_literal(text)
    if value is None:
        raise ConversionError(f"'{text}' is not a valid float")
    return value


def _parse_decimal(text: str) -> Decimal:
    if "_" in text:
        raise ConversionError(f"'{text}' is not a valid decimal")
    try:
        value = Decimal(text.strip())
    except (InvalidOperation, ValueError) as e:
        raise ConversionError(f"'{text}' is not a valid decimal") from e
    if not value.is_finite():
        raise ConversionError(f"'{text}' is not a finite decimal")
    return value


def _accepts_decimal(text: str) -> bool:
    try:
        return _parse_decimal(text) is not None
    except ConversionError:
        return False


def _parse_int(text: str) -> int:
    value = _integral(text)
    if value is None:
        raise ConversionError(f"'{text}' is not a valid integer")
    return value


def _parse_bool(text: str) -> bool:
    lowered = text.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ConversionError(f"'{text}' is not a valid boolean")


_int16 = _fixed_int(np.int16)
_int32 = _fixed_int(np.int32)
_int64 = _fixed_int(np.int64)

REGISTRY: tuple[Coercion, ...] = (
    Coercion("str", str, lambda t: True, lambda t: t),
    Coercion("bool", bool, lambda t: t.strip().lower() in ("true", "false"), _parse_bool, False),
    Coercion("int16", np.int16, _int16[0], _int16[1], np.int16(0)),
    Coercion("int32", np.int32, _int32[0], _int32[1], np.int32(0)),
    Coercion("int64", np.int64, _int64[0], _int64[1], np.int64(0)),
    Coercion("int", int, lambda t: _integral(t) is not None, _parse_int, 0),
    Coercion("float32", np.float32, _accepts_float32, _parse_float32, np.float32(0)),
    Coercion("float64", np.float64, lambda t: _float_literal(t) is not None,
             lambda t: np.float64(_parse_float(t)), np.float64(0)),
    Coercion("float", float, lambda t: _float_literal(t) is not None, _parse_float, 0.0),
    Coercion("decimal", Decimal, _accepts_decimal, _parse_decimal, Decimal(0)),
)

_BY_TARGET: dict[Any, Coercion] = {c.target: c for c in REGISTRY}
TYPE_NAMES: dict[str, Coercion] = {c.name: c for c in REGISTRY}


def resolve_target(annotation: Any) -> tuple[Any, bool]:
    """Split an annotation into (base type, nullable).

    ``X | None`` and ``Optional[X]`` are nullable; any other union is returned
    unchanged and therefore unknown to the registry.
    """
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) == 1 and len(get_args(annotation)) == 2:
            return args[0], True
        return annotation, type(None) in get_args(annotation)
    return annotation, False


def is_text_type(annotation: Any) -> bool:
    """True for annotations a raw text value can be assigned to as-is."""
    base, _ = resolve_target(annotation)
    return base is str or base is Any


def sweep_rank(annotation: Any) -> int:
    """Position of an annotation's base type in REGISTRY; unknown types sort last."""
    base, _ = resolve_target(annotation)
    coercion = _BY_TARGET.get(base)
    if coercion is None:
        return len(REGISTRY)
    return REGISTRY.index(coercion)


def can_convert(text: str | None, target: Any) -> bool:
    base, nullable = resolve_target(target)
    coercion = _BY_TARGET.get(base)
    if coercion is None:
        return False
    if text is None:
        return nullable or base is str
    try:
        return bool(coercion.accepts(text))
    except Exception:  # predicates must never raise
        return False


def convert(text: str | None, target: Any) -> Any:
    """Convert text to the target type.

    Raises:
        ConversionError: unknown target, missing value for a primitive target,
            or text the target rejects
    """
    base, nullable = resolve_target(target)
    coercion = _BY_TARGET.get(base)
    if coercion is None:
        raise ConversionError(f"unsupported target type: {target!r}")
    if text is None:
        if nullable or base is str:
            return None
        raise ConversionError(f"a value is required for {coercion.name}")
    try:
        return coercion.parse(text)
    except ConversionError:
        raise
    except (ValueError, TypeError, ArithmeticError) as e:
        raise ConversionError(f"'{text}' is not a valid {coercion.name}: {e}") from e


def zero_value(target: Any) -> Any:
    """Default value of a target: None when nullable, the type's zero otherwise."""
    base, nullable = resolve_target(target)
    if nullable:
        return None
    coercion = _BY_TARGET.get(base)
    return coercion.zero if coercion is not None else None


def resolve_type_name(name: str) -> Any:
    """Map a config type name (``int32``, ``decimal?``) to an annotation.

    A trailing ``?`` makes the type nullable.

    Raises:
        KeyError: unknown type name
    """
    key = name.strip()
    nullable = key.endswith("?")
    if nullable:
        key = key[:-1].strip()
    coercion = TYPE_NAMES[key]
    if nullable:
        return Optional[coercion.target]
    return coercion.target
