from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, ClassVar, get_origin, get_type_hints

from ..models.field_error import FieldError
from .coercion import is_text_type, sweep_rank

"""Name-driven field access on arbitrary record types.

Each record type gets a RecordAccessor, built once and cached, that maps a
field name to one getter and any number of setters:

- class-level annotations (dataclass fields included) give a getter and a
  setter typed by the annotation;
- a ``property`` gives a getter (fget) and, with fset, a setter typed by the
  setter's value annotation, falling back to the getter's return annotation;
- methods decorated with ``@field_setter("name")`` add further setters typed
  by their single value parameter.

A name the type does not declare falls back to a public attribute found on
the instance (``self.text = ...`` in ``__init__``): it is read as-is and set
from the raw cell text, since it carries no type.

Names starting with an underscore and ClassVar annotations are not fields.
"""

__all__ = [
    "AssignmentError",
    "FieldReadError",
    "Getter",
    "NoSuchAccessorError",
    "RecordAccessor",
    "Setter",
    "accessor_for",
    "field_setter",
    "get_field",
    "list_setters_by_name",
    "set_field",
    "set_field_as_text",
]

logger = logging.getLogger(__name__)

FIELD_SETTER_ATTR = "__ssio_field_setter__"

_ANY_PARAM = object()


class NoSuchAccessorError(FieldError):
    """The record type has no getter/setter for the requested field."""


class AssignmentError(FieldError):
    """A setter exists but raised while assigning the value."""


class FieldReadError(FieldError):
    """A getter exists but raised while reading the value."""


def field_setter(field_name: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Mark a method as an extra setter for ``field_name``.

    The method takes one value argument; its annotation decides which cell
    texts it is offered (see coercion.REGISTRY).

        @field_setter("when")
        def set_when_text(self, text: str | None) -> None:
            ...
    """
    def decorate(func: Callable[..., Any]) -> Callable[..., Any]:
        setattr(func, FIELD_SETTER_ATTR, field_name)
        return func
    return decorate


@dataclass(frozen=True)
class Getter:
    field_name: str
    read: Callable[[Any], Any]


@dataclass(frozen=True)
class Setter:
    field_name: str
    param_type: Any
    write: Callable[[Any, Any], None]
    origin: str  # "attribute", "property" or the decorated method name


def _safe_hints(obj: Any) -> dict[str, Any]:
    try:
        return get_type_hints(obj)
    except (NameError, TypeError, AttributeError):
        # unresolved forward references: keep whatever is declared
        raw = getattr(obj, "__annotations__", None) or {}
        return dict(raw)


def _class_hints(record_type: type) -> dict[str, Any]:
    try:
        return get_type_hints(record_type)
    except (NameError, TypeError, AttributeError):
        hints: dict[str, Any] = {}
        for klass in reversed(record_type.__mro__):
            hints.update(getattr(klass, "__annotations__", {}) or {})
        return hints


def _value_param_type(func: Callable[..., Any]) -> Any:
    """Annotation of the value parameter of a setter-like function."""
    params = list(inspect.signature(func).parameters.values())
    if len(params) < 2:
        return Any
    hints = _safe_hints(func)
    return hints.get(params[1].name, Any)


def _attribute_reader(name: str) -> Callable[[Any], Any]:
    # annotated but never assigned reads as None
    return lambda record: getattr(record, name, None)


def _attribute_writer(name: str) -> Callable[[Any, Any], None]:
    return lambda record, value: setattr(record, name, value)


def _has_instance_attribute(record: Any, name: str) -> bool:
    """True for a public attribute stored on the instance itself (not a method)."""
    if name.startswith("_") or record is None:
        return False
    if name in getattr(record, "__dict__", {}):
        return True
    slots = getattr(type(record), "__slots__", ())
    return name in ((slots,) if isinstance(slots, str) else slots) and hasattr(record, name)


def _method_writer(func: Callable[..., Any]) -> Callable[[Any, Any], None]:
    return lambda record, value: func(record, value)


class RecordAccessor:
    """Getter/setter registry of one record type."""

    def __init__(self, record_type: type) -> None:
        self.record_type = record_type
        self._getters: dict[str, Getter] = {}
        self._setters: dict[str, list[Setter]] = {}
        self._build()
        # sweep order is fixed by the coercion registry, declaration order on ties
        self._sorted_setters = {
            name: sorted(setters, key=lambda s: sweep_rank(s.param_type))
            for name, setters in self._setters.items()
        }
        logger.debug(
            "accessor built for %s: getters=%s setters=%s",
            record_type.__name__, sorted(self._getters), sorted(self._setters),
        )

    def _add_setter(self, setter: Setter) -> None:
        self._setters.setdefault(setter.field_name, []).append(setter)

    def _build(self) -> None:
        members: dict[str, Any] = {}
        for klass in reversed(self.record_type.__mro__):
            if klass is object:
                continue
            members.update(vars(klass))

        for name, hint in _class_hints(self.record_type).items():
            if name.startswith("_") or get_origin(hint) is ClassVar or hint is ClassVar:
                continue
            if isinstance(members.get(name), property):
                continue
            self._getters[name] = Getter(name, _attribute_reader(name))
            self._add_setter(Setter(name, hint, _attribute_writer(name), "attribute"))

        for name, member in members.items():
            if name.startswith("_"):
                continue
            if isinstance(member, property):
                self._add_property(name, member)

        for name, member in members.items():
            if not inspect.isfunction(member):
                continue
            target = getattr(member, FIELD_SETTER_ATTR, None)
            if target is None:
                continue
            self._add_setter(Setter(target, _value_param_type(member), _method_writer(member), name))

    def _add_property(self, name: str, prop: property) -> None:
        if prop.fget is not None:
            self._getters[name] = Getter(name, prop.fget)
        if prop.fset is None:
            return
        param_type = _value_param_type(prop.fset)
        if param_type is Any and prop.fget is not None:
            param_type = _safe_hints(prop.fget).get("return", Any)
        self._add_setter(Setter(name, param_type, prop.fset, "property"))

    @property
    def field_names(self) -> list[str]:
        return sorted(set(self._getters) | set(self._setters))

    def has_getter(self, field_name: str) -> bool:
        return field_name in self._getters

    def get_field(self, record: Any, field_name: str) -> Any:
        getter = self._getters.get(field_name)
        if getter is None and _has_instance_attribute(record, field_name):
            getter = Getter(field_name, _attribute_reader(field_name))
        if getter is None:
            raise NoSuchAccessorError(
                f"{self.record_type.__name__} has no getter method for field '{field_name}'"
            )
        try:
            return getter.read(record)
        except Exception as e:
            raise FieldReadError(f"failed reading field '{field_name}': {e}") from e

    def list_setters(self, field_name: str) -> list[Setter]:
        return list(self._sorted_setters.get(field_name, ()))

    def set_field_as_text(self, record: Any, field_name: str, text: str | None) -> bool:
        if field_name not in self._setters and _has_instance_attribute(record, field_name):
            # plain attribute set up by __init__: no declared type, takes the text
            self._apply(Setter(field_name, Any, _attribute_writer(field_name), "instance"), record, text)
            return True
        for setter in self._setters.get(field_name, ()):
            if is_text_type(setter.param_type):
                self._apply(setter, record, text)
                return True
        return False

    def set_field(self, record: Any, field_name: str, value: Any, param_type: Any = _ANY_PARAM) -> None:
        setters = self._setters.get(field_name)
        if not setters:
            raise NoSuchAccessorError(
                f"{self.record_type.__name__} has no setter method for field '{field_name}'"
            )
        if param_type is _ANY_PARAM:
            setter = setters[0]
        else:
            matching = [s for s in setters if s.param_type == param_type]
            if not matching:
                raise NoSuchAccessorError(
                    f"{self.record_type.__name__} has no setter for field '{field_name}' "
                    f"taking {param_type!r}"
                )
            setter = matching[0]
        self._apply(setter, record, value)

    def _apply(self, setter: Setter, record: Any, value: Any) -> None:
        try:
            setter.write(record, value)
        except Exception as e:
            raise AssignmentError(
                f"failed assigning {value!r} to field '{setter.field_name}': {e}"
            ) from e


@lru_cache(maxsize=None)
def accessor_for(record_type: type) -> RecordAccessor:
    return RecordAccessor(record_type)


def get_field(record: Any, field_name: str) -> Any:
    return accessor_for(type(record)).get_field(record, field_name)


def set_field_as_text(record: Any, field_name: str, text: str | None) -> bool:
    return accessor_for(type(record)).set_field_as_text(record, field_name, text)


def list_setters_by_name(record_type: type, field_name: str) -> list[Setter]:
    return accessor_for(record_type).list_setters(field_name)


def set_field(record: Any, field_name: str, value: Any, param_type: Any = _ANY_PARAM) -> None:
    accessor_for(type(record)).set_field(record, field_name, value, param_type)
