"""Description of the type definitions that bindings are derived from."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .utils import DeriveError, to_ts_ident

__all__ = ["FieldsKind", "Field", "GenericParam", "Variant", "Struct", "Enum"]


def _attr_tuple(value) -> tuple:
    """Normalise an attribute list; a single string or mapping counts as one attribute."""
    if isinstance(value, (str, Mapping)):
        return (value,)
    return tuple(value)


class FieldsKind(enum.Enum):
    """The shape of a struct or variant body."""

    NAMED = "named"
    UNNAMED = "unnamed"
    UNIT = "unit"


def _resolve_kind(fields: tuple, kind) -> FieldsKind:
    named = [f.name is not None for f in fields]
    if kind is None:
        if not fields:
            return FieldsKind.UNIT
        if all(named):
            return FieldsKind.NAMED
        if not any(named):
            return FieldsKind.UNNAMED
        raise DeriveError("named and unnamed fields cannot be mixed")
    kind = FieldsKind(kind)
    if kind is FieldsKind.UNIT and fields:
        raise DeriveError("a unit body cannot have fields")
    if kind is FieldsKind.NAMED and not all(named):
        raise DeriveError("every field of a named body needs a name")
    if kind is FieldsKind.UNNAMED and any(named):
        raise DeriveError("fields of a tuple body cannot have names")
    return kind


@dataclass
class Field:
    """A field of a struct or variant; `name` is None for tuple fields."""

    ty: Any
    name: str | None = None
    ts: tuple = ()
    serde: tuple = ()
    docs: tuple = ()

    def __post_init__(self) -> None:
        self.ts = _attr_tuple(self.ts)
        self.serde = _attr_tuple(self.serde)
        self.docs = tuple(self.docs)

    @property
    def ts_name(self) -> str | None:
        return None if self.name is None else to_ts_ident(self.name)


_GENERIC_KINDS = ("type", "const", "lifetime")


@dataclass
class GenericParam:
    """A generic parameter: a type, a const or a lifetime."""

    name: str
    default: Any = None
    kind: str = "type"

    def __post_init__(self) -> None:
        if self.kind not in _GENERIC_KINDS:
            raise DeriveError(f"unknown generic parameter kind `{self.kind}`")

    @property
    def is_type(self) -> bool:
        return self.kind == "type"


@dataclass
class Variant:
    """A variant of an enum."""

    name: str
    fields: tuple = ()
    kind: FieldsKind | None = None
    discriminant: Any = None
    ts: tuple = ()
    serde: tuple = ()
    docs: tuple = ()

    def __post_init__(self) -> None:
        self.fields = tuple(self.fields)
        self.kind = _resolve_kind(self.fields, self.kind)
        self.ts = _attr_tuple(self.ts)
        self.serde = _attr_tuple(self.serde)
        self.docs = tuple(self.docs)

    @property
    def ts_name(self) -> str:
        return to_ts_ident(self.name)


@dataclass
class Struct:
    """A struct definition."""

    name: str
    fields: tuple = ()
    kind: FieldsKind | None = None
    generics: tuple = ()
    ts: tuple = ()
    serde: tuple = ()
    docs: tuple = ()

    def __post_init__(self) -> None:
        self.fields = tuple(self.fields)
        self.kind = _resolve_kind(self.fields, self.kind)
        self.generics = tuple(self.generics)
        self.ts = _attr_tuple(self.ts)
        self.serde = _attr_tuple(self.serde)
        self.docs = tuple(self.docs)

    @property
    def ts_name(self) -> str:
        return to_ts_ident(self.name)

    @property
    def type_params(self) -> tuple:
        return tuple(p for p in self.generics if p.is_type)


@dataclass
class Enum:
    """An enum definition."""

    name: str
    variants: tuple = ()
    generics: tuple = ()
    ts: tuple = ()
    serde: tuple = ()
    docs: tuple = ()

    def __post_init__(self) -> None:
        self.variants = tuple(self.variants)
        self.generics = tuple(self.generics)
        self.ts = _attr_tuple(self.ts)
        self.serde = _attr_tuple(self.serde)
        self.docs = tuple(self.docs)

    @property
    def ts_name(self) -> str:
        return to_ts_ident(self.name)

    @property
    def type_params(self) -> tuple:
        return tuple(p for p in self.generics if p.is_type)