"""Attributes on structs and enums, from `ts` and `serde` annotations."""

from __future__ import annotations

import dataclasses
import enum
import functools
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable

from .inflection import Inflection
from .member_attrs import (
    VariantAttr,
    _attr_list,
    _flag,
    _inflection,
    _optional,
    _optional_string,
    _parse_serde,
    _parse_ts,
    _set,
    _string,
    _type,
)
from .model import Enum, FieldsKind
from .optional import Optional
from .utils import DeriveError, parse_attr_args

__all__ = [
    "Repr",
    "Tagged",
    "StructAttr",
    "EnumAttr",
    "parse_repr",
    "parse_struct_attrs",
    "parse_enum_attrs",
    "struct_attr_from_variant",
]


class Repr(enum.Enum):
    """How an enum marked with `repr(enum)` becomes a TypeScript enum."""

    INT = "int"
    NAME = "name"


@dataclass(frozen=True)
class Tagged:
    """How the variants of an enum are told apart in its serialized form."""

    class Style(enum.Enum):
        EXTERNALLY = "externally"
        ADJACENTLY = "adjacently"
        INTERNALLY = "internally"
        UNTAGGED = "untagged"

    style: Tagged.Style
    tag: str | None = None
    content: str | None = None


def parse_repr(value) -> Repr:
    """Parse the contents of `repr(..)`: `enum` or `enum = name`."""
    if isinstance(value, Repr):
        return value
    entries = parse_attr_args(value) if isinstance(value, str) else list(value)
    if len(entries) != 1 or entries[0][0] != "enum":
        raise DeriveError("expected `enum`")
    _, inner, quoted = entries[0]
    if inner is None:
        return Repr.INT
    if not quoted and isinstance(inner, str) and inner.strip() == "name":
        return Repr.NAME
    raise DeriveError("expected `name`")


def _first(a, b):
    return a if a is not None else b


def _merge_bounds(a, b):
    if a is None:
        return b
    if b is None:
        return a
    return tuple(a) + tuple(b)


def _split_bounds(text: str) -> tuple:
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    prev = ""
    for c in text:
        if c in "<([{":
            depth += 1
        elif c in ")]}" or (c == ">" and prev != "-"):
            depth -= 1
        if c == "," and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(c)
        prev = c
    parts.append("".join(current))
    stripped = [p.strip() for p in parts]
    if stripped and not stripped[-1]:
        stripped.pop()
    if any(not p for p in stripped):
        raise DeriveError("expected where predicate")
    return tuple(stripped)


def _bound(entry) -> tuple:
    key, value, quoted = entry
    if quoted is None and value is not None and not isinstance(value, str):
        predicates = tuple(value)
        if not all(isinstance(p, str) for p in predicates):
            raise DeriveError("expected string")
        return predicates
    return _split_bounds(_string(entry))


def _expr(entry) -> str:
    """A value given as an expression; only string values can be used here."""
    key, value, quoted = entry
    if value is None:
        raise DeriveError(f"expected `=` after `{key}`")
    if quoted is False or not isinstance(value, str):
        raise DeriveError(f"`{key}` must be a string")
    return value


def _concrete(entry) -> dict:
    key, value, quoted = entry
    if quoted is None and isinstance(value, Mapping):
        return dict(value)
    if not isinstance(value, list):
        raise DeriveError(f"expected parentheses after `{key}`")
    out = {}
    for name, ty, ty_quoted in value:
        if ty is None or isinstance(ty, list) or ty_quoted:
            raise DeriveError(f"expected a type for `{name}`")
        out[name] = ty
    return out


def _repr(entry) -> Repr:
    key, value, quoted = entry
    if isinstance(value, list) or (quoted is None and value is not None):
        return parse_repr(value)
    raise DeriveError(f"expected parentheses after `{key}`")


def _ignore_optional_string(out, entry) -> None:
    _optional_string(entry)


def _ignore_string(out, entry) -> None:
    _string(entry)


@dataclass
class StructAttr:
    """Everything the annotations of a struct say about its binding."""

    crate_rename: str | None = None
    type_as: Any = None
    type_override: str | None = None
    rename_all: Inflection | None = None
    rename: str | None = None
    export_to: str | None = None
    export: bool = False
    tag: str | None = None
    docs: tuple = ()
    concrete: dict = field(default_factory=dict)
    bound: tuple | None = None
    optional_fields: Optional = Optional.INHERIT

    def merge(self, other: StructAttr) -> StructAttr:
        """Combine two attribute sets; values set on `self` win."""
        return StructAttr(
            crate_rename=_first(self.crate_rename, other.crate_rename),
            type_as=_first(self.type_as, other.type_as),
            type_override=_first(self.type_override, other.type_override),
            rename_all=_first(self.rename_all, other.rename_all),
            rename=_first(self.rename, other.rename),
            export_to=_first(self.export_to, other.export_to),
            export=self.export or other.export,
            tag=_first(self.tag, other.tag),
            docs=tuple(other.docs),
            concrete={**self.concrete, **other.concrete},
            bound=_merge_bounds(self.bound, other.bound),
            optional_fields=self.optional_fields.combine(other.optional_fields),
        )

    def validate(self, kind: FieldsKind) -> None:
        """Raise DeriveError if the attributes contradict each other or the body."""
        if self.type_override is not None:
            if self.type_as is not None:
                raise DeriveError("`as` is not compatible with `type`")
            if self.rename_all is not None:
                raise DeriveError("`rename_all` is not compatible with `type`")
            if self.tag is not None:
                raise DeriveError("`tag` is not compatible with `type`")
            if self.optional_fields.is_optional:
                raise DeriveError("`optional_fields` is not compatible with `type`")
        if self.type_as is not None:
            if self.tag is not None:
                raise DeriveError("`tag` is not compatible with `as`")
            if self.rename_all is not None:
                raise DeriveError("`rename_all` is not compatible with `as`")
            if self.optional_fields.is_optional:
                raise DeriveError("`optional_fields` is not compatible with `as`")
        if FieldsKind(kind) is not FieldsKind.NAMED and self.tag is not None:
            raise DeriveError("`tag` cannot be used with unit or tuple structs")


@dataclass
class EnumAttr:
    """Everything the annotations of an enum say about its binding."""

    crate_rename: str | None = None
    type_as: Any = None
    type_override: str | None = None
    rename_all: Inflection | None = None
    rename_all_fields: Inflection | None = None
    rename: str | None = None
    export_to: str | None = None
    export: bool = False
    docs: tuple = ()
    concrete: dict = field(default_factory=dict)
    bound: tuple | None = None
    tag: str | None = None
    untagged: bool = False
    content: str | None = None
    repr: Repr | None = None
    optional_fields: Optional = Optional.INHERIT

    def merge(self, other: EnumAttr) -> EnumAttr:
        """Combine two attribute sets; values set on `self` win."""
        return EnumAttr(
            crate_rename=_first(self.crate_rename, other.crate_rename),
            type_as=_first(self.type_as, other.type_as),
            type_override=_first(self.type_override, other.type_override),
            rename_all=_first(self.rename_all, other.rename_all),
            rename_all_fields=_first(self.rename_all_fields, other.rename_all_fields),
            rename=_first(self.rename, other.rename),
            export_to=_first(self.export_to, other.export_to),
            export=self.export or other.export,
            docs=tuple(other.docs),
            concrete={**self.concrete, **other.concrete},
            bound=_merge_bounds(self.bound, other.bound),
            tag=_first(self.tag, other.tag),
            untagged=self.untagged or other.untagged,
            content=_first(self.content, other.content),
            repr=_first(self.repr, other.repr),
            optional_fields=self.optional_fields.combine(other.optional_fields),
        )

    def tagged(self) -> Tagged:
        """Return the tagging of the enum's variants."""
        if self.untagged:
            if self.content is not None:
                raise DeriveError("untagged cannot be used with content")
            if self.tag is not None:
                raise DeriveError("untagged cannot be used with tag")
            return Tagged(Tagged.Style.UNTAGGED)
        if self.tag is None:
            if self.content is not None:
                raise DeriveError("content cannot be used without tag")
            return Tagged(Tagged.Style.EXTERNALLY)
        if self.content is None:
            return Tagged(Tagged.Style.INTERNALLY, tag=self.tag)
        return Tagged(Tagged.Style.ADJACENTLY, tag=self.tag, content=self.content)

    def validate(self, item: Enum) -> None:
        """Raise DeriveError if the attributes contradict each other or the enum."""
        if self.type_override is not None:
            for name, present in (
                ("as", self.type_as is not None),
                ("rename_all", self.rename_all is not None),
                ("rename_all_fields", self.rename_all_fields is not None),
                ("tag", self.tag is not None),
                ("content", self.content is not None),
                ("untagged", self.untagged),
                ("repr", self.repr is not None),
            ):
                if present:
                    raise DeriveError(f"`{name}` is not compatible with `type`")
            if self.optional_fields.is_optional:
                raise DeriveError("`optional_fields` is not compatible with `type`")
        if self.type_as is not None:
            for name, present in (
                ("rename_all", self.rename_all is not None),
                ("rename_all_fields", self.rename_all_fields is not None),
                ("tag", self.tag is not None),
                ("content", self.content is not None),
                ("untagged", self.untagged),
                ("repr", self.repr is not None),
            ):
                if present:
                    raise DeriveError(f"`{name}` is not compatible with `as`")
        if self.untagged and self.repr is not None:
            raise DeriveError("`untagged` is not compatible with `repr`")
        if self.tag is not None and self.repr is not None:
            raise DeriveError("`tag` is not compatible with `repr`")
        if self.repr is not None:
            if item.type_params:
                raise DeriveError("`repr` enums cannot have generic type parameters")
            if any(v.kind is not FieldsKind.UNIT for v in item.variants):
                raise DeriveError(
                    "All variants of an enum marked as `#[ts(repr(enum))]` "
                    "must be unit variants"
                )
            if self.optional_fields.is_optional:
                raise DeriveError("`optional_fields` is not compatible with `as`")
        if self.untagged and self.tag is not None and self.content is None:
            raise DeriveError("untagged cannot be used with tag")
        if self.untagged and self.content is not None:
            raise DeriveError("untagged cannot be used with content")
        if not self.untagged and self.tag is None and self.content is not None:
            raise DeriveError("content cannot be used without tag")


_STRUCT_TS: dict[str, Callable] = {
    "crate": _set("crate_rename", _string),
    "as": _set("type_as", _type),
    "type": _set("type_override", _string),
    "rename": _set("rename", _expr),
    "rename_all": _set("rename_all", _inflection),
    "tag": _set("tag", _string),
    "export": _set("export", _flag),
    "export_to": _set("export_to", _expr),
    "concrete": _set("concrete", _concrete),
    "bound": _set("bound", _bound),
    "optional_fields": _set("optional_fields", _optional),
}

_STRUCT_SERDE: dict[str, Callable] = {
    "rename": _set("rename", _expr),
    "rename_all": _set("rename_all", _inflection),
    "tag": _set("tag", _string),
    "bound": _set("bound", _bound),
    "deny_unknown_fields": _ignore_optional_string,
    "default": _ignore_optional_string,
    "crate": _ignore_string,
}

_ENUM_TS: dict[str, Callable] = {
    "crate": _set("crate_rename", _string),
    "as": _set("type_as", _type),
    "type": _set("type_override", _string),
    "rename": _set("rename", _expr),
    "rename_all": _set("rename_all", _inflection),
    "rename_all_fields": _set("rename_all_fields", _inflection),
    "export_to": _set("export_to", _expr),
    "export": _set("export", _flag),
    "tag": _set("tag", _string),
    "content": _set("content", _string),
    "untagged": _set("untagged", _flag),
    "concrete": _set("concrete", _concrete),
    "bound": _set("bound", _bound),
    "repr": _set("repr", _repr),
    "optional_fields": _set("optional_fields", _optional),
}

_ENUM_SERDE: dict[str, Callable] = {
    "rename": _set("rename", _expr),
    "rename_all": _set("rename_all", _inflection),
    "rename_all_fields": _set("rename_all_fields", _inflection),
    "tag": _set("tag", _string),
    "content": _set("content", _string),
    "untagged": _set("untagged", _flag),
    "bound": _set("bound", _bound),
    "crate": _ignore_string,
}


def _collect(factory, ts, serde, ts_handlers, serde_handlers):
    result = functools.reduce(
        factory.merge,
        (_parse_ts(a, ts_handlers, factory()) for a in _attr_list(ts)),
        factory(),
    )
    parsed = (_parse_serde(a, serde_handlers, factory()) for a in _attr_list(serde))
    serde_attr = functools.reduce(
        factory.merge, (p for p in parsed if p is not None), factory()
    )
    return result.merge(serde_attr)


def parse_struct_attrs(ts=(), serde=(), docs=()) -> StructAttr:
    """Build the attributes of a struct from its `ts` and `serde` annotations and docs."""
    result = _collect(StructAttr, ts, serde, _STRUCT_TS, _STRUCT_SERDE)
    return dataclasses.replace(result, docs=tuple(docs))


def parse_enum_attrs(ts=(), serde=(), docs=()) -> EnumAttr:
    """Build the attributes of an enum from its `ts` and `serde` annotations and docs."""
    result = _collect(EnumAttr, ts, serde, _ENUM_TS, _ENUM_SERDE)
    return dataclasses.replace(result, docs=tuple(docs))


def struct_attr_from_variant(
    enum_attr: EnumAttr, variant_attr: VariantAttr, kind: FieldsKind
) -> StructAttr:
    """The struct attributes that apply to the body of an enum variant."""
    named = FieldsKind(kind) is FieldsKind.NAMED
    tag = None
    if named:
        tagged = enum_attr.tagged()
        if tagged.style is Tagged.Style.INTERNALLY:
            tag = tagged.tag
    optional_fields = (
        enum_attr.optional_fields
        if variant_attr.optional_fields is Optional.INHERIT
        else variant_attr.optional_fields
    )
    return StructAttr(
        crate_rename=enum_attr.crate_rename,
        rename=variant_attr.rename,
        rename_all=_first(
            variant_attr.rename_all, enum_attr.rename_all_fields if named else None
        ),
        tag=tag,
        optional_fields=optional_fields,
    )