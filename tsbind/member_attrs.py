"""Attributes on fields and enum variants, from `ts` and `serde` annotations."""

from __future__ import annotations

import dataclasses
import functools
import inspect
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable

from .inflection import Inflection, parse_inflection
from .model import Field, FieldsKind, Variant
from .optional import Optional, parse_optional
from .utils import DeriveError, parse_attr_args, print_warning

__all__ = [
    "FieldAttr",
    "VariantAttr",
    "parse_field_attrs",
    "parse_variant_attrs",
]

_IGNORED_NOTE = "this attribute could not be parsed. It will be ignored."


def _attr_list(attrs) -> tuple:
    if isinstance(attrs, (str, Mapping)):
        return (attrs,)
    return tuple(attrs)


def _entries(attr) -> list[tuple]:
    """Turn one attribute into `(key, value, quoted)` entries.

    Text is parsed as attribute arguments; a mapping is taken as native Python
    values, marked with `quoted` None. `True` in a mapping is a bare flag.
    """
    if isinstance(attr, str):
        return parse_attr_args(attr)
    if isinstance(attr, Mapping):
        return [(key, None if value is True else value, None) for key, value in attr.items()]
    raise DeriveError(f"unsupported attribute: {attr!r}")


def _flag(entry) -> bool:
    key, value, quoted = entry
    if quoted is None:
        return value is not False
    if value is not None:
        raise DeriveError(f"`{key}` does not take a value")
    return True


def _string(entry) -> str:
    key, value, quoted = entry
    if value is None:
        raise DeriveError(f"expected `=` after `{key}`")
    if not isinstance(value, str) or quoted is False:
        raise DeriveError("expected string")
    return value


def _optional_string(entry) -> str | None:
    return None if entry[1] is None else _string(entry)


def _type(entry) -> Any:
    key, value, quoted = entry
    if quoted is None:
        if value is None or value is False:
            raise DeriveError(f"expected a type for `{key}`")
        return value
    return _string(entry)


def _optional(entry) -> Optional:
    _, value, quoted = entry
    if quoted is None:
        if isinstance(value, Optional):
            return value
        if value is False:
            return Optional.NOT_OPTIONAL
        return parse_optional(value)
    if quoted or isinstance(value, list):
        raise DeriveError("expected 'nullable'")
    return parse_optional(value)


def _inflection(entry) -> Inflection:
    if entry[2] is None and isinstance(entry[1], Inflection):
        return entry[1]
    return parse_inflection(_string(entry))


def _describe(entry) -> str:
    key, value, quoted = entry
    if value is None:
        return key
    if isinstance(value, list):
        return f"{key}(..)"
    if quoted:
        return f'{key} = "{value}"'
    return f"{key} = {value}"


def _parse_ts(attr, handlers: Mapping[str, Callable], target):
    for entry in _entries(attr):
        handler = handlers.get(entry[0])
        if handler is None:
            raise DeriveError(
                f'Unknown attribute "{entry[0]}". Allowed attributes are: '
                + ", ".join(f'"{k}"' for k in handlers)
            )
        handler(target, entry)
    return target


def _parse_serde(attr, handlers: Mapping[str, Callable], target):
    """Parse a serde attribute; one that is malformed is dropped whole."""
    try:
        for entry in _entries(attr):
            handler = handlers.get(entry[0])
            if handler is None:
                print_warning("failed to parse serde attribute", _describe(entry), _IGNORED_NOTE)
                continue
            handler(target, entry)
    except DeriveError:
        return None
    return target


def _first(a, b):
    return a if a is not None else b


@dataclass
class FieldAttr:
    """Everything the annotations of one field say about its binding."""

    type_as: Any = None
    type_override: str | None = None
    rename: str | None = None
    inline: bool = False
    skip: bool = False
    optional: Optional = Optional.INHERIT
    flatten: bool = False
    docs: tuple = ()
    using_serde_with: bool = False
    maybe_omitted: bool = False
    has_default: bool = False

    def merge(self, other: FieldAttr) -> FieldAttr:
        """Combine two attribute sets; values set on `self` win."""
        flatten = self.flatten or other.flatten
        return FieldAttr(
            type_as=_first(self.type_as, other.type_as),
            type_override=_first(self.type_override, other.type_override),
            rename=_first(self.rename, other.rename),
            inline=self.inline or other.inline,
            skip=self.skip or other.skip,
            optional=self.optional.combine(other.optional),
            flatten=flatten,
            # a flattened field has nowhere to put its documentation
            docs=() if flatten else tuple(self.docs) + tuple(other.docs),
            using_serde_with=self.using_serde_with or other.using_serde_with,
            maybe_omitted=self.maybe_omitted or other.maybe_omitted,
            has_default=self.has_default or other.has_default,
        )

    def validate(self, field: Field) -> None:
        """Raise DeriveError if the attributes contradict each other or the field."""
        if self.using_serde_with and self.type_as is None and self.type_override is None:
            raise DeriveError(
                'using `#[serde(with = "...")]` requires the use of '
                '`#[ts(as = "...")]` or `#[ts(type = "...")]`'
            )
        if self.type_override is not None:
            if self.type_as is not None:
                raise DeriveError("`type` is not compatible with `as`")
            if self.inline:
                raise DeriveError("`type` is not compatible with `inline`")
            if self.flatten:
                raise DeriveError("`type` is not compatible with `flatten`")
        if self.flatten:
            if self.type_as is not None:
                raise DeriveError("`as` is not compatible with `flatten`")
            if self.rename is not None:
                raise DeriveError("`rename` is not compatible with `flatten`")
            if self.inline:
                raise DeriveError("`inline` is not compatible with `flatten`")
            if self.optional.is_optional:
                raise DeriveError("`optional` is not compatible with `flatten`")
        if field.name is None:
            if self.flatten:
                raise DeriveError("`flatten` cannot be used with tuple struct fields")
            if self.rename is not None:
                raise DeriveError("`rename` cannot be used with tuple struct fields")

    def resolve_type(self, original):
        """Return the type the binding uses for a field of type `original`.

        `as` may name a type outright, or be a function of the original type,
        which stands for a type with the `_` placeholder in it.
        """
        if self.type_as is None:
            return original
        if inspect.isroutine(self.type_as) or isinstance(self.type_as, functools.partial):
            return self.type_as(original)
        return self.type_as


def _set(name: str, convert: Callable) -> Callable:
    def handler(out, entry) -> None:
        setattr(out, name, convert(entry))

    return handler


def _serde_skip_if(out: FieldAttr, entry) -> None:
    _string(entry)
    out.maybe_omitted = True


def _serde_skip_serializing(out: FieldAttr, entry) -> None:
    out.maybe_omitted = _flag(entry)


def _serde_default(out: FieldAttr, entry) -> None:
    _optional_string(entry)
    out.has_default = True


def _serde_borrow(out, entry) -> None:
    _optional_string(entry)


def _serde_with(out: FieldAttr, entry) -> None:
    _string(entry)
    out.using_serde_with = True


_FIELD_TS = {
    "as": _set("type_as", _type),
    "type": _set("type_override", _string),
    "rename": _set("rename", _string),
    "inline": _set("inline", _flag),
    "skip": _set("skip", _flag),
    "optional": _set("optional", _optional),
    "flatten": _set("flatten", _flag),
}

_FIELD_SERDE = {
    "rename": _set("rename", _string),
    "skip": _set("skip", _flag),
    "skip_serializing_if": _serde_skip_if,
    "skip_serializing": _serde_skip_serializing,
    "flatten": _set("flatten", _flag),
    "default": _serde_default,
    "borrow": _serde_borrow,
    "with": _serde_with,
}


def parse_field_attrs(ts=(), serde=(), docs=()) -> FieldAttr:
    """Build the attributes of a field from its `ts` and `serde` annotations and docs."""
    result = functools.reduce(
        FieldAttr.merge,
        (_parse_ts(a, _FIELD_TS, FieldAttr()) for a in _attr_list(ts)),
        FieldAttr(),
    )
    if not result.skip:
        parsed = (_parse_serde(a, _FIELD_SERDE, FieldAttr()) for a in _attr_list(serde))
        serde_attr = functools.reduce(
            FieldAttr.merge, (p for p in parsed if p is not None), FieldAttr()
        )
        result = result.merge(serde_attr)
    return dataclasses.replace(result, docs=tuple(docs))


@dataclass
class VariantAttr:
    """Everything the annotations of one enum variant say about its binding."""

    type_as: Any = None
    type_override: str | None = None
    rename: str | None = None
    rename_all: Inflection | None = None
    inline: bool = False
    skip: bool = False
    untagged: bool = False
    optional_fields: Optional = Optional.INHERIT

    def merge(self, other: VariantAttr) -> VariantAttr:
        """Combine two attribute sets; values set on `self` win."""
        return VariantAttr(
            type_as=_first(self.type_as, other.type_as),
            type_override=_first(self.type_override, other.type_override),
            rename=_first(self.rename, other.rename),
            rename_all=_first(self.rename_all, other.rename_all),
            inline=self.inline or other.inline,
            skip=self.skip or other.skip,
            untagged=self.untagged or other.untagged,
            optional_fields=self.optional_fields.combine(other.optional_fields),
        )

    def validate(self, variant: Variant) -> None:
        """Raise DeriveError if the attributes contradict each other or the variant."""
        if self.type_as is not None:
            if self.type_override is not None:
                raise DeriveError("`as` is not compatible with `type`")
            if self.rename_all is not None:
                raise DeriveError("`as` is not compatible with `rename_all`")
        if self.type_override is not None:
            if self.rename_all is not None:
                raise DeriveError("`type` is not compatible with `rename_all`")
            if self.inline:
                raise DeriveError("`type` is not compatible with `inline`")
        if variant.kind is not FieldsKind.NAMED and self.rename_all is not None:
            raise DeriveError("`rename_all` is not applicable to unit or tuple variants")


_VARIANT_TS = {
    "as": _set("type_as", _type),
    "type": _set("type_override", _string),
    "rename": _set("rename", _string),
    "rename_all": _set("rename_all", _inflection),
    "inline": _set("inline", _flag),
    "skip": _set("skip", _flag),
    "untagged": _set("untagged", _flag),
    "optional_fields": _set("optional_fields", _optional),
}

_VARIANT_SERDE = {
    "rename": _set("rename", _string),
    "rename_all": _set("rename_all", _inflection),
    "skip": _set("skip", _flag),
    "untagged": _set("untagged", _flag),
    "borrow": _serde_borrow,
}


def parse_variant_attrs(ts=(), serde=()) -> VariantAttr:
    """Build the attributes of a variant from its `ts` and `serde` annotations."""
    result = functools.reduce(
        VariantAttr.merge,
        (_parse_ts(a, _VARIANT_TS, VariantAttr()) for a in _attr_list(ts)),
        VariantAttr(),
    )
    if not result.skip:
        parsed = (_parse_serde(a, _VARIANT_SERDE, VariantAttr()) for a in _attr_list(serde))
        serde_attr = functools.reduce(
            VariantAttr.merge, (p for p in parsed if p is not None), VariantAttr()
        )
        result = result.merge(serde_attr)
    return result