"""Bindings for enums: unions of their variants, or TypeScript enums."""

from __future__ import annotations

from typing import Any, Callable, Mapping

from .container_attrs import (
    EnumAttr,
    Repr,
    Tagged,
    parse_enum_attrs,
    struct_attr_from_variant,
)
from .deps import Dependencies
from .derived import DerivedTS, TsType
from .member_attrs import FieldAttr, VariantAttr, parse_field_attrs, parse_variant_attrs
from .model import Enum, Field, FieldsKind, Variant
from .structs import _constant, _require_type, type_def
from .utils import DeriveError

__all__ = ["enum_def", "type_as_enum", "type_override_enum", "empty_enum"]

Render = Callable[[Mapping[str, TsType]], str]


def _derived(
    attr: EnumAttr,
    ts_name: str,
    inline: Render,
    *,
    dependencies: Dependencies | None = None,
    inline_flattened: Render | None = None,
    ts_enum: Repr | None = None,
    is_enum: Any = False,
) -> DerivedTS:
    return DerivedTS(
        ts_name=ts_name,
        inline=inline,
        dependencies=dependencies if dependencies is not None else Dependencies(),
        inline_flattened=inline_flattened,
        docs=tuple(attr.docs),
        concrete=dict(attr.concrete),
        bound=attr.bound,
        ts_enum=ts_enum,
        is_enum=is_enum,
        export=attr.export,
        export_to=attr.export_to,
    )


def enum_def(item: Enum) -> DerivedTS:
    """Derive the bindings of an enum definition."""
    enum_attr = parse_enum_attrs(item.ts, item.serde, item.docs)
    enum_attr.validate(item)

    name = enum_attr.rename if enum_attr.rename is not None else item.ts_name

    if enum_attr.type_override is not None:
        return type_override_enum(enum_attr, name, enum_attr.type_override)
    if enum_attr.type_as is not None:
        return type_as_enum(enum_attr, name, enum_attr.type_as)
    if not item.variants:
        return empty_enum(name, enum_attr)

    dependencies = Dependencies()
    renders: list[Render] = []
    for variant in item.variants:
        render = _format_variant(enum_attr, variant, dependencies)
        if render is not None:
            renders.append(render)

    separator = ", " if enum_attr.repr is not None else " | "

    def inline(env: Mapping[str, TsType]) -> str:
        return separator.join(render(env) for render in renders)

    def inline_flattened(env: Mapping[str, TsType]) -> str:
        return f"({' | '.join(render(env) for render in renders)})"

    return _derived(
        enum_attr,
        name,
        inline,
        dependencies=dependencies,
        inline_flattened=None if enum_attr.repr is not None else inline_flattened,
        ts_enum=enum_attr.repr,
        is_enum=True,
    )


def _variant_name(enum_attr: EnumAttr, variant_attr: VariantAttr, variant: Variant) -> str:
    if variant_attr.rename is not None:
        return variant_attr.rename
    if enum_attr.rename_all is not None:
        return enum_attr.rename_all.apply(variant.ts_name)
    return variant.ts_name


def _repr_variant(repr_: Repr, ts_name: str, discriminant: Any) -> str:
    if repr_ is Repr.NAME:
        return f'"{ts_name}" = "{ts_name}"'
    if discriminant is not None:
        return f'"{ts_name}" = {discriminant}'
    return f'"{ts_name}"'


def _variant_type(
    variant_attr: VariantAttr, variant_type: DerivedTS, dependencies: Dependencies
) -> Render:
    """The TypeScript type of a variant's body, honouring `as` and `type`."""
    if variant_attr.type_as is not None and variant_attr.type_override is not None:
        raise DeriveError("`type` is not compatible with `as`")
    if variant_attr.type_as is not None:
        ty = _require_type(variant_attr.type_as, "the type given to `as`")
        dependencies.push(ty)
        return lambda env: ty.substitute(env).name()
    if variant_attr.type_override is not None:
        return _constant(variant_attr.type_override)
    dependencies.append(variant_type.dependencies)
    return variant_type.inline


def _single_field(variant: Variant) -> tuple[Field, FieldAttr] | None:
    """The field and its attributes, if the variant wraps exactly one unnamed field."""
    if variant.kind is not FieldsKind.UNNAMED or len(variant.fields) != 1:
        return None
    field = variant.fields[0]
    field_attr = parse_field_attrs(field.ts, field.serde, field.docs)
    field_attr.validate(field)
    return field, field_attr


def _field_type(field: Field, field_attr: FieldAttr) -> Render:
    if field_attr.type_override is not None:
        return _constant(field_attr.type_override)
    ty = _require_type(field_attr.resolve_type(field.ty), "the type of the wrapped field")
    return lambda env: ty.substitute(env).name()


def _format_variant(
    enum_attr: EnumAttr, variant: Variant, dependencies: Dependencies
) -> Render | None:
    variant_attr = parse_variant_attrs(variant.ts, variant.serde)
    variant_attr.validate(variant)
    if variant_attr.skip:
        return None

    ts_name = _variant_name(enum_attr, variant_attr, variant)

    if enum_attr.repr is not None:
        return _constant(_repr_variant(enum_attr.repr, ts_name, variant.discriminant))

    struct_attr = struct_attr_from_variant(enum_attr, variant_attr, variant.kind)
    variant_type = type_def(struct_attr, ts_name, variant.fields, variant.kind)
    parsed = _variant_type(variant_attr, variant_type, dependencies)

    tagged = enum_attr.tagged()
    if variant_attr.untagged or tagged.style is Tagged.Style.UNTAGGED:
        return parsed
    if tagged.style is Tagged.Style.EXTERNALLY:
        return _externally(ts_name, variant, parsed)
    if tagged.style is Tagged.Style.ADJACENTLY:
        return _adjacently(tagged.tag, tagged.content, ts_name, variant, parsed)
    return _internally(tagged.tag, ts_name, variant, variant_type, parsed)


def _externally(ts_name: str, variant: Variant, parsed: Render) -> Render:
    quoted = f'"{ts_name}"'
    if variant.kind is FieldsKind.UNIT:
        return _constant(quoted)
    single = _single_field(variant)
    if single is not None and single[1].skip:
        return _constant(quoted)
    return lambda env: f"{{ {quoted}: {parsed(env)} }}"


def _adjacently(
    tag: str, content: str, ts_name: str, variant: Variant, parsed: Render
) -> Render:
    tag_part = f'"{tag}": "{ts_name}"'
    single = _single_field(variant)
    if single is not None:
        field, field_attr = single
        if field_attr.skip:
            return _constant(f"{{ {tag_part} }}")
        ty = _field_type(field, field_attr)
        return lambda env: f'{{ {tag_part}, "{content}": {ty(env)} }}'
    if variant.kind is FieldsKind.UNIT:
        return _constant(f"{{ {tag_part} }}")
    return lambda env: f'{{ {tag_part}, "{content}": {parsed(env)} }}'


def _internally(
    tag: str, ts_name: str, variant: Variant, variant_type: DerivedTS, parsed: Render
) -> Render:
    # bodies that can be flattened already carry the tag themselves
    if variant_type.inline_flattened is not None:
        return parsed
    tag_part = f'"{tag}": "{ts_name}"'
    single = _single_field(variant)
    if single is not None:
        field, field_attr = single
        if field_attr.skip:
            return _constant(f"{{ {tag_part} }}")
        ty = _field_type(field, field_attr)
        return lambda env: f"{{ {tag_part} }} & {ty(env)}"
    if variant.kind is FieldsKind.UNIT:
        return _constant(f"{{ {tag_part} }}")
    return lambda env: f"{{ {tag_part} }} & {parsed(env)}"


def type_as_enum(attr: EnumAttr, ts_name: str, type_as) -> DerivedTS:
    """Bindings of an enum that is represented like another type."""
    type_as = _require_type(type_as, "the type given to `as`")
    dependencies = Dependencies()
    dependencies.append_from(type_as)
    return _derived(
        attr,
        ts_name,
        lambda env: type_as.substitute(env).inline(),
        dependencies=dependencies,
        is_enum=lambda env: type_as.substitute(env).is_enum,
    )


def type_override_enum(attr: EnumAttr, ts_name: str, type_override: str) -> DerivedTS:
    """Bindings of an enum whose TypeScript type is given verbatim."""
    return _derived(attr, ts_name, _constant(type_override), is_enum=True)


def empty_enum(ts_name: str, attr: EnumAttr) -> DerivedTS:
    """Bindings of an enum without variants: `never`."""
    return _derived(attr, ts_name, _constant("never"), ts_enum=attr.repr, is_enum=False)