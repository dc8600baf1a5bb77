"""Bindings for structs and for the bodies of enum variants."""

from __future__ import annotations

from typing import Any, Callable, Mapping

from .container_attrs import StructAttr, parse_struct_attrs
from .deps import Dependencies
from .derived import DerivedTS, TsType
from .member_attrs import FieldAttr, parse_field_attrs
from .model import Field, FieldsKind, Struct
from .optional import apply as apply_optional
from .utils import DeriveError, raw_name_to_ts_field

__all__ = [
    "struct_def",
    "type_def",
    "named",
    "newtype",
    "tuple_def",
    "type_as_struct",
    "type_override_struct",
    "empty_object",
    "empty_array",
    "null",
]

Render = Callable[[Mapping[str, TsType]], str]


def _require_type(ty: Any, what: str) -> Any:
    if isinstance(ty, str):
        raise DeriveError(f"{what} must be given as a type object, not as text: `{ty}`")
    return ty


def _format_docs(docs) -> str:
    lines = "".join(f" *{line}\n" for doc in docs for line in str(doc).split("\n"))
    return f"/**\n{lines} */\n"


def _constant(text: str) -> Render:
    return lambda env: text


def _reference(ty, inline: bool) -> Render:
    if inline:
        return lambda env: ty.substitute(env).inline()
    return lambda env: ty.substitute(env).name()


def _field_attr(field: Field) -> FieldAttr:
    attr = parse_field_attrs(field.ts, field.serde, field.docs)
    attr.validate(field)
    return attr


def _derived(
    attr: StructAttr,
    ts_name: str,
    inline: Render,
    *,
    dependencies: Dependencies | None = None,
    inline_flattened: Render | None = None,
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
        ts_enum=None,
        is_enum=is_enum,
        export=attr.export,
        export_to=attr.export_to,
    )


def struct_def(item: Struct) -> DerivedTS:
    """Derive the bindings of a struct definition."""
    attr = parse_struct_attrs(item.ts, item.serde, item.docs)
    ts_name = attr.rename if attr.rename is not None else item.ts_name
    return type_def(attr, ts_name, item.fields, item.kind)


def type_def(attr: StructAttr, ts_name: str, fields, kind) -> DerivedTS:
    """Derive the bindings of a struct body of the given shape."""
    kind = FieldsKind(kind)
    fields = tuple(fields)
    attr.validate(kind)

    if attr.type_override is not None:
        return type_override_struct(attr, ts_name, attr.type_override)
    if attr.type_as is not None:
        return type_as_struct(attr, ts_name, attr.type_as)

    if kind is FieldsKind.NAMED:
        if not fields and attr.tag is None:
            return empty_object(attr, ts_name)
        return named(attr, ts_name, fields)
    if kind is FieldsKind.UNNAMED:
        if not fields:
            return empty_array(attr, ts_name)
        if len(fields) == 1:
            return newtype(attr, ts_name, fields[0])
        return tuple_def(attr, ts_name, fields)
    return null(attr, ts_name)


def _named_field(attr: StructAttr, field: Field, dependencies: Dependencies):
    """Return `(flattened, render)` for one named field, or None if it is skipped."""
    field_attr = _field_attr(field)
    if field_attr.skip:
        return None

    ty = field_attr.resolve_type(field.ty)
    if field_attr.type_override is None:
        _require_type(ty, f"the type of field `{field.name}`")
    is_optional, ty = apply_optional(attr.optional_fields, ty, field_attr)

    if field_attr.type_override is None:
        if field_attr.inline or field_attr.flatten:
            dependencies.append_from(ty)
        else:
            dependencies.push(ty)

    if field_attr.flatten:
        return True, lambda env: ty.substitute(env).inline_flattened()

    if field_attr.type_override is not None:
        render_ty = _constant(field_attr.type_override)
    else:
        render_ty = _reference(ty, field_attr.inline)

    if field_attr.rename is not None:
        name = field_attr.rename
    elif attr.rename_all is not None:
        name = attr.rename_all.apply(field.ts_name)
    else:
        name = field.ts_name

    # a leading newline lets editors pick the comment up
    docs = "\n" + _format_docs(field_attr.docs) if field_attr.docs else ""
    prefix = f"{docs}{raw_name_to_ts_field(name)}{'?' if is_optional else ''}: "
    return False, lambda env: f"{prefix}{render_ty(env)},"


def _combine(formatted, flattened, env, *, unwrap_single: bool) -> str:
    fields = " ".join(render(env) for render in formatted)
    flat = [render(env) for render in flattened]
    if not formatted and not flat:
        text = "{  }"
    elif not flat:
        text = f"{{ {fields} }}"
    elif not formatted:
        text = " & ".join(flat)
        if unwrap_single and len(flat) == 1:
            if text.startswith("(") and text.endswith(")"):
                text = text[1:-1].strip()
            else:
                text = text.strip()
    else:
        text = f"{{ {fields} }} & {' & '.join(flat)}"
    # merging `{ .. } & { .. }` into one object keeps definitions simple
    return text.replace(" } & { ", " ")


def named(attr: StructAttr, ts_name: str, fields) -> DerivedTS:
    """Bindings of a body with named fields: a TypeScript object type."""
    dependencies = Dependencies()
    formatted: list[Render] = []
    flattened: list[Render] = []

    if attr.tag is not None:
        formatted.append(_constant(f'"{attr.tag}": "{ts_name}",'))

    for field in fields:
        result = _named_field(attr, field, dependencies)
        if result is None:
            continue
        is_flattened, render = result
        (flattened if is_flattened else formatted).append(render)

    return _derived(
        attr,
        ts_name,
        lambda env: _combine(formatted, flattened, env, unwrap_single=True),
        dependencies=dependencies,
        inline_flattened=lambda env: _combine(formatted, flattened, env, unwrap_single=False),
    )


def newtype(attr: StructAttr, ts_name: str, field: Field) -> DerivedTS:
    """Bindings of a body with a single unnamed field: the type of that field."""
    field_attr = _field_attr(field)
    if field_attr.skip:
        return null(attr, ts_name)

    dependencies = Dependencies()
    if field_attr.type_override is not None:
        return _derived(
            attr, ts_name, _constant(field_attr.type_override), dependencies=dependencies
        )

    inner = _require_type(field_attr.resolve_type(field.ty), "the type of the wrapped field")
    if field_attr.inline:
        dependencies.append_from(inner)
    else:
        dependencies.push(inner)

    return _derived(
        attr,
        ts_name,
        _reference(inner, field_attr.inline),
        dependencies=dependencies,
        is_enum=lambda env: inner.substitute(env).is_enum,
    )


def _tuple_field(attr: StructAttr, field: Field, dependencies: Dependencies) -> Render | None:
    field_attr = _field_attr(field)
    if field_attr.skip:
        return None

    ty = field_attr.resolve_type(field.ty)
    if field_attr.type_override is None:
        _require_type(ty, "the type of a tuple field")
    is_optional, ty = apply_optional(attr.optional_fields, ty, field_attr)

    if field_attr.type_override is None:
        if field_attr.inline:
            dependencies.append_from(ty)
        else:
            dependencies.push(ty)
        render = _reference(ty, field_attr.inline)
    else:
        render = _constant(field_attr.type_override)

    if is_optional:
        return lambda env: f"({render(env)})?"
    return render


def tuple_def(attr: StructAttr, ts_name: str, fields) -> DerivedTS:
    """Bindings of a body with several unnamed fields: a TypeScript tuple."""
    dependencies = Dependencies()
    renders = [
        render
        for render in (_tuple_field(attr, field, dependencies) for field in fields)
        if render is not None
    ]
    return _derived(
        attr,
        ts_name,
        lambda env: f"[{', '.join(render(env) for render in renders)}]",
        dependencies=dependencies,
    )


def type_as_struct(attr: StructAttr, ts_name: str, type_as) -> DerivedTS:
    """Bindings of a struct that is represented like another type."""
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


def type_override_struct(attr: StructAttr, ts_name: str, type_override: str) -> DerivedTS:
    """Bindings of a struct whose TypeScript type is given verbatim."""
    return _derived(attr, ts_name, _constant(type_override))


def empty_object(attr: StructAttr, ts_name: str) -> DerivedTS:
    """Bindings of a struct with an empty body of named fields."""
    return _derived(attr, ts_name, _constant("Record<symbol, never>"))


def empty_array(attr: StructAttr, ts_name: str) -> DerivedTS:
    """Bindings of a tuple struct without fields."""
    return _derived(attr, ts_name, _constant("never[]"))


def null(attr: StructAttr, ts_name: str) -> DerivedTS:
    """Bindings of a unit struct."""
    return _derived(attr, ts_name, _constant("null"))