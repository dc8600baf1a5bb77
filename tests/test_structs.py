from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest

from tsbind.container_attrs import StructAttr
from tsbind.derived import DerivedType, TsType, TypeParam
from tsbind.model import Field, FieldsKind, GenericParam, Struct
from tsbind.structs import (
    empty_array,
    empty_object,
    named,
    newtype,
    null,
    struct_def,
    tuple_def,
    type_as_struct,
    type_def,
    type_override_struct,
)
from tsbind.utils import DeriveError


@dataclass(frozen=True)
class Prim(TsType):
    ts: str

    def name(self):
        return self.ts


@dataclass(frozen=True)
class Vec(TsType):
    elem: Any

    def name(self):
        return f"Array<{self.elem.name()}>"

    def inline(self):
        return f"Array<{self.elem.inline()}>"

    def substitute(self, env):
        return Vec(self.elem.substitute(env))

    def visit_generics(self, visitor):
        visitor(self.elem)
        self.elem.visit_generics(visitor)


@dataclass(frozen=True)
class Opt(TsType):
    inner: Any
    is_option = True

    @property
    def option_inner(self):
        return self.inner

    def name(self):
        return f"{self.inner.name()} | null"

    def inline(self):
        return f"{self.inner.inline()} | null"

    def substitute(self, env):
        return Opt(self.inner.substitute(env))


@dataclass(frozen=True)
class Tup(TsType):
    elems: tuple

    def name(self):
        return "[" + ", ".join(e.name() for e in self.elems) + "]"

    def inline(self):
        return "[" + ", ".join(e.inline() for e in self.elems) + "]"

    def substitute(self, env):
        return Tup(tuple(e.substitute(env) for e in self.elems))


@dataclass(frozen=True)
class Fixed(TsType):
    elem: Any
    length: int

    def name(self):
        return "[" + ", ".join([self.elem.name()] * self.length) + "]"


@dataclass(frozen=True)
class MapT(TsType):
    key: Any
    value: Any

    def name(self):
        return f"{{ [key in {self.key.name()}]: {self.value.name()} }}"

    def inline(self):
        return f"{{ [key in {self.key.inline()}]: {self.value.inline()} }}"

    def inline_flattened(self):
        return f"({self.inline()})"


@dataclass(frozen=True)
class Choice(TsType):
    options: tuple

    @property
    def is_enum(self):
        return True

    def name(self):
        return " | ".join(self.options)


class Unsupported:
    pass


NUMBER = Prim("number")
STRING = Prim("string")
BIGINT = Prim("bigint")
BOOLEAN = Prim("boolean")


def bind(item):
    return DerivedType(struct_def(item), item.name, item.generics)


def test_simple():
    simple = bind(
        Struct(
            "Simple",
            [
                Field(NUMBER, "a"),
                Field(STRING, "b"),
                Field(Tup((NUMBER, STRING, NUMBER)), "c"),
                Field(Vec(STRING), "d"),
                Field(Opt(STRING), "e"),
                Field(STRING, "f"),
                Field(Opt(STRING), "g"),
            ],
        )
    )
    assert simple.inline() == (
        "{ a: number, b: string, c: [number, string, number], d: Array<string>, "
        "e: string | null, f: string, g: string | null, }"
    )


def _nested():
    a = bind(Struct("A", [Field(NUMBER, "x1"), Field(NUMBER, "y1")]))
    b = bind(Struct("B", [Field(a, "a1"), Field(a, "a2", ts="inline")]))
    c = bind(Struct("C", [Field(b, "b1"), Field(b, "b2", ts="inline")]))
    return a, b, c


def test_nested():
    _, _, c = _nested()
    assert c.inline() == "{ b1: B, b2: { a1: A, a2: { x1: number, y1: number, }, }, }"


def test_field_rename():
    rename = bind(
        Struct(
            "Rename",
            [
                Field(STRING, "a", serde='rename = "c", skip_serializing_if = "String::is_empty"'),
                Field(NUMBER, "b", ts='rename = "bb"'),
            ],
        )
    )
    assert rename.inline() == "{ c: string, bb: number, }"


def test_flatten():
    a = bind(
        Struct(
            "A",
            [Field(NUMBER, "a"), Field(NUMBER, "b"), Field(MapT(STRING, NUMBER), "c", ts="flatten")],
        )
    )
    b = bind(Struct("B", [Field(a, "a", ts="flatten"), Field(NUMBER, "c")]))
    c = bind(Struct("C", [Field(b, "b", ts="inline"), Field(NUMBER, "d")]))
    assert c.inline() == (
        "{ b: { c: number, a: number, b: number, } & ({ [key in string]: number }), d: number, }"
    )


def test_generic_newtypes():
    assert bind(Struct("Newtype", [Field(Vec(NUMBER))])).inline() == "Array<number>"
    nested = bind(Struct("NewtypeNested", [Field(Vec(Vec(NUMBER)))]))
    assert nested.inline() == "Array<Array<number>>"


def test_generic_fields_named():
    item = bind(
        Struct(
            "Struct",
            [
                Field(Vec(STRING), "a"),
                Field(Tup((Vec(STRING), Vec(STRING))), "b"),
                Field(Fixed(Vec(STRING), 3), "c"),
            ],
        )
    )
    assert item.inline() == (
        "{ a: Array<string>, b: [Array<string>, Array<string>], "
        "c: [Array<string>, Array<string>, Array<string>], }"
    )


def test_generic_fields_tuple():
    item = bind(
        Struct(
            "Tuple",
            [
                Field(Vec(NUMBER)),
                Field(Tup((Vec(NUMBER), Vec(NUMBER)))),
                Field(Fixed(Vec(NUMBER), 3)),
            ],
        )
    )
    assert item.inline() == (
        "[Array<number>, [Array<number>, Array<number>], "
        "[Array<number>, Array<number>, Array<number>]]"
    )


def test_list():
    item = bind(Struct("List", [Field(Opt(Vec(NUMBER)), "data")]))
    assert item.decl() == "type List = { data: Array<number> | null, };"


def test_optional_in_struct():
    item = bind(
        Struct(
            "OptionalInStruct",
            [
                Field(Opt(NUMBER), "a", ts="optional"),
                Field(Opt(NUMBER), "b", ts="optional = nullable"),
                Field(Opt(NUMBER), "c"),
            ],
        )
    )
    assert item.inline() == "{ a?: number, b?: number | null, c: number | null, }"


def test_optional_in_generic_struct():
    item = bind(
        Struct(
            "GenericOptionalStruct",
            [Field(Opt(TypeParam("T")), "a", ts="optional")],
            generics=[GenericParam("T")],
        )
    )
    assert item.decl() == "type GenericOptionalStruct<T> = { a?: T, };"


def _optional_fields():
    return [
        Field(Opt(NUMBER), "a", ts="optional"),
        Field(Opt(NUMBER), "b", ts="optional = nullable"),
        Field(Opt(NUMBER), "c"),
    ]


def test_optional_flatten_and_inline():
    inner = bind(Struct("OptionalFlatten", _optional_fields()))
    flatten = bind(Struct("Flatten", [Field(inner, "x", ts="flatten")]))
    assert flatten.inline() == inner.inline()
    inline = bind(Struct("Inline", [Field(inner, "x", ts="inline")]))
    assert inline.inline() == "{ x: { a?: number, b?: number | null, c: number | null, }, }"


def _struct_optional_fields():
    return [
        Field(Opt(NUMBER), "a"),
        Field(Opt(NUMBER), "b"),
        Field(Opt(NUMBER), "c", ts="optional = nullable"),
        Field(NUMBER, "d"),
        Field(Opt(NUMBER), "e"),
        Field(Opt(NUMBER), "f"),
        Field(Opt(NUMBER), "g", ts='type = "string"'),
        Field(Opt(NUMBER), "h", ts={"as": STRING}),
    ]


def test_struct_optional_fields():
    item = bind(Struct("OptionalStruct", _struct_optional_fields(), ts="optional_fields"))
    assert item.inline() == (
        "{ a?: number, b?: number, c?: number | null, d: number, e?: number, "
        "f?: number, g: string, h: string, }"
    )


def test_struct_nullable_fields():
    fields = _struct_optional_fields() + [
        Field(Opt(NUMBER), "i", ts="optional"),
        Field(Opt(NUMBER), "j", ts="optional = false"),
    ]
    item = bind(Struct("NullableStruct", fields, ts="optional_fields = nullable"))
    assert item.inline() == (
        "{ a?: number | null, b?: number | null, c?: number | null, d: number, "
        "e?: number | null, f?: number | null, g: string, h: string, i?: number, "
        "j: number | null, }"
    )


def test_optional_in_tuple():
    item = bind(
        Struct(
            "OptionalInTuple",
            [
                Field(Opt(NUMBER)),
                Field(Opt(NUMBER), ts="optional"),
                Field(Opt(NUMBER), ts="optional = nullable"),
            ],
        )
    )
    assert item.inline() == "[number | null, (number)?, (number | null)?]"


def _tuple_fields():
    return [
        Field(NUMBER),
        Field(Opt(NUMBER), ts='type = "string"'),
        Field(Opt(NUMBER), ts={"as": STRING}),
        Field(Opt(NUMBER)),
        Field(Opt(NUMBER), ts="optional"),
        Field(Opt(NUMBER), ts="optional = nullable"),
    ]


@pytest.mark.parametrize(
    ("option", "expected"),
    [
        ("optional_fields", "[number, string, string, (number)?, (number)?, (number | null)?]"),
        (
            "optional_fields = nullable",
            "[number, string, string, (number | null)?, (number)?, (number | null)?]",
        ),
    ],
)
def test_tuple_optional_fields(option, expected):
    assert bind(Struct("OptionalTuple", _tuple_fields(), ts=option)).inline() == expected


def test_serde_skip_serializing_named():
    item = bind(
        Struct(
            "Named",
            [
                Field(Opt(NUMBER), "a", serde='skip_serializing_if = "Option::is_none"'),
                Field(BOOLEAN, "b", serde='skip_serializing_if = "std::ops::Not::not", default'),
                Field(Opt(NUMBER), "c", serde='skip_serializing_if = "Option::is_none", default'),
                Field(Opt(NUMBER), "d", serde="skip_serializing, default"),
                Field(
                    Opt(NUMBER), "e", serde="skip_serializing, default", ts="optional = false"
                ),
                Field(Opt(NUMBER), "f", serde="skip_serializing, default", ts="optional"),
            ],
        )
    )
    assert item.decl() == (
        "type Named = { a: number | null, b?: boolean, c?: number | null, "
        "d?: number | null, e: number | null, f?: number, };"
    )


def test_serde_skip_serializing_tuple():
    item = bind(
        Struct(
            "Tuple",
            [
                Field(Opt(NUMBER)),
                Field(Opt(NUMBER), ts="optional"),
                Field(Opt(NUMBER), serde="skip_serializing, default"),
            ],
        )
    )
    assert item.decl() == "type Tuple = [number | null, (number)?, (number | null)?];"


def test_serde_skip_serializing_overrides():
    item = bind(
        Struct(
            "Overrides",
            [
                Field(Opt(NUMBER), "x", serde="skip_serializing, default"),
                Field(Opt(NUMBER), "y"),
                Field(Opt(NUMBER), "z", ts="optional"),
            ],
            ts="optional_fields = false",
        )
    )
    assert item.decl() == "type Overrides = { x: number | null, y: number | null, z?: number, };"


@pytest.mark.parametrize(
    ("rename_all", "fields", "expected"),
    [
        ("UPPERCASE", ["a", "b"], "{ A: number, B: number, }"),
        (
            "camelCase",
            ["crc32c_hash", "b", "alreadyCamelCase"],
            "{ crc32cHash: number, b: number, alreadyCamelCase: number, }",
        ),
        ("PascalCase", ["crc32c_hash", "b"], "{ Crc32cHash: number, B: number, }"),
    ],
)
def test_struct_rename_all(rename_all, fields, expected):
    item = bind(
        Struct(
            "Renamed",
            [Field(NUMBER, name) for name in fields],
            ts=f'export, export_to = "struct_rename/", rename_all = "{rename_all}"',
        )
    )
    assert item.inline() == expected


def test_struct_rename_all_screaming_kebab_from_serde():
    item = bind(
        Struct(
            "RenameAllScreamingKebab",
            [Field(NUMBER, "crc32c_hash"), Field(NUMBER, "some_field"), Field(NUMBER, "some_other_field")],
            serde='rename_all = "SCREAMING-KEBAB-CASE"',
        )
    )
    assert item.inline() == (
        '{ "CRC32C-HASH": number, "SOME-FIELD": number, "SOME-OTHER-FIELD": number, }'
    )


def test_serde_rename_special_char():
    item = bind(
        Struct(
            "RenameSerdeSpecialChar",
            [Field(NUMBER, "b", serde='rename = "a/b"')],
            ts='rename_all = "camelCase"',
        )
    )
    assert item.inline() == '{ "a/b": number, }'


def test_struct_rename():
    item = bind(Struct("Original", [Field(NUMBER, "a")], ts='rename = "Renamed"'))
    assert item.decl() == "type Renamed = { a: number, };"
    assert item.output_path() == Path("Renamed.ts")


def test_raw_identifier_field():
    assert bind(Struct("Raw", [Field(STRING, "r#type")])).inline() == "{ type: string, }"


def test_tuple_newtype_decls():
    assert bind(Struct("NewType", [Field(STRING)])).decl() == "type NewType = string;"
    tuple_newtype = bind(
        Struct(
            "TupleNewType",
            [Field(STRING), Field(NUMBER), Field(Tup((NUMBER, NUMBER)))],
            ts='export, export_to = "tuple/", rename_all = "camelCase"',
        )
    )
    assert tuple_newtype.decl() == "type TupleNewType = [string, number, [number, number]];"
    assert tuple_newtype.output_path() == Path("tuple/TupleNewType.ts")


def _deps():
    dep1 = bind(Struct("Dep1", ts='rename_all = "kebab-case"'))
    dep2 = bind(Struct("Dep2"))
    dep3 = bind(Struct("Dep3"))
    t = TypeParam("T")
    dep4 = bind(
        Struct(
            "Dep4",
            [Field(Tup((t, t)), "a"), Field(Tup((t, t)), "b")],
            generics=[GenericParam("T")],
        )
    )
    return dep1, dep2, dep3, dep4.with_args(dep3)


def test_tuple_with_dependencies():
    dep1, dep2, dep3, dep4 = _deps()
    item = bind(Struct("TupleWithDependencies", [Field(dep1), Field(dep2), Field(dep4)]))
    assert item.decl() == "type TupleWithDependencies = [Dep1, Dep2, Dep4<Dep3>];"
    seen = []
    item.visit_dependencies(seen.append)
    assert seen == [dep1, dep2, dep4, dep3]


def test_struct_with_tuples():
    dep1, dep2, _, dep4 = _deps()
    item = bind(
        Struct(
            "StructWithTuples",
            [
                Field(Tup((dep1, dep1)), "a"),
                Field(Tup((dep2, dep2)), "b"),
                Field(Tup((dep4, dep4)), "c"),
            ],
        )
    )
    assert item.decl() == (
        "type StructWithTuples = { a: [Dep1, Dep1], b: [Dep2, Dep2], "
        "c: [Dep4<Dep3>, Dep4<Dep3>], };"
    )


def test_type_override_fields():
    item = bind(
        Struct(
            "Override",
            [
                Field(NUMBER, "a"),
                Field(NUMBER, "b", ts='type = "0 | 1 | 2"'),
                Field(Unsupported(), "x", ts='type = "string"'),
                Field(Unsupported(), "y", ts='type = "string"'),
                Field(Unsupported(), "z", ts='type = "string | null"'),
            ],
        )
    )
    assert item.inline() == "{ a: number, b: 0 | 1 | 2, x: string, y: string, z: string | null, }"
    seen = []
    item.visit_dependencies(seen.append)
    assert seen == [NUMBER]


def test_type_override_newtypes():
    assert bind(Struct("New1", [Field(Unsupported(), ts='type = "string"')])).inline() == "string"
    new2 = bind(Struct("New2", [Field(Unsupported(), ts='type = "string | null"')]))
    assert new2.inline() == "string | null"
    assert new2.is_enum is False


def test_top_level_type_override():
    item = bind(
        Struct(
            "DataUrl",
            [Field(STRING, "mime"), Field(Vec(NUMBER), "contents")],
            ts=['export, export_to = "top_level_type_override/"', 'type = "string"'],
        )
    )
    assert item.inline() == "string"


def test_type_as_struct():
    item = bind(Struct("Wrapper", [Field(NUMBER, "a")], ts={"as": Vec(NUMBER)}))
    assert item.inline() == "Array<number>"
    assert item.decl() == "type Wrapper = Array<number>;"


def test_newtype_is_enum_follows_inner():
    assert bind(Struct("Mode", [Field(Choice(('"a"', '"b"')))])).is_enum is True
    assert bind(Struct("Plain", [Field(NUMBER)])).is_enum is False


def test_generics_flatten_decl():
    item = bind(
        Struct(
            "Item",
            [Field(STRING, "id"), Field(TypeParam("D"), "inner", ts="flatten")],
            generics=[GenericParam("D")],
        )
    )
    assert item.decl() == "type Item<D> = { id: string, } & D;"
    inner = bind(Struct("Inner", [Field(NUMBER, "x")]))
    assert item.with_args(inner).inline() == "{ id: string, x: number, }"

    a, b = TypeParam("A"), TypeParam("B")
    two = bind(
        Struct(
            "TwoParameters",
            [
                Field(STRING, "id"),
                Field(a, "a", ts="flatten"),
                Field(b, "b", ts="flatten"),
                Field(Tup((a, b)), "ab"),
            ],
            generics=[GenericParam("A"), GenericParam("B")],
        )
    )
    assert two.decl() == "type TwoParameters<A, B> = { id: string, ab: [A, B], } & A & B;"


def test_unit_and_empty_bodies():
    assert bind(Struct("Unit")).decl() == "type Unit = null;"
    assert bind(Struct("Empty", kind=FieldsKind.NAMED)).inline() == "Record<symbol, never>"
    assert bind(Struct("EmptyTuple", kind=FieldsKind.UNNAMED)).inline() == "never[]"


def test_tag_on_empty_named_struct():
    item = bind(Struct("Tagged", kind=FieldsKind.NAMED, ts='tag = "type"'))
    assert item.inline() == '{ "type": "Tagged", }'


def test_tag_with_fields():
    item = bind(Struct("Shape", [Field(NUMBER, "x")], ts='tag = "kind"'))
    assert item.inline() == '{ "kind": "Shape", x: number, }'


def test_skipped_fields():
    item = bind(Struct("S", [Field(NUMBER, "a", ts="skip"), Field(STRING, "b")]))
    assert item.inline() == "{ b: string, }"
    assert bind(Struct("N", [Field(NUMBER, ts="skip")])).inline() == "null"


def test_field_docs():
    item = bind(Struct("Doc", [Field(NUMBER, "count", docs=[" The count."])], docs=[" Doc"]))
    assert item.inline() == "{ \n/**\n * The count.\n */\ncount: number, }"
    assert item.docs == (" Doc",)


def test_direct_builders():
    attr = StructAttr(export=True, export_to="out/")
    assert empty_object(attr, "E").inline({}) == "Record<symbol, never>"
    assert empty_array(attr, "E").inline({}) == "never[]"
    assert null(attr, "E").inline({}) == "null"
    override = type_override_struct(attr, "O", "unknown")
    assert override.inline({}) == "unknown"
    assert override.export is True and override.export_to == "out/"
    assert type_as_struct(attr, "A", Vec(STRING)).inline({}) == "Array<string>"
    assert named(attr, "N", [Field(NUMBER, "a")]).inline({}) == "{ a: number, }"
    assert newtype(attr, "W", Field(STRING)).inline({}) == "string"
    assert tuple_def(attr, "T", [Field(STRING), Field(NUMBER)]).inline({}) == "[string, number]"
    assert type_def(attr, "U", (), FieldsKind.UNIT).inline({}) == "null"


def test_tag_on_tuple_struct_is_rejected():
    with pytest.raises(DeriveError, match="`tag` cannot be used with unit or tuple structs"):
        struct_def(Struct("T", [Field(NUMBER), Field(STRING)], ts='tag = "kind"'))


def test_optional_on_non_option_is_rejected():
    with pytest.raises(DeriveError, match="Option"):
        struct_def(Struct("S", [Field(NUMBER, "a", ts="optional")]))


def test_as_given_as_text_is_rejected():
    with pytest.raises(DeriveError, match="type object"):
        struct_def(Struct("S", [Field(NUMBER, "a", ts='as = "String"')]))


def test_flatten_on_tuple_field_is_rejected():
    with pytest.raises(DeriveError, match="`flatten` cannot be used with tuple struct fields"):
        struct_def(Struct("S", [Field(NUMBER, ts="flatten"), Field(STRING)]))


def test_type_with_as_on_struct_is_rejected():
    with pytest.raises(DeriveError, match="`as` is not compatible with `type`"):
        struct_def(Struct("S", [Field(NUMBER, "a")], ts=[{"as": STRING}, 'type = "string"']))