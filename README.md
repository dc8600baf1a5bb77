# tsbind

tsbind builds TypeScript type declarations from descriptions of structs and
enums. You describe a type once: its fields, its variants, its generic
parameters and its `ts`/`serde`-style attributes. tsbind then gives you the
type's TypeScript name, its inline form and its full declaration.

## Installation

```
pip install tsbind
```

To run the test suite, install the `test` extra and run pytest:

```
pip install "tsbind[test]"
pytest
```

## Describing types

The building blocks are in `tsbind.model`:

- `Struct(name, fields=(), kind=None, generics=(), ts=(), serde=(), docs=())`
- `Enum(name, variants=(), generics=(), ts=(), serde=(), docs=())`
- `Variant(name, fields=(), kind=None, discriminant=None, ts=(), serde=(), docs=())`
- `Field(ty, name=None, ts=(), serde=(), docs=())`. A field with no `name` is a tuple field.
- `GenericParam(name, default=None, kind="type")`. `kind` is `"type"`, `"const"` or `"lifetime"`.
- `FieldsKind` (`NAMED`, `UNNAMED`, `UNIT`). When `kind` is not given, it is worked out from the fields.

`ts` and `serde` each take one attribute or a sequence of attributes. An
attribute can be written in either of two forms:

- As text, the way it appears inside `#[ts(...)]` or `#[serde(...)]`. For
  example: `'rename_all = "camelCase"'`, `'tag = "type", content = "data"'`
  or `"repr(enum = name)"`. `tsbind.utils.parse_attr_args` does the parsing.
- As a mapping of Python values, for example `{"inline": True}` or
  `{"as": some_type}`. `as` takes a type object, or a callable that receives
  the original field type and returns the type to use.

### Field types

Field types are `tsbind.derived.TsType` objects. tsbind does not define
TypeScript types for primitives or containers. You write them yourself by
subclassing `TsType`. A subclass must be hashable and must implement `name()`.
It can also override these members:

- `inline()`
- `is_option` and `option_inner`, for `Option`-like types
- `is_enum`
- `substitute(env)`, for types that contain other types
- `visit_dependencies(visitor)`
- `visit_generics(visitor)`

Use `tsbind.derived.TypeParam("T")` to refer to a generic parameter.

```python
from dataclasses import dataclass

from tsbind.derive import derive
from tsbind.derived import TsType
from tsbind.model import Enum, Field, Struct, Variant


@dataclass(frozen=True)
class Prim(TsType):
    ts: str

    def name(self):
        return self.ts


@dataclass(frozen=True)
class Opt(TsType):
    inner: TsType
    is_option = True

    @property
    def option_inner(self):
        return self.inner

    def name(self):
        return f"{self.inner.name()} | null"

    def substitute(self, env):
        return Opt(self.inner.substitute(env))


NUMBER, STRING = Prim("number"), Prim("string")

user = derive(Struct("User", fields=[
    Field(NUMBER, "user_id"),
    Field(Opt(STRING), "first_name", ts="optional"),
]))
user.decl()    # 'type User = { user_id: number, first_name?: string, };'

tagged = derive(Enum("E", ts='tag = "type"', variants=[
    Variant("A", [Field(STRING, "foo")]),
    Variant("B", [Field(NUMBER, "bar")]),
]))
tagged.inline()  # '{ "type": "A", foo: string, } | { "type": "B", bar: number, }'

foo = derive(Enum("Foo", ts="repr(enum)", variants=[
    Variant("A", discriminant=1),
    Variant("B", discriminant=2),
]))
foo.decl()     # 'enum Foo { "A" = 1, "B" = 2 }'
```

## Results

`tsbind.derive.derive(item)` returns a `tsbind.derived.DerivedType`. Its
methods are:

- `name()`: the type's name, with any generic arguments.
- `inline()`: the type's definition, written in place.
- `inline_flattened()`: the form used when the type is flattened into another.
- `decl()`: a `type X<T> = ...;` declaration, or an `enum X { ... }` declaration
  for `repr(enum)` enums.
- `decl_concrete()`: a declaration with the type arguments filled in.
- `output_path()`: the relative `pathlib.Path` given by `export_to`, or
  `<Name>.ts` when `export_to` is not set.
- `visit_dependencies(visitor)` and `visit_generics(visitor)`: call `visitor`
  for each type this one refers to.
- `with_args(*args)`: binds the type's generic parameters. Trailing parameters
  that have defaults can be left out.

A `DerivedType` is itself a `TsType`, so it can be used as the type of fields
in other definitions.

## Supported attributes

- **Structs**: a struct with named fields becomes an object type. A tuple
  struct becomes a TypeScript tuple. A newtype becomes its inner type. A unit
  struct becomes `null`. A struct whose named body is empty becomes
  `Record<symbol, never>`. A tuple struct with no fields becomes `never[]`.
- **Enums**: externally, internally and adjacently tagged enums, untagged
  enums and untagged variants. An enum with no variants becomes `never`.
  `repr(enum)` and `repr(enum = name)` produce native TypeScript enums.
- **Field attributes**: `rename`, `inline`, `flatten`, `skip`, `optional`,
  `optional = nullable`, `optional = false`, `type = "..."` and `as`.
- **Container attributes**: `rename`, `rename_all`, `rename_all_fields`,
  `tag`, `content`, `untagged`, `optional_fields`, `concrete`, `bound`,
  `type`, `as`, `crate`, `export` and `export_to`.
- **Variant attributes**: `rename`, `rename_all`, `skip`, `untagged`, `inline`,
  `optional_fields`, `type` and `as`.
- **Serde attributes**: `rename`, `rename_all`, `tag`, `content`, `untagged`,
  `skip`, `flatten`, `skip_serializing`, `skip_serializing_if`, `default`,
  `with`, `borrow`, `bound` and `deny_unknown_fields`. A field that has
  `default` together with one of the `skip_serializing` attributes is rendered
  as optional. Serde keys that are not recognised are reported as a warning on
  standard error and then ignored.

`rename_all` accepts `lowercase`, `UPPERCASE`, `camelCase`, `snake_case`,
`PascalCase`, `SCREAMING_SNAKE_CASE`, `kebab-case` and `SCREAMING-KEBAB-CASE`.
These are available directly through `tsbind.inflection`:

```python
from tsbind.inflection import parse_inflection

parse_inflection("camelCase").apply("crc32c_hash")  # "crc32cHash"
```

## Errors

Invalid descriptions raise `tsbind.utils.DeriveError`. Some examples:

- an unknown `ts` attribute
- `tag` on a tuple struct
- `untagged` together with `tag`
- `type` together with `as`
- `optional` on a field that is not an option type
- a `repr(enum)` enum whose variants carry data

## What tsbind does not do

- It writes no files. `export` is recorded and `output_path()` reports where
  a file would go, but nothing is written to disk.
- It does not generate import statements.
- It ships no TypeScript types for numbers, strings, lists, maps or other
  common types. You supply them as `TsType` subclasses.
- Documentation on containers is kept in `DerivedType.docs`, but `decl()` does
  not render it. Documentation on fields is rendered as a `/** ... */` comment.
- It has no command-line interface.