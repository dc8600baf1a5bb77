"""Bindings of a derived struct or enum, and the type protocol they build on."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping

from .container_attrs import Repr
from .deps import Dependencies, _Kind
from .model import GenericParam
from .utils import DeriveError

__all__ = ["TsType", "TypeParam", "DerivedTS", "DerivedType"]


class TsType(abc.ABC):
    """A type that can be expressed in TypeScript.

    Subclasses must be hashable. `substitute` replaces type parameters by the
    types given for them and must be overridden by types that contain others.
    """

    is_option: bool = False

    @property
    def option_inner(self) -> TsType:
        """The type inside an option, or the type itself when it is not one."""
        return self

    @property
    def is_enum(self) -> bool:
        return False

    @abc.abstractmethod
    def name(self) -> str:
        """The name under which the type is referred to."""

    def inline(self) -> str:
        """The full definition of the type, written in place."""
        return self.name()

    def inline_flattened(self) -> str:
        """The definition of the type as it appears when flattened into another."""
        raise DeriveError(f"{self.name()} cannot be flattened")

    def decl(self) -> str:
        """A declaration of the type, generic over its type parameters."""
        raise DeriveError(f"{self.name()} cannot be declared")

    def decl_concrete(self) -> str:
        """A declaration of the type with its type arguments filled in."""
        raise DeriveError(f"{self.name()} cannot be declared")

    def visit_dependencies(self, visitor: Callable[[Any], object]) -> None:
        """Hand every type this one depends on to `visitor`."""

    def visit_generics(self, visitor: Callable[[Any], object]) -> None:
        """Hand every type argument of this type, recursively, to `visitor`."""

    def substitute(self, env: Mapping[str, TsType]) -> TsType:
        """Return this type with type parameters replaced from `env`."""
        return self


@dataclass(frozen=True)
class TypeParam(TsType):
    """A placeholder standing for a generic type parameter."""

    param: str

    def name(self) -> str:
        return self.param

    def inline(self) -> str:
        raise DeriveError(f"{self.param} cannot be inlined")

    def inline_flattened(self) -> str:
        return self.param

    def substitute(self, env: Mapping[str, TsType]) -> TsType:
        return env.get(self.param, self)


@dataclass
class DerivedTS:
    """What a struct or enum definition turns into, before generics are bound.

    `inline` and `inline_flattened` take a mapping from type-parameter names to
    types and return TypeScript text. `is_enum` is a bool or a callable taking
    the same mapping. `concrete` maps type-parameter names to the types they
    are fixed to.
    """

    ts_name: str
    inline: Callable[[Mapping[str, TsType]], str]
    dependencies: Dependencies = field(default_factory=Dependencies)
    inline_flattened: Callable[[Mapping[str, TsType]], str] | None = None
    docs: tuple = ()
    concrete: dict = field(default_factory=dict)
    bound: tuple | None = None
    ts_enum: Repr | None = None
    is_enum: Any = False
    export: bool = False
    export_to: str | None = None


def _int_repr(raw: str) -> str:
    digits = "".join(c for c in raw if c.isnumeric() or c == ",")
    values = []
    latest = None
    for part in digits.split(","):
        parsed = int(part) if part.isascii() and part.isdigit() else None
        if parsed is not None:
            value = parsed
        elif latest is not None:
            value = latest + 1
        else:
            value = 0
        values.append(value)
        latest = value
    return "".join(f"{v} | " for v in values).rstrip("| ")


def _name_repr(raw: str) -> str:
    values = []
    for part in raw.split(","):
        _, sep, value = part.partition(" = ")
        if not sep:
            raise DeriveError(f"malformed enum variant `{part.strip()}`")
        values.append(value)
    return "".join(f"{v} | " for v in values).rstrip("| ")


class DerivedType(TsType):
    """The bindings of a derived struct or enum, with its type arguments bound.

    Created without arguments, every type parameter is left open (or fixed to
    its concrete type); `with_args` binds them.
    """

    def __init__(self, derived: DerivedTS, rust_name: str, generics=(), args=None):
        self.derived = derived
        self.rust_name = rust_name
        self.generics = tuple(generics)
        self._params: tuple[GenericParam, ...] = tuple(p for p in self.generics if p.is_type)
        self.args = self._resolve_args(args)
        self._env = {p.name: a for p, a in zip(self._params, self.args)}
        self._dependencies = Dependencies()
        self._dependencies.append(derived.dependencies)
        for param in self._open_params:
            if param.default is not None:
                self._dependencies.push(param.default)

    @property
    def _open_params(self) -> tuple:
        return tuple(p for p in self._params if p.name not in self.derived.concrete)

    def _resolve_args(self, args) -> tuple:
        concrete = self.derived.concrete
        if args is None:
            return tuple(concrete.get(p.name, TypeParam(p.name)) for p in self._params)
        args = tuple(args)
        if len(args) > len(self._params):
            raise DeriveError(
                f"`{self.rust_name}` takes {len(self._params)} type arguments "
                f"but {len(args)} were given"
            )
        filled = list(args)
        for param in self._params[len(args):]:
            if param.default is not None:
                filled.append(param.default)
            elif param.name in concrete:
                filled.append(concrete[param.name])
            else:
                raise DeriveError(f"missing type argument for `{param.name}`")
        return tuple(filled)

    def _decl_env(self) -> dict:
        concrete = self.derived.concrete
        return {p.name: concrete.get(p.name, TypeParam(p.name)) for p in self._params}

    def with_args(self, *args) -> DerivedType:
        """Bind the type parameters, in order; trailing ones may take their defaults."""
        return DerivedType(self.derived, self.rust_name, self.generics, args)

    def substitute(self, env: Mapping[str, TsType]) -> TsType:
        if not self._params:
            return self
        return self.with_args(*(a.substitute(env) for a in self.args))

    @property
    def docs(self) -> tuple:
        return tuple(self.derived.docs)

    @property
    def export(self) -> bool:
        return self.derived.export

    @property
    def is_enum(self) -> bool:
        value = self.derived.is_enum
        return bool(value(self._env) if callable(value) else value)

    def name(self) -> str:
        open_params = self._open_params
        if not open_params:
            return self.derived.ts_name
        args = ", ".join(self._env[p.name].name() for p in open_params)
        return f"{self.derived.ts_name}<{args}>"

    def inline(self) -> str:
        raw = self.derived.inline(self._env)
        if self.derived.ts_enum is Repr.INT:
            return _int_repr(raw)
        if self.derived.ts_enum is Repr.NAME:
            return _name_repr(raw)
        return raw

    def inline_flattened(self) -> str:
        if self.derived.inline_flattened is None:
            raise DeriveError(f"{self.name()} cannot be flattened")
        return self.derived.inline_flattened(self._env)

    def _enum_decl(self) -> str:
        return f"enum {self.derived.ts_name} {{ {self.derived.inline(self._decl_env())} }}"

    def decl_concrete(self) -> str:
        if self.derived.ts_enum is not None:
            return self._enum_decl()
        return f"type {self.derived.ts_name} = {self.inline()};"

    def decl(self) -> str:
        if self.derived.ts_enum is not None:
            return self._enum_decl()
        inline = self.derived.inline(self._decl_env())
        params = [
            p.name if p.default is None else f"{p.name} = {p.default.name()}"
            for p in self._open_params
        ]
        generics = f"<{', '.join(params)}>" if params else ""
        return f"type {self.derived.ts_name}{generics} = {inline};"

    def output_path(self) -> Path:
        """The path, relative to the output directory, the bindings are written to."""
        export_to = self.derived.export_to
        if export_to is None:
            return Path(f"{self.derived.ts_name}.ts")
        if export_to.endswith("/"):
            return Path(f"{export_to}{self.derived.ts_name}.ts")
        return Path(export_to)

    def visit_dependencies(self, visitor: Callable[[Any], object]) -> None:
        for dependency in list(self._dependencies._dependencies):
            ty = dependency.ty.substitute(self._env)
            if dependency.kind is _Kind.TRANSITIVE:
                ty.visit_dependencies(visitor)
            elif dependency.kind is _Kind.GENERICS:
                ty.visit_generics(visitor)
            else:
                visitor(ty)

    def visit_generics(self, visitor: Callable[[Any], object]) -> None:
        for param in self._open_params:
            arg = self._env[param.name]
            visitor(arg)
            arg.visit_generics(visitor)

    def __eq__(self, other) -> bool:
        if not isinstance(other, DerivedType):
            return NotImplemented
        return self.derived is other.derived and self.args == other.args

    def __hash__(self) -> int:
        return hash((id(self.derived), self.args))

    def __repr__(self) -> str:
        if not self.args:
            return f"DerivedType({self.rust_name})"
        return f"DerivedType({self.rust_name}, {self.args!r})"