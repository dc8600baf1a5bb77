"""Collection of the types a binding depends on."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Iterator

__all__ = ["Dependencies"]


class _Kind(enum.Enum):
    # every dependency of the type, but not the type itself
    TRANSITIVE = "transitive"
    # every type parameter of the type, but not the type itself
    GENERICS = "generics"
    TYPE = "type"


@dataclass(frozen=True)
class _Dependency:
    kind: _Kind
    ty: Any


class Dependencies:
    """A de-duplicated, ordered set of dependencies of a derived binding.

    Types must be hashable and provide `visit_dependencies(visitor)` and
    `visit_generics(visitor)`; a visitor is a callable taking a type.
    """

    def __init__(self) -> None:
        self._dependencies: dict[_Dependency, None] = {}
        self._types: dict[Any, None] = {}

    def used_types(self) -> Iterator[Any]:
        """Every type that was added, once each."""
        return iter(self._types)

    def append_from(self, ty) -> None:
        """Depend on all dependencies of `ty`."""
        self._types.setdefault(ty)
        self._dependencies.setdefault(_Dependency(_Kind.TRANSITIVE, ty))

    def push(self, ty) -> None:
        """Depend on `ty` itself and on its type parameters."""
        self._types.setdefault(ty)
        self._dependencies.setdefault(_Dependency(_Kind.TYPE, ty))
        self._dependencies.setdefault(_Dependency(_Kind.GENERICS, ty))

    def append(self, other: Dependencies) -> None:
        """Add everything collected in `other`."""
        self._dependencies.update(other._dependencies)
        self._types.update(other._types)

    def visit(self, visitor: Callable[[Any], object]) -> None:
        """Hand every dependency to `visitor`."""
        for dependency in list(self._dependencies):
            if dependency.kind is _Kind.TRANSITIVE:
                dependency.ty.visit_dependencies(visitor)
            elif dependency.kind is _Kind.GENERICS:
                dependency.ty.visit_generics(visitor)
            else:
                visitor(dependency.ty)

    def __repr__(self) -> str:
        return f"Dependencies({list(self._types)!r})"