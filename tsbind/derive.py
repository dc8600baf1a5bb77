"""Derive the TypeScript bindings of a struct or enum definition."""

from __future__ import annotations

from .derived import DerivedType
from .enums import enum_def
from .model import Enum, Struct
from .structs import struct_def
from .utils import DeriveError

__all__ = ["derive"]


def derive(item) -> DerivedType:
    """Return the bindings of `item`, with its type parameters left open."""
    if isinstance(item, Struct):
        derived = struct_def(item)
    elif isinstance(item, Enum):
        derived = enum_def(item)
    else:
        raise DeriveError("unsupported item")
    return DerivedType(derived, item.name, item.generics)