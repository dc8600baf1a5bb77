"""Handling of `optional` and `optional_fields` annotations."""

from __future__ import annotations

import enum

from .utils import DeriveError

__all__ = ["Optional", "parse_optional", "apply"]


class Optional(enum.Enum):
    """Whether a field is annotated with `?`, and whether it stays nullable."""

    INHERIT = "inherit"
    OPTIONAL = "optional"
    NULLABLE = "nullable"
    NOT_OPTIONAL = "not_optional"

    @property
    def is_optional(self) -> bool:
        return self in (Optional.OPTIONAL, Optional.NULLABLE)

    @property
    def nullable(self) -> bool:
        return self is Optional.NULLABLE

    def combine(self, other: Optional) -> Optional:
        """Merge two annotations, letting an explicit one win over `INHERIT`."""
        if self is Optional.INHERIT:
            return other
        if other is Optional.INHERIT:
            return self
        if self.is_optional and other.is_optional:
            return Optional.NULLABLE if self.nullable or other.nullable else Optional.OPTIONAL
        return other


def parse_optional(value: str | None) -> Optional:
    """Parse the value of `optional` (None for the bare flag)."""
    if value is None:
        return Optional.OPTIONAL
    match value.strip():
        case "nullable":
            return Optional.NULLABLE
        case "false":
            return Optional.NOT_OPTIONAL
        case _:
            raise DeriveError("expected 'nullable'")


def apply(for_struct: Optional, field_ty, attr):
    """Return `(is_optional, type)` for a field.

    `field_ty` must provide `is_option` and `option_inner` (the type itself
    when it is not an option); `attr` must provide `optional`,
    `type_override`, `maybe_omitted` and `has_default`.
    """
    field = attr.optional
    if field is Optional.NOT_OPTIONAL or (
        for_struct is Optional.NOT_OPTIONAL and field is Optional.INHERIT
    ):
        return False, field_ty
    if field.is_optional:
        if field.nullable:
            return True, field_ty
        if not field_ty.is_option:
            raise DeriveError("`#[ts(optional)]` can only be used on fields of type `Option`")
        return True, field_ty.option_inner
    if for_struct.is_optional and attr.type_override is None:
        return (
            bool(field_ty.is_option),
            field_ty if for_struct.nullable else field_ty.option_inner,
        )
    return bool(attr.maybe_omitted and attr.has_default), field_ty