"""Case conversions used by `rename_all` and `rename_all_fields`."""

from __future__ import annotations

import enum

from .utils import DeriveError

__all__ = ["Inflection", "parse_inflection"]


def _ascii_lower(text: str) -> str:
    return "".join(c.lower() if "A" <= c <= "Z" else c for c in text)


def _ascii_upper(text: str) -> str:
    return "".join(c.upper() if "a" <= c <= "z" else c for c in text)


class Inflection(enum.Enum):
    """A naming convention; the value is the name accepted in attributes."""

    LOWER = "lowercase"
    UPPER = "UPPERCASE"
    CAMEL = "camelCase"
    SNAKE = "snake_case"
    PASCAL = "PascalCase"
    SCREAMING_SNAKE = "SCREAMING_SNAKE_CASE"
    KEBAB = "kebab-case"
    SCREAMING_KEBAB = "SCREAMING-KEBAB-CASE"

    def apply(self, string: str) -> str:
        """Convert `string` to this naming convention."""
        if self is Inflection.LOWER:
            return string.lower()
        if self is Inflection.UPPER:
            return string.upper()
        if self is Inflection.CAMEL:
            pascal = Inflection.PASCAL.apply(string)
            return _ascii_lower(pascal[:1]) + pascal[1:]
        if self is Inflection.SNAKE:
            out = []
            for i, ch in enumerate(string):
                if ch.isupper() and i != 0:
                    out.append("_")
                out.append(_ascii_lower(ch))
            return "".join(out)
        if self is Inflection.PASCAL:
            out = []
            capitalize = True
            for ch in string:
                if ch == "_":
                    capitalize = True
                    continue
                out.append(_ascii_upper(ch) if capitalize else ch)
                capitalize = False
            return "".join(out)
        if self is Inflection.SCREAMING_SNAKE:
            return _ascii_upper(Inflection.SNAKE.apply(string))
        if self is Inflection.KEBAB:
            return Inflection.SNAKE.apply(string).replace("_", "-")
        return _ascii_upper(Inflection.KEBAB.apply(string))


def parse_inflection(value: str) -> Inflection:
    """Look up a naming convention by its attribute name."""
    try:
        return Inflection(value)
    except ValueError:
        accepted = ", ".join(f'"{i.value}"' for i in list(Inflection)[:-1])
        raise DeriveError(
            f'Value "{value}" is not valid for "rename_all". Accepted values are: '
            f'{accepted} and "{Inflection.SCREAMING_KEBAB.value}"'
        ) from None