"""Shared helpers: identifier handling, attribute argument parsing and warnings."""

from __future__ import annotations

import os
import re
import sys

__all__ = [
    "DeriveError",
    "to_ts_ident",
    "raw_name_to_ts_field",
    "parse_attr_args",
    "print_warning",
]


class DeriveError(Exception):
    """Raised when a type definition or its attributes cannot be turned into bindings."""


def to_ts_ident(ident: str) -> str:
    """Convert an identifier to a TypeScript identifier, dropping a raw `r#` prefix."""
    if ident.startswith("r#"):
        return ident.removeprefix("r#")
    return ident


def raw_name_to_ts_field(value: str) -> str:
    """Return `value` as a valid TypeScript field name, quoting it if needed."""
    valid_chars = all(c.isalnum() or c in "_$" for c in value)
    starts_with_digit = bool(value) and value[0].isnumeric()
    if valid_chars and not starts_with_digit:
        return value
    return f'"{value}"'


_IDENT = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_RAW_START = re.compile(r'r(#*)"')
_OPEN = {"(": ")", "[": "]", "{": "}"}
_CLOSE = frozenset(_OPEN.values())
_ESCAPE = re.compile(
    r"\\(?:x([0-9a-fA-F]{2})|u\{([0-9a-fA-F_]{1,8})\}|(\n\s*)|(.))", re.DOTALL
)
_SIMPLE_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", "\\": "\\", "0": "\0", "'": "'", '"': '"'}


def _is_ident_char(c: str) -> bool:
    return c.isalnum() or c == "_"


def _string_end(text: str, start: int) -> int | None:
    """Index just past the string literal starting at `start`, or None if there is none."""
    if text[start] == '"':
        i = start + 1
        while i < len(text):
            c = text[i]
            if c == "\\":
                i += 2
                continue
            if c == '"':
                return i + 1
            i += 1
        raise DeriveError("unterminated string literal")
    match = _RAW_START.match(text, start)
    if match and (start == 0 or not _is_ident_char(text[start - 1])):
        close = '"' + match.group(1)
        end = text.find(close, match.end())
        if end < 0:
            raise DeriveError("unterminated raw string literal")
        return end + len(close)
    return None


def _scan(text: str):
    """Yield (index, char, depth) for every character outside string literals."""
    stack: list[str] = []
    i = 0
    while i < len(text):
        end = _string_end(text, i)
        if end is not None:
            i = end
            continue
        c = text[i]
        if c in _OPEN:
            stack.append(_OPEN[c])
        elif c in _CLOSE:
            if not stack or stack.pop() != c:
                raise DeriveError(f"unexpected `{c}`")
        yield i, c, len(stack)
        i += 1
    if stack:
        raise DeriveError("unclosed delimiter")


def _split_top_level(text: str) -> list[str]:
    parts = []
    start = 0
    for i, c, depth in _scan(text):
        if c == "," and depth == 0:
            parts.append(text[start:i])
            start = i + 1
    parts.append(text[start:])
    return parts


def _closing_index(text: str) -> int:
    """Index of the delimiter that closes the group opened at position 0."""
    for i, _, depth in _scan(text):
        if depth == 0:
            return i
    raise DeriveError("unclosed delimiter")


def _unescape(body: str) -> str:
    def replace(match: re.Match) -> str:
        hex_byte, unicode, continuation, simple = match.groups()
        if hex_byte is not None:
            return chr(int(hex_byte, 16))
        if unicode is not None:
            return chr(int(unicode.replace("_", ""), 16))
        if continuation is not None:
            return ""
        if simple in _SIMPLE_ESCAPES:
            return _SIMPLE_ESCAPES[simple]
        raise DeriveError(f"unknown character escape: `{simple}`")

    return _ESCAPE.sub(replace, body)


def _decode_literal(text: str) -> str | None:
    """Decode `text` if it is exactly one string literal, else return None."""
    if not text or _string_end(text, 0) != len(text):
        return None
    if text.startswith('"'):
        return _unescape(text[1:-1])
    hashes = len(text) - len(text.lstrip("r").lstrip("#")) - 1
    return text[2 + hashes : len(text) - 1 - hashes]


def _parse_entry(segment: str):
    segment = segment.strip()
    match = _IDENT.match(segment)
    if not match:
        if not segment:
            raise DeriveError("unexpected end of input, expected identifier")
        raise DeriveError(f"expected identifier, found `{segment}`")
    key = match.group()
    rest = segment[match.end():].strip()
    if not rest:
        return key, None, False
    if rest.startswith("="):
        rhs = rest[1:].strip()
        if not rhs:
            raise DeriveError(f"expected a value after `{key} =`")
        literal = _decode_literal(rhs)
        if literal is not None:
            return key, literal, True
        return key, rhs, False
    if rest.startswith("(") and _closing_index(rest) == len(rest) - 1:
        return key, _parse_args(rest[1:-1], group=True), False
    raise DeriveError(f"unexpected tokens after `{key}`: `{rest}`")


def _parse_args(text: str, *, group: bool):
    if group and not text.strip():
        return []
    segments = _split_top_level(text)
    if group and len(segments) > 1 and not segments[-1].strip():
        segments.pop()
    return [_parse_entry(segment) for segment in segments]


def parse_attr_args(text: str) -> list[tuple]:
    """Split the argument text of an attribute into `(key, value, quoted)` entries.

    `value` is None for a bare flag, the decoded contents of a string literal
    (with `quoted` true), the raw text of any other value, or a list of entries
    for a parenthesised group such as `concrete(T = i32)`.
    """
    return _parse_args(text, group=False)


_STYLES = {
    "yellow_bold": "\x1b[1;93m",
    "white_bold": "\x1b[1;97m",
    "white": "\x1b[97m",
    "blue": "\x1b[1;94m",
}
_RESET = "\x1b[0m"


def _use_color(stream) -> bool:
    isatty = getattr(stream, "isatty", None)
    return (
        bool(isatty and isatty())
        and os.environ.get("TERM") != "dumb"
        and "NO_COLOR" not in os.environ
    )


def print_warning(title, content, note) -> None:
    """Print a message formatted like a compiler warning to standard error."""
    parts = [
        ("yellow_bold", "warning"),
        ("white_bold", f": {title}\n"),
        ("blue", "  | \n  | "),
        ("white", f"{content}\n"),
        ("blue", "  | \n  = "),
        ("white_bold", "note: "),
        ("white", f"{note}\n"),
    ]
    stream = sys.stderr
    if _use_color(stream):
        text = "".join(_STYLES[style] + chunk for style, chunk in parts) + _RESET
    else:
        text = "".join(chunk for _, chunk in parts)
    stream.write(text)
    stream.flush()