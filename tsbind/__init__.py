"""Build TypeScript type declarations from described structs and enums."""

__version__ = "0.1.0"

__all__ = [
    "container_attrs",
    "deps",
    "derive",
    "derived",
    "enums",
    "inflection",
    "member_attrs",
    "model",
    "optional",
    "structs",
    "utils",
]