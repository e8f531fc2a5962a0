"""
Selective disclosure for JSON-LD credentials.

Pointers are parsed into tagged segments and applied to a source document
to produce a reduced document that keeps its linked-data structure.
"""

from .pointer import (
    Index,
    Key,
    PathSegment,
    escape_pointer_token,
    format_pointer,
    parse_pointer,
)
from .selector import ValueKind, select_jsonld, value_kind

__all__ = [
    "Index",
    "Key",
    "PathSegment",
    "escape_pointer_token",
    "format_pointer",
    "parse_pointer",
    "ValueKind",
    "select_jsonld",
    "value_kind",
]
