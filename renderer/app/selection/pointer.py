"""
Path-pointer parsing (RFC 6901 syntax).

A pointer such as ``/credentialSubject/achievement/0/name`` is split into
tagged segments: ``Index`` for purely numeric segments, ``Key`` for
everything else. Escaped segments (``~0`` for ``~``, ``~1`` for ``/``) are
always keys.

This module has no side effects and no dependency on document shape.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Union

from pydantic import BaseModel, ConfigDict, Field

from renderer.app.errors import InvalidEscape


_INDEX_PATTERN = re.compile(r"[0-9]+")
_ESCAPE_PATTERN = re.compile(r"~(.?)", re.DOTALL)

_UNESCAPED = {"0": "~", "1": "/"}

ROOT_POINTER = "/"


class Index(BaseModel):
    """Sequence position addressed by a numeric segment."""

    value: int = Field(..., ge=0)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def token(self) -> str:
        return str(self.value)


class Key(BaseModel):
    """Mapping key addressed by a non-numeric or escaped segment."""

    value: str

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def token(self) -> str:
        return self.value


PathSegment = Union[Index, Key]


def parse_pointer(pointer: str) -> List[PathSegment]:
    """
    Parse a pointer string into an ordered list of path segments.

    ``"/"`` (and ``""``) address the whole document and parse to ``[]``.
    A pointer that does not start with ``/`` is not rejected here; callers
    validate pointer format before parsing.
    """
    if pointer == ROOT_POINTER:
        return []

    segments: List[PathSegment] = []
    for raw in pointer.split("/")[1:]:
        if "~" not in raw:
            if _INDEX_PATTERN.fullmatch(raw):
                segments.append(Index(value=int(raw)))
            else:
                segments.append(Key(value=raw))
        else:
            segments.append(Key(value=_unescape(raw, pointer)))
    return segments


def _unescape(raw: str, pointer: str) -> str:
    # Single left-to-right pass: "~01" decodes to "~1", never to "/".
    def replace(match: re.Match) -> str:
        decoded = _UNESCAPED.get(match.group(1))
        if decoded is None:
            raise InvalidEscape(pointer, match.group(0))
        return decoded

    return _ESCAPE_PATTERN.sub(replace, raw)


def escape_pointer_token(token: str) -> str:
    """Escape a single raw key for use inside a pointer."""
    return token.replace("~", "~0").replace("/", "~1")


def format_pointer(segments: Iterable[Union[PathSegment, str, int]]) -> str:
    """
    Build a pointer string from segments, raw keys or indices.

    ``format_pointer([])`` is the whole-document pointer ``"/"``.
    """
    tokens = []
    for segment in segments:
        if isinstance(segment, (Index, Key)):
            segment = segment.value
        tokens.append(escape_pointer_token(str(segment)))
    if not tokens:
        return ROOT_POINTER
    return "/" + "/".join(tokens)
