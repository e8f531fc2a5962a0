"""
Selective disclosure over JSON-LD documents.

Implements the ``selectJsonLd`` algorithm from the W3C Data Integrity
ECDSA cryptosuite: given a document and a list of pointers, build a new
document that contains exactly the addressed substructure.

Linked-data structure is preserved in the selection:
- the root always carries the source ``@context``
- every object materialised on the way to a selected value carries the
  source object's ``id`` (unless it is a blank node identifier) and ``type``
- sequences are dense; gaps left by unselected indices are removed

The input document is never mutated. Selected fragments are deep copies.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Sequence
from enum import Enum
from typing import Any, Dict, List, Optional

from renderer.app.errors import InvalidInput, UnresolvedPointer
from renderer.app.selection.pointer import Index, PathSegment, parse_pointer

logger = logging.getLogger(__name__)

BLANK_NODE_PREFIX = "_:"

_MISSING = object()


class ValueKind(str, Enum):
    """Shape of a document value."""

    LITERAL = "literal"
    OBJECT = "object"
    SEQUENCE = "sequence"


def value_kind(value: Any) -> ValueKind:
    if isinstance(value, dict):
        return ValueKind.OBJECT
    if isinstance(value, list):
        return ValueKind.SEQUENCE
    return ValueKind.LITERAL


class _SparseSequence:
    """
    Selection-side sequence built up index by index.

    Several pointers may populate non-contiguous indices of the same
    sequence; its final length is only known after all pointers ran.
    """

    __slots__ = ("slots",)

    def __init__(self) -> None:
        self.slots: Dict[int, Any] = {}

    def compact(self) -> List[Any]:
        return [self.slots[index] for index in sorted(self.slots)]


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def select_jsonld(
    document: Dict[str, Any],
    pointers: Sequence,
    *,
    max_pointers: Optional[int] = None,
) -> Optional[Dict[str, Any]]:
    """
    Select the parts of ``document`` addressed by ``pointers``.

    Returns ``None`` when ``pointers`` is empty (nothing disclosed), and a
    full deep copy when any pointer addresses the whole document.

    Raises:
        InvalidInput: ``document`` is not an object, ``pointers`` is not a
            sequence of pointer strings, or there are too many pointers.
        InvalidEscape: a pointer contains a malformed escape sequence.
        UnresolvedPointer: a pointer addresses a path absent from
            ``document``.
    """
    if not isinstance(document, dict):
        raise InvalidInput('"document" must be an object.')
    if isinstance(pointers, (str, bytes)) or not isinstance(pointers, Sequence):
        raise InvalidInput('"pointers" must be a sequence.')
    if max_pointers is not None and len(pointers) > max_pointers:
        raise InvalidInput(
            f"Too many pointers: {len(pointers)} (maximum {max_pointers})."
        )

    if len(pointers) == 0:
        # no pointers, so nothing selected
        return None

    parsed = [(pointer, parse_pointer(_checked(pointer))) for pointer in pointers]

    if any(not paths for _, paths in parsed):
        logger.debug("Whole document selected")
        return copy.deepcopy(document)

    selection: Dict[str, Any] = {}
    if "@context" in document:
        selection["@context"] = copy.deepcopy(document["@context"])
    _seed_node(selection, document)

    for pointer, paths in parsed:
        _select_paths(
            document=document,
            pointer=pointer,
            paths=paths,
            selection=selection,
        )

    logger.debug("Selected %d pointer(s) from document", len(parsed))
    return _compact(selection)


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------

def _checked(pointer: Any) -> str:
    if not isinstance(pointer, str):
        raise InvalidInput(f"Pointer must be a string, got {type(pointer).__name__}.")
    if pointer and not pointer.startswith("/"):
        raise InvalidInput(f'JSON pointer "{pointer}" must start with "/".')
    return pointer


def _seed_node(node: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    # must include non-blank node IDs
    node_id = source.get("id")
    if isinstance(node_id, str) and node_id and not node_id.startswith(
        BLANK_NODE_PREFIX
    ):
        node["id"] = node_id
    # always include types
    if source.get("type"):
        node["type"] = copy.deepcopy(source["type"])
    return node


def _lookup(value: Any, segment: PathSegment) -> Any:
    """Resolve one segment against a source value."""
    kind = value_kind(value)
    if kind is ValueKind.SEQUENCE:
        if isinstance(segment, Index) and segment.value < len(value):
            return value[segment.value]
        return _MISSING
    if kind is ValueKind.OBJECT:
        return value.get(segment.token, _MISSING)
    return _MISSING


def _selected_child(node: Any, segment: PathSegment) -> Any:
    if isinstance(node, _SparseSequence):
        return node.slots.get(segment.value, _MISSING)
    if isinstance(node, list):
        return node[segment.value]
    return node.get(segment.token, _MISSING)


def _assign(node: Any, segment: PathSegment, value: Any) -> None:
    if isinstance(node, _SparseSequence):
        node.slots[segment.value] = value
    elif isinstance(node, list):
        node[segment.value] = value
    else:
        node[segment.token] = value


def _materialize(source: Any) -> Any:
    kind = value_kind(source)
    if kind is ValueKind.SEQUENCE:
        return _SparseSequence()
    if kind is ValueKind.OBJECT:
        return _seed_node({}, source)
    return _MISSING


def _select_paths(
    *,
    document: Dict[str, Any],
    pointer: str,
    paths: List[PathSegment],
    selection: Dict[str, Any],
) -> None:
    # walk source and selection in lock-step, creating selection nodes
    value: Any = document
    selected_parent: Any = selection
    selected_value: Any = selection

    for segment in paths:
        if selected_value is _MISSING:
            # parent was a literal; it has no children to address
            raise UnresolvedPointer(pointer)
        selected_parent = selected_value

        value = _lookup(value, segment)
        if value is _MISSING:
            raise UnresolvedPointer(pointer)

        selected_value = _selected_child(selected_parent, segment)
        if selected_value is _MISSING:
            selected_value = _materialize(value)
            if selected_value is not _MISSING:
                _assign(selected_parent, segment, selected_value)

    # path traversal complete, compute selected value
    kind = value_kind(value)
    if kind is ValueKind.LITERAL:
        selected = value
    elif kind is ValueKind.SEQUENCE:
        # full sequence selected
        selected = copy.deepcopy(value)
    else:
        # object selected, blend with fields from earlier pointers
        existing = selected_value if isinstance(selected_value, dict) else {}
        selected = {**existing, **copy.deepcopy(value)}

    _assign(selected_parent, paths[-1], selected)


def _compact(node: Any) -> Any:
    """Replace every sparse sequence with its dense form, in index order."""
    if isinstance(node, _SparseSequence):
        return [_compact(item) for item in node.compact()]
    if isinstance(node, dict):
        return {key: _compact(item) for key, item in node.items()}
    if isinstance(node, list):
        return [_compact(item) for item in node]
    return node
