"""
Error hierarchy for selective disclosure and sandboxed rendering.

Selection errors are raised synchronously by the call that triggered them.
Handshake errors are never raised to the caller directly; they settle the
session's pending result instead.

None of these errors are transient. Nothing here is retried.
"""

from __future__ import annotations


class RendererError(RuntimeError):
    """Base class for all renderer errors."""


class InvalidInput(RendererError, TypeError):
    """Wrong shape or type for a document, pointer list, or template."""


class InvalidEscape(RendererError, ValueError):
    """A pointer segment contains `~` not followed by `0` or `1`."""

    def __init__(self, pointer: str, sequence: str) -> None:
        self.pointer = pointer
        self.sequence = sequence
        super().__init__(
            f'Invalid JSON pointer escape sequence "{sequence}" '
            f'in "{pointer}".'
        )


class UnresolvedPointer(RendererError, LookupError):
    """A pointer addresses a path that does not exist in the document."""

    def __init__(self, pointer: str) -> None:
        self.pointer = pointer
        super().__init__(f'JSON pointer "{pointer}" does not match document.')


class ProtocolViolation(RendererError):
    """Malformed or unexpected message on the render channel."""


class RenderFailed(RendererError):
    """The isolated context explicitly reported a render error."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
