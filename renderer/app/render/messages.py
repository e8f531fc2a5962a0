"""
Render channel message schema.

Host to isolated context:
- ``"start"`` posted to the context itself, transferring one channel port
- a JSON-RPC 2.0 ``render`` request carrying the RenderPayload

Isolated context to host (terminal signals):
- the literal token ``"ready"``
- ``{"error": {"message": "..."}}``

Any other shape is a protocol violation.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from renderer.app.errors import ProtocolViolation
from renderer.app.render.payload import RenderPayload


START_MESSAGE = "start"
READY_TOKEN = "ready"
JSONRPC_VERSION = "2.0"


# ----------------------------------------------------------------------
# Host -> isolated context
# ----------------------------------------------------------------------

class RenderMessage(BaseModel):
    """JSON-RPC 2.0 request instructing the isolated context to render."""

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: str
    method: Literal["render"] = "render"
    params: List[Dict[str, Any]] = Field(..., min_length=1, max_length=1)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @classmethod
    def from_payload(cls, payload: RenderPayload) -> "RenderMessage":
        return cls(id=payload.correlation_id, params=[payload.to_params()])


# ----------------------------------------------------------------------
# Isolated context -> host
# ----------------------------------------------------------------------

class ReadySignal(BaseModel):
    """The template finished rendering."""

    model_config = ConfigDict(frozen=True)


class ErrorDetail(BaseModel):
    message: str

    # templates may attach name/stack; only the message is surfaced
    model_config = ConfigDict(frozen=True, extra="ignore")


class ErrorSignal(BaseModel):
    """The isolated context failed to render."""

    error: ErrorDetail

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def message(self) -> str:
        return self.error.message


TerminalSignal = Union[ReadySignal, ErrorSignal]


def ready_message() -> str:
    return READY_TOKEN


def error_message(message: str) -> Dict[str, Any]:
    return {"error": {"message": message}}


def parse_signal(data: Any) -> TerminalSignal:
    """
    Classify a message received from the isolated context.

    Raises ProtocolViolation for anything that is neither the ready token
    nor a structured error.
    """
    if data == READY_TOKEN:
        return ReadySignal()

    if isinstance(data, dict) and "error" in data:
        try:
            return ErrorSignal.model_validate(data)
        except ValidationError as exc:
            raise ProtocolViolation(
                f"Malformed error signal: {exc.error_count()} validation error(s)."
            ) from exc

    raise ProtocolViolation(f"Unknown message format: {type(data).__name__}.")
