from __future__ import annotations

from typing import Any, Dict, Optional
from enum import Enum
from datetime import datetime, timezone
from uuid import uuid4, UUID

from pydantic import BaseModel, Field, ConfigDict


# ----------------------------------------------------------------------
# Event Types (Finite)
# ----------------------------------------------------------------------
class RenderEventType(str, Enum):
    """
    Lifecycle events emitted by a render handshake session.

    One event per state transition, plus SIGNAL_IGNORED for signals that
    arrive after the session has already settled.
    """

    SESSION_CREATED = "session_created"
    CONTEXT_LOADING = "context_loading"
    CHANNEL_ESTABLISHED = "channel_established"
    PAYLOAD_SENT = "payload_sent"

    # Terminal
    RENDER_READY = "render_ready"
    RENDER_FAILED = "render_failed"

    SIGNAL_IGNORED = "signal_ignored"


# ----------------------------------------------------------------------
# Event Model
# ----------------------------------------------------------------------
class RenderEvent(BaseModel):
    """
    An immutable observation of a handshake state transition.

    Events never carry credential data.
    """

    event_id: UUID = Field(default_factory=uuid4)
    correlation_id: str = Field(
        ..., description="Correlation identifier of the render payload"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    event_type: RenderEventType

    details: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )
