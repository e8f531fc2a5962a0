from __future__ import annotations

from typing import Protocol

from renderer.app.events.models import RenderEvent


class RenderEventEmitter(Protocol):
    """
    Interface for broadcasting render session observations.

    Implementations must be:
    - non-blocking (or minimally blocking)
    - fail-safe (emission failures must not break a session)
    - observational only
    """

    async def emit(self, event: RenderEvent) -> None:
        ...


class NullEventEmitter:
    """
    A safe no-op emitter.

    Used when nobody observes the render lifecycle.
    """

    async def emit(self, event: RenderEvent) -> None:
        return
