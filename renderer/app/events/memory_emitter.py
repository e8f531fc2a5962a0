from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator

from renderer.app.events.models import RenderEvent, RenderEventType
from renderer.app.events.emitter import RenderEventEmitter

logger = logging.getLogger(__name__)


class MemoryQueueEventEmitter(RenderEventEmitter):
    """
    In-memory async event emitter for a single render session.

    Properties:
    - single-consumer
    - non-blocking for the handshake
    - deterministic ordering
    - terminates cleanly once the session reaches a terminal state
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[RenderEvent | None] = asyncio.Queue()
        self._closed = False

    async def emit(self, event: RenderEvent) -> None:
        if self._closed:
            return

        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("Dropping render event %s", event.event_type.value)
            return

        if event.event_type in {
            RenderEventType.RENDER_READY,
            RenderEventType.RENDER_FAILED,
        }:
            await self.close()

    async def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(None)

    async def stream(self) -> AsyncIterator[RenderEvent]:
        """
        Async generator yielding emitted events in order.
        """
        while True:
            event = await self._queue.get()
            if event is None:
                break
            yield event
