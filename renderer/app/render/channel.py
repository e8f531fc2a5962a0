"""
Two-port message channel between the host and an isolated context.

Modelled on the browser ``MessageChannel``: each port owns an inbound
queue, so messages posted before the receiving side attaches its listener
are held by the channel rather than lost. Delivery is FIFO per port and
happens on the event loop; the two sides never share mutable state other
than the messages themselves.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from renderer.app.errors import ProtocolViolation

logger = logging.getLogger(__name__)


class ChannelMessage(BaseModel):
    """A message as delivered to a port listener."""

    data: Any
    ports: Tuple["MessagePort", ...] = ()

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


MessageListener = Callable[[ChannelMessage], Awaitable[None]]


class MessagePort:
    """
    One end of a MessageChannel.

    A port has at most one listener over its lifetime. Once closed it
    neither sends nor receives.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Optional[ChannelMessage]] = asyncio.Queue()
        self._peer: Optional[MessagePort] = None
        self._listener: Optional[MessageListener] = None
        self._pump: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def started(self) -> bool:
        return self._listener is not None

    def post_message(
        self,
        data: Any,
        transfer: Sequence["MessagePort"] = (),
    ) -> None:
        """Send ``data`` (and any transferred ports) to the peer port."""
        peer = self._peer
        if self._closed or peer is None or peer._closed:
            logger.debug("Dropping message posted on a closed channel")
            return
        peer._queue.put_nowait(ChannelMessage(data=data, ports=tuple(transfer)))

    def start(self, listener: MessageListener) -> None:
        """
        Attach the listener and begin delivering queued messages.
        """
        if self._closed:
            raise ProtocolViolation("Cannot start a closed message port.")
        if self._listener is not None:
            raise ProtocolViolation("Message port already has a listener.")

        self._listener = listener
        self._pump = asyncio.get_running_loop().create_task(self._deliver())

    def close(self) -> None:
        """Detach the listener; pending and future messages are dropped."""
        if not self._closed:
            self._closed = True
            self._listener = None
            self._queue.put_nowait(None)

    async def _deliver(self) -> None:
        while True:
            message = await self._queue.get()
            if message is None or self._closed:
                break

            listener = self._listener
            if listener is None:
                break

            try:
                await listener(message)
            except Exception:
                logger.exception("Message port listener failed")


class MessageChannel:
    """A pair of entangled ports."""

    def __init__(self) -> None:
        self.port1 = MessagePort()
        self.port2 = MessagePort()
        self.port1._peer = self.port2
        self.port2._peer = self.port1


ChannelMessage.model_rebuild()
