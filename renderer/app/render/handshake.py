"""
Render handshake session.

One session per render call:

    CREATED -> LOADING -> CHANNEL_ESTABLISHED -> PAYLOAD_SENT -> READY
                                                              -> FAILED

- LOADING: the platform is asked for an isolated context.
- CHANNEL_ESTABLISHED: on load, a private channel is created; the host
  starts listening on its port before transferring the other port to the
  context in a single ``start`` message.
- PAYLOAD_SENT: the render request is posted on the host port. Channel FIFO
  order guarantees the context sees ``start`` before the payload.
- READY / FAILED: the first terminal signal settles the session. Anything
  received afterwards is ignored.

IMPORTANT:
- The pending result settles exactly once.
- No timeout and no cancellation are imposed here. A template that never
  signals leaves the session pending; callers bound the wait themselves.
- Failures are scoped to this session and never retried.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

from renderer.app.errors import ProtocolViolation, RenderFailed, RendererError
from renderer.app.events import (
    NullEventEmitter,
    RenderEvent,
    RenderEventEmitter,
    RenderEventType,
)
from renderer.app.render.channel import ChannelMessage, MessageChannel, MessagePort
from renderer.app.render.messages import (
    START_MESSAGE,
    ErrorSignal,
    RenderMessage,
    parse_signal,
)
from renderer.app.render.payload import RenderPayload
from renderer.app.render.sandbox import (
    IsolatedContext,
    IsolatedContextFactory,
    SandboxPolicy,
)

logger = logging.getLogger(__name__)


class HandshakeState(str, Enum):
    CREATED = "created"
    LOADING = "loading"
    CHANNEL_ESTABLISHED = "channel_established"
    PAYLOAD_SENT = "payload_sent"
    READY = "ready"
    FAILED = "failed"


TERMINAL_STATES = frozenset({HandshakeState.READY, HandshakeState.FAILED})

_TRANSITION_EVENTS = {
    HandshakeState.CREATED: RenderEventType.SESSION_CREATED,
    HandshakeState.LOADING: RenderEventType.CONTEXT_LOADING,
    HandshakeState.CHANNEL_ESTABLISHED: RenderEventType.CHANNEL_ESTABLISHED,
    HandshakeState.PAYLOAD_SENT: RenderEventType.PAYLOAD_SENT,
    HandshakeState.READY: RenderEventType.RENDER_READY,
    HandshakeState.FAILED: RenderEventType.RENDER_FAILED,
}


class HandshakeSession:
    """
    Host side of the render handshake for a single isolated context.
    """

    def __init__(
        self,
        *,
        payload: RenderPayload,
        policy: SandboxPolicy,
        content: str,
        emitter: Optional[RenderEventEmitter] = None,
        on_ready: Optional[Callable[[], None]] = None,
    ) -> None:
        self.payload = payload
        self.policy = policy
        self.content = content

        self._emitter = emitter or NullEventEmitter()
        self._on_ready = on_ready

        self._state = HandshakeState.CREATED
        self._result: asyncio.Future[None] = (
            asyncio.get_running_loop().create_future()
        )
        self._context: Optional[IsolatedContext] = None
        self._port: Optional[MessagePort] = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def correlation_id(self) -> str:
        return self.payload.correlation_id

    @property
    def state(self) -> HandshakeState:
        return self._state

    @property
    def ready(self) -> asyncio.Future[None]:
        """Settles with None on READY, or with the failure on FAILED."""
        return self._result

    @property
    def context(self) -> Optional[IsolatedContext]:
        return self._context

    # ------------------------------------------------------------------
    # Protocol steps
    # ------------------------------------------------------------------

    async def open(self, factory: IsolatedContextFactory) -> IsolatedContext:
        """Request an isolated context running the fixed content."""
        if self._state is not HandshakeState.CREATED:
            raise ProtocolViolation(
                f"Session {self.correlation_id} was already opened."
            )

        await self._emit(RenderEventType.SESSION_CREATED)
        await self._transition(HandshakeState.LOADING)

        self._context = factory.create(
            content=self.content,
            policy=self.policy,
            on_load=self.on_load,
        )
        return self._context

    async def on_load(self) -> None:
        """
        Establish the channel and send the payload.

        Invoked by the platform once the isolated context has initialised.
        """
        if self._state is not HandshakeState.LOADING:
            logger.warning(
                "Ignoring repeated load for render session %s in state %s",
                self.correlation_id,
                self._state.value,
            )
            return

        channel = MessageChannel()
        self._port = channel.port1

        # listen before the context can post anything back
        self._port.start(self.receive)
        self._context.post_message(START_MESSAGE, transfer=[channel.port2])
        await self._transition(HandshakeState.CHANNEL_ESTABLISHED)

        self._port.post_message(
            RenderMessage.from_payload(self.payload).model_dump()
        )
        await self._transition(HandshakeState.PAYLOAD_SENT)

    async def receive(self, message: ChannelMessage) -> None:
        """Handle one message from the isolated context."""
        if self._state in TERMINAL_STATES:
            logger.debug(
                "Ignoring signal for settled render session %s",
                self.correlation_id,
            )
            await self._emit(
                RenderEventType.SIGNAL_IGNORED,
                {"state": self._state.value},
            )
            return

        if self._state is not HandshakeState.PAYLOAD_SENT:
            await self._fail(
                ProtocolViolation(
                    f"Message received in state {self._state.value}."
                )
            )
            return

        try:
            signal = parse_signal(message.data)
        except ProtocolViolation as exc:
            await self._fail(exc)
            return

        if isinstance(signal, ErrorSignal):
            await self._fail(RenderFailed(signal.message))
            return

        await self._succeed()

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    async def _succeed(self) -> None:
        self._detach()
        if not self._result.done():
            self._result.set_result(None)
        await self._transition(HandshakeState.READY)

        if self._on_ready is not None:
            self._on_ready()

    async def _fail(self, error: RendererError) -> None:
        if isinstance(error, ProtocolViolation):
            logger.warning(
                "Protocol violation in render session %s: %s",
                self.correlation_id,
                error,
            )
        self._detach()
        if not self._result.done():
            self._result.set_exception(error)
        await self._transition(
            HandshakeState.FAILED,
            {"error_type": type(error).__name__, "message": str(error)},
        )

    def _detach(self) -> None:
        if self._port is not None:
            self._port.close()

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    async def _transition(
        self,
        state: HandshakeState,
        details: Optional[dict] = None,
    ) -> None:
        # state changes before any await so concurrent deliveries see it
        self._state = state
        logger.info(
            "Render session %s -> %s", self.correlation_id, state.value
        )
        await self._emit(_TRANSITION_EVENTS[state], details)

    async def _emit(
        self,
        event_type: RenderEventType,
        details: Optional[dict] = None,
    ) -> None:
        await self._emitter.emit(
            RenderEvent(
                correlation_id=self.correlation_id,
                event_type=event_type,
                details=details,
            )
        )
