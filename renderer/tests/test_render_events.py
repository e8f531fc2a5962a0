import pytest
from pydantic import ValidationError

from renderer.app.events import (
    MemoryQueueEventEmitter,
    NullEventEmitter,
    RenderEvent,
    RenderEventType,
)

pytestmark = pytest.mark.anyio


def _event(event_type: RenderEventType) -> RenderEvent:
    return RenderEvent(correlation_id="render-001", event_type=event_type)


async def test_memory_emitter_streams_in_order_and_closes_on_terminal_event():
    emitter = MemoryQueueEventEmitter()

    await emitter.emit(_event(RenderEventType.SESSION_CREATED))
    await emitter.emit(_event(RenderEventType.CONTEXT_LOADING))
    await emitter.emit(_event(RenderEventType.RENDER_FAILED))
    # after close, further events are dropped
    await emitter.emit(_event(RenderEventType.SIGNAL_IGNORED))

    streamed = [event.event_type async for event in emitter.stream()]

    assert streamed == [
        RenderEventType.SESSION_CREATED,
        RenderEventType.CONTEXT_LOADING,
        RenderEventType.RENDER_FAILED,
    ]


async def test_null_emitter_accepts_events():
    assert await NullEventEmitter().emit(_event(RenderEventType.RENDER_READY)) is None


def test_events_are_immutable_and_closed():
    event = _event(RenderEventType.PAYLOAD_SENT)

    assert event.details is None
    assert event.timestamp.tzinfo is not None

    with pytest.raises(ValidationError):
        event.correlation_id = "other"

    with pytest.raises(ValidationError):
        RenderEvent(
            correlation_id="render-001",
            event_type=RenderEventType.PAYLOAD_SENT,
            credential={"name": "Jane"},
        )
