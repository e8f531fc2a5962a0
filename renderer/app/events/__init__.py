from .models import RenderEvent, RenderEventType
from .emitter import RenderEventEmitter, NullEventEmitter
from .memory_emitter import MemoryQueueEventEmitter

__all__ = [
    "RenderEvent",
    "RenderEventType",
    "RenderEventEmitter",
    "NullEventEmitter",
    "MemoryQueueEventEmitter",
]
