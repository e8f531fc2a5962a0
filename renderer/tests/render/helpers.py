from __future__ import annotations

from typing import List

from renderer.app.events import RenderEvent, RenderEventType


class RecordingEmitter:
    """
    Emitter that keeps every event, including those emitted after a
    session has settled.
    """

    def __init__(self) -> None:
        self.events: List[RenderEvent] = []

    async def emit(self, event: RenderEvent) -> None:
        self.events.append(event)

    @property
    def event_types(self) -> List[RenderEventType]:
        return [event.event_type for event in self.events]


def make_credential() -> dict:
    return {
        "@context": ["https://www.w3.org/ns/credentials/v2"],
        "id": "urn:uuid:credential-1",
        "type": ["VerifiableCredential"],
        "issuer": "did:example:issuer",
        "credentialSubject": {
            "id": "did:example:subject",
            "name": "Jane Doe",
            "birthDate": "1990-01-01",
        },
    }


TEMPLATE = (
    '<p id="name"></p>'
    "<script>"
    "const credential = JSON.parse("
    "document.querySelector('script[name=\"credential\"]').textContent);"
    "document.getElementById('name').textContent ="
    " credential.credentialSubject.name;"
    "window.renderMethodReady();"
    "</script>"
)
