"""
Render payload construction.

Wraps a credential that has already been reduced by selective disclosure
and a fully resolved template into the immutable payload handed to an
isolated rendering context. No dereferencing happens here.
"""

from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from renderer.app.errors import InvalidInput


class RenderPayload(BaseModel):
    """
    Immutable render request contents for one handshake session.
    """

    credential: Dict[str, Any] = Field(
        ...,
        description="Credential reduced to the disclosed fields",
    )

    template: str = Field(
        ...,
        description="Fully resolved template body",
    )

    correlation_id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Identifier matching this payload to its session",
    )

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    def to_params(self) -> Dict[str, Any]:
        """The ``{credential, template}`` object carried on the channel."""
        return {
            "credential": self.credential,
            "template": self.template,
        }


def build_render_payload(
    *,
    credential: Any,
    template: Any,
    max_template_bytes: Optional[int] = None,
) -> RenderPayload:
    """
    Build a RenderPayload with a fresh correlation identifier.

    Raises InvalidInput if ``credential`` is not an object or ``template``
    is not a non-empty string within ``max_template_bytes``.
    """
    if not isinstance(credential, dict):
        raise InvalidInput('"credential" must be an object.')
    if not (isinstance(template, str) and template):
        raise InvalidInput('"template" must be a string.')

    if max_template_bytes is not None:
        size = len(template.encode("utf-8"))
        if size > max_template_bytes:
            raise InvalidInput(
                f"Template exceeds maximum size of {max_template_bytes} bytes "
                f"({size} bytes)."
            )

    return RenderPayload(credential=credential, template=template)
