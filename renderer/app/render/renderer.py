"""
Credential rendering entry point.

Wires selective disclosure, payload construction and the sandbox handshake:

    credential + render_property
        -> select_jsonld
        -> build_render_payload
        -> HandshakeSession (new isolated context, new channel)
        -> RenderHandle.ready

The renderer holds no state across calls. What the host does with a ready
or failed render is up to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Optional, Sequence

from renderer.app.config import RendererConfig
from renderer.app.errors import InvalidInput
from renderer.app.events import RenderEventEmitter
from renderer.app.render.handshake import HandshakeSession, HandshakeState
from renderer.app.render.payload import RenderPayload, build_render_payload
from renderer.app.render.sandbox import (
    IsolatedContext,
    IsolatedContextFactory,
    SandboxPolicy,
)
from renderer.app.render.srcdoc import build_srcdoc
from renderer.app.selection.pointer import ROOT_POINTER
from renderer.app.selection.selector import select_jsonld

logger = logging.getLogger(__name__)

DEFAULT_RENDER_PROPERTY = (ROOT_POINTER,)


class RenderHandle:
    """
    Result of a render call.

    ``context`` is the isolated context; discarding it abandons the render.
    ``ready`` settles once with the outcome of the handshake.
    """

    def __init__(self, *, context: IsolatedContext, session: HandshakeSession) -> None:
        self.context = context
        self.session = session

    @property
    def ready(self) -> asyncio.Future[None]:
        return self.session.ready

    @property
    def state(self) -> HandshakeState:
        return self.session.state

    @property
    def payload(self) -> RenderPayload:
        return self.session.payload


class CredentialRenderer:
    """
    Renders selectively disclosed credentials inside isolated contexts.
    """

    def __init__(
        self,
        config: RendererConfig,
        sandbox_factory: IsolatedContextFactory,
        emitter: Optional[RenderEventEmitter] = None,
    ) -> None:
        self._config = config
        self._sandbox_factory = sandbox_factory
        self._emitter = emitter

        self._policy = SandboxPolicy.from_config(config)
        self._content = build_srcdoc(self._policy)

    @classmethod
    def from_env(
        cls,
        sandbox_factory: IsolatedContextFactory,
    ) -> "CredentialRenderer":
        return cls(
            config=RendererConfig.from_env(),
            sandbox_factory=sandbox_factory,
        )

    @property
    def policy(self) -> SandboxPolicy:
        return self._policy

    def prepare_payload(
        self,
        *,
        credential: Dict[str, Any],
        template: str,
        render_property: Optional[Sequence[str]] = None,
    ) -> RenderPayload:
        """
        Select the disclosed fields and build the render payload.

        Raises synchronously on invalid input; nothing is rendered.
        """
        if render_property is None:
            render_property = DEFAULT_RENDER_PROPERTY

        selected = select_jsonld(
            credential,
            render_property,
            max_pointers=self._config.MAX_POINTERS,
        )
        if selected is None:
            raise InvalidInput(
                '"render_property" is empty; no fields selected for rendering.'
            )

        return build_render_payload(
            credential=selected,
            template=template,
            max_template_bytes=self._config.max_template_bytes,
        )

    async def render(
        self,
        *,
        credential: Dict[str, Any],
        template: str,
        render_property: Optional[Sequence[str]] = None,
        on_ready: Optional[Callable[[], None]] = None,
        emitter: Optional[RenderEventEmitter] = None,
    ) -> RenderHandle:
        """
        Start rendering ``credential`` with ``template`` in a new isolated
        context.

        ``render_property`` lists the pointers to disclose and defaults to
        the whole credential. ``on_ready`` is called once the template
        signals it is ready. Await ``handle.ready`` for the outcome.
        """
        payload = self.prepare_payload(
            credential=credential,
            template=template,
            render_property=render_property,
        )

        session = HandshakeSession(
            payload=payload,
            policy=self._policy,
            content=self._content,
            emitter=emitter or self._emitter,
            on_ready=on_ready,
        )
        logger.info(
            "Starting render session %s (%d disclosed top-level field(s))",
            payload.correlation_id,
            len(payload.credential),
        )

        context = await session.open(self._sandbox_factory)
        return RenderHandle(context=context, session=session)
