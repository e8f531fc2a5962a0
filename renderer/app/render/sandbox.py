"""
Isolated rendering context capability.

Creating an isolated execution context (an iframe with a sandbox attribute
and content security policy, a headless browser page, a test double) is a
property of the host platform. The handshake only depends on the two
protocols below.

IMPORTANT:
- The isolation policy MUST forbid outbound network connections.
- Only script execution may be granted; never navigation or same-origin.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from renderer.app.config import (
    REQUIRED_CONNECT_POLICY,
    RendererConfig,
    validate_content_security_policy,
    validate_sandbox_flags,
)
from renderer.app.render.channel import MessagePort


class SandboxPolicy(BaseModel):
    """
    Isolation policy applied to every rendering context.

    Platforms must apply the policy both in the content (meta tag, see
    ``build_srcdoc``) and at the engine level where supported, since only
    one of the two may be honoured depending on runtime.
    """

    content_security_policy: str = Field(
        REQUIRED_CONNECT_POLICY,
        description="Content security policy for the isolated context",
    )

    sandbox_flags: Tuple[str, ...] = Field(
        ("allow-scripts",),
        description="Capabilities granted to the isolated context",
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("content_security_policy")
    @classmethod
    def csp_forbids_connections(cls, v: str) -> str:
        return validate_content_security_policy(v)

    @field_validator("sandbox_flags")
    @classmethod
    def sandbox_flags_are_restricted(
        cls, v: Tuple[str, ...]
    ) -> Tuple[str, ...]:
        return validate_sandbox_flags(v)

    @property
    def sandbox_attribute(self) -> str:
        return " ".join(self.sandbox_flags)

    @classmethod
    def from_config(cls, config: RendererConfig) -> "SandboxPolicy":
        return cls(
            content_security_policy=config.CONTENT_SECURITY_POLICY,
            sandbox_flags=config.SANDBOX_FLAGS,
        )


LoadCallback = Callable[[], Awaitable[None]]


class IsolatedContext(Protocol):
    """Host-side handle on a running isolated context."""

    def post_message(
        self,
        message: Any,
        transfer: Sequence[MessagePort] = (),
    ) -> None:
        ...


class IsolatedContextFactory(Protocol):
    """
    Platform capability creating isolated contexts.

    ``create`` must apply ``policy``, install ``content`` as the context's
    fixed document, and await ``on_load`` once the context has finished
    initialising.
    """

    def create(
        self,
        *,
        content: str,
        policy: SandboxPolicy,
        on_load: LoadCallback,
    ) -> IsolatedContext:
        ...
