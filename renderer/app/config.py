"""
Runtime configuration for the credential renderer.

This module centralizes environment-driven configuration for the isolation
policy applied to rendering contexts and the resource limits applied to
render inputs.

Configuration is read-only at runtime and must not influence which fields
are disclosed from a credential.
"""

from __future__ import annotations

import os
from typing import Tuple

from pydantic import BaseModel, Field, field_validator


# Only script execution (and modal dialogs) may ever be granted to an
# isolated rendering context. Navigation and same-origin are never allowed.
ALLOWED_SANDBOX_FLAGS = frozenset({"allow-scripts", "allow-modals"})

REQUIRED_CONNECT_POLICY = "connect-src 'none'"


def validate_content_security_policy(v: str) -> str:
    if REQUIRED_CONNECT_POLICY not in v:
        raise ValueError(
            "Content security policy must forbid outbound connections "
            f"with \"{REQUIRED_CONNECT_POLICY}\". Got: {v!r}"
        )
    return v


def validate_sandbox_flags(v: Tuple[str, ...]) -> Tuple[str, ...]:
    unknown = set(v) - ALLOWED_SANDBOX_FLAGS
    if unknown:
        raise ValueError(
            f"Unsupported sandbox flags {sorted(unknown)}. "
            f"Allowed values: {sorted(ALLOWED_SANDBOX_FLAGS)}"
        )
    if "allow-scripts" not in v:
        raise ValueError("Sandbox flags must include 'allow-scripts'.")
    return v


class RendererConfig(BaseModel):
    """
    Runtime configuration for the credential renderer.

    Configuration is environment-driven and frozen once constructed.
    """

    # ------------------------------------------------------------------
    # Isolation policy
    # ------------------------------------------------------------------

    CONTENT_SECURITY_POLICY: str = Field(
        REQUIRED_CONNECT_POLICY,
        description=(
            "Content security policy declared by the isolated context, "
            "both as a meta tag and as an engine-level attribute"
        ),
    )

    SANDBOX_FLAGS: Tuple[str, ...] = Field(
        ("allow-scripts",),
        description="Capabilities granted to the isolated rendering context",
    )

    # ------------------------------------------------------------------
    # Resource limits
    # ------------------------------------------------------------------

    MAX_TEMPLATE_SIZE_KB: int = Field(
        512,
        gt=0,
        description="Maximum UTF-8 size of a render template in kilobytes",
    )

    MAX_POINTERS: int = Field(
        1000,
        gt=0,
        description="Maximum number of pointers in a single selection",
    )

    # ------------------------------------------------------------------
    # Validators (Pydantic v2)
    # ------------------------------------------------------------------

    @field_validator("CONTENT_SECURITY_POLICY")
    @classmethod
    def csp_forbids_connections(cls, v: str) -> str:
        return validate_content_security_policy(v)

    @field_validator("SANDBOX_FLAGS")
    @classmethod
    def sandbox_flags_are_restricted(
        cls, v: Tuple[str, ...]
    ) -> Tuple[str, ...]:
        return validate_sandbox_flags(v)

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def max_template_bytes(self) -> int:
        return self.MAX_TEMPLATE_SIZE_KB * 1024

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> "RendererConfig":
        """
        Load configuration from environment variables.

        All values are parsed once and must remain immutable.
        """
        flags_env = os.getenv("RENDERER_SANDBOX_FLAGS")

        return cls(
            CONTENT_SECURITY_POLICY=os.getenv(
                "RENDERER_CONTENT_SECURITY_POLICY", REQUIRED_CONNECT_POLICY
            ),
            SANDBOX_FLAGS=(
                tuple(flags_env.split())
                if flags_env
                else ("allow-scripts",)
            ),
            MAX_TEMPLATE_SIZE_KB=int(
                os.getenv("RENDERER_MAX_TEMPLATE_SIZE_KB", "512")
            ),
            MAX_POINTERS=int(
                os.getenv("RENDERER_MAX_POINTERS", "1000")
            ),
        )

    model_config = {
        "frozen": True,
    }
