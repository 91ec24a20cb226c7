"""LLM adapter interface.

This module defines the narrow contract used by the planning code. The adapter is:
- swappable (Groq, OpenAI, local, etc.)
- mockable (deterministic tests)
- observable (metadata hooks)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class LLMRequest:
    """
    A request to generate model output.

    Attributes:
        prompt: Fully rendered user prompt.
        metadata: Opaque dict for tracing.
        system_prompt: Optional system message sent before the prompt.
        temperature: Sampling temperature; provider default when None.
        max_tokens: Output token cap; provider default when None.
    """

    prompt: str
    metadata: dict[str, Any] = field(default_factory=dict)
    system_prompt: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None


@dataclass(frozen=True)
class LLMUsage:
    """Best-effort token usage summary (provider-dependent)."""

    input_tokens: int | None = None
    output_tokens: int | None = None
    total_tokens: int | None = None


@dataclass(frozen=True)
class LLMResponse:
    """A response from the model adapter.

    Attributes:
        output_text: The model output as text (often JSON text).
        raw: Provider-specific raw payload (kept for debugging/telemetry).
        usage: Best-effort token usage
    """

    output_text: str
    raw: dict[str, Any]
    usage: LLMUsage = LLMUsage()


class LLMClient(ABC):
    """Model inference adapter."""

    @abstractmethod
    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Generate a response from the model."""
        raise NotImplementedError
