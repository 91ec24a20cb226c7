"""LLM adapters.

This package intentionally contains ONLY model inference adapters.

Rules:
- No plan validation here.
- No retries/repair logic here.

Those belong in the planning layer.
"""
from .base import LLMClient, LLMRequest, LLMResponse, LLMUsage
from .groq_chat import GroqChatConfig, GroqChatLLMClient
from .mock import MockLLMClient
