"""Groq chat-completions LLM adapter (HTTP-based).

Groq exposes an OpenAI-compatible ``/chat/completions`` endpoint. We call it
directly with httpx so the adapter can be driven by an injected client and
mocked with ``httpx.MockTransport``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from autoflow.config import Settings
from autoflow.llm.base import LLMClient, LLMRequest, LLMResponse, LLMUsage


@dataclass(frozen=True)
class GroqChatConfig:
    """Configuration for the Groq chat-completions adapter."""

    api_key: str
    base_url: str = 'https://api.groq.com/openai/v1'
    model: str = 'mixtral-8x7b-32768'
    timeout_s: float = 60.0


class GroqChatLLMClient(LLMClient):
    """LLM adapter that calls Groq's chat-completions API."""

    def __init__(self, config: GroqChatConfig, client: httpx.AsyncClient | None = None) -> None:
        self._cfg = config
        self._client = client

    @staticmethod
    def from_settings(settings: Settings, client: httpx.AsyncClient | None = None) -> 'GroqChatLLMClient':
        api_key = settings.groq_api_key.strip()
        if not api_key:
            raise RuntimeError('Groq API key not configured')
        cfg = GroqChatConfig(
            api_key=api_key,
            base_url=settings.groq_base_url,
            model=settings.groq_model,
        )
        return GroqChatLLMClient(cfg, client=client)

    async def generate(self, request: LLMRequest) -> LLMResponse:
        url = f'{self._cfg.base_url.rstrip("/")}/chat/completions'
        headers = {
            'Authorization': f'Bearer {self._cfg.api_key}',
            'Content-Type': 'application/json',
        }

        messages: list[dict[str, str]] = []
        if request.system_prompt:
            messages.append({'role': 'system', 'content': request.system_prompt})
        messages.append({'role': 'user', 'content': request.prompt})

        body: dict[str, Any] = {
            'model': self._cfg.model,
            'messages': messages,
        }
        if request.temperature is not None:
            body['temperature'] = request.temperature
        if request.max_tokens is not None:
            body['max_tokens'] = request.max_tokens

        if self._client is not None:
            resp = await self._client.post(url, json=body, headers=headers, timeout=self._cfg.timeout_s)
            return _to_response(resp)

        async with httpx.AsyncClient() as client:
            resp = await client.post(url, json=body, headers=headers, timeout=self._cfg.timeout_s)
            return _to_response(resp)


def _to_response(resp: httpx.Response) -> LLMResponse:
    if resp.is_error:
        raise RuntimeError(_error_message(resp))
    data = resp.json()
    return LLMResponse(
        output_text=_extract_output_text(data),
        raw=data,
        usage=_extract_usage(data),
    )


def _error_message(resp: httpx.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return f'Groq API error: {resp.text or resp.status_code}'
    error = payload.get('error') if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get('message'):
        return str(error['message'])
    return 'Groq API error'


def _extract_output_text(payload: dict[str, Any]) -> str:
    choices = payload.get('choices')
    if isinstance(choices, list) and choices:
        message = choices[0].get('message') if isinstance(choices[0], dict) else None
        if isinstance(message, dict):
            content = message.get('content')
            if isinstance(content, str) and content.strip():
                return content

    raise ValueError('No response from Groq')


def _extract_usage(payload: dict[str, Any]) -> LLMUsage:
    usage = payload.get('usage')
    if not isinstance(usage, dict):
        return LLMUsage()

    # OpenAI-compatible naming
    input_tokens = usage.get('prompt_tokens')
    output_tokens = usage.get('completion_tokens')
    total_tokens = usage.get('total_tokens')

    return LLMUsage(
        input_tokens=input_tokens if isinstance(input_tokens, int) else None,
        output_tokens=output_tokens if isinstance(output_tokens, int) else None,
        total_tokens=total_tokens if isinstance(total_tokens, int) else None,
    )
