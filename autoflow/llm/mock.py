"""Mock LLM adapter.

Use this for:
- deterministic tests
- offline development
- unit tests for planning logic
"""

from __future__ import annotations

import json
from typing import Any, Callable

from autoflow.llm.base import LLMClient, LLMRequest, LLMResponse


class MockLLMClient(LLMClient):
    """A mock model that returns pre-canned outputs.

    Provide either:
    - a static payload (dicts are JSON-serialized, strings returned verbatim),
    - a list of payloads returned one per call, or
    - a callable that maps request -> payload.
    """

    def __init__(
        self,
        output: dict[str, Any] | str | None = None,
        outputs: list[dict[str, Any] | str] | None = None,
        fn: Callable[[LLMRequest], Any] | None = None,
    ) -> None:
        self._output = output
        self._outputs = list(outputs or [])
        self._fn = fn
        self.requests: list[LLMRequest] = []

    async def generate(self, request: LLMRequest) -> LLMResponse:
        self.requests.append(request)
        if self._fn is not None:
            payload = self._fn(request)
        elif self._outputs:
            payload = self._outputs.pop(0)
        else:
            payload = self._output if self._output is not None else {}

        if isinstance(payload, Exception):
            raise payload
        text = payload if isinstance(payload, str) else json.dumps(payload)
        return LLMResponse(output_text=text, raw={'mock': True, 'payload': payload})
