from __future__ import annotations

import json

import pytest

from autoflow.llm.base import LLMRequest
from autoflow.llm.mock import MockLLMClient


@pytest.mark.asyncio
async def test_mock_llm_returns_json_text() -> None:
    llm = MockLLMClient(output={'name': 'Notify', 'actions': [{'service': 'slack', 'action': 'send_message'}]})
    resp = await llm.generate(LLMRequest(prompt='X', metadata={}))
    payload = json.loads(resp.output_text)
    assert payload['name'] == 'Notify'
    assert 'actions' in payload


@pytest.mark.asyncio
async def test_mock_llm_replays_outputs_in_order() -> None:
    llm = MockLLMClient(outputs=['first', {'n': 2}])
    assert (await llm.generate(LLMRequest(prompt='a'))).output_text == 'first'
    assert (await llm.generate(LLMRequest(prompt='b'))).output_text == '{"n": 2}'
    assert [r.prompt for r in llm.requests] == ['a', 'b']


@pytest.mark.asyncio
async def test_mock_llm_raises_queued_exceptions() -> None:
    llm = MockLLMClient(output=RuntimeError('down'))
    with pytest.raises(RuntimeError, match='down'):
        await llm.generate(LLMRequest(prompt='X'))
