from __future__ import annotations

import json
import logging

import pytest

from autoflow.core.errors import PlanningError
from autoflow.domain.plans import LLMPlanGenerator
from autoflow.domain.prompt_store import FilesystemPromptStore
from autoflow.llm.mock import MockLLMClient

from tests.fixtures.plans import GATED_SLACK_ON_STRIPE_PAYMENT, SLACK_ON_STRIPE_PAYMENT


@pytest.mark.asyncio
async def test_generate_returns_valid_plan() -> None:
    llm = MockLLMClient(output=SLACK_ON_STRIPE_PAYMENT)
    planner = LLMPlanGenerator(llm=llm, prompt_store=FilesystemPromptStore())

    plan = await planner.generate(user_request="When Stripe gets a payment, tell #sales")

    assert plan.name == "Notify on payment"
    assert plan.actions[0].qualified_name == "slack.send_message"
    request = llm.requests[0]
    assert "AI automation planner" in request.system_prompt
    assert request.prompt == "When Stripe gets a payment, tell #sales"
    assert request.temperature == 0.1


@pytest.mark.asyncio
async def test_generate_keeps_approval_settings() -> None:
    planner = LLMPlanGenerator(
        llm=MockLLMClient(output=GATED_SLACK_ON_STRIPE_PAYMENT),
        prompt_store=FilesystemPromptStore(),
    )
    plan = await planner.generate(user_request="payments to slack, but ask me first")
    assert plan.requires_approval is True
    assert plan.approval.approval_timeout_ms == 60_000


@pytest.mark.asyncio
async def test_generate_repairs_invalid_output_once() -> None:
    llm = MockLLMClient(outputs=["not json at all", SLACK_ON_STRIPE_PAYMENT])
    planner = LLMPlanGenerator(llm=llm, prompt_store=FilesystemPromptStore(), max_retries=1)

    plan = await planner.generate(user_request="payments to slack")

    assert plan.name == "Notify on payment"
    assert len(llm.requests) == 2
    assert "INVALID OUTPUT" in llm.requests[1].prompt


@pytest.mark.asyncio
async def test_generate_gives_up_after_retries() -> None:
    llm = MockLLMClient(outputs=['{"name": "x"}', '{"name": "x"}'])
    planner = LLMPlanGenerator(llm=llm, prompt_store=FilesystemPromptStore(), max_retries=1)

    with pytest.raises(PlanningError, match="Failed to parse automation plan"):
        await planner.generate(user_request="payments to slack")


@pytest.mark.asyncio
async def test_generate_surfaces_model_refusal() -> None:
    llm = MockLLMClient(output=json.dumps({"error": "Request is too vague"}))
    planner = LLMPlanGenerator(llm=llm, prompt_store=FilesystemPromptStore())

    with pytest.raises(PlanningError, match="too vague"):
        await planner.generate(user_request="do stuff")
    assert len(llm.requests) == 1


@pytest.mark.asyncio
async def test_generate_without_llm_is_a_configuration_error() -> None:
    planner = LLMPlanGenerator(llm=None, prompt_store=FilesystemPromptStore())
    with pytest.raises(PlanningError, match="Groq API key not configured"):
        await planner.generate(user_request="payments to slack")


@pytest.mark.asyncio
async def test_generate_rejects_empty_request() -> None:
    planner = LLMPlanGenerator(llm=MockLLMClient(output=SLACK_ON_STRIPE_PAYMENT), prompt_store=FilesystemPromptStore())
    with pytest.raises(PlanningError, match="Prompt is required"):
        await planner.generate(user_request="   ")


@pytest.mark.asyncio
async def test_transport_errors_become_planning_errors() -> None:
    planner = LLMPlanGenerator(
        llm=MockLLMClient(output=RuntimeError("Groq API error")),
        prompt_store=FilesystemPromptStore(),
    )
    with pytest.raises(PlanningError, match="Groq API error"):
        await planner.generate(user_request="payments to slack")


@pytest.mark.asyncio
async def test_failed_attempt_span_reports_no_usage(caplog) -> None:
    llm = MockLLMClient(outputs=["not json at all", RuntimeError("Groq API error")])
    planner = LLMPlanGenerator(llm=llm, prompt_store=FilesystemPromptStore(), max_retries=1)

    with caplog.at_level(logging.INFO, logger="autoflow"):
        with pytest.raises(PlanningError, match="Groq API error"):
            await planner.generate(user_request="payments to slack")

    spans = [json.loads(r.getMessage()) for r in caplog.records if '"span.end"' in r.getMessage()]
    assert [s["usage"] is None for s in spans] == [False, True]
