from __future__ import annotations

import httpx
import pytest
from httpx import MockTransport

from autoflow.clients.activepieces import ActivePiecesClient
from autoflow.core.errors import VersionNotFoundError
from autoflow.domain.approval import ApprovalRequestRepository, ApprovalService, ApprovalStatus
from autoflow.domain.plans import AutomationPlan, LLMPlanGenerator
from autoflow.domain.prompt_store import FilesystemPromptStore
from autoflow.domain.retry import ExecutionFailed, RetryingExecutor
from autoflow.domain.versioning import VersionRepository
from autoflow.llm.mock import MockLLMClient
from autoflow.runtime.orchestrator import AutomationOrchestrator, RetryingAutomationRunner

from tests.fixtures.activepieces_stub import BASE_URL, SERVICE_KEY, ActivePiecesStub
from tests.fixtures.plans import (
    GATED_SLACK_ON_STRIPE_PAYMENT,
    SLACK_AND_SHEET_ON_STRIPE_PAYMENT,
    SLACK_ON_STRIPE_PAYMENT,
)


async def _no_sleep(seconds: float) -> None:
    return None


def _orchestrator(http: httpx.AsyncClient, *outputs: dict) -> AutomationOrchestrator:
    client = ActivePiecesClient(BASE_URL, api_key=SERVICE_KEY, client=http)
    return AutomationOrchestrator(
        planner=LLMPlanGenerator(llm=MockLLMClient(outputs=list(outputs)), prompt_store=FilesystemPromptStore()),
        client=client,
        runner=RetryingAutomationRunner(client, RetryingExecutor(sleep=_no_sleep)),
    )


@pytest.mark.asyncio
async def test_create_deploys_flow_and_records_first_version(db) -> None:
    stub = ActivePiecesStub()
    versions = VersionRepository(db)
    async with httpx.AsyncClient(transport=MockTransport(stub)) as http:
        created = await _orchestrator(http, SLACK_ON_STRIPE_PAYMENT).create_automation(
            prompt="payments to slack", user_id="user_1", versions=versions
        )

    assert created.automation_id == "flow_1"
    assert stub.flows["flow_1"]["trigger"] == "stripe.payment_succeeded"
    assert created.version.version_number == 1
    assert created.version.is_active is True
    assert created.version.change_note == "Initial version"


@pytest.mark.asyncio
async def test_update_is_skipped_when_plan_is_unchanged(db) -> None:
    stub = ActivePiecesStub()
    versions = VersionRepository(db)
    async with httpx.AsyncClient(transport=MockTransport(stub)) as http:
        orch = _orchestrator(http, SLACK_ON_STRIPE_PAYMENT, SLACK_ON_STRIPE_PAYMENT)
        created = await orch.create_automation(prompt="payments to slack", user_id="user_1", versions=versions)
        updated = await orch.update_automation(
            created.automation_id, prompt="payments to slack", user_id="user_1", versions=versions
        )

    assert updated.diff.is_empty
    assert updated.version is None
    assert [r.method for r in stub.requests] == ["POST"]


@pytest.mark.asyncio
async def test_update_stores_new_active_version(db) -> None:
    stub = ActivePiecesStub()
    versions = VersionRepository(db)
    async with httpx.AsyncClient(transport=MockTransport(stub)) as http:
        orch = _orchestrator(http, SLACK_ON_STRIPE_PAYMENT, SLACK_AND_SHEET_ON_STRIPE_PAYMENT)
        created = await orch.create_automation(prompt="payments to slack", user_id="user_1", versions=versions)
        updated = await orch.update_automation(
            created.automation_id, prompt="also log to a sheet", user_id="user_1", versions=versions
        )

    assert updated.version.version_number == 2
    assert updated.version.change_note == "Added 1 action(s)"
    assert versions.get_active("flow_1").version_id == updated.version.version_id
    assert len(stub.flows["flow_1"]["actions"]) == 2


@pytest.mark.asyncio
async def test_rollback_restores_config_and_activation(db) -> None:
    stub = ActivePiecesStub()
    versions = VersionRepository(db)
    async with httpx.AsyncClient(transport=MockTransport(stub)) as http:
        orch = _orchestrator(http, SLACK_ON_STRIPE_PAYMENT, SLACK_AND_SHEET_ON_STRIPE_PAYMENT)
        created = await orch.create_automation(prompt="payments to slack", user_id="user_1", versions=versions)
        await orch.update_automation("flow_1", prompt="also log to a sheet", user_id="user_1", versions=versions)

        restored = await orch.rollback("flow_1", created.version.version_id, versions=versions)

        other = versions.create("flow_2", "p", None, None, "user_1")
        with pytest.raises(VersionNotFoundError):
            await orch.rollback("flow_1", other.version_id, versions=versions)

    assert restored.version_number == 1
    assert restored.is_active is True
    assert len(stub.flows["flow_1"]["actions"]) == 1


@pytest.mark.asyncio
async def test_execute_retries_transient_failures(db) -> None:
    stub = ActivePiecesStub()
    stub.execute_failures = [503]
    versions = VersionRepository(db)
    approvals = ApprovalService(ApprovalRequestRepository(db), runner=None)
    async with httpx.AsyncClient(transport=MockTransport(stub)) as http:
        orch = _orchestrator(http, SLACK_ON_STRIPE_PAYMENT)
        await orch.create_automation(prompt="payments to slack", user_id="user_1", versions=versions)
        outcome = await orch.execute_automation(
            "flow_1", user_id="user_1", versions=versions, approvals=approvals, payload={"amount": 5}
        )

    assert outcome.status == "executed"
    assert outcome.result["status"] == "success"
    assert len(outcome.tracking.attempts) == 2


@pytest.mark.asyncio
async def test_execute_gives_up_on_not_found() -> None:
    stub = ActivePiecesStub()
    async with httpx.AsyncClient(transport=MockTransport(stub)) as http:
        client = ActivePiecesClient(BASE_URL, api_key=SERVICE_KEY, client=http)
        runner = RetryingAutomationRunner(client, RetryingExecutor(sleep=_no_sleep))
        with pytest.raises(ExecutionFailed):
            await runner.execute("flow_missing")


@pytest.mark.asyncio
async def test_gated_plan_parks_execution_behind_approval(db) -> None:
    stub = ActivePiecesStub()
    versions = VersionRepository(db)
    async with httpx.AsyncClient(transport=MockTransport(stub)) as http:
        orch = _orchestrator(http, GATED_SLACK_ON_STRIPE_PAYMENT)
        approvals = ApprovalService(ApprovalRequestRepository(db), orch.runner)
        await orch.create_automation(prompt="payments to slack, ask first", user_id="user_1", versions=versions)

        outcome = await orch.execute_automation(
            "flow_1", user_id="user_1", versions=versions, approvals=approvals, payload={"amount": 5}
        )
        assert outcome.status == "approval_required"
        assert stub.executions == {}

        approved, result = await approvals.approve(
            outcome.approval.id, actor_id="someone", actor_email="ops@example.com"
        )

    assert outcome.approval.approvers == ["ops@example.com"]
    assert outcome.approval.trigger_data == {"amount": 5}
    assert approved.status == ApprovalStatus.APPROVED
    assert result["flowId"] == "flow_1"


def test_plan_fixture_is_valid() -> None:
    assert AutomationPlan.model_validate(GATED_SLACK_ON_STRIPE_PAYMENT).requires_approval
