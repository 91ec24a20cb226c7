"""End-to-end automation lifecycle: plan -> create -> update -> execute -> rollback.

The orchestrator owns the long-lived collaborators (planner, ActivePieces
client, retry executor). DB-bound repositories are passed per call, because
they live for one request.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import ValidationError

from autoflow.clients.activepieces import ActivePiecesClient
from autoflow.core.errors import ActivePiecesError, VersionNotFoundError
from autoflow.domain.approval import ApprovalRequest, ApprovalService
from autoflow.domain.plans import (
    AutomationPlan,
    DiffablePlan,
    LLMPlanGenerator,
    PlanDiff,
    compute_plan_diff,
    plan_to_diffable,
)
from autoflow.domain.retry import ExecutionTracking, RetryingExecutor
from autoflow.domain.versioning import VersionRepository, WorkflowVersion
from autoflow.observability.tracing import log_event, new_trace_id


@dataclass(frozen=True)
class CreatedAutomation:
    automation_id: str
    flow: dict[str, Any]
    plan: AutomationPlan
    version: WorkflowVersion


@dataclass(frozen=True)
class UpdatedAutomation:
    automation_id: str
    plan: AutomationPlan
    diff: PlanDiff
    version: WorkflowVersion | None


@dataclass(frozen=True)
class ExecutionOutcome:
    status: Literal["executed", "approval_required"]
    automation_id: str
    result: Any = None
    tracking: ExecutionTracking | None = None
    approval: ApprovalRequest | None = None


class RetryingAutomationRunner:
    """Executes flows through ActivePieces under the smart retry policies."""

    def __init__(self, client: ActivePiecesClient, executor: RetryingExecutor) -> None:
        self._client = client
        self._executor = executor

    async def run(self, automation_id: str, payload: dict[str, Any] | None = None) -> tuple[Any, ExecutionTracking]:
        return await self._executor.run(
            automation_id,
            lambda: self._client.automations.execute(automation_id, payload or {}),
        )

    async def execute(self, automation_id: str, payload: dict[str, Any] | None = None) -> Any:
        result, _ = await self.run(automation_id, payload)
        return result


def _active_plan(version: WorkflowVersion | None) -> AutomationPlan | None:
    if version is None or not version.plan:
        return None
    try:
        return AutomationPlan.model_validate(version.plan)
    except ValidationError:
        return None


class AutomationOrchestrator:
    def __init__(
        self,
        *,
        planner: LLMPlanGenerator,
        client: ActivePiecesClient,
        runner: RetryingAutomationRunner,
    ) -> None:
        self._planner = planner
        self._client = client
        self._runner = runner

    @property
    def runner(self) -> RetryingAutomationRunner:
        return self._runner

    async def plan(self, prompt: str, *, user_id: str | None = None, trace_id: str | None = None) -> AutomationPlan:
        return await self._planner.generate(user_request=prompt, user_id=user_id, trace_id=trace_id)

    async def create_automation(
        self,
        *,
        prompt: str,
        user_id: str,
        versions: VersionRepository,
        plan: AutomationPlan | None = None,
    ) -> CreatedAutomation:
        trace_id = new_trace_id()
        plan = plan or await self.plan(prompt, user_id=user_id, trace_id=trace_id)
        payload = plan.to_flow_payload()

        flow = await self._client.automations.create(payload)
        if not isinstance(flow, dict) or not flow.get("id"):
            raise ActivePiecesError(502, "ActivePieces did not return a flow id")
        automation_id = str(flow["id"])

        version = versions.create(
            automation_id=automation_id,
            prompt=prompt,
            plan=plan.model_dump(mode="json"),
            config=payload,
            created_by=user_id,
            change_note="Initial version",
            activate=True,
        )
        log_event("automation.created", trace_id=trace_id, automation_id=automation_id, version=version.version_number)
        return CreatedAutomation(automation_id, flow, plan, version)

    async def update_automation(
        self,
        automation_id: str,
        *,
        prompt: str,
        user_id: str,
        versions: VersionRepository,
        plan: AutomationPlan | None = None,
        change_note: str | None = None,
    ) -> UpdatedAutomation:
        """Re-plan an automation and store the result as the new active version.

        Nothing is written when the new plan matches the active one.
        """
        trace_id = new_trace_id()
        plan = plan or await self.plan(prompt, user_id=user_id, trace_id=trace_id)

        current = _active_plan(versions.get_active(automation_id))
        old = plan_to_diffable(current) if current else DiffablePlan(name="")
        diff = compute_plan_diff(old, plan_to_diffable(plan))
        if diff.is_empty:
            log_event("automation.update.noop", trace_id=trace_id, automation_id=automation_id)
            return UpdatedAutomation(automation_id, plan, diff, None)

        payload = plan.to_flow_payload()
        await self._client.automations.update(automation_id, payload)
        version = versions.create(
            automation_id=automation_id,
            prompt=prompt,
            plan=plan.model_dump(mode="json"),
            config=payload,
            created_by=user_id,
            change_note=change_note or diff.readable_summary.splitlines()[0],
            activate=True,
        )
        log_event(
            "automation.updated",
            trace_id=trace_id,
            automation_id=automation_id,
            version=version.version_number,
            major=diff.has_major_changes,
        )
        return UpdatedAutomation(automation_id, plan, diff, version)

    async def execute_automation(
        self,
        automation_id: str,
        *,
        user_id: str,
        versions: VersionRepository,
        approvals: ApprovalService,
        payload: dict[str, Any] | None = None,
    ) -> ExecutionOutcome:
        """Run an automation, or park it behind an approval request when its plan asks for one."""
        plan = _active_plan(versions.get_active(automation_id))

        if plan is not None and plan.requires_approval:
            request = approvals.request_approval(
                automation_id=automation_id,
                user_id=user_id,
                trigger_data=payload or {},
                actions_preview=[a.model_dump() for a in plan.actions],
                timeout_ms=plan.approval.approval_timeout_ms,
                approvers=plan.approval.approval_recipients,
            )
            return ExecutionOutcome("approval_required", automation_id, approval=request)

        result, tracking = await self._runner.run(automation_id, payload)
        return ExecutionOutcome("executed", automation_id, result=result, tracking=tracking)

    async def rollback(self, automation_id: str, version_id: str, *, versions: VersionRepository) -> WorkflowVersion:
        version = versions.get(version_id)
        if version.automation_id != automation_id:
            raise VersionNotFoundError(f"Version {version_id} does not belong to automation {automation_id}")

        if version.config:
            await self._client.automations.update(automation_id, version.config)
        activated = versions.activate(version_id)
        log_event("automation.rolled_back", automation_id=automation_id, version=activated.version_number)
        return activated
