"""Human-in-the-loop approval workflow.

An approval request holds an automation run until the owner (or one of the
listed approvers) decides, or until its timeout elapses and the poller
auto-executes it.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Protocol

from autoflow.core.errors import ApprovalError, ApprovalNotFoundError
from autoflow.db.base import utcnow
from autoflow.observability.tracing import log_event

from .entities import ApprovalRequest
from .repository import ApprovalRequestRepositoryProtocol


class AutomationRunner(Protocol):
    async def execute(self, automation_id: str, payload: dict[str, Any] | None = None) -> Any:
        ...


def seconds_until_auto_execute(request: ApprovalRequest, now: datetime | None = None) -> int:
    """Whole seconds left before the request auto-executes (never negative)."""
    if request.auto_execute_at is None:
        return 0
    remaining = (request.auto_execute_at - (now or utcnow())).total_seconds()
    return math.ceil(max(0.0, remaining))


def is_participant(request: ApprovalRequest, actor_id: str, actor_email: str | None = None) -> bool:
    if actor_id == request.user_id:
        return True
    return actor_id in request.approvers or bool(actor_email and actor_email in request.approvers)


class ApprovalService:
    def __init__(
        self,
        repository: ApprovalRequestRepositoryProtocol,
        runner: AutomationRunner,
        *,
        default_timeout_ms: int = 3_600_000,
    ) -> None:
        self._repo = repository
        self._runner = runner
        self._default_timeout_ms = default_timeout_ms

    @property
    def repository(self) -> ApprovalRequestRepositoryProtocol:
        return self._repo

    def request_approval(
        self,
        *,
        automation_id: str,
        user_id: str,
        trigger_data: dict[str, Any] | None = None,
        actions_preview: list[dict[str, Any]] | None = None,
        timeout_ms: int | None = None,
        approvers: list[str] | None = None,
    ) -> ApprovalRequest:
        request = self._repo.create_pending(
            automation_id=automation_id,
            user_id=user_id,
            trigger_data=trigger_data,
            actions_preview=actions_preview,
            timeout_ms=timeout_ms or self._default_timeout_ms,
            approvers=approvers,
        )
        log_event(
            "approval.requested",
            approval_id=request.id,
            automation_id=automation_id,
            auto_execute_at=request.auto_execute_at,
        )
        return request

    def _authorize(self, request: ApprovalRequest, actor_id: str, actor_email: str | None) -> None:
        if not request.is_pending:
            raise ApprovalError("Request not found or not pending", status_code=409)
        if not is_participant(request, actor_id, actor_email):
            raise ApprovalError("Unauthorized to approve", status_code=403)

    def get_for(self, approval_id: str, *, actor_id: str, actor_email: str | None = None) -> ApprovalRequest:
        """Request as seen by the owner or a listed approver; missing for anyone else."""
        request = self._repo.get(approval_id)
        if not is_participant(request, actor_id, actor_email):
            raise ApprovalNotFoundError(f"Approval request {approval_id} not found")
        return request

    async def approve(
        self,
        approval_id: str,
        *,
        actor_id: str,
        actor_email: str | None = None,
        reason: str | None = None,
    ) -> tuple[ApprovalRequest, Any]:
        """Approve and run the automation with the captured trigger data."""
        self._authorize(self._repo.get(approval_id), actor_id, actor_email)
        approved = self._repo.mark_approved(approval_id, actor_id, reason)
        log_event("approval.approved", approval_id=approval_id, actor=actor_id)

        result = await self._runner.execute(approved.automation_id, approved.trigger_data or {})
        return approved, result

    def reject(
        self,
        approval_id: str,
        *,
        actor_id: str,
        actor_email: str | None = None,
        reason: str | None = None,
    ) -> ApprovalRequest:
        self._authorize(self._repo.get(approval_id), actor_id, actor_email)
        rejected = self._repo.mark_rejected(approval_id, actor_id, reason)
        log_event("approval.rejected", approval_id=approval_id, actor=actor_id, reason=reason)
        return rejected

    def seconds_until_auto_execute(self, approval_id: str, now: datetime | None = None) -> int:
        return seconds_until_auto_execute(self._repo.get(approval_id), now)

    async def check_and_execute_expired(self, now: datetime | None = None) -> list[str]:
        """Auto-execute every pending request whose deadline has passed.

        Returns the ids that were executed. A request whose execution fails is
        marked ``expired`` so it is never picked up again.
        """
        executed: list[str] = []
        for request in self._repo.claim_expired(now):
            try:
                await self._runner.execute(request.automation_id, request.trigger_data or {})
            except Exception as exc:
                log_event(
                    "approval.auto_execute_failed",
                    approval_id=request.id,
                    automation_id=request.automation_id,
                    error=str(exc),
                )
                self._repo.mark_expired(request.id, f"Auto-execute failed: {exc}")
                continue

            log_event(
                "approval.auto_executed",
                approval_id=request.id,
                automation_id=request.automation_id,
            )
            executed.append(request.id)
        return executed
