from dataclasses import asdict

from fastapi import APIRouter, Depends

from autoflow.api.core.auth import CurrentUser, get_current_user
from autoflow.api.core.container import Container, get_container
from autoflow.api.core.deps import get_approval_service, get_version_repo
from autoflow.api.errors import DOMAIN_ERRORS, http_error
from autoflow.api.schemas import (
    CreateAutomationRequest,
    ExecuteRequest,
    SummaryRequest,
    UpdateAutomationRequest,
)
from autoflow.domain.approval import ApprovalService
from autoflow.domain.retry import get_retry_recommendation
from autoflow.domain.summaries import ExecutionSummary
from autoflow.domain.versioning import VersionRepository

from ._utils import items

router = APIRouter(prefix="/automations", tags=["Automations"])


@router.get("", summary="List automations")
async def list_automations(
    user: CurrentUser = Depends(get_current_user),
    container: Container = Depends(get_container),
):
    try:
        return items(await container.activepieces.automations.list())
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc


@router.post("", status_code=201, summary="Create an automation from a prompt or a reviewed plan")
async def create_automation(
    body: CreateAutomationRequest,
    user: CurrentUser = Depends(get_current_user),
    versions: VersionRepository = Depends(get_version_repo),
    container: Container = Depends(get_container),
):
    try:
        created = await container.orchestrator.create_automation(
            prompt=body.prompt,
            user_id=user.id,
            versions=versions,
            plan=body.plan,
        )
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc
    return {
        "automation_id": created.automation_id,
        "flow": created.flow,
        "plan": created.plan,
        "version": created.version,
    }


@router.get("/{automation_id}")
async def get_automation(
    automation_id: str,
    user: CurrentUser = Depends(get_current_user),
    container: Container = Depends(get_container),
):
    try:
        return await container.activepieces.automations.get(automation_id)
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc


@router.put("/{automation_id}", summary="Re-plan an automation and store a new version")
async def update_automation(
    automation_id: str,
    body: UpdateAutomationRequest,
    user: CurrentUser = Depends(get_current_user),
    versions: VersionRepository = Depends(get_version_repo),
    container: Container = Depends(get_container),
):
    try:
        updated = await container.orchestrator.update_automation(
            automation_id,
            prompt=body.prompt,
            user_id=user.id,
            versions=versions,
            plan=body.plan,
            change_note=body.change_note,
        )
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc
    return {
        "automation_id": automation_id,
        "plan": updated.plan,
        "changed": updated.version is not None,
        "has_major_changes": updated.diff.has_major_changes,
        "summary": updated.diff.readable_summary,
        "version": updated.version,
    }


@router.delete("/{automation_id}", status_code=204)
async def delete_automation(
    automation_id: str,
    user: CurrentUser = Depends(get_current_user),
    container: Container = Depends(get_container),
):
    try:
        await container.activepieces.automations.delete(automation_id)
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc


@router.post("/{automation_id}/execute", summary="Run now, or request approval when the plan requires it")
async def execute_automation(
    automation_id: str,
    body: ExecuteRequest,
    user: CurrentUser = Depends(get_current_user),
    versions: VersionRepository = Depends(get_version_repo),
    approvals: ApprovalService = Depends(get_approval_service),
    container: Container = Depends(get_container),
):
    try:
        outcome = await container.orchestrator.execute_automation(
            automation_id,
            user_id=user.id,
            versions=versions,
            approvals=approvals,
            payload=body.payload,
        )
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc

    if outcome.status == "approval_required":
        return {"status": outcome.status, "approval": outcome.approval}
    return {
        "status": outcome.status,
        "result": outcome.result,
        "retry_summary": asdict(outcome.tracking.summary()),
        "recommendation": get_retry_recommendation(outcome.tracking),
    }


@router.get("/{automation_id}/executions")
async def list_executions(
    automation_id: str,
    user: CurrentUser = Depends(get_current_user),
    container: Container = Depends(get_container),
):
    try:
        return items(await container.activepieces.automations.executions(automation_id))
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc


@router.post(
    "/{automation_id}/executions/{execution_id}/summary",
    response_model=ExecutionSummary,
    summary="Human-friendly summary of an execution's logs",
)
async def summarize_execution(
    automation_id: str,
    execution_id: str,
    body: SummaryRequest,
    user: CurrentUser = Depends(get_current_user),
    container: Container = Depends(get_container),
):
    return await container.summarizer.summarize(body.automation_name, execution_id, body.logs)


@router.post("/executions/{execution_id}/retry")
async def retry_execution(
    execution_id: str,
    user: CurrentUser = Depends(get_current_user),
    container: Container = Depends(get_container),
):
    try:
        return await container.activepieces.executions.retry(execution_id)
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc
