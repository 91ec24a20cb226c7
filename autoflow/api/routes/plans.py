from fastapi import APIRouter, Depends

from autoflow.api.core.auth import CurrentUser, get_current_user
from autoflow.api.core.container import Container, get_container
from autoflow.api.errors import DOMAIN_ERRORS, http_error
from autoflow.api.schemas import (
    AnalyzeRequest,
    ApiKeyHelpResponse,
    PlanDiffRequest,
    PlanDiffResponse,
    PlanRequest,
)
from autoflow.domain.plans import (
    AutomationAnalysis,
    AutomationPlan,
    compute_plan_diff,
    format_plan_for_review,
    plan_to_diffable,
)

router = APIRouter(prefix="/plans", tags=["Plans"])


@router.post(
    "",
    summary="Plan an automation",
    description="Turns a natural-language description into a trigger/actions plan.",
    response_model=AutomationPlan,
)
async def plan_automation(
    body: PlanRequest,
    user: CurrentUser = Depends(get_current_user),
    container: Container = Depends(get_container),
):
    try:
        return await container.orchestrator.plan(body.prompt, user_id=user.id)
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc


@router.post("/analyze", response_model=AutomationAnalysis)
async def analyze_automation(
    body: AnalyzeRequest,
    user: CurrentUser = Depends(get_current_user),
    container: Container = Depends(get_container),
):
    try:
        return await container.analyzer.analyze(body.description)
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc


@router.get("/api-key-help/{service}", response_model=ApiKeyHelpResponse)
async def api_key_help(
    service: str,
    user: CurrentUser = Depends(get_current_user),
    container: Container = Depends(get_container),
):
    instructions = await container.api_key_advisor.instructions(service)
    return ApiKeyHelpResponse(service=service, instructions=instructions)


@router.post("/diff", response_model=PlanDiffResponse)
async def diff_plans(body: PlanDiffRequest, user: CurrentUser = Depends(get_current_user)):
    """Compare two plans before an edit is saved."""
    new_plan = plan_to_diffable(body.new_plan)
    diff = compute_plan_diff(plan_to_diffable(body.old_plan), new_plan)
    return PlanDiffResponse(
        name_changed=diff.name_changed,
        description_changed=diff.description_changed,
        triggers_added=diff.triggers_added,
        triggers_removed=diff.triggers_removed,
        actions_added=diff.actions_added,
        actions_removed=diff.actions_removed,
        approval_settings_changed=diff.approval_settings_changed,
        has_major_changes=diff.has_major_changes,
        readable_summary=diff.readable_summary,
        review=format_plan_for_review(new_plan),
    )
