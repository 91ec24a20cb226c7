from fastapi import APIRouter, Depends

from autoflow.api.core.auth import CurrentUser, get_current_user
from autoflow.api.core.deps import get_approval_repo, get_approval_service
from autoflow.api.errors import DOMAIN_ERRORS, http_error
from autoflow.api.schemas import (
    ApprovalCountdown,
    ApprovalQuery,
    DecisionRequest,
    PaginatedResponse,
    PaginationMeta,
)
from autoflow.domain.approval import (
    ApprovalFilters,
    ApprovalHistoryEntry,
    ApprovalRequest,
    ApprovalRequestRepository,
    ApprovalService,
    Pagination,
    Sorting,
    seconds_until_auto_execute,
)

router = APIRouter(prefix="/approvals", tags=["Approvals"])


@router.get(
    "",
    summary="List approval requests",
    description="Returns the caller's approval requests filtered by status and automation, paginated.",
    response_model=PaginatedResponse[ApprovalRequest],
)
async def get_approvals(
    q: ApprovalQuery = Depends(),
    user: CurrentUser = Depends(get_current_user),
    approval_repository: ApprovalRequestRepository = Depends(get_approval_repo),
):
    """
    List approval requests with optional filters.

    Query Parameters:
    - status: Filter by approval status (default: pending)
    - automation_id: Filter by automation
    - approved_by: Filter by approver/rejector
    - limit: Page size (default: 50)
    - offset: Pagination offset (default: 0)
    """
    filters = ApprovalFilters(
        status=q.status,
        user_id=user.id,
        automation_id=q.automation_id,
        approved_by=q.approved_by,
    )
    paging = Pagination(limit=q.limit, offset=q.offset)
    sorting = Sorting(sort_by=q.sort_by.value, sort_order=q.sort_order.value)

    page = approval_repository.get_all(filters=filters, paging=paging, sorting=sorting)

    return PaginatedResponse(
        data=page.data,
        meta=PaginationMeta(
            total=page.meta.total,
            limit=page.meta.limit,
            offset=page.meta.offset,
            has_next=page.meta.has_next,
            has_previous=page.meta.has_previous,
        ),
    )


@router.post("/check-expired", summary="Auto-execute approvals whose timeout elapsed")
async def check_expired(
    user: CurrentUser = Depends(get_current_user),
    service: ApprovalService = Depends(get_approval_service),
):
    executed = await service.check_and_execute_expired()
    return {"executed": executed}


@router.get("/{approval_id}", response_model=ApprovalRequest)
async def get_approval(
    approval_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: ApprovalService = Depends(get_approval_service),
):
    """Get a specific approval (owner or listed approver only)."""
    try:
        return service.get_for(approval_id, actor_id=user.id, actor_email=user.email)
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc


@router.get("/{approval_id}/history", response_model=list[ApprovalHistoryEntry])
async def get_approval_history(
    approval_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: ApprovalService = Depends(get_approval_service),
):
    try:
        service.get_for(approval_id, actor_id=user.id, actor_email=user.email)
        return service.repository.history(approval_id)
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc


@router.get("/{approval_id}/countdown", response_model=ApprovalCountdown)
async def get_countdown(
    approval_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: ApprovalService = Depends(get_approval_service),
):
    try:
        request = service.get_for(approval_id, actor_id=user.id, actor_email=user.email)
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc
    return ApprovalCountdown(
        approval_id=request.id,
        auto_execute_at=request.auto_execute_at,
        seconds_remaining=seconds_until_auto_execute(request) if request.is_pending else 0,
    )


@router.post("/{approval_id}/approve")
async def approve_workflow(
    approval_id: str,
    body: DecisionRequest | None = None,
    user: CurrentUser = Depends(get_current_user),
    service: ApprovalService = Depends(get_approval_service),
):
    try:
        request, result = await service.approve(
            approval_id,
            actor_id=user.id,
            actor_email=user.email,
            reason=body.reason if body else None,
        )
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc
    return {"status": "EXECUTED", "request": request, "result": result}


@router.post("/{approval_id}/reject", response_model=ApprovalRequest)
async def reject_workflow(
    approval_id: str,
    body: DecisionRequest | None = None,
    user: CurrentUser = Depends(get_current_user),
    service: ApprovalService = Depends(get_approval_service),
):
    try:
        return service.reject(
            approval_id,
            actor_id=user.id,
            actor_email=user.email,
            reason=body.reason if body else None,
        )
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc
