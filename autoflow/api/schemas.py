from datetime import datetime
from enum import Enum
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, EmailStr, Field

from autoflow.domain.approval.models import ApprovalStatus
from autoflow.domain.plans import AutomationPlan


class SortOrder(str, Enum):
    asc = "asc"
    desc = "desc"


class ApprovalSortField(str, Enum):
    requested_at = "requested_at"
    expires_at = "expires_at"
    status = "status"
    automation_id = "automation_id"


class ApprovalQuery(BaseModel):
    """
    Query filters for listing approval requests.

    All fields are optional.
    Defaults list the caller's pending requests, soonest deadline first.
    """

    status: Optional[ApprovalStatus] = Field(
        default=ApprovalStatus.PENDING,
        description="Filter approvals by status"
    )
    automation_id: Optional[str] = Field(
        default=None,
        description="Only requests for this automation"
    )
    approved_by: Optional[str] = Field(
        default=None,
        description="User who approved or rejected the request"
    )

    # Pagination
    limit: int = Field(default=50, ge=1, le=100, description="Maximum number of records to return (1-100)")
    offset: int = Field(default=0, ge=0, description="Number of records to skip (pagination)")

    # Sorting
    sort_by: ApprovalSortField = Field(default=ApprovalSortField.expires_at, description="Field to sort by")
    sort_order: SortOrder = Field(default=SortOrder.asc, description="Sort order (asc or desc)")


T = TypeVar("T")


class PaginationMeta(BaseModel):
    total: int
    limit: int
    offset: int
    has_next: bool
    has_previous: bool


class PaginatedResponse(BaseModel, Generic[T]):
    data: List[T]
    meta: PaginationMeta


# ---------------- auth ----------------

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class RegisterRequest(LoginRequest):
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class SessionStatus(BaseModel):
    authenticated: bool
    remaining_seconds: int
    should_refresh: bool


# ---------------- plans ----------------

class PlanRequest(BaseModel):
    prompt: str = Field(min_length=1, max_length=4000)


class AnalyzeRequest(BaseModel):
    description: str = Field(min_length=1, max_length=4000)


class ApiKeyHelpResponse(BaseModel):
    service: str
    instructions: str


class PlanDiffRequest(BaseModel):
    old_plan: AutomationPlan
    new_plan: AutomationPlan


class PlanDiffResponse(BaseModel):
    name_changed: bool
    description_changed: bool
    triggers_added: list[dict[str, Any]]
    triggers_removed: list[dict[str, Any]]
    actions_added: list[dict[str, Any]]
    actions_removed: list[dict[str, Any]]
    approval_settings_changed: bool
    has_major_changes: bool
    readable_summary: str
    review: str


# ---------------- automations ----------------

class CreateAutomationRequest(BaseModel):
    prompt: str = Field(min_length=1, max_length=4000)
    plan: Optional[AutomationPlan] = Field(
        default=None,
        description="Reviewed plan; generated from the prompt when omitted"
    )


class UpdateAutomationRequest(CreateAutomationRequest):
    change_note: Optional[str] = None


class ExecuteRequest(BaseModel):
    payload: dict[str, Any] = Field(default_factory=dict)


class SummaryRequest(BaseModel):
    automation_name: str
    logs: list[dict[str, Any]] = Field(default_factory=list)


# ---------------- approvals ----------------

class DecisionRequest(BaseModel):
    reason: Optional[str] = None


class ApprovalCountdown(BaseModel):
    approval_id: str
    auto_execute_at: Optional[datetime]
    seconds_remaining: int


# ---------------- versions ----------------

class SnapshotRequest(BaseModel):
    change_note: Optional[str] = None


class ImportVersionRequest(BaseModel):
    exported: str = Field(min_length=2, description="JSON produced by the export endpoint")


# ---------------- connections ----------------

class ConnectionCreate(BaseModel):
    name: str = Field(min_length=1)
    app_name: str = Field(min_length=1)
    config: dict[str, Any] = Field(default_factory=dict)


# ---------------- retry ----------------

class ErrorClassificationRequest(BaseModel):
    error: str
    error_code: Optional[str] = None
    failed_attempts: int = Field(default=0, ge=0)


class ErrorClassification(BaseModel):
    retryable: bool
    policy: str
    max_retries: int
    next_delay_ms: float
