# ============================================================
# Business/domain entities
# ============================================================
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .models import ApprovalStatus

SortOrderLiteral = Literal["asc", "desc"]
ApprovalSortFieldLiteral = Literal["requested_at", "expires_at", "status", "automation_id"]

T = TypeVar("T")


@dataclass(frozen=True)
class ApprovalFilters:
    status: Optional[ApprovalStatus] = None
    user_id: Optional[str] = None
    automation_id: Optional[str] = None
    approved_by: Optional[str] = None


@dataclass(frozen=True)
class Pagination:
    limit: int = 50
    offset: int = 0


@dataclass(frozen=True)
class Sorting:
    sort_by: ApprovalSortFieldLiteral = "requested_at"
    sort_order: SortOrderLiteral = "desc"


@dataclass(frozen=True)
class PageMeta:
    total: int
    limit: int
    offset: int
    has_next: bool
    has_previous: bool


@dataclass(frozen=True)
class PageResult(Generic[T]):
    data: list[T]
    meta: PageMeta


class ApprovalRequest(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    automation_id: str
    automation_run_id: str
    trigger_data: dict[str, Any] | None = None
    actions_preview: list[dict[str, Any]] | None = None
    approvers: list[str] = Field(default_factory=list)
    status: ApprovalStatus
    requested_at: datetime | None = None
    requested_by_user_id: str
    approved_at: datetime | None = None
    approved_by_user_id: str | None = None
    approval_method: str | None = None
    rejection_reason: str | None = None
    auto_execute_at: datetime | None = None
    expires_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == ApprovalStatus.PENDING


class ApprovalHistoryEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    approval_request_id: str
    action: str
    actor_user_id: str | None = None
    reason: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="metadata_")
    created_at: datetime | None = None
