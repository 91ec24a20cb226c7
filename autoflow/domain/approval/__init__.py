"""Approval requests: persistence, decisions and timeout auto-execution."""
from .models import ApprovalStatus, ApprovalRequestRecord, ApprovalHistoryRecord
from .entities import (
    ApprovalFilters,
    ApprovalHistoryEntry,
    ApprovalRequest,
    PageMeta,
    PageResult,
    Pagination,
    Sorting,
)
from .repository import ApprovalRequestRepository, ApprovalRequestRepositoryProtocol
from .service import ApprovalService, AutomationRunner, is_participant, seconds_until_auto_execute
from .poller import ApprovalPoller
