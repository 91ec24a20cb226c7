# ============================================================
# DB access layer
# ============================================================
from datetime import datetime, timedelta
from typing import Any, Protocol

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from autoflow.core.errors import ApprovalError, ApprovalNotFoundError
from autoflow.db.base import utcnow
from autoflow.domain.approval.entities import (
    ApprovalFilters,
    ApprovalHistoryEntry,
    ApprovalRequest,
    PageMeta,
    PageResult,
    Pagination,
    Sorting,
)
from autoflow.domain.approval.models import (
    ApprovalHistoryRecord,
    ApprovalRequestRecord,
    ApprovalStatus,
)


class ApprovalRequestRepositoryProtocol(Protocol):
    def create_pending(
            self,
            automation_id: str,
            user_id: str,
            trigger_data: dict[str, Any] | None,
            actions_preview: list[dict[str, Any]] | None,
            timeout_ms: int,
            approvers: list[str] | None = None,
    ) -> ApprovalRequest:
        """Create a new pending approval"""
        ...

    def get(self, approval_id: str) -> ApprovalRequest:
        """Get an approval by id"""
        ...

    def get_all(self, filters: ApprovalFilters, paging: Pagination, sorting: Sorting) -> PageResult:
        """Get approvals page"""
        ...

    def mark_approved(self, approval_id: str, approved_by: str, reason: str | None = None) -> ApprovalRequest:
        """Mark approval as approved"""
        ...

    def mark_rejected(self, approval_id: str, rejected_by: str, reason: str | None = None) -> ApprovalRequest:
        """Mark approval as rejected"""
        ...

    def claim_expired(self, now: datetime | None = None) -> list[ApprovalRequest]:
        """Move due pending approvals to auto_executed"""
        ...

    def mark_expired(self, approval_id: str, reason: str) -> ApprovalRequest:
        """Mark approval as expired"""
        ...

    def history(self, approval_id: str) -> list[ApprovalHistoryEntry]:
        """Audit trail of an approval"""
        ...


class ApprovalRequestRepository(ApprovalRequestRepositoryProtocol):
    # Allowed sort columns at persistence layer
    _SORT_COLUMNS = {
        "requested_at": ApprovalRequestRecord.requested_at,
        "expires_at": ApprovalRequestRecord.expires_at,
        "status": ApprovalRequestRecord.status,
        "automation_id": ApprovalRequestRecord.automation_id,
    }

    def __init__(self, db: Session):
        self.db = db

    def _record(self, approval_id: str) -> ApprovalRequestRecord:
        record = self.db.get(ApprovalRequestRecord, approval_id)
        if record is None:
            raise ApprovalNotFoundError(f"Approval request {approval_id} not found")
        return record

    def _add_history(
            self,
            approval_id: str,
            action: str,
            reason: str | None,
            actor: str | None = None,
            metadata: dict[str, Any] | None = None,
    ) -> None:
        self.db.add(
            ApprovalHistoryRecord(
                approval_request_id=approval_id,
                action=action,
                actor_user_id=actor,
                reason=reason,
                metadata_=metadata or {},
            )
        )

    def create_pending(
            self,
            automation_id: str,
            user_id: str,
            trigger_data: dict[str, Any] | None,
            actions_preview: list[dict[str, Any]] | None,
            timeout_ms: int,
            approvers: list[str] | None = None,
            now: datetime | None = None,
    ) -> ApprovalRequest:
        """Create a new pending approval together with its ``requested`` history row."""
        if timeout_ms <= 0:
            raise ApprovalError("Approval timeout must be positive")

        now = now or utcnow()
        deadline = now + timedelta(milliseconds=timeout_ms)
        record = ApprovalRequestRecord(
            user_id=user_id,
            automation_id=automation_id,
            trigger_data=trigger_data,
            actions_preview=actions_preview,
            approvers=list(approvers or []),
            status=ApprovalStatus.PENDING,
            requested_at=now,
            requested_by_user_id=user_id,
            expires_at=deadline,
            auto_execute_at=deadline,
        )
        self.db.add(record)
        self.db.flush()
        self._add_history(record.id, "requested", "Approval required before execution")
        self.db.commit()
        self.db.refresh(record)
        return ApprovalRequest.model_validate(record)

    def get(self, approval_id: str) -> ApprovalRequest:
        """Get an approval by id"""
        return ApprovalRequest.model_validate(self._record(approval_id))

    def get_all(
            self,
            filters: ApprovalFilters,
            paging: Pagination,
            sorting: Sorting,
    ) -> PageResult[ApprovalRequest]:
        """
        Retrieve approval requests matching the given filters.

        All filters are optional.
        Pagination is always applied.
        """
        conditions = []
        if filters.status:
            conditions.append(ApprovalRequestRecord.status == filters.status)
        if filters.user_id:
            conditions.append(ApprovalRequestRecord.user_id == filters.user_id)
        if filters.automation_id:
            conditions.append(ApprovalRequestRecord.automation_id == filters.automation_id)
        if filters.approved_by:
            conditions.append(ApprovalRequestRecord.approved_by_user_id == filters.approved_by)

        total = int(
            self.db.execute(
                select(func.count()).select_from(ApprovalRequestRecord).where(*conditions)
            ).scalar_one()
        )

        sort_col = self._SORT_COLUMNS.get(sorting.sort_by, ApprovalRequestRecord.requested_at)
        order = sort_col.asc() if sorting.sort_order == "asc" else sort_col.desc()

        rows = self.db.execute(
            select(ApprovalRequestRecord)
            .where(*conditions)
            .order_by(order)
            .limit(paging.limit)
            .offset(paging.offset)
        ).scalars()

        meta = PageMeta(
            total=total,
            limit=paging.limit,
            offset=paging.offset,
            has_next=(paging.offset + paging.limit) < total,
            has_previous=paging.offset > 0,
        )
        return PageResult(data=[ApprovalRequest.model_validate(r) for r in rows], meta=meta)

    def _decide(
            self,
            approval_id: str,
            status: ApprovalStatus,
            actor: str,
            reason: str | None,
            **values: Any,
    ) -> ApprovalRequest:
        self._record(approval_id)
        result = self.db.execute(
            update(ApprovalRequestRecord)
            .where(
                ApprovalRequestRecord.id == approval_id,
                ApprovalRequestRecord.status == ApprovalStatus.PENDING,
            )
            .values(
                status=status,
                approved_at=utcnow(),
                approved_by_user_id=actor,
                approval_method="manual",
                updated_at=utcnow(),
                **values,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            raise ApprovalError("Request not found or not pending", status_code=409)

        self._add_history(approval_id, status.value, reason, actor=actor)
        self.db.commit()
        self.db.expire_all()
        return self.get(approval_id)

    def mark_approved(self, approval_id: str, approved_by: str, reason: str | None = None) -> ApprovalRequest:
        """Mark approval as approved"""
        return self._decide(
            approval_id, ApprovalStatus.APPROVED, approved_by, reason or "Manually approved"
        )

    def mark_rejected(self, approval_id: str, rejected_by: str, reason: str | None = None) -> ApprovalRequest:
        """Mark approval as rejected"""
        return self._decide(
            approval_id,
            ApprovalStatus.REJECTED,
            rejected_by,
            reason or "Manually rejected",
            rejection_reason=reason,
        )

    def claim_expired(self, now: datetime | None = None) -> list[ApprovalRequest]:
        """Atomically move due pending approvals to ``auto_executed``.

        Each candidate is flipped with a conditional UPDATE, so when several
        pollers race only one of them sees ``rowcount == 1`` for a given row.
        """
        now = now or utcnow()
        due_ids = self.db.execute(
            select(ApprovalRequestRecord.id).where(
                ApprovalRequestRecord.status == ApprovalStatus.PENDING,
                ApprovalRequestRecord.auto_execute_at.is_not(None),
                ApprovalRequestRecord.auto_execute_at <= now,
            )
        ).scalars().all()

        claimed: list[str] = []
        for approval_id in due_ids:
            result = self.db.execute(
                update(ApprovalRequestRecord)
                .where(
                    ApprovalRequestRecord.id == approval_id,
                    ApprovalRequestRecord.status == ApprovalStatus.PENDING,
                )
                .values(
                    status=ApprovalStatus.AUTO_EXECUTED,
                    approved_at=now,
                    approval_method="auto",
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                self._add_history(approval_id, "auto_executed", "Approval timeout expired")
                claimed.append(approval_id)

        self.db.commit()
        self.db.expire_all()
        return [self.get(approval_id) for approval_id in claimed]

    def mark_expired(self, approval_id: str, reason: str) -> ApprovalRequest:
        """Mark approval as expired"""
        record = self._record(approval_id)
        record.status = ApprovalStatus.EXPIRED
        record.updated_at = utcnow()
        self._add_history(approval_id, "expired", reason)
        self.db.commit()
        self.db.refresh(record)
        return ApprovalRequest.model_validate(record)

    def history(self, approval_id: str) -> list[ApprovalHistoryEntry]:
        """Audit trail of an approval, oldest first"""
        self._record(approval_id)
        rows = self.db.execute(
            select(ApprovalHistoryRecord)
            .where(ApprovalHistoryRecord.approval_request_id == approval_id)
            .order_by(ApprovalHistoryRecord.id.asc())
        ).scalars()
        return [ApprovalHistoryEntry.model_validate(r) for r in rows]
