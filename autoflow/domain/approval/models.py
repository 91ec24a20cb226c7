import enum
import uuid

from sqlalchemy import Column, String, DateTime, JSON, Enum, Text, Integer, ForeignKey, Index

from autoflow.db.base import Base, utcnow


class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"
    AUTO_EXECUTED = "auto_executed"


def _uuid() -> str:
    return str(uuid.uuid4())


_status_enum = Enum(
    ApprovalStatus,
    name="approval_status",
    native_enum=False,
    values_callable=lambda e: [m.value for m in e],
)


class ApprovalRequestRecord(Base):
    __tablename__ = "approval_requests"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String, nullable=False, index=True)
    automation_id = Column(String, nullable=False)
    automation_run_id = Column(String(36), nullable=False, default=_uuid)
    trigger_data = Column(JSON)           # What triggered the automation
    actions_preview = Column(JSON)        # Actions that will run once approved
    approvers = Column(JSON, default=list)  # user ids or emails allowed to decide
    status = Column(_status_enum, nullable=False, default=ApprovalStatus.PENDING)
    requested_at = Column(DateTime, default=utcnow)
    requested_by_user_id = Column(String, nullable=False)
    approved_at = Column(DateTime, nullable=True)
    approved_by_user_id = Column(String, nullable=True)
    approval_method = Column(String, nullable=True)  # manual | auto
    rejection_reason = Column(Text, nullable=True)
    auto_execute_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_approval_requests_automation", "automation_id", "status"),
        Index("idx_approval_requests_expires_at", "status", "auto_execute_at"),
    )


class ApprovalHistoryRecord(Base):
    __tablename__ = "approval_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    approval_request_id = Column(
        String(36), ForeignKey("approval_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    action = Column(String, nullable=False)  # requested, approved, rejected, expired, auto_executed
    actor_user_id = Column(String, nullable=True)
    reason = Column(Text, nullable=True)
    metadata_ = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime, default=utcnow)
