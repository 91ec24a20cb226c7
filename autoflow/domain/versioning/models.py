import uuid

from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String, Text, UniqueConstraint

from autoflow.db.base import Base, utcnow


class WorkflowVersionRecord(Base):
    __tablename__ = "workflow_versions"

    version_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    automation_id = Column(String, nullable=False, index=True)
    version_number = Column(Integer, nullable=False)
    prompt = Column(Text, nullable=False, default="")
    plan = Column(JSON)
    config = Column(JSON)
    created_at = Column(DateTime, default=utcnow)
    created_by = Column(String, nullable=False)
    change_note = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=False)
    is_snapshot = Column(Boolean, nullable=False, default=False)
    size = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("automation_id", "version_number", name="uq_workflow_versions_number"),
    )
