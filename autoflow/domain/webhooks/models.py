import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, JSON, String, Text

from autoflow.db.base import Base, utcnow


def _uuid() -> str:
    return str(uuid.uuid4())


class WebhookConfigRecord(Base):
    __tablename__ = "webhook_configurations"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String, nullable=False)
    automation_id = Column(String, nullable=False)
    direction = Column(String, nullable=False, default="outgoing")  # incoming | outgoing
    url = Column(Text, nullable=False, default="")
    method = Column(String, nullable=False, default="POST")
    headers = Column(JSON, default=dict)
    body_template = Column(Text, nullable=True)
    auth_type = Column(String, nullable=False, default="none")  # none, basic, bearer, custom_header
    auth_config = Column(JSON, nullable=True)
    retry_enabled = Column(Boolean, nullable=False, default=True)
    retry_max_attempts = Column(Integer, nullable=False, default=3)
    retry_backoff = Column(String, nullable=False, default="exponential")  # linear | exponential
    timeout_ms = Column(Integer, nullable=False, default=30000)
    secret = Column(Text, nullable=True)  # HMAC key
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_webhook_configs_user_automation", "user_id", "automation_id"),
    )


class WebhookLogRecord(Base):
    __tablename__ = "webhook_logs"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String, nullable=True)
    automation_id = Column(String, nullable=False, index=True)
    webhook_config_id = Column(
        String(36), ForeignKey("webhook_configurations.id", ondelete="SET NULL"), nullable=True
    )
    direction = Column(String, nullable=False)  # incoming | outgoing
    url = Column(Text, nullable=False)
    method = Column(String, nullable=False)
    request_headers = Column(JSON)
    request_body = Column(JSON)
    response_status = Column(Integer, nullable=True)
    response_body = Column(Text, nullable=True)  # first 10 KB
    processing_status = Column(String, nullable=False)  # success, failed, retrying, timeout
    error_message = Column(Text, nullable=True)
    retry_count = Column(Integer, nullable=False, default=0)
    retry_attempts = Column(JSON, default=list)  # [{timestamp, status, error}]
    processing_duration_ms = Column(Integer, nullable=True)
    signature_verified = Column(Boolean, nullable=True)  # NULL when unsigned
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        Index("idx_webhook_logs_status", "processing_status", "created_at"),
    )
