# ============================================================
# DB access layer
# ============================================================
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from autoflow.core.errors import WebhookNotFoundError
from autoflow.domain.webhooks.entities import WebhookConfig, WebhookConfigCreate, WebhookLog
from autoflow.domain.webhooks.models import WebhookConfigRecord, WebhookLogRecord

RESPONSE_BODY_LIMIT = 10 * 1024


class WebhookRepository:
    def __init__(self, db: Session):
        self.db = db

    def create_config(self, user_id: str, data: WebhookConfigCreate) -> WebhookConfig:
        record = WebhookConfigRecord(
            user_id=user_id,
            **data.model_dump(exclude={"url"}),
            url=str(data.url) if data.url else "",
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return WebhookConfig.model_validate(record)

    def _config(self, config_id: str, user_id: str | None = None) -> WebhookConfigRecord:
        record = self.db.get(WebhookConfigRecord, config_id)
        # Another user's config is reported as missing, not forbidden.
        if record is None or (user_id is not None and record.user_id != user_id):
            raise WebhookNotFoundError(f"Webhook {config_id} not found")
        return record

    def get_config(self, config_id: str, user_id: str | None = None) -> WebhookConfig:
        return WebhookConfig.model_validate(self._config(config_id, user_id))

    def list_configs(
            self,
            automation_id: str | None = None,
            direction: str | None = None,
            user_id: str | None = None,
    ) -> list[WebhookConfig]:
        query = select(WebhookConfigRecord).order_by(WebhookConfigRecord.created_at.desc())
        if user_id is not None:
            query = query.where(WebhookConfigRecord.user_id == user_id)
        if automation_id:
            query = query.where(WebhookConfigRecord.automation_id == automation_id)
        if direction:
            query = query.where(WebhookConfigRecord.direction == direction)
        return [WebhookConfig.model_validate(r) for r in self.db.execute(query).scalars()]

    def get_inbound(self, automation_id: str) -> WebhookConfig:
        """Incoming endpoint configured for an automation."""
        configs = self.list_configs(automation_id=automation_id, direction="incoming")
        if not configs:
            raise WebhookNotFoundError("Webhook not found or automation is inactive")
        return configs[0]

    def delete_config(self, config_id: str, user_id: str | None = None) -> None:
        self.db.delete(self._config(config_id, user_id))
        self.db.commit()

    def add_log(self, **values: Any) -> WebhookLog:
        body = values.get("response_body")
        if body is not None:
            values["response_body"] = body[:RESPONSE_BODY_LIMIT]
        record = WebhookLogRecord(**values)
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return WebhookLog.model_validate(record)

    def list_logs(
            self,
            automation_id: str | None = None,
            direction: str | None = None,
            limit: int = 50,
            user_id: str | None = None,
    ) -> list[WebhookLog]:
        query = select(WebhookLogRecord).order_by(WebhookLogRecord.created_at.desc()).limit(limit)
        if user_id is not None:
            query = query.where(WebhookLogRecord.user_id == user_id)
        if automation_id:
            query = query.where(WebhookLogRecord.automation_id == automation_id)
        if direction:
            query = query.where(WebhookLogRecord.direction == direction)
        return [WebhookLog.model_validate(r) for r in self.db.execute(query).scalars()]
