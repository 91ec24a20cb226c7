from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, model_validator

Direction = Literal["incoming", "outgoing"]
HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]
AuthType = Literal["none", "basic", "bearer", "custom_header"]
Backoff = Literal["linear", "exponential"]
ProcessingStatus = Literal["success", "failed", "retrying", "timeout"]


class WebhookConfigCreate(BaseModel):
    automation_id: str
    direction: Direction = "outgoing"
    url: HttpUrl | None = None
    method: HttpMethod = "POST"
    headers: dict[str, str] = Field(default_factory=dict)
    body_template: str | None = None
    auth_type: AuthType = "none"
    auth_config: dict[str, Any] | None = None
    retry_enabled: bool = True
    retry_max_attempts: int = Field(default=3, ge=1, le=10)
    retry_backoff: Backoff = "exponential"
    timeout_ms: int = Field(default=30000, gt=0)
    secret: str | None = None

    @model_validator(mode="after")
    def _outgoing_needs_url(self) -> "WebhookConfigCreate":
        if self.direction == "outgoing" and self.url is None:
            raise ValueError("url is required for outgoing webhooks")
        return self


class WebhookConfig(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    automation_id: str
    direction: Direction
    url: str
    method: HttpMethod
    headers: dict[str, str] = Field(default_factory=dict)
    body_template: str | None = None
    auth_type: AuthType = "none"
    auth_config: dict[str, Any] | None = None
    retry_enabled: bool = True
    retry_max_attempts: int = 3
    retry_backoff: Backoff = "exponential"
    timeout_ms: int = 30000
    secret: str | None = None
    created_at: datetime | None = None


class WebhookLog(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str | None = None
    automation_id: str
    webhook_config_id: str | None = None
    direction: Direction
    url: str
    method: str
    request_headers: dict[str, Any] | None = None
    request_body: Any = None
    response_status: int | None = None
    response_body: str | None = None
    processing_status: ProcessingStatus
    error_message: str | None = None
    retry_count: int = 0
    retry_attempts: list[dict[str, Any]] = Field(default_factory=list)
    processing_duration_ms: int | None = None
    signature_verified: bool | None = None
    created_at: datetime | None = None


class WebhookConfigPublic(BaseModel):
    """Config as returned to its owner; credentials stay server-side."""

    id: str
    user_id: str
    automation_id: str
    direction: Direction
    url: str
    method: HttpMethod
    headers: dict[str, str] = Field(default_factory=dict)
    body_template: str | None = None
    auth_type: AuthType = "none"
    retry_enabled: bool = True
    retry_max_attempts: int = 3
    retry_backoff: Backoff = "exponential"
    timeout_ms: int = 30000
    has_secret: bool = False
    created_at: datetime | None = None

    @classmethod
    def from_config(cls, config: WebhookConfig) -> "WebhookConfigPublic":
        return cls(
            **config.model_dump(exclude={"secret", "auth_config"}),
            has_secret=bool(config.secret),
        )
