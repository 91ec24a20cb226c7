from fastapi import Depends
from sqlalchemy.orm import Session

from autoflow.api.core.container import Container, get_container
from autoflow.db.connection import get_db
from autoflow.domain.approval import ApprovalRequestRepository, ApprovalService
from autoflow.domain.versioning import VersionRepository
from autoflow.domain.webhooks import WebhookRepository


def get_version_repo(db: Session = Depends(get_db)) -> VersionRepository:
    return VersionRepository(db)


def get_approval_repo(db: Session = Depends(get_db)) -> ApprovalRequestRepository:
    return ApprovalRequestRepository(db)


def get_webhook_repo(db: Session = Depends(get_db)) -> WebhookRepository:
    return WebhookRepository(db)


def get_approval_service(
    repo: ApprovalRequestRepository = Depends(get_approval_repo),
    container: Container = Depends(get_container),
) -> ApprovalService:
    return ApprovalService(
        repo,
        container.runner,
        default_timeout_ms=container.settings.default_approval_timeout_ms,
    )
