from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from autoflow.api.core.auth import CurrentUser, get_current_user
from autoflow.api.core.container import Container, get_container
from autoflow.api.core.deps import get_webhook_repo
from autoflow.api.errors import DOMAIN_ERRORS, http_error
from autoflow.domain.webhooks import (
    WebhookConfigCreate,
    WebhookConfigPublic,
    WebhookDispatcher,
    WebhookLog,
    WebhookReceiver,
    WebhookRepository,
)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post("", status_code=201, response_model=WebhookConfigPublic)
async def create_webhook(
    body: WebhookConfigCreate,
    user: CurrentUser = Depends(get_current_user),
    repo: WebhookRepository = Depends(get_webhook_repo),
):
    return WebhookConfigPublic.from_config(repo.create_config(user.id, body))


@router.get("", response_model=list[WebhookConfigPublic])
async def list_webhooks(
    automation_id: str | None = Query(default=None),
    user: CurrentUser = Depends(get_current_user),
    repo: WebhookRepository = Depends(get_webhook_repo),
):
    return [
        WebhookConfigPublic.from_config(c)
        for c in repo.list_configs(automation_id=automation_id, user_id=user.id)
    ]


@router.get("/logs", response_model=list[WebhookLog], summary="Delivery history, newest first")
async def list_logs(
    automation_id: str | None = Query(default=None),
    direction: str | None = Query(default=None, pattern="^(incoming|outgoing)$"),
    limit: int = Query(default=50, ge=1, le=200),
    user: CurrentUser = Depends(get_current_user),
    repo: WebhookRepository = Depends(get_webhook_repo),
):
    return repo.list_logs(automation_id=automation_id, direction=direction, limit=limit, user_id=user.id)


@router.delete("/{webhook_id}", status_code=204)
async def delete_webhook(
    webhook_id: str,
    user: CurrentUser = Depends(get_current_user),
    repo: WebhookRepository = Depends(get_webhook_repo),
):
    try:
        repo.delete_config(webhook_id, user_id=user.id)
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc


@router.post("/{webhook_id}/deliver", response_model=WebhookLog, summary="Send a payload to an outgoing webhook")
async def deliver(
    webhook_id: str,
    payload: dict,
    user: CurrentUser = Depends(get_current_user),
    repo: WebhookRepository = Depends(get_webhook_repo),
):
    try:
        config = repo.get_config(webhook_id, user_id=user.id)
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc
    if config.direction != "outgoing":
        raise HTTPException(status_code=400, detail="Only outgoing webhooks can be delivered")
    return await WebhookDispatcher(repo).deliver(config, payload)


@router.post("/incoming/{automation_id}", summary="Public endpoint that triggers an automation")
async def receive(
    automation_id: str,
    request: Request,
    response: Response,
    repo: WebhookRepository = Depends(get_webhook_repo),
    container: Container = Depends(get_container),
):
    receiver = WebhookReceiver(repo, container.runner, container.rate_limiter)
    try:
        received = await receiver.receive(
            automation_id,
            await request.body(),
            dict(request.headers),
            method=request.method,
            url=str(request.url),
        )
    except DOMAIN_ERRORS as exc:
        raise http_error(exc) from exc

    decision = received.rate_limit
    response.headers["X-RateLimit-Limit"] = str(decision.limit)
    response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
    response.headers["X-RateLimit-Reset"] = str(int(decision.reset_at))
    return {
        "success": True,
        "message": "Webhook received",
        "automation_id": automation_id,
        "log_id": received.log.id,
        "timestamp": received.log.created_at,
    }
