"""Incoming webhook handling: rate limit, signature check, execution."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any, Mapping

from autoflow.core.errors import RateLimitExceeded, WebhookSignatureError
from autoflow.domain.approval.service import AutomationRunner
from autoflow.observability.tracing import log_event

from .entities import WebhookLog
from .rate_limit import FixedWindowRateLimiter, RateLimitDecision
from .repository import WebhookRepository
from .signatures import extract_signature, verify_signature

_SENSITIVE_HEADERS = {"authorization", "cookie", "x-webhook-signature", "x-hub-signature-256"}


@dataclass(frozen=True)
class ReceivedWebhook:
    automation_id: str
    log: WebhookLog
    rate_limit: RateLimitDecision
    execution: Any = None


def parse_body(body: bytes) -> Any:
    text = body.decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except ValueError:
        return {"raw_body": text}


class WebhookReceiver:
    def __init__(
        self,
        repository: WebhookRepository,
        runner: AutomationRunner,
        limiter: FixedWindowRateLimiter,
    ) -> None:
        self._repo = repository
        self._runner = runner
        self._limiter = limiter

    async def receive(
        self,
        automation_id: str,
        body: bytes,
        headers: Mapping[str, str],
        *,
        method: str = "POST",
        url: str = "",
    ) -> ReceivedWebhook:
        config = self._repo.get_inbound(automation_id)

        decision = self._limiter.check(automation_id)
        if not decision.allowed:
            log_event("webhook.rate_limited", automation_id=automation_id)
            raise RateLimitExceeded(decision.retry_after(), decision.limit, decision.reset_at)

        payload = parse_body(body)
        safe_headers = {k: v for k, v in headers.items() if k.lower() not in _SENSITIVE_HEADERS}
        started = time.perf_counter()

        # Unsigned requests are accepted even when a secret is configured.
        signature_verified: bool | None = None
        signature = extract_signature(headers)
        if config.secret and signature:
            signature_verified = verify_signature(config.secret, body, signature)
            if not signature_verified:
                self._repo.add_log(
                    user_id=config.user_id,
                    automation_id=automation_id,
                    webhook_config_id=config.id,
                    direction="incoming",
                    url=url,
                    method=method,
                    request_headers=safe_headers,
                    request_body=payload,
                    response_status=401,
                    processing_status="failed",
                    error_message="Invalid webhook signature",
                    signature_verified=False,
                )
                raise WebhookSignatureError("Invalid webhook signature")

        log_values = dict(
            user_id=config.user_id,
            automation_id=automation_id,
            webhook_config_id=config.id,
            direction="incoming",
            url=url,
            method=method,
            request_headers=safe_headers,
            request_body=payload,
            signature_verified=signature_verified,
        )
        try:
            execution = await self._runner.execute(automation_id, {"webhook_payload": payload})
        except Exception as exc:
            self._repo.add_log(
                **log_values,
                response_status=502,
                processing_status="failed",
                error_message=str(exc),
                processing_duration_ms=int((time.perf_counter() - started) * 1000),
            )
            raise

        log = self._repo.add_log(
            **log_values,
            response_status=200,
            processing_status="success",
            processing_duration_ms=int((time.perf_counter() - started) * 1000),
        )
        log_event("webhook.received", automation_id=automation_id, log_id=log.id)
        return ReceivedWebhook(automation_id, log, decision, execution)
