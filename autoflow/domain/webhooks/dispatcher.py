"""Outgoing webhook delivery with retries and HMAC signing."""

from __future__ import annotations

import asyncio
import json
import time
from datetime import datetime, timezone
from string import Template
from typing import Any, Awaitable, Callable

import httpx

from autoflow.observability.tracing import log_event

from .entities import WebhookConfig, WebhookLog
from .repository import WebhookRepository
from .signatures import compute_signature

SIGNATURE_HEADER = "X-Webhook-Signature"


def retry_delay_ms(backoff: str, attempt: int, base_ms: int = 1000) -> int:
    """Delay before retry ``attempt`` (1-indexed)."""
    if backoff == "linear":
        return base_ms * attempt
    return base_ms * 2 ** (attempt - 1)


def render_body(config: WebhookConfig, payload: dict[str, Any]) -> bytes:
    if not config.body_template:
        return json.dumps(payload, default=str).encode("utf-8")
    values = {k: v if isinstance(v, str) else json.dumps(v, default=str) for k, v in payload.items()}
    return Template(config.body_template).safe_substitute(values).encode("utf-8")


def _auth_headers(config: WebhookConfig) -> dict[str, str]:
    auth = config.auth_config or {}
    if config.auth_type == "bearer" and auth.get("token"):
        return {"Authorization": f"Bearer {auth['token']}"}
    if config.auth_type == "custom_header" and auth.get("header_name"):
        return {auth["header_name"]: str(auth.get("header_value", ""))}
    return {}


def _basic_auth(config: WebhookConfig) -> httpx.BasicAuth | None:
    auth = config.auth_config or {}
    if config.auth_type == "basic" and auth.get("username"):
        return httpx.BasicAuth(auth["username"], auth.get("password", ""))
    return None


class WebhookDispatcher:
    def __init__(
        self,
        repository: WebhookRepository,
        *,
        client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
        base_delay_ms: int = 1000,
    ) -> None:
        self._repo = repository
        self._client = client
        self._sleep = sleep or asyncio.sleep
        self._base_delay_ms = base_delay_ms

    async def _send(self, client: httpx.AsyncClient, config: WebhookConfig, body: bytes, headers: dict[str, str]):
        return await client.request(
            config.method,
            config.url,
            content=body if config.method != "GET" else None,
            headers=headers,
            auth=_basic_auth(config),
            timeout=config.timeout_ms / 1000.0,
        )

    async def deliver(self, config: WebhookConfig, payload: dict[str, Any]) -> WebhookLog:
        body = render_body(config, payload)
        headers = {"Content-Type": "application/json", **config.headers, **_auth_headers(config)}
        if config.secret:
            headers[SIGNATURE_HEADER] = f"sha256={compute_signature(config.secret, body)}"

        max_attempts = config.retry_max_attempts if config.retry_enabled else 1
        attempts: list[dict[str, Any]] = []
        response: httpx.Response | None = None
        status = "failed"
        error: str | None = None
        started = time.perf_counter()

        client = self._client or httpx.AsyncClient()
        try:
            for attempt in range(1, max_attempts + 1):
                try:
                    response = await self._send(client, config, body, headers)
                except httpx.TimeoutException as exc:
                    status, error, response = "timeout", f"Request timed out: {exc}", None
                except httpx.HTTPError as exc:
                    status, error, response = "failed", str(exc) or type(exc).__name__, None
                else:
                    if response.is_success:
                        status, error = "success", None
                    else:
                        status, error = "failed", f"HTTP {response.status_code}"

                attempts.append({
                    "attempt": attempt,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "status": status,
                    "error": error,
                })
                if status == "success" or attempt == max_attempts:
                    break

                delay = retry_delay_ms(config.retry_backoff, attempt, self._base_delay_ms)
                log_event("webhook.retrying", webhook_id=config.id, attempt=attempt, delay_ms=delay, error=error)
                await self._sleep(delay / 1000.0)
        finally:
            if self._client is None:
                await client.aclose()

        log = self._repo.add_log(
            user_id=config.user_id,
            automation_id=config.automation_id,
            webhook_config_id=config.id,
            direction="outgoing",
            url=config.url,
            method=config.method,
            request_headers={k: v for k, v in headers.items() if k.lower() != "authorization"},
            request_body=payload,
            response_status=response.status_code if response is not None else None,
            response_body=response.text if response is not None else None,
            processing_status=status,
            error_message=error,
            retry_count=len(attempts) - 1,
            retry_attempts=attempts,
            processing_duration_ms=int((time.perf_counter() - started) * 1000),
            signature_verified=None,
        )
        log_event("webhook.delivered", webhook_id=config.id, status=status, attempts=len(attempts))
        return log
