from __future__ import annotations

import json

import httpx
import pytest
from httpx import MockTransport
from pydantic import ValidationError

from autoflow.core.errors import (
    ActivePiecesError,
    RateLimitExceeded,
    WebhookNotFoundError,
    WebhookSignatureError,
)
from autoflow.domain.webhooks import (
    FixedWindowRateLimiter,
    WebhookConfigCreate,
    WebhookDispatcher,
    WebhookReceiver,
    WebhookRepository,
    compute_signature,
    extract_signature,
    retry_delay_ms,
    verify_signature,
)

from tests.fixtures.fake_runner import FakeRunner


class _RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def _outgoing(repo: WebhookRepository, **overrides):
    data = {
        "automation_id": "flow_1",
        "url": "https://hooks.example.com/in",
        "secret": "s3cret",
        "retry_max_attempts": 3,
        **overrides,
    }
    return repo.create_config("user_1", WebhookConfigCreate(**data))


def _incoming(repo: WebhookRepository, secret: str | None = "s3cret"):
    return repo.create_config(
        "user_1", WebhookConfigCreate(automation_id="flow_1", direction="incoming", secret=secret)
    )


# --- signatures ----------------------------------------------------------------

def test_signature_roundtrip_accepts_prefixed_header() -> None:
    body = b'{"a": 1}'
    digest = compute_signature("s3cret", body)
    assert verify_signature("s3cret", body, digest)
    assert verify_signature("s3cret", body, f"sha256={digest}")
    assert not verify_signature("other", body, digest)


def test_non_ascii_signature_is_rejected_not_raised() -> None:
    assert not verify_signature("s3cret", b"{}", "sha256=\u00e9\u00e9")
    assert not verify_signature("s3cret", b"{}", "\u00e9" * 64)


def test_extract_signature_sources() -> None:
    assert extract_signature({"X-Webhook-Signature": "abc"}) == "abc"
    assert extract_signature({"x-hub-signature-256": "sha256=abc"}) == "sha256=abc"
    assert extract_signature({"Authorization": "Bearer tok"}) == "tok"
    assert extract_signature({"Authorization": "Basic xyz"}) is None


# --- rate limiting -------------------------------------------------------------

def test_fixed_window_rate_limiter() -> None:
    limiter = FixedWindowRateLimiter(limit=2, window_s=10)

    first = limiter.check("flow_1", now=0)
    second = limiter.check("flow_1", now=1)
    denied = limiter.check("flow_1", now=2)

    assert (first.allowed, first.remaining) == (True, 1)
    assert (second.allowed, second.remaining) == (True, 0)
    assert denied.allowed is False
    assert denied.retry_after(now=2) == 8
    assert limiter.check("flow_2", now=2).allowed is True
    assert limiter.check("flow_1", now=11).allowed is True


# --- configuration -------------------------------------------------------------

def test_outgoing_webhook_requires_url() -> None:
    with pytest.raises(ValidationError):
        WebhookConfigCreate(automation_id="flow_1", direction="outgoing")


def test_repository_lists_by_direction(db) -> None:
    repo = WebhookRepository(db)
    out = _outgoing(repo)
    inbound = _incoming(repo)

    assert [c.id for c in repo.list_configs(direction="outgoing")] == [out.id]
    assert repo.get_inbound("flow_1").id == inbound.id
    with pytest.raises(WebhookNotFoundError):
        repo.get_inbound("flow_2")

    repo.delete_config(out.id)
    with pytest.raises(WebhookNotFoundError):
        repo.get_config(out.id)


def test_retry_delay_schedules() -> None:
    assert [retry_delay_ms("exponential", n) for n in (1, 2, 3)] == [1000, 2000, 4000]
    assert [retry_delay_ms("linear", n) for n in (1, 2, 3)] == [1000, 2000, 3000]


# --- delivery ------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delivery_signs_and_retries_until_success(db) -> None:
    repo = WebhookRepository(db)
    config = _outgoing(repo, auth_type="bearer", auth_config={"token": "tok"})
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if len(seen) == 1:
            return httpx.Response(500, text="upstream down")
        return httpx.Response(200, json={"ok": True})

    sleep = _RecordingSleep()
    async with httpx.AsyncClient(transport=MockTransport(handler)) as client:
        log = await WebhookDispatcher(repo, client=client, sleep=sleep).deliver(config, {"amount": 5})

    assert log.processing_status == "success"
    assert log.retry_count == 1
    assert [a["status"] for a in log.retry_attempts] == ["failed", "success"]
    assert sleep.calls == [1.0]

    request = seen[-1]
    assert request.headers["authorization"] == "Bearer tok"
    assert verify_signature("s3cret", request.content, request.headers["x-webhook-signature"])
    assert json.loads(request.content) == {"amount": 5}
    assert "authorization" not in {k.lower() for k in log.request_headers}
    assert repo.list_logs(direction="outgoing")[0].id == log.id


@pytest.mark.asyncio
async def test_delivery_records_timeout_without_retry(db) -> None:
    repo = WebhookRepository(db)
    config = _outgoing(repo, retry_enabled=False, secret=None)

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    async with httpx.AsyncClient(transport=MockTransport(handler)) as client:
        log = await WebhookDispatcher(repo, client=client, sleep=_RecordingSleep()).deliver(config, {})

    assert log.processing_status == "timeout"
    assert log.retry_count == 0
    assert log.response_status is None


@pytest.mark.asyncio
async def test_delivery_renders_template_and_basic_auth(db) -> None:
    repo = WebhookRepository(db)
    config = _outgoing(
        repo,
        body_template="${event} for ${amount}",
        auth_type="basic",
        auth_config={"username": "u", "password": "p"},
    )
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    async with httpx.AsyncClient(transport=MockTransport(handler)) as client:
        log = await WebhookDispatcher(repo, client=client).deliver(config, {"event": "paid", "amount": 5})

    assert log.processing_status == "success"
    assert seen[0].content == b"paid for 5"
    assert seen[0].headers["authorization"].startswith("Basic ")


# --- reception -----------------------------------------------------------------

@pytest.mark.asyncio
async def test_signed_request_triggers_automation(db) -> None:
    repo = WebhookRepository(db)
    _incoming(repo)
    runner = FakeRunner()
    body = b'{"order": 42}'

    received = await WebhookReceiver(repo, runner, FixedWindowRateLimiter()).receive(
        "flow_1", body, {"X-Webhook-Signature": compute_signature("s3cret", body)}
    )

    assert runner.calls == [("flow_1", {"webhook_payload": {"order": 42}})]
    assert received.log.processing_status == "success"
    assert received.log.signature_verified is True
    assert "X-Webhook-Signature" not in received.log.request_headers
    assert received.rate_limit.remaining == 99


@pytest.mark.asyncio
async def test_unsigned_request_is_accepted(db) -> None:
    repo = WebhookRepository(db)
    _incoming(repo)

    received = await WebhookReceiver(repo, FakeRunner(), FixedWindowRateLimiter()).receive(
        "flow_1", b"plain text", {}
    )

    assert received.log.signature_verified is None
    assert received.log.request_body == {"raw_body": "plain text"}


@pytest.mark.asyncio
async def test_bad_signature_is_rejected_and_logged(db) -> None:
    repo = WebhookRepository(db)
    _incoming(repo)
    runner = FakeRunner()

    with pytest.raises(WebhookSignatureError):
        await WebhookReceiver(repo, runner, FixedWindowRateLimiter()).receive(
            "flow_1", b"{}", {"X-Webhook-Signature": "sha256=deadbeef"}
        )

    assert runner.calls == []
    log = repo.list_logs(automation_id="flow_1")[0]
    assert log.response_status == 401
    assert log.signature_verified is False


@pytest.mark.asyncio
async def test_unknown_automation(db) -> None:
    with pytest.raises(WebhookNotFoundError):
        await WebhookReceiver(WebhookRepository(db), FakeRunner(), FixedWindowRateLimiter()).receive(
            "flow_404", b"{}", {}
        )


@pytest.mark.asyncio
async def test_rate_limit_applies_per_automation(db) -> None:
    repo = WebhookRepository(db)
    _incoming(repo, secret=None)
    receiver = WebhookReceiver(repo, FakeRunner(), FixedWindowRateLimiter(limit=1, window_s=60))

    await receiver.receive("flow_1", b"{}", {})
    with pytest.raises(RateLimitExceeded) as info:
        await receiver.receive("flow_1", b"{}", {})

    assert info.value.limit == 1
    assert 0 < info.value.retry_after <= 60


@pytest.mark.asyncio
async def test_failed_execution_is_logged(db) -> None:
    repo = WebhookRepository(db)
    _incoming(repo, secret=None)
    receiver = WebhookReceiver(repo, FakeRunner(error=ActivePiecesError(500, "boom")), FixedWindowRateLimiter())

    with pytest.raises(ActivePiecesError):
        await receiver.receive("flow_1", b"{}", {})

    log = repo.list_logs(automation_id="flow_1", direction="incoming")[0]
    assert log.processing_status == "failed"
    assert log.error_message == "boom"
