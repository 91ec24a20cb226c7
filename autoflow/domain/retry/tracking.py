"""Per-execution attempt bookkeeping."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

from .policies import (
    SMART_RETRY_POLICIES,
    RetryPolicy,
    calculate_retry_delay,
    get_retry_policy,
    is_retryable,
)

AttemptStatus = Literal['pending', 'running', 'success', 'failed']
FinalStatus = Literal['pending', 'success', 'failed', 'cancelled']


@dataclass(frozen=True)
class ExecutionAttempt:
    attempt: int
    status: AttemptStatus
    error: str | None = None
    error_code: str | None = None
    duration_ms: int = 0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class RetrySummary:
    total_attempts: int
    success_attempt: int | None
    failures: int
    total_time_ms: int
    avg_time_per_attempt_ms: int
    recommendation: str


def should_retry(tracking: 'ExecutionTracking', policy: RetryPolicy) -> bool:
    if tracking.failures >= policy.max_retries:
        return False

    last = tracking.attempts[-1]
    if last.status != 'failed' or not last.error:
        return False

    return is_retryable(last.error, last.error_code)


@dataclass
class ExecutionTracking:
    automation_id: str
    execution_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    attempts: list[ExecutionAttempt] = field(default_factory=list)
    final_status: FinalStatus = 'pending'
    total_duration_ms: int = 0
    should_retry: bool = False
    next_retry_delay_ms: float | None = None

    @property
    def failures(self) -> int:
        return sum(1 for a in self.attempts if a.status == 'failed')

    def add_attempt(
        self,
        status: AttemptStatus,
        error: str | None = None,
        error_code: str | None = None,
        duration_ms: int | None = None,
    ) -> 'ExecutionTracking':
        self.attempts.append(
            ExecutionAttempt(
                attempt=len(self.attempts) + 1,
                status=status,
                error=error,
                error_code=error_code,
                duration_ms=duration_ms or 0,
            )
        )

        if status == 'success':
            self.final_status = 'success'
            self.should_retry = False
        elif status == 'failed':
            policy = get_retry_policy(error or '', error_code)
            self.should_retry = should_retry(self, policy)
            if self.should_retry:
                self.next_retry_delay_ms = calculate_retry_delay(policy, self.failures - 1)
            else:
                self.final_status = 'failed'

        self.total_duration_ms = sum(a.duration_ms for a in self.attempts)
        return self

    def summary(self) -> RetrySummary:
        return get_retry_summary(self)


def get_retry_summary(tracking: ExecutionTracking) -> RetrySummary:
    success_attempt = next(
        (i + 1 for i, a in enumerate(tracking.attempts) if a.status == 'success'), None
    )
    failures = tracking.failures
    total = len(tracking.attempts)
    avg = round(tracking.total_duration_ms / total) if total else 0

    if success_attempt is not None:
        if success_attempt > 2:
            recommendation = 'Flaky behavior detected. Consider increasing timeouts or reviewing the integration.'
        else:
            recommendation = f'Successfully executed on attempt {success_attempt}.'
    else:
        recommendation = f'Failed after {failures} attempt(s). Check error logs and integration settings.'

    return RetrySummary(
        total_attempts=total,
        success_attempt=success_attempt,
        failures=failures,
        total_time_ms=tracking.total_duration_ms,
        avg_time_per_attempt_ms=avg,
        recommendation=recommendation,
    )


def get_retry_recommendation(tracking: ExecutionTracking) -> str:
    summary = get_retry_summary(tracking)

    if summary.total_attempts == 1 and tracking.final_status == 'success':
        return 'Perfect execution on first try. No changes needed.'

    if tracking.final_status == 'failed':
        last = tracking.attempts[-1]
        policy = get_retry_policy(last.error or '', last.error_code)
        if policy is SMART_RETRY_POLICIES['rate_limit']:
            return 'Rate limited. Consider adding delays between requests or upgrading your API plan.'
        if policy is SMART_RETRY_POLICIES['api_timeout']:
            return 'Timeouts occurring. Increase timeout duration or optimize the workflow for speed.'
        if policy is SMART_RETRY_POLICIES['network_error']:
            return 'Network issues detected. Ensure integrations are accessible and have proper firewall rules.'
        return 'Persistent failure. Review error logs and integration credentials.'

    return f'Success after {summary.total_attempts} attempt(s). Good retry strategy working.'
