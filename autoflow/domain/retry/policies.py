"""Error classification for automation executions.

Each policy pairs a backoff schedule with the error text patterns it covers.
Patterns are matched as case-insensitive substrings of the error message, or
exactly against an error code.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RetryPolicy:
    name: str
    max_retries: int
    base_delay_ms: int
    backoff_multiplier: float
    retryable_errors: tuple[str, ...] = field(default_factory=tuple)
    non_retryable_errors: tuple[str, ...] = field(default_factory=tuple)


SMART_RETRY_POLICIES: dict[str, RetryPolicy] = {
    'api_timeout': RetryPolicy(
        name='api_timeout',
        max_retries=3,
        base_delay_ms=1000,
        backoff_multiplier=2,
        retryable_errors=('timeout', 'timed out', 'ETIMEDOUT', 'ECONNABORTED'),
        non_retryable_errors=('401', '403', '404'),
    ),
    'rate_limit': RetryPolicy(
        name='rate_limit',
        max_retries=5,
        base_delay_ms=2000,
        backoff_multiplier=2,
        retryable_errors=('rate limit', '429', 'too many requests'),
        non_retryable_errors=('401', '403'),
    ),
    'database_error': RetryPolicy(
        name='database_error',
        max_retries=2,
        base_delay_ms=500,
        backoff_multiplier=2,
        retryable_errors=('connection refused', 'deadlock', 'connection pool'),
        non_retryable_errors=('syntax error', 'constraint violation'),
    ),
    'network_error': RetryPolicy(
        name='network_error',
        max_retries=4,
        base_delay_ms=1000,
        backoff_multiplier=1.5,
        retryable_errors=('ECONNREFUSED', 'ENETUNREACH', 'connection reset'),
        non_retryable_errors=('400', 'invalid request'),
    ),
    'generic': RetryPolicy(
        name='generic',
        max_retries=2,
        base_delay_ms=500,
        backoff_multiplier=2,
        retryable_errors=('error',),
        non_retryable_errors=(),
    ),
}


def _matches(pattern: str, error_lower: str, error_code: str | None) -> bool:
    return pattern.lower() in error_lower or error_code == pattern


def is_retryable(error: str, error_code: str | None = None) -> bool:
    """Non-retryable patterns win over retryable ones; unknown errors retry."""
    error_lower = error.lower()

    for policy in SMART_RETRY_POLICIES.values():
        if any(_matches(p, error_lower, error_code) for p in policy.non_retryable_errors):
            return False

    for policy in SMART_RETRY_POLICIES.values():
        if any(_matches(p, error_lower, error_code) for p in policy.retryable_errors):
            return True

    return True


def get_retry_policy(error: str, error_code: str | None = None) -> RetryPolicy:
    error_lower = error.lower()

    if 'timeout' in error_lower or 'timed out' in error_lower or error_code == 'ETIMEDOUT':
        return SMART_RETRY_POLICIES['api_timeout']

    if 'rate limit' in error_lower or 'too many requests' in error_lower or error_code == '429':
        return SMART_RETRY_POLICIES['rate_limit']

    if 'connection' in error_lower or 'deadlock' in error_lower or error_code == 'ECONNREFUSED':
        if 'database' in error_lower or 'db' in error_lower:
            return SMART_RETRY_POLICIES['database_error']
        return SMART_RETRY_POLICIES['network_error']

    return SMART_RETRY_POLICIES['generic']


def calculate_retry_delay(policy: RetryPolicy, attempt: int) -> float:
    """Delay in milliseconds before retry ``attempt`` (0-indexed)."""
    return policy.base_delay_ms * policy.backoff_multiplier ** attempt
