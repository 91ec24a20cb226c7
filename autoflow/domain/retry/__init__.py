from .policies import (
    RetryPolicy,
    SMART_RETRY_POLICIES,
    is_retryable,
    get_retry_policy,
    calculate_retry_delay,
)
from .tracking import (
    ExecutionAttempt,
    ExecutionTracking,
    RetrySummary,
    should_retry,
    get_retry_summary,
    get_retry_recommendation,
)
from .executor import RetryingExecutor, ExecutionFailed
