from dataclasses import asdict

from fastapi import APIRouter

from autoflow.api.schemas import ErrorClassification, ErrorClassificationRequest
from autoflow.domain.retry import (
    SMART_RETRY_POLICIES,
    calculate_retry_delay,
    get_retry_policy,
    is_retryable,
)

router = APIRouter(prefix="/retry", tags=["Retry"])


@router.get("/policies")
async def list_policies():
    return [asdict(p) for p in SMART_RETRY_POLICIES.values()]


@router.post("/classify", response_model=ErrorClassification)
async def classify(body: ErrorClassificationRequest):
    """Which policy an execution error falls under and how long the next retry waits."""
    policy = get_retry_policy(body.error, body.error_code)
    retryable = is_retryable(body.error, body.error_code) and body.failed_attempts < policy.max_retries
    return ErrorClassification(
        retryable=retryable,
        policy=policy.name,
        max_retries=policy.max_retries,
        next_delay_ms=calculate_retry_delay(policy, body.failed_attempts),
    )
