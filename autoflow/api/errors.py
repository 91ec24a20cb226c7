"""Translate typed domain errors into HTTP errors."""

from fastapi import HTTPException, status

from autoflow.core.errors import (
    ActivePiecesError,
    ApprovalError,
    ApprovalNotFoundError,
    PlanningError,
    RateLimitExceeded,
    SessionExpiredError,
    VersionNotFoundError,
    WebhookNotFoundError,
    WebhookSignatureError,
)
from autoflow.domain.retry import ExecutionFailed

DOMAIN_ERRORS = (
    ActivePiecesError,
    ApprovalError,
    ApprovalNotFoundError,
    PlanningError,
    RateLimitExceeded,
    SessionExpiredError,
    VersionNotFoundError,
    WebhookNotFoundError,
    WebhookSignatureError,
    ExecutionFailed,
)


def http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, (ApprovalNotFoundError, VersionNotFoundError, WebhookNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, ApprovalError):
        return HTTPException(status_code=exc.status_code, detail=str(exc))
    if isinstance(exc, (SessionExpiredError, WebhookSignatureError)):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))
    if isinstance(exc, RateLimitExceeded):
        return HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=str(exc),
            headers={
                "Retry-After": str(exc.retry_after),
                "X-RateLimit-Limit": str(exc.limit),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(int(exc.reset_at)),
            },
        )
    if isinstance(exc, ActivePiecesError):
        # Upstream client errors pass through; anything else is a bad gateway.
        code = exc.status_code if 400 <= exc.status_code < 500 and exc.status_code != 401 else 502
        return HTTPException(status_code=code, detail=exc.message)
    if isinstance(exc, ExecutionFailed):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    if isinstance(exc, PlanningError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")
