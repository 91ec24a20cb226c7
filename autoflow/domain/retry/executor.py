from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable

from autoflow.core.errors import ActivePiecesError, SessionExpiredError
from autoflow.observability.tracing import log_event

from .tracking import ExecutionTracking

Sleep = Callable[[float], Awaitable[Any]]


class ExecutionFailed(RuntimeError):
    """All attempts allowed by the matching retry policy failed."""

    def __init__(self, tracking: ExecutionTracking) -> None:
        self.tracking = tracking
        last = tracking.attempts[-1] if tracking.attempts else None
        super().__init__(last.error if last and last.error else 'Execution failed')


def _error_code(exc: BaseException) -> str | None:
    if isinstance(exc, ActivePiecesError):
        return str(exc.status_code)
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return 'ETIMEDOUT'
    return None


class RetryingExecutor:
    """Runs an execution callable under the smart retry policies.

    The callable is retried while the tracking says so, sleeping the computed
    backoff between attempts. ``sleep`` is injectable so tests never wait.
    """

    def __init__(self, *, sleep: Sleep | None = None, max_attempts: int = 10) -> None:
        self._sleep = sleep or asyncio.sleep
        self._max_attempts = max_attempts

    async def run(
        self,
        automation_id: str,
        fn: Callable[[], Awaitable[Any]],
        *,
        trace_id: str | None = None,
    ) -> tuple[Any, ExecutionTracking]:
        tracking = ExecutionTracking(automation_id=automation_id)

        while len(tracking.attempts) < self._max_attempts:
            started = time.perf_counter()
            try:
                result = await fn()
            except SessionExpiredError:
                # A retry would go out without the user's session.
                log_event('execution.session_expired', trace_id=trace_id, automation_id=automation_id)
                raise
            except Exception as exc:
                duration_ms = int((time.perf_counter() - started) * 1000)
                tracking.add_attempt('failed', str(exc) or type(exc).__name__, _error_code(exc), duration_ms)
                log_event(
                    'execution.attempt_failed',
                    trace_id=trace_id,
                    automation_id=automation_id,
                    attempt=len(tracking.attempts),
                    error=str(exc),
                    will_retry=tracking.should_retry,
                    next_retry_delay_ms=tracking.next_retry_delay_ms,
                )
                if not tracking.should_retry:
                    raise ExecutionFailed(tracking) from exc
                await self._sleep((tracking.next_retry_delay_ms or 0) / 1000.0)
                continue

            duration_ms = int((time.perf_counter() - started) * 1000)
            tracking.add_attempt('success', duration_ms=duration_ms)
            log_event(
                'execution.succeeded',
                trace_id=trace_id,
                automation_id=automation_id,
                attempts=len(tracking.attempts),
            )
            return result, tracking

        tracking.final_status = 'failed'
        raise ExecutionFailed(tracking)
