from __future__ import annotations

import asyncio
import logging
from typing import Callable, ContextManager

from sqlalchemy.orm import Session

from autoflow.observability.tracing import log_event

from .repository import ApprovalRequestRepository
from .service import ApprovalService, AutomationRunner


class ApprovalPoller:
    """Background task that auto-executes approvals whose timeout elapsed.

    Every tick opens its own DB session, so the poller never shares a session
    with request handlers.
    """

    def __init__(
        self,
        *,
        session_factory: Callable[[], ContextManager[Session]],
        runner: AutomationRunner,
        interval_s: float = 30.0,
    ) -> None:
        self._session_factory = session_factory
        self._runner = runner
        self._interval_s = interval_s
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> list[str]:
        with self._session_factory() as db:
            service = ApprovalService(ApprovalRequestRepository(db), self._runner)
            executed = await service.check_and_execute_expired()
        if executed:
            log_event("approval.poller.executed", count=len(executed), approval_ids=executed)
        return executed

    async def _loop(self) -> None:
        while True:
            try:
                await self.tick()
            except Exception as exc:
                log_event("approval.poller.error", level=logging.ERROR, error=str(exc))
            await asyncio.sleep(self._interval_s)

    def start(self) -> None:
        if self.running:
            log_event("approval.poller.already_running", level=logging.WARNING)
            return
        log_event("approval.poller.started", interval_s=self._interval_s)
        self._task = asyncio.get_running_loop().create_task(self._loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        log_event("approval.poller.stopped")
