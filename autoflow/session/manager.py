"""Session token lifecycle for the ActivePieces API.

ActivePieces has no refresh-token grant, so "refreshing" means re-verifying
the current token against ``/auth/me``; a token that fails verification is
dropped from the store.
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable

from autoflow.observability.tracing import log_event

from .token_store import TOKEN_KEY, TOKEN_META_KEY, USER_KEY, TokenStore

TOKEN_REFRESH_THRESHOLD = timedelta(minutes=5)
DEFAULT_TOKEN_LIFETIME = timedelta(hours=24)

VerifyToken = Callable[[str], Awaitable[Any]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_iso(value: str) -> datetime:
    ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


class SessionManager:
    def __init__(
        self,
        store: TokenStore,
        verify_token: VerifyToken | None = None,
        *,
        check_interval_s: float = 60.0,
    ) -> None:
        self.store = store
        self._verify_token = verify_token
        self._check_interval_s = check_interval_s
        self._refresh_lock = asyncio.Lock()
        self._task: asyncio.Task | None = None

    def bind_verifier(self, verify_token: VerifyToken) -> None:
        self._verify_token = verify_token

    @property
    def token(self) -> str | None:
        return self.store.get(TOKEN_KEY)

    def store_session(self, token: str, user: dict[str, Any] | None = None, expires_in: int | str | None = None) -> None:
        self.store.set(TOKEN_KEY, token)
        if user is not None:
            self.store.set(USER_KEY, json.dumps(user))
        self.store_token_metadata(token, expires_in)

    def store_token_metadata(
        self,
        token: str,
        expires_in: int | str | None = None,
        now: datetime | None = None,
    ) -> datetime:
        """Record when ``token`` expires.

        ``expires_in`` is seconds from now, an ISO timestamp, or None for the
        24 hour default.
        """
        now = now or _utcnow()
        if isinstance(expires_in, (int, float)) and not isinstance(expires_in, bool):
            expires_at = now + timedelta(seconds=expires_in)
        elif isinstance(expires_in, str):
            expires_at = _parse_iso(expires_in)
        else:
            expires_at = now + DEFAULT_TOKEN_LIFETIME

        self.store.set(
            TOKEN_META_KEY,
            json.dumps({"token": token, "expires_at": expires_at.isoformat(), "stored_at": now.isoformat()}),
        )
        return expires_at

    def _expires_at(self) -> datetime | None:
        raw = self.store.get(TOKEN_META_KEY)
        if not raw:
            return None
        try:
            meta = json.loads(raw)
            return _parse_iso(meta["expires_at"]) if meta.get("expires_at") else None
        except (ValueError, KeyError, TypeError):
            return None

    def should_refresh_token(self, now: datetime | None = None) -> bool:
        expires_at = self._expires_at()
        if expires_at is None:
            return False
        return expires_at - (now or _utcnow()) < TOKEN_REFRESH_THRESHOLD

    def remaining_session_time(self, now: datetime | None = None) -> int:
        """Seconds until expiry, or -1 when no expiry is known."""
        expires_at = self._expires_at()
        if expires_at is None:
            return -1
        return math.ceil((expires_at - (now or _utcnow())).total_seconds())

    async def refresh_access_token(self) -> bool:
        """Re-verify the stored token; concurrent callers share one attempt."""
        if self._refresh_lock.locked():
            async with self._refresh_lock:
                return self.token is not None

        async with self._refresh_lock:
            token = self.token
            if not token or self._verify_token is None:
                log_event("session.refresh_failed", reason="no token")
                self.store.delete(TOKEN_KEY)
                return False
            try:
                await self._verify_token(token)
            except Exception as exc:
                log_event("session.refresh_failed", level=logging.WARNING, error=str(exc))
                self.store.delete(TOKEN_KEY)
                return False
            log_event("session.token_valid")
            return True

    def clear_session(self) -> None:
        for key in (TOKEN_KEY, TOKEN_META_KEY, USER_KEY):
            self.store.delete(key)

    async def check_once(self, now: datetime | None = None) -> None:
        if self.should_refresh_token(now) and not await self.refresh_access_token():
            self.clear_session()
            log_event("session.expired", level=logging.WARNING)

    async def _loop(self) -> None:
        while True:
            try:
                await self.check_once()
            except Exception as exc:
                log_event("session.check_error", level=logging.ERROR, error=str(exc))
            await asyncio.sleep(self._check_interval_s)

    def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
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
