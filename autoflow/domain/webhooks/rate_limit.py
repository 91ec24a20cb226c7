import math
import threading
import time
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    reset_at: float
    limit: int

    def retry_after(self, now: float | None = None) -> int:
        now = time.time() if now is None else now
        return max(0, math.ceil(self.reset_at - now))


class FixedWindowRateLimiter:
    """Per-key request counter over fixed windows, kept in process memory."""

    def __init__(self, limit: int = 100, window_s: float = 60.0) -> None:
        self.limit = limit
        self.window_s = window_s
        self._windows: dict[str, tuple[int, float]] = {}
        self._lock = threading.Lock()

    def check(self, key: str, now: float | None = None) -> RateLimitDecision:
        now = time.time() if now is None else now
        with self._lock:
            count, reset_at = self._windows.get(key, (0, 0.0))
            if count == 0 or now > reset_at:
                reset_at = now + self.window_s
                self._windows[key] = (1, reset_at)
                return RateLimitDecision(True, self.limit - 1, reset_at, self.limit)

            if count >= self.limit:
                return RateLimitDecision(False, 0, reset_at, self.limit)

            count += 1
            self._windows[key] = (count, reset_at)
            return RateLimitDecision(True, self.limit - count, reset_at, self.limit)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
