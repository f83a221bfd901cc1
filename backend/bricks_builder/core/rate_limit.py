"""
Fixed-window rate limiter

Like the TTL cache, a RateLimiter is constructed by its owner and injected;
there is no module-level instance.
"""
import threading
import time
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, Field

from bricks_builder.core.logging_config import LoggingConfig
from bricks_builder.core.metrics import rate_limit_rejections_total

logger = LoggingConfig.get_logger(__name__)


class RateLimitRule(BaseModel):
    """Maximum number of requests per window"""
    limit: int = Field(..., ge=1)
    window_seconds: float = Field(..., gt=0)


class RateLimitResult(BaseModel):
    """Outcome of a rate limit check"""
    success: bool
    remaining: int
    reset_at: float  # clock value at which the current window ends


class RateLimitExceeded(Exception):
    """Raised by callers that refuse work when a limit is hit"""

    def __init__(self, identifier: str, result: RateLimitResult):
        super().__init__(f"Rate limit exceeded for '{identifier}'")
        self.identifier = identifier
        self.result = result


RATE_LIMITS: Dict[str, RateLimitRule] = {
    "chat": RateLimitRule(limit=10, window_seconds=60),
    "feedback": RateLimitRule(limit=5, window_seconds=60 * 60),
    "bricks_edit": RateLimitRule(limit=20, window_seconds=60),
    "default": RateLimitRule(limit=30, window_seconds=60),
}


class RateLimiter:
    """
    Counts requests per identifier inside fixed windows

    Example:
        >>> limiter = RateLimiter()
        >>> limiter.check("203.0.113.7", RATE_LIMITS["chat"]).success
        True
    """

    # Expired windows are dropped at most this often, measured on the injected clock
    CLEANUP_INTERVAL_SECONDS = 300.0

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        scope: str = "default",
        cleanup_interval_seconds: float = CLEANUP_INTERVAL_SECONDS
    ):
        self._clock = clock
        self.scope = scope
        self.cleanup_interval_seconds = cleanup_interval_seconds
        self._next_cleanup = clock() + cleanup_interval_seconds
        self._windows: Dict[str, Dict[str, float]] = {}
        self._lock = threading.Lock()
        self._closed = False

    def check(self, identifier: str, rule: RateLimitRule) -> RateLimitResult:
        """Record one request for identifier and report whether it is allowed"""
        with self._lock:
            if self._closed:
                raise RuntimeError("RateLimiter is closed")

            now = self._clock()
            if now >= self._next_cleanup:
                purged = self._purge_expired_locked(now)
                self._next_cleanup = now + self.cleanup_interval_seconds
                if purged:
                    logger.debug(f"Purged {purged} expired rate limit windows", extra={"scope": self.scope})

            window = self._windows.get(identifier)

            if window is None or now >= window["reset_at"]:
                reset_at = now + rule.window_seconds
                self._windows[identifier] = {"count": 1, "reset_at": reset_at}
                return RateLimitResult(success=True, remaining=rule.limit - 1, reset_at=reset_at)

            if window["count"] >= rule.limit:
                rate_limit_rejections_total.labels(scope=self.scope).inc()
                logger.warning(
                    f"Rate limit exceeded for {identifier}",
                    extra={"scope": self.scope, "limit": rule.limit}
                )
                return RateLimitResult(success=False, remaining=0, reset_at=window["reset_at"])

            window["count"] += 1
            return RateLimitResult(
                success=True,
                remaining=rule.limit - int(window["count"]),
                reset_at=window["reset_at"]
            )

    def reset(self, identifier: Optional[str] = None) -> None:
        """Forget one identifier, or all of them"""
        with self._lock:
            if identifier is None:
                self._windows.clear()
            else:
                self._windows.pop(identifier, None)

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge_expired_locked(self._clock())

    def _purge_expired_locked(self, now: float) -> int:
        expired = [key for key, window in self._windows.items() if now >= window["reset_at"]]
        for key in expired:
            del self._windows[key]
        return len(expired)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "scope": self.scope,
                "total_keys": len(self._windows),
                "entries": [
                    {"key": key, "count": int(window["count"])}
                    for key, window in self._windows.items()
                ],
            }

    def close(self) -> None:
        with self._lock:
            self._windows.clear()
            self._closed = True
