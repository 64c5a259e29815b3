"""
Task Management API: Rate Limiting Stage
========================================

What:  Per-client fixed window rate limiter.
How:   `FixedWindowRateLimiter` keeps one counter per client id in memory;
       `rate_limit_stage` consults it for every non-exempt request.
When:  After the exception boundary and before authentication, so anonymous
       clients are throttled by address.

Algorithm: Fixed Window Counter
    1. Client id is `user:<username>` when a principal is already on the
       request, else `ip:<peer address>`
    2. Once now is past window start + window, the counter restarts at 1 with a
       fresh window start; otherwise it increments
    3. If the post-increment count exceeds the limit → 429 with Retry-After,
       downstream is not called
    4. Otherwise X-RateLimit-Limit / -Remaining / -Reset are added to the
       response

    Counter updates happen under a lock with no await inside, so concurrent
    requests can never push a client past the limit.

Cleanup:
    A background task (`start()` / `stop()`, driven by the app lifespan)
    evicts counters whose window started longer ago than the retention
    horizon. Evicting a counter that a request is about to bump is harmless:
    the request just starts a new window.

Exempt paths (whole path segments, so /health/x is exempt but /healthz is
not): /health, /docs, /openapi.json, /redoc, /auth/test-users.
"""

import asyncio
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from starlette.middleware.base import RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from taskmanager.config import Settings
from taskmanager.exceptions import RateLimitExceededError, client_message
from taskmanager.middleware.responses import build_error_response, defer_headers

logger = logging.getLogger(__name__)

EXEMPT_PATH_PREFIXES = ("/health", "/docs", "/openapi.json", "/redoc", "/auth/test-users")


@dataclass(frozen=True)
class RateLimitCounter:
    request_count: int
    window_start: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: int

    def headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(int(self.reset_at)),
        }


class FixedWindowRateLimiter:
    """
    Process-local fixed window counters.

    Args:
        limit:             max requests per window per client
        window_seconds:    window length
        retention_seconds: counters older than this are swept
        cleanup_interval:  seconds between sweeps
        clock:             returns "now" in epoch seconds (tests inject a fake)
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        retention_seconds: float = 3600,
        cleanup_interval: float = 300,
        clock: Callable[[], float] = time.time,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self.window_minutes = window_seconds / 60
        self.retention_seconds = retention_seconds
        self.cleanup_interval = cleanup_interval
        self._clock = clock
        self._counters: Dict[str, RateLimitCounter] = {}
        self._lock = threading.Lock()
        self._sweeper: Optional[asyncio.Task] = None

    @classmethod
    def from_settings(cls, settings: Settings, clock: Callable[[], float] = time.time) -> "FixedWindowRateLimiter":
        return cls(
            limit=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
            retention_seconds=settings.rate_limit_retention_minutes * 60,
            cleanup_interval=settings.rate_limit_cleanup_interval_seconds,
            clock=clock,
        )

    def hit(self, client_id: str) -> RateLimitDecision:
        """Count one request for `client_id` and decide whether it may proceed."""
        now = self._clock()
        with self._lock:
            counter = self._counters.get(client_id)
            if counter is None or now > counter.window_start + self.window_seconds:
                counter = RateLimitCounter(request_count=1, window_start=now)
            else:
                counter = RateLimitCounter(counter.request_count + 1, counter.window_start)
            self._counters[client_id] = counter

        reset_at = counter.window_start + self.window_seconds
        return RateLimitDecision(
            allowed=counter.request_count <= self.limit,
            limit=self.limit,
            remaining=max(0, self.limit - counter.request_count),
            reset_at=reset_at,
            retry_after=max(1, math.ceil(reset_at - now)),
        )

    def counter_for(self, client_id: str) -> Optional[RateLimitCounter]:
        with self._lock:
            return self._counters.get(client_id)

    def __len__(self) -> int:
        return len(self._counters)

    def sweep(self) -> int:
        """Drop counters whose window started before the retention horizon."""
        horizon = self._clock() - self.retention_seconds
        with self._lock:
            stale = [cid for cid, c in self._counters.items() if c.window_start < horizon]
            for cid in stale:
                del self._counters[cid]
        if stale:
            logger.debug("Evicted %d stale rate limit counters", len(stale))
        return len(stale)

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()

    # ── Background sweep lifecycle ────────────────────────────────────────

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.cleanup_interval)
            try:
                self.sweep()
            except Exception:
                logger.exception("Rate limit counter sweep failed")

    def start(self) -> None:
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever())

    async def stop(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None


def is_exempt(path: str) -> bool:
    return any(path == prefix or path.startswith(prefix + "/") for prefix in EXEMPT_PATH_PREFIXES)


def client_id_for(request: Request) -> str:
    principal = getattr(request.state, "user", None)
    if principal is not None:
        return f"user:{principal.username}"
    host = request.client.host if request.client else "unknown"
    return f"ip:{host}"


async def rate_limit_stage(request: Request, call_next: RequestResponseEndpoint) -> Response:
    if is_exempt(request.url.path):
        return await call_next(request)

    limiter: FixedWindowRateLimiter = request.app.state.rate_limiter
    client_id = client_id_for(request)
    decision = limiter.hit(client_id)

    if not decision.allowed:
        logger.warning(
            "Rate limit exceeded for client %s on %s %s",
            client_id,
            request.method,
            request.url.path,
        )
        exc = RateLimitExceededError(
            retry_after=decision.retry_after,
            limit=decision.limit,
            window_minutes=limiter.window_minutes,
        )
        headers = decision.headers()
        headers["Retry-After"] = str(decision.retry_after)
        return build_error_response(
            request,
            429,
            client_message(exc.kind, exc),
            headers=headers,
            retry_after=decision.retry_after,
        )

    # Recorded before dispatch so error responses built further out carry them too
    defer_headers(request, decision.headers())
    response = await call_next(request)
    response.headers.update(decision.headers())
    return response
