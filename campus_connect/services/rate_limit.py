"""In-memory fixed-window rate limiting keyed by client IP.

State lives in the process, so limits are per worker.
"""
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict

from fastapi import Depends
from fastapi.responses import JSONResponse

from ..config import settings
from ..dependencies import client_ip

CLEANUP_INTERVAL_SECONDS = 5 * 60


@dataclass
class RateLimitResult:
    success: bool
    remaining: int
    reset_at: float
    limit: int

    @property
    def retry_after(self) -> int:
        return max(0, math.ceil(self.reset_at - time.time()))


@dataclass
class _Window:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    def __init__(self, limit: int, window_seconds: int, identifier: str = "default",
                 clock: Callable[[], float] = time.time):
        self.limit = limit
        self.window_seconds = window_seconds
        self.identifier = identifier
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()
        self._last_cleanup = clock()

    def _cleanup(self, now: float) -> None:
        if now - self._last_cleanup < CLEANUP_INTERVAL_SECONDS:
            return
        self._last_cleanup = now
        for key in [k for k, w in self._windows.items() if now > w.reset_at]:
            del self._windows[key]

    def check(self, ip: str) -> RateLimitResult:
        key = f"{self.identifier}:{ip}"
        with self._lock:
            now = self._clock()
            self._cleanup(now)

            window = self._windows.get(key)
            if window is None or now > window.reset_at:
                window = _Window(count=1, reset_at=now + self.window_seconds)
                self._windows[key] = window
                return RateLimitResult(True, self.limit - 1, window.reset_at, self.limit)

            if window.count >= self.limit:
                return RateLimitResult(False, 0, window.reset_at, self.limit)

            window.count += 1
            return RateLimitResult(True, self.limit - window.count, window.reset_at, self.limit)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


class RateLimitExceeded(Exception):
    def __init__(self, result: RateLimitResult):
        self.result = result
        super().__init__("Rate limit exceeded")


def rate_limit_response(exc: RateLimitExceeded) -> JSONResponse:
    retry_after = exc.result.retry_after
    return JSONResponse(
        status_code=429,
        content={
            "error": "Too many requests. Please wait.",
            "message": f"Rate limit exceeded. Try again in {retry_after} seconds.",
            "retryAfter": retry_after,
        },
        headers={
            "Retry-After": str(retry_after),
            "X-RateLimit-Limit": str(exc.result.limit),
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": str(math.ceil(exc.result.reset_at)),
        },
    )


certificate_verify_limiter = FixedWindowRateLimiter(
    settings.CERTIFICATE_VERIFY_LIMIT, settings.CERTIFICATE_VERIFY_WINDOW_SECONDS, "certificate-verify"
)
certificate_generate_limiter = FixedWindowRateLimiter(
    settings.CERTIFICATE_GENERATE_LIMIT, settings.CERTIFICATE_GENERATE_WINDOW_SECONDS, "certificate-generate"
)
enroll_limiter = FixedWindowRateLimiter(
    settings.ENROLL_RATE_LIMIT, settings.ENROLL_RATE_WINDOW_SECONDS, "enroll"
)
admin_bulk_limiter = FixedWindowRateLimiter(
    settings.ADMIN_BULK_RATE_LIMIT, settings.ADMIN_BULK_RATE_WINDOW_SECONDS, "admin-bulk"
)


def rate_limited(limiter: FixedWindowRateLimiter):
    """Dependency factory rejecting the request with 429 once the caller's window is spent."""
    def checker(ip: str = Depends(client_ip)) -> RateLimitResult:
        result = limiter.check(ip)
        if not result.success:
            raise RateLimitExceeded(result)
        return result
    return checker
