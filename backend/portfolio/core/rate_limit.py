"""In-process rate limiting keyed by bucket name and client IP.

Buckets are token buckets by default: an IP starts with `capacity`
tokens, each request spends one, and tokens refill continuously at
`capacity / window_seconds` per second. A bucket built with
`fixed_window=True` instead allows `capacity` requests per window that
starts on the first request and resets once it has elapsed.

State lives in process memory; a multi-instance deployment gets one
allowance per instance.
"""

import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Request

from portfolio.core.exceptions import RateLimitedError
from portfolio.core.logging import get_logger

logger = get_logger(__name__)

# Entries beyond this count trigger a sweep of idle state
_SWEEP_THRESHOLD = 10_000


@dataclass
class _Window:
    started_at: float
    count: int


@dataclass
class _Bucket:
    tokens: float
    refilled_at: float


class RateLimiter:
    """Per-IP limiter for one named bucket."""

    def __init__(
        self,
        name: str,
        capacity: int,
        window_seconds: float,
        fixed_window: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.capacity = capacity
        self.window_seconds = window_seconds
        self.fixed_window = fixed_window
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._buckets: dict[str, _Bucket] = {}

    @property
    def refill_per_second(self) -> float:
        return self.capacity / self.window_seconds

    def allow(self, ip: str) -> tuple[bool, int]:
        """Consume one request for `ip`.

        Returns (allowed, retry_after_seconds). retry_after is 0 when allowed.
        """
        now = self._clock()
        if len(self._windows) + len(self._buckets) > _SWEEP_THRESHOLD:
            self._sweep(now)
        if self.fixed_window:
            return self._allow_window(ip, now)
        return self._allow_bucket(ip, now)

    def _allow_bucket(self, ip: str, now: float) -> tuple[bool, int]:
        bucket = self._buckets.get(ip)
        if bucket is None:
            self._buckets[ip] = _Bucket(tokens=self.capacity - 1, refilled_at=now)
            return True, 0

        elapsed = max(0.0, now - bucket.refilled_at)
        bucket.tokens = min(self.capacity, bucket.tokens + elapsed * self.refill_per_second)
        bucket.refilled_at = now

        if bucket.tokens < 1:
            deficit = 1 - bucket.tokens
            return False, max(1, math.ceil(deficit / self.refill_per_second))

        bucket.tokens -= 1
        return True, 0

    def _allow_window(self, ip: str, now: float) -> tuple[bool, int]:
        window = self._windows.get(ip)
        if window is None or now - window.started_at >= self.window_seconds:
            self._windows[ip] = _Window(started_at=now, count=1)
            return True, 0

        if window.count >= self.capacity:
            remaining = self.window_seconds - (now - window.started_at)
            return False, max(1, math.ceil(remaining))

        window.count += 1
        return True, 0

    def reset(self) -> None:
        self._windows.clear()
        self._buckets.clear()

    def _sweep(self, now: float) -> None:
        # Expired windows and buckets idle long enough to be full again
        for ip in [
            ip for ip, w in self._windows.items() if now - w.started_at >= self.window_seconds
        ]:
            del self._windows[ip]
        for ip in [
            ip for ip, b in self._buckets.items() if now - b.refilled_at >= self.window_seconds
        ]:
            del self._buckets[ip]


analytics_limiter = RateLimiter(
    "analytics_events", capacity=30, window_seconds=15, fixed_window=True
)
login_limiter = RateLimiter("login", capacity=12, window_seconds=60, fixed_window=True)
chatbot_limiter = RateLimiter("chatbot", capacity=20, window_seconds=60)
livechat_read_limiter = RateLimiter("livechat_get", capacity=180, window_seconds=60)
livechat_write_limiter = RateLimiter("livechat_post", capacity=60, window_seconds=60)
section_tree_limiter = RateLimiter("section_tree", capacity=240, window_seconds=60)

ALL_LIMITERS = (
    analytics_limiter,
    login_limiter,
    chatbot_limiter,
    livechat_read_limiter,
    livechat_write_limiter,
    section_tree_limiter,
)


def get_client_ip(request: Request) -> str:
    """Best-effort client IP: first X-Forwarded-For hop, X-Real-IP, then the peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit(limiter: RateLimiter) -> Callable[[Request], None]:
    """Build a FastAPI dependency that enforces `limiter` per client IP."""

    def dependency(request: Request) -> None:
        ip = get_client_ip(request)
        allowed, retry_after = limiter.allow(ip)
        if not allowed:
            logger.warning(
                "Rate limit exceeded",
                extra={
                    "bucket": limiter.name,
                    "client_ip": ip,
                    "retry_after": retry_after,
                    "path": request.url.path,
                },
            )
            raise RateLimitedError(retry_after)

    return dependency
