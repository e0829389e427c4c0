# assessment_engine/core/rate_limit.py
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


@dataclass
class _Bucket:
    tokens: int
    window_start: float


class RateLimiter:
    """
    Per-key fixed-window token bucket, in process memory only.

    Every key gets ``rate`` admissions per ``window`` seconds. ``allow`` and
    ``sweep`` share one lock, so concurrent callers never over-admit.
    """

    def __init__(
        self,
        rate: int,
        window: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.rate = rate
        self.window = window
        self._clock = clock
        self._buckets: Dict[str, _Bucket] = {}
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._sweeper: Optional[threading.Thread] = None

    def allow(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None or now - bucket.window_start > self.window:
                self._buckets[key] = _Bucket(tokens=self.rate - 1, window_start=now)
                return self.rate > 0
            if bucket.tokens > 0:
                bucket.tokens -= 1
                return True
            return False

    def sweep(self) -> int:
        """Drop buckets idle for more than two windows. Returns how many."""
        now = self._clock()
        with self._lock:
            stale = [
                key for key, bucket in self._buckets.items()
                if now - bucket.window_start > 2 * self.window
            ]
            for key in stale:
                del self._buckets[key]
        if stale:
            logger.debug(f"Rate limiter swept {len(stale)} idle key(s)")
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)

    def start_sweeper(self, interval: float) -> None:
        if self._sweeper is not None and self._sweeper.is_alive():
            return
        self._stop.clear()

        def _run():
            while not self._stop.wait(interval):
                self.sweep()

        self._sweeper = threading.Thread(target=_run, name="rate-limit-sweeper", daemon=True)
        self._sweeper.start()
        logger.info(f"Rate limiter sweeper started (every {interval}s)")

    def stop_sweeper(self) -> None:
        self._stop.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout=1.0)
            self._sweeper = None


def client_key(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client is not None:
        return request.client.host
    return "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, limiter: RateLimiter):
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next):
        key = client_key(request)
        if not self.limiter.allow(key):
            logger.info(f"Rate limited {key} on {request.method} {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "detail": "Too many requests. Please try again later.",
                    "code": "RATE_LIMITED",
                },
            )
        return await call_next(request)
