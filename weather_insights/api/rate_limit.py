"""
Sliding-window rate limiting per client.

The window lives in a Redis sorted set when Redis is configured, so every
worker shares it; otherwise each process keeps its own window in memory.
Rejected requests do not count against the window.
"""

from __future__ import annotations

import logging
import math
import threading
import time
import uuid
from collections import deque
from dataclasses import dataclass
from typing import Callable, Protocol

import redis
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from weather_insights.core.config import Settings
from weather_insights.core.errors import RateLimitExceededError, error_body

logger = logging.getLogger(__name__)

KEY_PREFIX = "ratelimit:weather:"


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after: int

    def headers(self) -> dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after)
        return headers


class RateLimiter(Protocol):
    limit: int
    window_seconds: int

    def hit(self, client_key: str) -> RateLimitDecision: ...


def _decide(
    *, limit: int, window_seconds: int, count: int, oldest: float | None, now: float
) -> RateLimitDecision:
    retry_after = window_seconds
    if oldest is not None:
        retry_after = max(1, math.ceil(oldest + window_seconds - now))
    return RateLimitDecision(
        allowed=count < limit,
        limit=limit,
        remaining=max(0, limit - count - 1),
        retry_after=retry_after,
    )


class InMemoryRateLimiter:
    def __init__(
        self, *, limit: int, window_seconds: int, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._hits: dict[str, deque[float]] = {}

    def hit(self, client_key: str) -> RateLimitDecision:
        now = self._clock()
        with self._lock:
            hits = self._hits.setdefault(client_key, deque())
            while hits and hits[0] <= now - self.window_seconds:
                hits.popleft()
            count = len(hits)
            oldest = hits[0] if hits else None
            if count < self.limit:
                hits.append(now)
        return _decide(
            limit=self.limit,
            window_seconds=self.window_seconds,
            count=count,
            oldest=oldest,
            now=now,
        )


class RedisRateLimiter:
    """Window kept in a sorted set scored by request time."""

    def __init__(
        self,
        client: redis.Redis,
        *,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock

    def hit(self, client_key: str) -> RateLimitDecision:
        key = f"{KEY_PREFIX}{client_key}"
        now = self._clock()
        member = f"{now}:{uuid.uuid4().hex}"

        pipe = self._client.pipeline()
        pipe.zremrangebyscore(key, 0, now - self.window_seconds)
        pipe.zcard(key)
        pipe.zrange(key, 0, 0, withscores=True)
        pipe.zadd(key, {member: now})
        pipe.expire(key, self.window_seconds * 2)
        results = pipe.execute()

        count = int(results[1])
        oldest = float(results[2][0][1]) if results[2] else None
        if count >= self.limit:
            self._client.zrem(key, member)
        return _decide(
            limit=self.limit,
            window_seconds=self.window_seconds,
            count=count,
            oldest=oldest,
            now=now,
        )


def create_rate_limiter(
    settings: Settings, redis_client: redis.Redis | None = None
) -> RateLimiter | None:
    if settings.rate_limit_requests <= 0:
        logger.info("Rate limiting disabled")
        return None
    if redis_client is not None:
        return RedisRateLimiter(
            redis_client,
            limit=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
    return InMemoryRateLimiter(
        limit=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )


def client_key(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Applies ``app.state.rate_limiter`` to paths under ``path_prefix``."""

    def __init__(self, app, *, path_prefix: str) -> None:
        super().__init__(app)
        self._path_prefix = path_prefix

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        limiter: RateLimiter | None = getattr(request.app.state, "rate_limiter", None)
        if limiter is None or not request.url.path.startswith(self._path_prefix):
            return await call_next(request)

        key = client_key(request)
        decision = await run_in_threadpool(limiter.hit, key)
        if not decision.allowed:
            exc = RateLimitExceededError(limiter.limit, limiter.window_seconds)
            logger.warning("Rate limit exceeded for %s on %s", key, request.url.path)
            return JSONResponse(
                status_code=exc.status_code,
                content=error_body(request.url.path, exc.status_code, exc.message),
                headers=decision.headers(),
            )

        response = await call_next(request)
        for name, value in decision.headers().items():
            response.headers[name] = value
        return response
