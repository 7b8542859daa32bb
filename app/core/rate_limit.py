"""
Sliding-window rate limiting.

A limiter is created once per application (see app.main lifespan) and handed
to endpoints through a FastAPI dependency, so no module-level counters exist.
The Redis backend keeps one sorted set per key, which makes the limit hold
across every API instance sharing that Redis.
"""

import asyncio
import logging
import time
import uuid
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Callable

import redis.asyncio as redis
from fastapi import Request

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    retry_after: int


class RateLimiter:
    """Allow at most `limit` hits per key within the last `window_seconds`."""

    def __init__(
        self,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
    ):
        if limit < 1 or window_seconds < 1:
            raise ValueError("limit and window_seconds must be positive")
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock

    async def hit(self, key: str) -> RateLimitResult:
        raise NotImplementedError

    async def reset(self, key: str) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        return None

    def _retry_after(self, oldest: float, now: float) -> int:
        return max(1, int(oldest + self.window_seconds - now) + 1)


class InMemoryRateLimiter(RateLimiter):
    """Per-process limiter for development and tests."""

    def __init__(self, limit: int, window_seconds: int, clock: Callable[[], float] = time.time):
        super().__init__(limit, window_seconds, clock)
        self._hits: dict[str, deque[float]] = defaultdict(deque)
        self._lock = asyncio.Lock()

    async def hit(self, key: str) -> RateLimitResult:
        async with self._lock:
            now = self.clock()
            hits = self._hits[key]
            while hits and hits[0] <= now - self.window_seconds:
                hits.popleft()

            if len(hits) >= self.limit:
                return RateLimitResult(
                    allowed=False,
                    remaining=0,
                    retry_after=self._retry_after(hits[0], now),
                )

            hits.append(now)
            return RateLimitResult(
                allowed=True,
                remaining=self.limit - len(hits),
                retry_after=0,
            )

    async def reset(self, key: str) -> None:
        async with self._lock:
            self._hits.pop(key, None)


class RedisRateLimiter(RateLimiter):
    """Shared limiter backed by a Redis sorted set per key."""

    def __init__(
        self,
        client: redis.Redis,
        limit: int,
        window_seconds: int,
        prefix: str = "ratelimit",
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(limit, window_seconds, clock)
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, limit: int, window_seconds: int) -> "RedisRateLimiter":
        client = redis.from_url(url, encoding="utf-8", decode_responses=True)
        return cls(client, limit, window_seconds)

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    async def hit(self, key: str) -> RateLimitResult:
        # Trim, insert and count in one MULTI so concurrent callers each see
        # their own position in the window; a hit past the limit is removed.
        redis_key = self._key(key)
        now = self.clock()
        member = f"{now}:{uuid.uuid4().hex}"

        async with self.client.pipeline(transaction=True) as pipe:
            pipe.zremrangebyscore(redis_key, 0, now - self.window_seconds)
            pipe.zadd(redis_key, {member: now})
            pipe.zcard(redis_key)
            pipe.zrange(redis_key, 0, 0, withscores=True)
            pipe.expire(redis_key, self.window_seconds)
            _, _, count, oldest, _ = await pipe.execute()

        if count > self.limit:
            await self.client.zrem(redis_key, member)
            oldest_score = oldest[0][1] if oldest else now
            return RateLimitResult(
                allowed=False,
                remaining=0,
                retry_after=self._retry_after(oldest_score, now),
            )

        return RateLimitResult(
            allowed=True,
            remaining=self.limit - count,
            retry_after=0,
        )

    async def reset(self, key: str) -> None:
        await self.client.delete(self._key(key))

    async def close(self) -> None:
        await self.client.aclose()


def create_interest_rate_limiter(
    redis_url: str, limit: int, window_seconds: int
) -> RateLimiter:
    if redis_url:
        logger.info("Using Redis rate limiter (%d per %ds)", limit, window_seconds)
        return RedisRateLimiter.from_url(redis_url, limit, window_seconds)
    logger.info("Using in-memory rate limiter (%d per %ds)", limit, window_seconds)
    return InMemoryRateLimiter(limit, window_seconds)


def get_interest_rate_limiter(request: Request) -> RateLimiter:
    """FastAPI dependency returning the limiter built in the app lifespan."""
    return request.app.state.interest_rate_limiter
