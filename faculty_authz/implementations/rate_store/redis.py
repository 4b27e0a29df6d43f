"""
Redis rate store implementation.

Each key is a sorted set of request timestamps (score = timestamp). The
prune-check-append runs as one Lua script so it stays atomic across
every API process sharing the Redis instance.
"""

from __future__ import annotations

import uuid
from typing import Any

import redis.asyncio as redis

from faculty_authz.core.auth.registry import AuthRegistry
from faculty_authz.core.interfaces import WindowState


# KEYS[1] window key
# ARGV: now, cutoff, limit, member, ttl_ms
SLIDING_WINDOW_SCRIPT = """
redis.call('ZREMRANGEBYSCORE', KEYS[1], '-inf', ARGV[2])
local count = redis.call('ZCARD', KEYS[1])
local allowed = 0
if count < tonumber(ARGV[3]) then
    redis.call('ZADD', KEYS[1], ARGV[1], ARGV[4])
    redis.call('PEXPIRE', KEYS[1], ARGV[5])
    count = count + 1
    allowed = 1
end
local oldest = redis.call('ZRANGE', KEYS[1], 0, 0, 'WITHSCORES')
local oldest_score = ''
if oldest[2] then
    oldest_score = oldest[2]
end
return {allowed, count, oldest_score}
"""


@AuthRegistry.rate_store("redis")
class RedisRateStore:
    """
    Shared sliding-window store.

    Keys expire one window after their last hit, so ``sweep`` has nothing
    to do here.

    Usage:
        store = RedisRateStore(redis_url="redis://localhost:6379/0")
        state = await store.hit("user:12", time.time(), 900, 100)

        # Tests pass a client directly
        store = RedisRateStore(client=fakeredis.FakeAsyncRedis(decode_responses=True))
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        prefix: str = "rate_limit:",
        client: redis.Redis | None = None,
        max_connections: int = 10,
        **kwargs: Any,
    ):
        self.redis_url = redis_url
        self.prefix = prefix
        self.max_connections = max_connections
        self._client = client
        self._script = None

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                max_connections=self.max_connections,
            )
        return self._client

    def _key(self, key: str) -> str:
        """Prepend prefix to key."""
        return f"{self.prefix}{key}" if self.prefix else key

    async def hit(
        self,
        key: str,
        now: float,
        window_seconds: float,
        limit: int,
    ) -> WindowState:
        if self._script is None:
            self._script = self.client.register_script(SLIDING_WINDOW_SCRIPT)

        member = f"{now:.6f}:{uuid.uuid4().hex}"
        ttl_ms = int(window_seconds * 1000)
        allowed, count, oldest = await self._script(
            keys=[self._key(key)],
            args=[repr(now), repr(now - window_seconds), limit, member, ttl_ms],
        )
        return WindowState(
            allowed=bool(int(allowed)),
            count=int(count),
            oldest=float(oldest) if oldest not in (None, "", b"") else None,
        )

    async def count(self, key: str, now: float, window_seconds: float) -> int:
        return await self.client.zcount(self._key(key), f"({now - window_seconds!r}", "+inf")

    async def reset(self, key: str) -> None:
        await self.client.delete(self._key(key))

    async def sweep(self, now: float, window_seconds: float) -> int:
        return 0

    async def close(self) -> None:
        """Disconnect from Redis."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            self._script = None
