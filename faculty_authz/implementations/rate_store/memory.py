"""
In-memory rate store for single-process deployments and testing.
"""

from __future__ import annotations

import threading
from typing import Any

from faculty_authz.core.auth.registry import AuthRegistry
from faculty_authz.core.interfaces import WindowState


@AuthRegistry.rate_store("memory")
class MemoryRateStore:
    """
    Sliding-window timestamps kept in a dict.

    Note: Not shared between processes. Use RedisRateStore when the API
    runs with more than one worker.

    Every operation runs under one lock and never awaits while holding
    it, so a prune-check-append cannot interleave with another request
    for the same key.

    Usage:
        store = MemoryRateStore()
        state = await store.hit("user:12", time.time(), 900, 100)
    """

    def __init__(self, **kwargs: Any):
        self._hits: dict[str, list[float]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _prune(timestamps: list[float], cutoff: float) -> list[float]:
        return [ts for ts in timestamps if ts > cutoff]

    async def hit(
        self,
        key: str,
        now: float,
        window_seconds: float,
        limit: int,
    ) -> WindowState:
        with self._lock:
            timestamps = self._prune(self._hits.get(key, []), now - window_seconds)

            if len(timestamps) >= limit:
                self._hits[key] = timestamps
                return WindowState(allowed=False, count=len(timestamps), oldest=timestamps[0])

            timestamps.append(now)
            self._hits[key] = timestamps
            return WindowState(allowed=True, count=len(timestamps), oldest=timestamps[0])

    async def count(self, key: str, now: float, window_seconds: float) -> int:
        with self._lock:
            return len(self._prune(self._hits.get(key, []), now - window_seconds))

    async def reset(self, key: str) -> None:
        with self._lock:
            self._hits.pop(key, None)

    async def sweep(self, now: float, window_seconds: float) -> int:
        """Remove keys whose timestamps have all left the window."""
        cutoff = now - window_seconds
        removed = 0
        with self._lock:
            for key in list(self._hits):
                timestamps = self._prune(self._hits[key], cutoff)
                if timestamps:
                    self._hits[key] = timestamps
                else:
                    del self._hits[key]
                    removed += 1
        return removed

    def __len__(self) -> int:
        return len(self._hits)

    async def clear(self) -> None:
        """Clear all windows."""
        with self._lock:
            self._hits.clear()
