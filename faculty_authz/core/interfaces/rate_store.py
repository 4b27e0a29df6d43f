"""
Rate store protocol.
Implementations: MemoryRateStore (single process), RedisRateStore (shared).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class WindowState:
    """
    Outcome of one sliding-window hit.

    Attributes:
        allowed: Whether the hit was recorded
        count: Timestamps in the window after the hit
        oldest: Oldest in-window timestamp (None when the window is empty)
    """
    allowed: bool
    count: int
    oldest: float | None = None


class RateStore(Protocol):
    """
    Per-key list of request timestamps bounded to a trailing window.

    ``hit`` must be atomic per key: prune timestamps older than
    ``now - window_seconds``, deny when ``limit`` or more remain, otherwise
    append ``now`` and allow.
    """

    async def hit(
        self,
        key: str,
        now: float,
        window_seconds: float,
        limit: int,
    ) -> WindowState:
        """Record a request if the window has room."""
        ...

    async def count(self, key: str, now: float, window_seconds: float) -> int:
        """Timestamps currently in the window, without recording."""
        ...

    async def reset(self, key: str) -> None:
        """Forget every timestamp for a key."""
        ...

    async def sweep(self, now: float, window_seconds: float) -> int:
        """Drop keys with no in-window timestamps. Returns keys removed."""
        ...
