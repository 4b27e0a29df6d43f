"""
Fire-and-forget background work.

Side effects that must never delay or fail a response (activity log rows,
last-activity touches) are spawned on a BackgroundChannel. The channel
holds strong references until each task finishes, logs failures instead
of letting them surface as "Task exception was never retrieved", and can
be drained on shutdown or in tests.

Usage:
    channel = BackgroundChannel()
    channel.spawn(recorder.write(entry), name="activity_log")
    ...
    await channel.drain()
"""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine

import structlog

from faculty_authz.utils.context import copy_context, restore_context

logger = structlog.get_logger()


class BackgroundChannel:
    """Tracks detached tasks so they are neither lost nor awaited by requests."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task:
        ctx_copy = copy_context()

        async def runner() -> Any:
            restore_context(ctx_copy)
            return await coro

        task = asyncio.create_task(runner(), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(
                "Background task failed",
                task=task.get_name(),
                error=str(exc),
                error_type=type(exc).__name__,
            )

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for every task spawned so far (and any they spawn)."""
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.wait(pending, timeout=timeout)
            if timeout is not None:
                return
