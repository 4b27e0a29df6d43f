"""
Activity log declarations.

A route declares its activity with ``with_activity_log``; the declaration
is parked on ``request.state`` and handed to the ActivityRecorder once the
response status is known. The description is rendered on the background
channel, after the response has gone out.
"""

import asyncio
import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Union

import structlog

from faculty_authz.services.activity import ActivityEntry

from .subject import Subject

logger = structlog.get_logger()


@dataclass(frozen=True)
class ActivityContext:
    """What a description callable gets to look at."""
    subject: Subject | None
    path_params: dict[str, Any] = field(default_factory=dict)
    resource: Any = None
    status_code: int = 200


Description = Union[
    str,
    Callable[[ActivityContext], str],
    Callable[[ActivityContext], Awaitable[str]],
    None,
]


@dataclass
class PendingActivity:
    activity_type: str
    description: Description
    subject: Subject | None
    path_params: dict[str, Any] = field(default_factory=dict)

    async def describe(self, context: ActivityContext) -> str:
        """Sync callables run in a worker thread so they never block the loop."""
        if callable(self.description):
            if inspect.iscoroutinefunction(self.description):
                return await self.description(context)
            return await asyncio.to_thread(self.description, context)
        if self.description:
            return self.description
        return self.activity_type.replace("_", " ").capitalize()

    async def to_entry(
        self,
        *,
        status_code: int,
        resource: Any = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> ActivityEntry | None:
        """Build the row to write. None when the description cannot be rendered."""
        context = ActivityContext(
            subject=self.subject,
            path_params=self.path_params,
            resource=resource,
            status_code=status_code,
        )
        try:
            description = await self.describe(context)
        except Exception as exc:
            logger.warning(
                "Activity description failed",
                activity_type=self.activity_type,
                error=str(exc),
            )
            return None

        return ActivityEntry(
            user_id=self.subject.id if self.subject else None,
            activity_type=self.activity_type,
            description=description,
            ip_address=ip_address,
            user_agent=user_agent,
        )
