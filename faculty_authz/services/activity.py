"""
Activity log service and background recorders.

The activity trail is written after the response is decided and never
on the request's critical path: a failed write is logged and dropped.
"""

from dataclasses import dataclass
from typing import Any, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from faculty_authz.models.activity_log import ActivityLog
from faculty_authz.services.user import UserService
from faculty_authz.utils.background import BackgroundChannel

logger = structlog.get_logger()


@dataclass(frozen=True)
class ActivityEntry:
    """One row to append once the handler has succeeded."""
    user_id: Optional[int]
    activity_type: str
    description: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class ActivityLogService:
    """Appends activity log rows. The trail is never read back here."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log(self, entry: ActivityEntry) -> ActivityLog:
        """Create an activity log row."""
        row = ActivityLog(
            user_id=entry.user_id,
            activity_type=entry.activity_type,
            description=entry.description,
            ip_address=entry.ip_address,
            user_agent=entry.user_agent[:512] if entry.user_agent else None,
        )

        self.db.add(row)
        await self.db.commit()
        await self.db.refresh(row)

        logger.info(
            "Activity logged",
            activity_type=entry.activity_type,
            user_id=entry.user_id,
        )
        return row


class ActivityRecorder:
    """
    Appends activity rows in the background.

    Usage:
        recorder = ActivityRecorder(get_session_factory(), channel)
        recorder.record_outcome(response.status_code, pending, resource=course)

    ``pending`` is anything with an async ``to_entry(**request_meta)``
    (see PendingActivity); rendering happens inside the spawned task.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], channel: BackgroundChannel):
        self.session_factory = session_factory
        self.channel = channel

    def record_outcome(self, status_code: int, pending: Any, **request_meta: Any) -> bool:
        """Schedule the activity when the response was a 2xx. Returns whether it was scheduled."""
        if not 200 <= status_code < 300:
            return False
        self.channel.spawn(
            self.record(pending, status_code=status_code, **request_meta),
            name=f"activity:{pending.activity_type}",
        )
        return True

    async def record(self, pending: Any, **request_meta: Any) -> None:
        entry = await pending.to_entry(**request_meta)
        if entry is not None:
            await self.write(entry)

    async def write(self, entry: ActivityEntry) -> None:
        try:
            async with self.session_factory() as session:
                await ActivityLogService(session).log(entry)
        except Exception as exc:
            logger.warning(
                "Activity log write failed",
                activity_type=entry.activity_type,
                user_id=entry.user_id,
                error=str(exc),
            )


class LastActivityToucher:
    """Best-effort update of users.last_activity after a verified credential."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], channel: BackgroundChannel):
        self.session_factory = session_factory
        self.channel = channel

    def schedule(self, user_id: int) -> None:
        self.channel.spawn(self.touch(user_id), name="last_activity")

    async def touch(self, user_id: int) -> None:
        try:
            async with self.session_factory() as session:
                await UserService(session).touch_last_activity(user_id)
        except Exception as exc:
            logger.warning("Last-activity update failed", user_id=user_id, error=str(exc))
