"""Activity log model for the audit trail."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, IntegerIdMixin


class ActivityLog(Base, IntegerIdMixin):
    """
    Append-only, human-readable trail of successful actions.

    Written in the background after a 2xx response; never read back by the
    authorization core.
    """

    __tablename__ = "activity_logs"

    # Who performed the action
    user_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # What happened
    activity_type: Mapped[str] = mapped_column(String(100))  # "course_created", "status_updated", ...
    description: Mapped[str] = mapped_column(Text)

    # Request context
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)  # IPv6 max length
    user_agent: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True,
    )

    def __repr__(self) -> str:
        return f"<ActivityLog {self.activity_type} user={self.user_id}>"
