"""
Class (scheduled teaching session) model.
"""

from datetime import datetime
from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, IntegerIdMixin, TimestampMixin


class ClassStatus:
    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    POSTPONED = "Postponed"

    ALL = (SCHEDULED, COMPLETED, CANCELLED, POSTPONED)


class ClassSession(Base, IntegerIdMixin, TimestampMixin):
    """
    One class of a course.

    Its lecturer is stored directly; its faculty comes from the parent course.
    """

    __tablename__ = "classes"

    course_id: Mapped[int] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    lecturer_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    topic: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    room: Mapped[str | None] = mapped_column(String(100), nullable=True)
    scheduled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)

    status: Mapped[str] = mapped_column(String(20), default=ClassStatus.SCHEDULED, nullable=False)

    def __repr__(self) -> str:
        return f"<ClassSession {self.id} course={self.course_id}>"
