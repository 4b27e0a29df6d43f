"""
Course and class service.
"""

from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from faculty_authz.models.class_session import ClassSession
from faculty_authz.models.course import Course
from faculty_authz.schemas.course import CourseCreate, CourseUpdate

logger = structlog.get_logger()


class CourseService:
    """Course and class management service."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_courses(self, subject: Any, scope_provider: Any) -> tuple[list[Course], int]:
        """Courses visible to the subject."""
        stmt = scope_provider.scoped(subject, select(Course), Course)

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = await self.db.scalar(count_stmt) or 0

        result = await self.db.execute(stmt.order_by(Course.code))
        return list(result.scalars().all()), total

    async def list_classes(
        self,
        subject: Any,
        scope_provider: Any,
        course_id: int | None = None,
    ) -> list[ClassSession]:
        """Classes visible to the subject."""
        stmt = scope_provider.scoped(subject, select(ClassSession), ClassSession)
        if course_id is not None:
            stmt = stmt.where(ClassSession.course_id == course_id)
        result = await self.db.execute(stmt.order_by(ClassSession.id))
        return list(result.scalars().all())

    async def create(self, data: CourseCreate, created_by: int) -> Course:
        """Create course."""
        course = Course(**data.model_dump(), created_by=created_by)
        self.db.add(course)
        await self.db.flush()
        await self.db.refresh(course)

        logger.info("Course created", course_id=course.id, code=course.code, created_by=created_by)
        return course

    async def update(self, course: Course, data: CourseUpdate) -> Course:
        """Update course."""
        update_data = data.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            setattr(course, field, value)

        await self.db.flush()
        await self.db.refresh(course)
        return course

    async def set_class_status(self, class_session: ClassSession, status: str) -> ClassSession:
        class_session.status = status
        await self.db.flush()
        await self.db.refresh(class_session)
        return class_session
