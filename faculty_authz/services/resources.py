"""
Resource lookups used by the ownership resolver.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from faculty_authz.core.interfaces import SubmissionChain
from faculty_authz.models.assignment import Assignment, Submission
from faculty_authz.models.class_session import ClassSession
from faculty_authz.models.course import Course, Enrollment, EnrollmentStatus
from faculty_authz.models.user import User


class ResourceService:
    """SQL implementation of the ResourceStore protocol."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_course(self, course_id: int) -> Course | None:
        return await self.db.get(Course, course_id)

    async def get_class(self, class_id: int) -> ClassSession | None:
        return await self.db.get(ClassSession, class_id)

    async def get_assignment(self, assignment_id: int) -> Assignment | None:
        return await self.db.get(Assignment, assignment_id)

    async def get_submission(self, submission_id: int) -> Submission | None:
        return await self.db.get(Submission, submission_id)

    async def get_user(self, user_id: int) -> User | None:
        return await self.db.get(User, user_id)

    async def resolve_course_faculty(self, course_id: int) -> str | None:
        stmt = select(Course.faculty_name).where(Course.id == course_id)
        return await self.db.scalar(stmt)

    async def is_enrolled(self, student_id: int, course_id: int) -> bool:
        stmt = select(Enrollment.id).where(
            Enrollment.student_id == student_id,
            Enrollment.course_id == course_id,
            Enrollment.status == EnrollmentStatus.ENROLLED,
        )
        return (await self.db.scalar(stmt.limit(1))) is not None

    async def resolve_submission_chain(self, assignment_id: int) -> SubmissionChain | None:
        """assignment -> course in one join."""
        stmt = (
            select(Assignment.created_by, Course.lecturer_id, Course.faculty_name)
            .join(Course, Course.id == Assignment.course_id)
            .where(Assignment.id == assignment_id)
        )
        row = (await self.db.execute(stmt)).first()
        if row is None:
            return None
        return SubmissionChain(
            assignment_created_by=row[0],
            course_lecturer_id=row[1],
            faculty_name=row[2],
        )
