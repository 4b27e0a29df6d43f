"""
Faculty scope provider - DEFAULT implementation.

Listings are narrowed by role so each caller only sees the rows the
ownership matrix would let them open one by one:

    courses   Lecturer: lecturer_id == self
              PRL/PL:   faculty_name == own faculty
              Student:  id IN enrolled course ids
    classes   Lecturer: lecturer_id == self
              PRL/PL:   course_id IN courses of own faculty
              Student:  course_id IN enrolled course ids
    users     Student:  self only
              Lecturer: Students of own faculty
              PRL:      Lecturers and Students of own faculty
              PL:       everyone in own faculty

Usage:
    AUTH_SCOPE_PROVIDER=faculty
"""

from typing import Any

from sqlalchemy import Select, false, select

from faculty_authz.models.course import Course, Enrollment, EnrollmentStatus

from ..interfaces import DataScope, ScopeProvider
from ..registry import AuthRegistry
from ..roles import Role, normalize_role


def _enrolled_course_ids(student_id: int) -> Select:
    return select(Enrollment.course_id).where(
        Enrollment.student_id == student_id,
        Enrollment.status == EnrollmentStatus.ENROLLED,
    )


def _faculty_course_ids(faculty_name: str) -> Select:
    return select(Course.id).where(Course.faculty_name == faculty_name)


@AuthRegistry.scope_provider("faculty")
class FacultyScopeProvider(ScopeProvider):
    """
    Role, faculty and enrollment based listing scope.

    An elevated caller without a faculty, or a caller with an unknown
    role, sees nothing.
    """

    def __init__(self, **kwargs: Any):
        self._builders = {
            "courses": self._course_scope,
            "classes": self._class_scope,
            "users": self._user_scope,
        }

    def get_scope(self, subject: Any, resource_type: str) -> DataScope:
        builder = self._builders.get(resource_type)
        if builder is None:
            return DataScope.nothing()
        return builder(subject, normalize_role(subject.role))

    def _course_scope(self, subject: Any, role: Any) -> DataScope:
        if role == Role.LECTURER:
            return DataScope.ownership(subject.id, field_name="lecturer_id")
        if role in (Role.PRL, Role.PROGRAM_LEADER):
            if not subject.faculty_name:
                return DataScope.nothing()
            return DataScope.faculty(subject.faculty_name)
        if role == Role.STUDENT:
            return DataScope(level="enrollment", filters={"id": _enrolled_course_ids(subject.id)})
        return DataScope.nothing()

    def _class_scope(self, subject: Any, role: Any) -> DataScope:
        if role == Role.LECTURER:
            return DataScope.ownership(subject.id, field_name="lecturer_id")
        if role in (Role.PRL, Role.PROGRAM_LEADER):
            if not subject.faculty_name:
                return DataScope.nothing()
            return DataScope(
                level="faculty",
                filters={"course_id": _faculty_course_ids(subject.faculty_name)},
            )
        if role == Role.STUDENT:
            return DataScope(
                level="enrollment",
                filters={"course_id": _enrolled_course_ids(subject.id)},
            )
        return DataScope.nothing()

    def _user_scope(self, subject: Any, role: Any) -> DataScope:
        if role == Role.STUDENT:
            return DataScope(level="self", filters={"id": subject.id})
        if not subject.faculty_name or role not in (Role.LECTURER, Role.PRL, Role.PROGRAM_LEADER):
            return DataScope.nothing()

        filters: dict[str, Any] = {"faculty_name": subject.faculty_name}
        if role == Role.LECTURER:
            filters["role"] = [Role.STUDENT.value]
        elif role == Role.PRL:
            filters["role"] = [Role.LECTURER.value, Role.STUDENT.value]
        return DataScope(level="faculty", filters=filters)

    def apply_to_query(self, query: Select, scope: DataScope, model: type) -> Select:
        """
        Apply scope to SQLAlchemy query.

        A filter naming a column the model lacks matches nothing.
        """
        if scope.level == "global":
            return query
        if scope.level == "none":
            return query.where(false())

        for field_name, value in scope.filters.items():
            column = getattr(model, field_name, None)
            if column is None:
                return query.where(false())
            if isinstance(value, Select):
                query = query.where(column.in_(value))
            elif isinstance(value, (list, tuple, set)):
                query = query.where(column.in_(list(value)))
            else:
                query = query.where(column == value)

        return query


@AuthRegistry.scope_provider("none")
class NoScopeProvider(ScopeProvider):
    """No filtering. Only for single-faculty deployments and tests."""

    def __init__(self, **kwargs: Any):
        pass

    def get_scope(self, subject: Any, resource_type: str) -> DataScope:
        return DataScope.global_access()

    def apply_to_query(self, query: Select, scope: DataScope, model: type) -> Select:
        return query
