"""
Role and scope guards.

RoleGuard: the caller's canonical role must be in an allow-list.
ScopeGuard: Lecturers and Students are confined to their own faculty and
department; PRL and Program Leader bypass both checks.
"""

from typing import Iterable

import structlog

from .errors import (
    AuthenticationRequired,
    CrossDepartmentAccessDenied,
    CrossFacultyAccessDenied,
    InsufficientRole,
)
from .roles import Role, normalize_role
from .subject import Subject

logger = structlog.get_logger()


class RoleGuard:
    """
    Allow-list check on the caller's canonical role.

    Usage:
        guard = RoleGuard([Role.PRL, Role.PROGRAM_LEADER])
        guard.check(subject)   # raises InsufficientRole
        guard.allow(subject)   # bool
    """

    def __init__(self, allowed_roles: Iterable[Role | str]):
        roles: list[Role | str] = []
        for role in allowed_roles:
            normalized = normalize_role(role)
            if normalized is not None and normalized not in roles:
                roles.append(normalized)
        self.allowed_roles = tuple(roles)

    def allow(self, subject: Subject | None) -> bool:
        if subject is None:
            return False
        return normalize_role(subject.role) in self.allowed_roles

    def check(self, subject: Subject | None) -> Subject:
        if subject is None:
            raise AuthenticationRequired()

        actual = normalize_role(subject.role)
        if actual not in self.allowed_roles:
            logger.warning(
                "Role check denied",
                subject_id=subject.id,
                role=str(actual) if actual else None,
                allowed=[str(r) for r in self.allowed_roles],
            )
            raise InsufficientRole(
                [str(r) for r in self.allowed_roles],
                str(actual) if actual is not None else None,
            )
        return subject


class ScopeGuard:
    """
    Faculty and department boundary checks.

    A value absent from the request is not a denial: listings are scoped
    separately by the scope provider.
    """

    @staticmethod
    def allow_faculty(subject: Subject, requested_faculty: str | None) -> bool:
        if subject.is_elevated:
            return True
        if not requested_faculty:
            return True
        return requested_faculty == subject.faculty_name

    @staticmethod
    def allow_department(subject: Subject, requested_department: str | None) -> bool:
        if subject.is_elevated:
            return True
        if not requested_department:
            return True
        return requested_department == subject.department

    @classmethod
    def check_faculty(cls, subject: Subject | None, requested_faculty: str | None) -> Subject:
        if subject is None:
            raise AuthenticationRequired()
        if not cls.allow_faculty(subject, requested_faculty):
            logger.warning(
                "Cross-faculty access denied",
                subject_id=subject.id,
                own_faculty=subject.faculty_name,
                requested_faculty=requested_faculty,
            )
            raise CrossFacultyAccessDenied()
        return subject

    @classmethod
    def check_department(cls, subject: Subject | None, requested_department: str | None) -> Subject:
        if subject is None:
            raise AuthenticationRequired()
        if not cls.allow_department(subject, requested_department):
            logger.warning(
                "Cross-department access denied",
                subject_id=subject.id,
                own_department=subject.department,
                requested_department=requested_department,
            )
            raise CrossDepartmentAccessDenied()
        return subject
