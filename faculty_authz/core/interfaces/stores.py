"""
Store protocols consumed by the authorization core.

Implementations: services.user.UserService (SQL), services.resources.ResourceService (SQL).
Tests use in-memory fakes.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class SubmissionChain:
    """Owner and scope facts for a submission, read through assignment -> course."""

    assignment_created_by: int | None
    course_lecturer_id: int | None
    faculty_name: str | None


class UserStore(Protocol):
    """
    Live user lookups used by the credential check.

    Returned rows expose: id, role, username, email, faculty_name,
    department, status.
    """

    async def get_by_id(self, user_id: int) -> Any | None:
        """Get the current user row. None if it does not exist."""
        ...

    async def touch_last_activity(self, user_id: int) -> None:
        """Best-effort update of the user's last-activity timestamp."""
        ...


class ResourceStore(Protocol):
    """
    Fetch-by-id per resource type plus the narrow joins the ownership
    predicates need.
    """

    async def get_course(self, course_id: int) -> Any | None:
        ...

    async def get_class(self, class_id: int) -> Any | None:
        ...

    async def get_assignment(self, assignment_id: int) -> Any | None:
        ...

    async def get_submission(self, submission_id: int) -> Any | None:
        ...

    async def get_user(self, user_id: int) -> Any | None:
        ...

    async def resolve_course_faculty(self, course_id: int) -> str | None:
        """Faculty of a course. None if the course does not exist."""
        ...

    async def is_enrolled(self, student_id: int, course_id: int) -> bool:
        """True when an Enrolled row exists for (student, course)."""
        ...

    async def resolve_submission_chain(self, assignment_id: int) -> SubmissionChain | None:
        """Assignment creator, course lecturer and faculty in one join."""
        ...
