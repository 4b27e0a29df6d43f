"""
Ownership resolution.

One dispatch table holds the whole access matrix. Each entry is an async
predicate ``(resource, subject, lookups) -> bool``; the auxiliary lookups
are lazy so a predicate only queries when the subject's role needs it.

    course      Lecturer owns (lecturer_id)   | PRL/PL same faculty
    class       Lecturer owns (lecturer_id)   | PRL/PL parent course faculty | Student enrolled
    assignment  Lecturer owns (created_by)    | PRL/PL parent course faculty | Student enrolled
    submission  Student owns (student_id)     | Lecturer created assignment or teaches course
                                              | PRL/PL chain faculty
    user        self                          | PRL/PL same faculty

Scope never needs more than two foreign-key hops (resource -> course -> faculty).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable

import structlog

from faculty_authz.core.interfaces import ResourceStore, SubmissionChain

from .errors import OwnershipDenied, ResourceNotFound, fail_closed
from .roles import Role, normalize_role
from .subject import Subject

logger = structlog.get_logger()


class ResourceType(str, Enum):
    COURSE = "course"
    CLASS = "class"
    ASSIGNMENT = "assignment"
    SUBMISSION = "submission"
    USER = "user"

    def __str__(self) -> str:
        return self.value


@dataclass
class OwnershipResult:
    resource: Any
    has_access: bool


def _same_faculty(faculty: str | None, subject: Subject) -> bool:
    """A missing faculty on either side never matches."""
    return faculty is not None and subject.faculty_name is not None and faculty == subject.faculty_name


class AuxLookups:
    """
    Lazy auxiliary queries used by the predicates.

    Each lookup hits the store at most once per resolution; ``calls``
    records which ones ran.
    """

    def __init__(self, store: ResourceStore):
        self.store = store
        self.calls: list[str] = []
        self._course_faculty: dict[int, str | None] = {}
        self._chains: dict[int, SubmissionChain | None] = {}

    async def course_faculty(self, course_id: int | None) -> str | None:
        if course_id is None:
            return None
        if course_id not in self._course_faculty:
            self.calls.append("resolve_course_faculty")
            self._course_faculty[course_id] = await self.store.resolve_course_faculty(course_id)
        return self._course_faculty[course_id]

    async def is_enrolled(self, student_id: int, course_id: int | None) -> bool:
        if course_id is None:
            return False
        self.calls.append("is_enrolled")
        return await self.store.is_enrolled(student_id, course_id)

    async def submission_chain(self, assignment_id: int | None) -> SubmissionChain | None:
        if assignment_id is None:
            return None
        if assignment_id not in self._chains:
            self.calls.append("resolve_submission_chain")
            self._chains[assignment_id] = await self.store.resolve_submission_chain(assignment_id)
        return self._chains[assignment_id]


Predicate = Callable[[Any, Subject, AuxLookups], Awaitable[bool]]


# ============================================================
# ACCESS PREDICATES
# ============================================================

async def can_access_course(course: Any, subject: Subject, lookups: AuxLookups) -> bool:
    role = normalize_role(subject.role)
    if role == Role.LECTURER:
        return course.lecturer_id == subject.id
    if subject.is_elevated:
        return _same_faculty(course.faculty_name, subject)
    return False


def _course_child_predicate(owner_field: str) -> Predicate:
    """Class and assignment share one shape; only the owner column differs."""

    async def predicate(resource: Any, subject: Subject, lookups: AuxLookups) -> bool:
        role = normalize_role(subject.role)
        if role == Role.LECTURER:
            return getattr(resource, owner_field) == subject.id
        if subject.is_elevated:
            faculty = await lookups.course_faculty(resource.course_id)
            return _same_faculty(faculty, subject)
        if role == Role.STUDENT:
            return await lookups.is_enrolled(subject.id, resource.course_id)
        return False

    predicate.__name__ = f"can_access_by_{owner_field}"
    return predicate


can_access_class = _course_child_predicate("lecturer_id")
can_access_assignment = _course_child_predicate("created_by")


async def can_access_submission(submission: Any, subject: Subject, lookups: AuxLookups) -> bool:
    role = normalize_role(subject.role)
    if role == Role.STUDENT:
        return submission.student_id == subject.id
    if role == Role.LECTURER:
        chain = await lookups.submission_chain(submission.assignment_id)
        if chain is None:
            return False
        # Creator of the assignment or lecturer of the course (co-teaching allowance)
        return subject.id in (chain.assignment_created_by, chain.course_lecturer_id)
    if subject.is_elevated:
        chain = await lookups.submission_chain(submission.assignment_id)
        return chain is not None and _same_faculty(chain.faculty_name, subject)
    return False


async def can_access_user(user: Any, subject: Subject, lookups: AuxLookups) -> bool:
    if user.id == subject.id:
        return True
    if subject.is_elevated:
        return _same_faculty(user.faculty_name, subject)
    return False


ACCESS_PREDICATES: dict[ResourceType, Predicate] = {
    ResourceType.COURSE: can_access_course,
    ResourceType.CLASS: can_access_class,
    ResourceType.ASSIGNMENT: can_access_assignment,
    ResourceType.SUBMISSION: can_access_submission,
    ResourceType.USER: can_access_user,
}


# ============================================================
# RESOLVER
# ============================================================

class OwnershipResolver:
    """
    Fetch a resource and decide whether the subject may act on it.

    Usage:
        resolver = OwnershipResolver(ResourceService(db))
        result = await resolver.resolve("class", class_id, subject)
        if result.has_access:
            ...

        course = await resolver.require("course", course_id, subject)
    """

    def __init__(
        self,
        store: ResourceStore,
        predicates: dict[ResourceType, Predicate] | None = None,
    ):
        self.store = store
        self.predicates = predicates or ACCESS_PREDICATES
        self._fetchers: dict[ResourceType, Callable[[int], Awaitable[Any]]] = {
            ResourceType.COURSE: store.get_course,
            ResourceType.CLASS: store.get_class,
            ResourceType.ASSIGNMENT: store.get_assignment,
            ResourceType.SUBMISSION: store.get_submission,
            ResourceType.USER: store.get_user,
        }

    async def fetch(self, resource_type: ResourceType | str, resource_id: int) -> Any:
        resource_type = ResourceType(resource_type)
        with fail_closed("ownership", resource_type=resource_type.value, resource_id=resource_id):
            resource = await self._fetchers[resource_type](resource_id)
        if resource is None:
            raise ResourceNotFound(resource_type.value)
        return resource

    async def resolve(
        self,
        resource_type: ResourceType | str,
        resource_id: int,
        subject: Subject,
    ) -> OwnershipResult:
        """
        Returns the resource with the access verdict.

        Raises:
            ResourceNotFound: the resource does not exist
            AuthorizationCheckFailed: a lookup failed (never allows)
        """
        resource_type = ResourceType(resource_type)
        resource = await self.fetch(resource_type, resource_id)

        lookups = AuxLookups(self.store)
        with fail_closed("ownership", resource_type=resource_type.value, resource_id=resource_id):
            has_access = await self.predicates[resource_type](resource, subject, lookups)

        logger.debug(
            "Ownership resolved",
            resource_type=resource_type.value,
            resource_id=resource_id,
            has_access=has_access,
            lookups=lookups.calls,
            **subject.to_log_dict(),
        )
        return OwnershipResult(resource=resource, has_access=bool(has_access))

    async def require(
        self,
        resource_type: ResourceType | str,
        resource_id: int,
        subject: Subject,
        *,
        conceal: bool = False,
    ) -> Any:
        """
        Resolve or raise.

        With ``conceal`` a denial is reported exactly like a missing
        resource, so faculty-scoped lookups cannot be used to test for
        existence.
        """
        resource_type = ResourceType(resource_type)
        concealed_message = f"{resource_type.value.capitalize()} not found or access denied"

        try:
            result = await self.resolve(resource_type, resource_id, subject)
        except ResourceNotFound:
            if conceal:
                raise ResourceNotFound(resource_type.value, concealed_message)
            raise

        if not result.has_access:
            logger.warning(
                "Ownership denied",
                resource_type=resource_type.value,
                resource_id=resource_id,
                **subject.to_log_dict(),
            )
            if conceal:
                raise ResourceNotFound(resource_type.value, concealed_message)
            raise OwnershipDenied(resource_type.value)

        return result.resource
