"""
Tests for ownership resolution.
"""

import itertools

import pytest

from faculty_authz.core.auth import (
    AuthorizationCheckFailed,
    OwnershipDenied,
    OwnershipResolver,
    ResourceNotFound,
    Subject,
)

from conftest import FakeResourceStore, row


LECTURER = Subject(id=10, role="Lecturer", faculty_name="FICT")
OTHER_LECTURER = Subject(id=11, role="Lecturer", faculty_name="FICT")
PRL = Subject(id=20, role="PRL", faculty_name="FICT")
FOREIGN_PRL = Subject(id=21, role="Principal Lecturer", faculty_name="FBMG")
PL = Subject(id=30, role="Program Leader", faculty_name="FICT")
STUDENT = Subject(id=40, role="Student", faculty_name="FICT")
OTHER_STUDENT = Subject(id=41, role="Student", faculty_name="FICT")


@pytest.fixture
def store() -> FakeResourceStore:
    """
    One FICT course taught by lecturer 10, with a class, an assignment set
    by lecturer 11 (co-teaching) and a submission by student 40.
    """
    store = FakeResourceStore()
    store.courses[1] = row(1, lecturer_id=10, faculty_name="FICT")
    store.classes[5] = row(5, course_id=1, lecturer_id=10)
    store.assignments[7] = row(7, course_id=1, created_by=11)
    store.submissions[9] = row(9, assignment_id=7, student_id=40)
    store.users[40] = row(40, faculty_name="FICT")
    store.users[41] = row(41, faculty_name="FBMG")
    store.enrollments.add((40, 1))
    return store


async def has_access(store, resource_type, resource_id, subject) -> bool:
    result = await OwnershipResolver(store).resolve(resource_type, resource_id, subject)
    return result.has_access


# ============ Access Matrix ============


@pytest.mark.asyncio
@pytest.mark.parametrize("subject, expected", [
    (LECTURER, True),
    (OTHER_LECTURER, False),
    (PRL, True),
    (PL, True),
    (FOREIGN_PRL, False),
    (STUDENT, False),
])
async def test_course_access(store, subject, expected):
    assert await has_access(store, "course", 1, subject) is expected


@pytest.mark.asyncio
@pytest.mark.parametrize("subject, expected", [
    (LECTURER, True),
    (OTHER_LECTURER, False),
    (PRL, True),
    (FOREIGN_PRL, False),
    (STUDENT, True),
    (OTHER_STUDENT, False),
])
async def test_class_access(store, subject, expected):
    assert await has_access(store, "class", 5, subject) is expected


@pytest.mark.asyncio
@pytest.mark.parametrize("subject, expected", [
    (OTHER_LECTURER, True),
    (LECTURER, False),
    (PL, True),
    (FOREIGN_PRL, False),
    (STUDENT, True),
    (OTHER_STUDENT, False),
])
async def test_assignment_access(store, subject, expected):
    """Assignments belong to whoever created them, not the course lecturer."""
    assert await has_access(store, "assignment", 7, subject) is expected


@pytest.mark.asyncio
@pytest.mark.parametrize("subject, expected", [
    (STUDENT, True),
    (OTHER_STUDENT, False),
    (OTHER_LECTURER, True),   # created the assignment
    (LECTURER, True),         # teaches the course
    (PRL, True),
    (FOREIGN_PRL, False),
])
async def test_submission_access(store, subject, expected):
    assert await has_access(store, "submission", 9, subject) is expected


@pytest.mark.asyncio
@pytest.mark.parametrize("user_id, subject, expected", [
    (40, STUDENT, True),
    (40, OTHER_STUDENT, False),
    (40, LECTURER, False),
    (40, PRL, True),
    (41, PRL, False),
])
async def test_user_access(store, user_id, subject, expected):
    assert await has_access(store, "user", user_id, subject) is expected


@pytest.mark.asyncio
async def test_unknown_role_is_denied_everywhere(store):
    dean = Subject(id=99, role="Dean", faculty_name="FICT")

    for resource_type, resource_id in [("course", 1), ("class", 5), ("assignment", 7), ("submission", 9)]:
        assert await has_access(store, resource_type, resource_id, dean) is False


@pytest.mark.asyncio
async def test_elevated_without_faculty_is_denied(store):
    prl = Subject(id=20, role="PRL", faculty_name=None)

    assert await has_access(store, "course", 1, prl) is False
    assert await has_access(store, "class", 5, prl) is False


@pytest.mark.asyncio
async def test_dropped_enrollment_does_not_grant_access(store):
    store.enrollments.clear()

    assert await has_access(store, "class", 5, STUDENT) is False


# ============ Exhaustive Matrix ============


ROLES = ["Student", "Lecturer", "PRL", "Program Leader"]
RESOURCE_TYPES = ["course", "class", "assignment", "submission", "user"]
SUBJECT_ID = 10
OTHER_ID = 99


def expected_access(resource_type, role, owns, same_faculty, enrolled) -> bool:
    """The access table written out case by case."""
    elevated = role in ("PRL", "Program Leader")
    if resource_type == "course":
        return (role == "Lecturer" and owns) or (elevated and same_faculty)
    if resource_type in ("class", "assignment"):
        return (
            (role == "Lecturer" and owns)
            or (elevated and same_faculty)
            or (role == "Student" and enrolled)
        )
    if resource_type == "submission":
        return (role in ("Student", "Lecturer") and owns) or (elevated and same_faculty)
    # user: self, or an elevated subject of the same faculty
    return owns or (elevated and same_faculty)


def matrix_store(owns: bool, same_faculty: bool, enrolled: bool) -> FakeResourceStore:
    """
    One resource of every type, all hanging off course 1.

    ``owns`` makes the subject the lecturer, the assignment creator, the
    submitting student and the addressed user at once; each predicate
    only looks at the field relevant to its type.
    """
    owner = SUBJECT_ID if owns else OTHER_ID
    faculty = "FICT" if same_faculty else "FBMG"

    store = FakeResourceStore()
    store.courses[1] = row(1, lecturer_id=owner, faculty_name=faculty)
    store.classes[1] = row(1, course_id=1, lecturer_id=owner)
    store.assignments[1] = row(1, course_id=1, created_by=owner)
    store.submissions[1] = row(1, assignment_id=1, student_id=owner)
    store.users[owner] = row(owner, faculty_name=faculty)
    if enrolled:
        store.enrollments.add((SUBJECT_ID, 1))
    return store


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "resource_type, role, owns, same_faculty, enrolled",
    list(itertools.product(RESOURCE_TYPES, ROLES, [True, False], [True, False], [True, False])),
)
async def test_access_matrix_is_exhaustive(resource_type, role, owns, same_faculty, enrolled):
    store = matrix_store(owns, same_faculty, enrolled)
    subject = Subject(id=SUBJECT_ID, role=role, faculty_name="FICT")
    resource_id = (SUBJECT_ID if owns else OTHER_ID) if resource_type == "user" else 1

    allowed = await has_access(store, resource_type, resource_id, subject)

    assert allowed is expected_access(resource_type, role, owns, same_faculty, enrolled)


# ============ Lookup Short-Circuiting ============


@pytest.mark.asyncio
async def test_lecturer_class_check_needs_no_lookups(store):
    await has_access(store, "class", 5, LECTURER)

    assert store.lookups() == []


@pytest.mark.asyncio
async def test_prl_class_check_only_resolves_faculty(store):
    await has_access(store, "class", 5, PRL)

    assert store.lookups() == ["resolve_course_faculty"]


@pytest.mark.asyncio
async def test_student_class_check_only_checks_enrollment(store):
    await has_access(store, "class", 5, STUDENT)

    assert store.lookups() == ["is_enrolled"]


@pytest.mark.asyncio
async def test_student_submission_check_needs_no_lookups(store):
    await has_access(store, "submission", 9, STUDENT)

    assert store.lookups() == []


@pytest.mark.asyncio
async def test_lecturer_submission_check_uses_one_chain_lookup(store):
    await has_access(store, "submission", 9, LECTURER)

    assert store.lookups() == ["resolve_submission_chain"]


# ============ require() ============


@pytest.mark.asyncio
async def test_require_returns_resource(store):
    course = await OwnershipResolver(store).require("course", 1, LECTURER)

    assert course.id == 1


@pytest.mark.asyncio
async def test_require_missing_resource_is_404(store):
    with pytest.raises(ResourceNotFound) as exc_info:
        await OwnershipResolver(store).require("class", 404, LECTURER)

    assert exc_info.value.status_code == 404
    assert exc_info.value.to_body() == {"error": "Class not found"}


@pytest.mark.asyncio
async def test_require_denied_is_403(store):
    with pytest.raises(OwnershipDenied) as exc_info:
        await OwnershipResolver(store).require("course", 1, OTHER_LECTURER)

    assert exc_info.value.status_code == 403
    assert exc_info.value.to_body() == {"error": "Access denied to this course"}


@pytest.mark.asyncio
async def test_require_conceal_hides_denial_as_404(store):
    with pytest.raises(ResourceNotFound) as denied:
        await OwnershipResolver(store).require("user", 41, PRL, conceal=True)
    with pytest.raises(ResourceNotFound) as missing:
        await OwnershipResolver(store).require("user", 404, PRL, conceal=True)

    assert denied.value.to_body() == {"error": "User not found or access denied"}
    assert missing.value.to_body() == denied.value.to_body()


@pytest.mark.asyncio
async def test_lookup_failure_fails_closed(store):
    store.fail_on = "is_enrolled"

    with pytest.raises(AuthorizationCheckFailed) as exc_info:
        await OwnershipResolver(store).require("class", 5, STUDENT)

    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_fetch_failure_fails_closed(store):
    store.fail_on = "get_course"

    with pytest.raises(AuthorizationCheckFailed):
        await OwnershipResolver(store).resolve("course", 1, PRL)
