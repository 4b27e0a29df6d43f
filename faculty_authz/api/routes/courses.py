"""
Course routes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from faculty_authz.api.dependencies.database import get_db
from faculty_authz.core.auth import (
    CurrentSubject,
    ElevatedSubject,
    RateLimited,
    Role,
    Scope,
    StaffSubject,
    require_faculty_scope,
    require_ownership,
    with_activity_log,
)
from faculty_authz.models.course import Course
from faculty_authz.schemas.course import (
    CourseCreate,
    CourseListResponse,
    CourseResponse,
    CourseUpdate,
)
from faculty_authz.services.course import CourseService

router = APIRouter()

OwnedCourse = Annotated[Course, Depends(require_ownership("course", "course_id"))]


@router.get("", response_model=CourseListResponse)
async def list_courses(
    subject: CurrentSubject,
    scope: Scope,
    _: RateLimited,
    db: AsyncSession = Depends(get_db),
):
    """List the courses the caller teaches, oversees or is enrolled in."""
    courses, total = await CourseService(db).list_courses(subject, scope)
    return CourseListResponse(
        courses=[CourseResponse.model_validate(c) for c in courses],
        total=total,
    )


@router.get(
    "/faculty/{faculty_name}",
    response_model=CourseListResponse,
    dependencies=[Depends(require_faculty_scope())],
)
async def list_faculty_courses(
    faculty_name: str,
    subject: CurrentSubject,
    scope: Scope,
    _: RateLimited,
    db: AsyncSession = Depends(get_db),
):
    """Courses of one faculty, narrowed to what the caller may see."""
    courses, _total = await CourseService(db).list_courses(subject, scope)
    courses = [c for c in courses if c.faculty_name == faculty_name]
    return CourseListResponse(
        courses=[CourseResponse.model_validate(c) for c in courses],
        total=len(courses),
    )


@router.post(
    "",
    response_model=CourseResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[
        Depends(with_activity_log(
            "course_created",
            lambda ctx: f"Created course {ctx.resource.code}: {ctx.resource.name}",
        )),
    ],
)
async def create_course(
    data: CourseCreate,
    request: Request,
    subject: ElevatedSubject,
    _: RateLimited,
    db: AsyncSession = Depends(get_db),
):
    """Create a course. PRL and Program Leader only."""
    course = await CourseService(db).create(data, created_by=subject.id)
    request.state.resource = course
    return CourseResponse.model_validate(course)


@router.get("/{course_id}", response_model=CourseResponse)
async def get_course(course: OwnedCourse, _: RateLimited):
    """Get course by ID."""
    return CourseResponse.model_validate(course)


@router.patch(
    "/{course_id}",
    response_model=CourseResponse,
    dependencies=[
        Depends(with_activity_log(
            "course_updated",
            lambda ctx: f"Updated course {ctx.resource.code}",
        )),
    ],
)
async def update_course(
    data: CourseUpdate,
    subject: StaffSubject,
    course: OwnedCourse,
    _: RateLimited,
    db: AsyncSession = Depends(get_db),
):
    """Update course. Lecturers may edit only the courses they teach."""
    if subject.has_role(Role.LECTURER):
        # Reassigning the lecturer is a faculty decision
        data = CourseUpdate(**data.model_dump(exclude_unset=True, exclude={"lecturer_id"}))
    course = await CourseService(db).update(course, data)
    return CourseResponse.model_validate(course)
