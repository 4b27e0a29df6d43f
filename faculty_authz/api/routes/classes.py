"""
Class routes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from faculty_authz.api.dependencies.database import get_db
from faculty_authz.core.auth import (
    CurrentSubject,
    RateLimited,
    Scope,
    StaffSubject,
    require_ownership,
    with_activity_log,
)
from faculty_authz.models.class_session import ClassSession
from faculty_authz.schemas.class_session import (
    ClassListResponse,
    ClassResponse,
    ClassStatusUpdate,
)
from faculty_authz.services.course import CourseService

router = APIRouter()

OwnedClass = Annotated[ClassSession, Depends(require_ownership("class", "class_id"))]


@router.get("", response_model=ClassListResponse)
async def list_classes(
    subject: CurrentSubject,
    scope: Scope,
    _: RateLimited,
    course_id: int | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """List visible classes, optionally for one course."""
    classes = await CourseService(db).list_classes(subject, scope, course_id=course_id)
    return ClassListResponse(
        classes=[ClassResponse.model_validate(c) for c in classes],
        total=len(classes),
    )


@router.get("/{class_id}", response_model=ClassResponse)
async def get_class(class_session: OwnedClass, _: RateLimited):
    """Get class by ID."""
    return ClassResponse.model_validate(class_session)


@router.patch(
    "/{class_id}/status",
    response_model=ClassResponse,
    dependencies=[
        Depends(with_activity_log(
            "status_updated",
            lambda ctx: f"Marked class {ctx.path_params['class_id']} as {ctx.resource.status}",
        )),
    ],
)
async def update_class_status(
    data: ClassStatusUpdate,
    _subject: StaffSubject,
    class_session: OwnedClass,
    _: RateLimited,
    db: AsyncSession = Depends(get_db),
):
    """Change the status of a class."""
    class_session = await CourseService(db).set_class_status(class_session, data.status)
    return ClassResponse.model_validate(class_session)
