"""
User routes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from faculty_authz.api.dependencies.database import get_db
from faculty_authz.core.auth import (
    CurrentSubject,
    RateLimited,
    Scope,
    normalize_role,
    require_department_scope,
    require_ownership,
)
from faculty_authz.models.user import User
from faculty_authz.schemas.user import SubjectResponse, UserListResponse, UserResponse
from faculty_authz.services.user import UserService

router = APIRouter()


@router.get("/me", response_model=SubjectResponse)
async def get_me(subject: CurrentSubject):
    """The caller as the authorization core sees it."""
    role = subject.canonical_role
    return SubjectResponse(
        id=subject.id,
        role=str(role) if role is not None else None,
        username=subject.username,
        email=subject.email,
        faculty_name=subject.faculty_name,
        department=subject.department,
        status=subject.status,
    )


@router.get("", response_model=UserListResponse)
async def list_users(
    subject: CurrentSubject,
    scope: Scope,
    _: RateLimited,
    role: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """List users visible to the caller."""
    canonical = normalize_role(role)
    users = await UserService(db).list_visible(
        subject,
        scope,
        role=str(canonical) if canonical is not None else None,
    )
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        total=len(users),
    )


@router.get(
    "/department/{department}",
    response_model=UserListResponse,
    dependencies=[Depends(require_department_scope())],
)
async def list_department_users(
    department: str,
    subject: CurrentSubject,
    scope: Scope,
    _: RateLimited,
    db: AsyncSession = Depends(get_db),
):
    """Visible users of one department. Lecturers and Students only see their own."""
    users = await UserService(db).list_visible(subject, scope, department=department)
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        total=len(users),
    )

@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user: Annotated[User, Depends(require_ownership("user", "user_id", conceal=True))],
    _: RateLimited,
):
    """Get user by ID. Users outside the caller's reach read as not found."""
    return UserResponse.model_validate(user)
