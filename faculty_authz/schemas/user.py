"""
User schemas.
"""

from datetime import datetime
from pydantic import BaseModel, ConfigDict


class UserResponse(BaseModel):
    """User response schema."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    role: str
    faculty_name: str | None = None
    department: str | None = None
    status: str
    last_activity: datetime | None = None


class SubjectResponse(BaseModel):
    """The caller as the authorization core sees it."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    role: str | None = None
    username: str | None = None
    email: str | None = None
    faculty_name: str | None = None
    department: str | None = None
    status: str


class UserListResponse(BaseModel):
    """User list response."""
    users: list[UserResponse]
    total: int
