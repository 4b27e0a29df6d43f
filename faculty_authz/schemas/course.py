"""
Course schemas.
"""

from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict


class CourseCreate(BaseModel):
    """Course creation schema."""
    name: str = Field(min_length=1, max_length=255)
    code: str = Field(min_length=1, max_length=50)
    description: str | None = Field(None, max_length=2000)
    credits: int | None = Field(None, ge=0, le=60)
    lecturer_id: int | None = None
    faculty_name: str = Field(min_length=1, max_length=255)
    department: str | None = Field(None, max_length=255)


class CourseUpdate(BaseModel):
    """Course update schema."""
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)
    credits: int | None = Field(None, ge=0, le=60)
    lecturer_id: int | None = None
    status: str | None = Field(None, max_length=20)


class CourseResponse(BaseModel):
    """Course response schema."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    code: str
    description: str | None = None
    credits: int | None = None
    lecturer_id: int | None = None
    faculty_name: str
    department: str | None = None
    status: str
    created_at: datetime


class CourseListResponse(BaseModel):
    """Course list response."""
    courses: list[CourseResponse]
    total: int
