"""
Class schemas.
"""

from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict, field_validator

from faculty_authz.models.class_session import ClassStatus


class ClassStatusUpdate(BaseModel):
    """Status change for one class."""
    status: str = Field(min_length=1, max_length=20)

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        for allowed in ClassStatus.ALL:
            if v.strip().lower() == allowed.lower():
                return allowed
        raise ValueError(f"status must be one of {', '.join(ClassStatus.ALL)}")


class ClassResponse(BaseModel):
    """Class response schema."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    course_id: int
    lecturer_id: int | None = None
    topic: str | None = None
    room: str | None = None
    scheduled_at: datetime | None = None
    duration_minutes: int | None = None
    status: str


class ClassListResponse(BaseModel):
    classes: list[ClassResponse]
    total: int
