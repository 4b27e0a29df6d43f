"""
Assignment and submission schemas.
"""

from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict


class AssignmentResponse(BaseModel):
    """Assignment response schema."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    course_id: int
    created_by: int | None = None
    title: str
    instructions: str | None = None
    due_at: datetime | None = None


class SubmissionResponse(BaseModel):
    """Submission response schema."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    assignment_id: int
    student_id: int
    content: str | None = None
    grade: Decimal | None = None
    feedback: str | None = None
    created_at: datetime
