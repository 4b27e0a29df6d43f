"""
Assignment and submission routes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from faculty_authz.core.auth import RateLimited, require_ownership
from faculty_authz.models.assignment import Assignment, Submission
from faculty_authz.schemas.coursework import AssignmentResponse, SubmissionResponse

router = APIRouter()


@router.get("/assignments/{assignment_id}", response_model=AssignmentResponse)
async def get_assignment(
    assignment: Annotated[Assignment, Depends(require_ownership("assignment", "assignment_id"))],
    _: RateLimited,
):
    """Get assignment by ID."""
    return AssignmentResponse.model_validate(assignment)


@router.get("/submissions/{submission_id}", response_model=SubmissionResponse)
async def get_submission(
    submission: Annotated[Submission, Depends(require_ownership("submission", "submission_id"))],
    _: RateLimited,
):
    """Get submission by ID."""
    return SubmissionResponse.model_validate(submission)
