"""
Database models.
"""

from .base import Base, IntegerIdMixin, TimestampMixin
from .user import User, UserStatus
from .course import Course, Enrollment, EnrollmentStatus
from .class_session import ClassSession, ClassStatus
from .assignment import Assignment, Submission
from .activity_log import ActivityLog

__all__ = [
    # Base
    "Base",
    "IntegerIdMixin",
    "TimestampMixin",
    # Models
    "User",
    "UserStatus",
    "Course",
    "Enrollment",
    "EnrollmentStatus",
    "ClassSession",
    "ClassStatus",
    "Assignment",
    "Submission",
    "ActivityLog",
]
