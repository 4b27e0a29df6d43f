"""Middleware package."""

from faculty_authz.api.middleware.activity import ActivityLogMiddleware
from faculty_authz.api.middleware.logging import LoggingMiddleware

__all__ = [
    "ActivityLogMiddleware",
    "LoggingMiddleware",
]
