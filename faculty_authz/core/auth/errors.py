"""
Authorization error taxonomy.

Every guard in the request chain fails by raising one of these. The app
renders them as ``{"error": message}`` with ``status_code``.

    MissingCredential            401
    InvalidCredential            403
    CredentialExpired            403
    SubjectVanished              403
    AccountNotActive             403
    AuthenticationRequired       401
    InsufficientRole             403
    CrossFacultyAccessDenied     403
    CrossDepartmentAccessDenied  403
    ResourceNotFound             404
    OwnershipDenied              403
    RateLimitExceeded            429
    AuthorizationCheckFailed     500
"""

from contextlib import contextmanager
from typing import Iterator

import structlog
from fastapi import status

from faculty_authz.schemas.common import ErrorResponse

logger = structlog.get_logger()


class AuthorizationError(Exception):
    """Base class for every denial raised by the authorization core."""

    status_code: int = status.HTTP_403_FORBIDDEN
    code: str = "authorization_error"
    default_message: str = "Access denied"

    def __init__(self, message: str | None = None, headers: dict[str, str] | None = None) -> None:
        self.message = message or self.default_message
        self.headers = headers or {}
        super().__init__(self.message)

    def to_body(self) -> dict[str, str]:
        return ErrorResponse(error=self.message).model_dump()


# ============================================================
# CREDENTIAL FAILURES
# ============================================================

class MissingCredential(AuthorizationError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "missing_credential"
    default_message = "Access token required"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class InvalidCredential(AuthorizationError):
    code = "invalid_credential"
    default_message = "Invalid or expired token"


class CredentialExpired(AuthorizationError):
    code = "credential_expired"
    default_message = "Invalid or expired token"


class SubjectVanished(AuthorizationError):
    code = "subject_vanished"
    default_message = "User no longer exists"


class AccountNotActive(AuthorizationError):
    code = "account_not_active"

    def __init__(self, account_status: str | None) -> None:
        self.account_status = (account_status or "inactive").lower()
        super().__init__(f"Account is {self.account_status}")


# ============================================================
# POLICY DENIALS
# ============================================================

class AuthenticationRequired(AuthorizationError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "authentication_required"
    default_message = "Authentication required"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class InsufficientRole(AuthorizationError):
    code = "insufficient_role"

    def __init__(self, allowed_roles: list[str], actual_role: str | None) -> None:
        self.allowed_roles = allowed_roles
        self.actual_role = actual_role
        super().__init__(
            f"Access denied. Required roles: {', '.join(allowed_roles)}. "
            f"Your role: {actual_role}"
        )


class CrossFacultyAccessDenied(AuthorizationError):
    code = "cross_faculty_access_denied"
    default_message = "Access denied. You can only access resources in your faculty."


class CrossDepartmentAccessDenied(AuthorizationError):
    code = "cross_department_access_denied"
    default_message = "Access denied. You can only access resources in your department."


class ResourceNotFound(AuthorizationError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "resource_not_found"

    def __init__(self, resource_type: str, message: str | None = None) -> None:
        self.resource_type = resource_type
        super().__init__(message or f"{resource_type.capitalize()} not found")


class OwnershipDenied(AuthorizationError):
    code = "ownership_denied"

    def __init__(self, resource_type: str) -> None:
        self.resource_type = resource_type
        super().__init__(f"Access denied to this {resource_type}")


class RateLimitExceeded(AuthorizationError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "rate_limit_exceeded"

    def __init__(self, retry_after: int, limit: int) -> None:
        self.retry_after = retry_after
        self.limit = limit
        super().__init__(
            "Too many requests, please try again later",
            headers={
                "Retry-After": str(retry_after),
                "X-RateLimit-Limit": str(limit),
                "X-RateLimit-Remaining": "0",
            },
        )


class AuthorizationCheckFailed(AuthorizationError):
    """A guard could not complete (database down, store error, ...)."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "authorization_check_failed"
    default_message = "Server error during authorization"


# ============================================================
# FAIL-CLOSED HELPER
# ============================================================

@contextmanager
def fail_closed(check: str, **log_context: object) -> Iterator[None]:
    """
    Turn any unexpected fault inside a guard into a 500 denial.

    Authorization errors pass through untouched; task cancellation is a
    BaseException and is never caught here.

    Usage:
        with fail_closed("ownership", resource_type="course"):
            course = await store.get_course(course_id)
    """
    try:
        yield
    except AuthorizationError:
        raise
    except Exception as exc:
        logger.exception("Authorization check failed", check=check, **log_context)
        raise AuthorizationCheckFailed() from exc
