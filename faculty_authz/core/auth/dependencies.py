"""
FastAPI dependencies for the authorization chain.

Guards compose in this order; each one either passes or raises an
AuthorizationError, and a failure short-circuits the rest:

    authenticate -> role -> faculty/department scope -> ownership
                 -> rate limit -> activity log

Usage:
    from faculty_authz.core.auth import (
        CurrentSubject, RateLimited, require_role, require_ownership, with_activity_log,
    )

    @router.patch(
        "/{course_id}",
        dependencies=[
            Depends(require_role(Role.LECTURER, Role.PRL)),
            Depends(with_activity_log("course_updated", "Updated course")),
        ],
    )
    async def update_course(
        subject: CurrentSubject,
        course: Annotated[Course, Depends(require_ownership("course", "course_id"))],
        _: RateLimited,
    ):
        ...

Parameters resolve in declaration order, so list ownership before the
rate limit when denied requests should not count against the caller.
"""

import json
from functools import lru_cache
from typing import Annotated, Any, Callable, Optional

from fastapi import Depends, Request, Response
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from faculty_authz.api.dependencies.database import get_db
from faculty_authz.core.config import get_settings
from faculty_authz.services.resources import ResourceService
from faculty_authz.services.user import UserService
from faculty_authz.utils.context import set_context_user

from .activity import Description, PendingActivity
from .credentials import CredentialValidator
from .errors import MissingCredential, RateLimitExceeded, ResourceNotFound
from .guards import RoleGuard, ScopeGuard
from .interfaces import ScopeProvider
from .ownership import OwnershipResolver, ResourceType
from .ratelimit import RateLimitDecision
from .registry import AuthRegistry
from .roles import Role
from .subject import Subject

# Import to register default implementations
from . import scope  # noqa: F401


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


# ============================================================
# COMPONENT FACTORIES
# ============================================================

@lru_cache
def get_scope_provider() -> ScopeProvider:
    """
    Get configured scope provider.

    Reads from AUTH_SCOPE_PROVIDER environment variable.
    Default: "faculty"
    """
    return AuthRegistry.get_scope_provider(get_settings().auth.scope_provider)


# ============================================================
# SUBJECT DEPENDENCIES
# ============================================================

async def _resolve_subject(
    request: Request,
    token: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Subject | None:
    """
    Validate the bearer token once per request.

    Returns None only when no token was presented; a presented but bad
    token always raises.
    """
    if not token:
        return None

    settings = get_settings()
    toucher = getattr(request.app.state, "last_activity", None)
    validator = CredentialValidator(
        UserService(db),
        secret_key=settings.auth.secret_key,
        algorithm=settings.auth.algorithm,
        on_verified=toucher.schedule if toucher is not None else None,
    )
    subject = await validator.validate(token)

    request.state.subject = subject
    set_context_user(
        str(subject.id),
        str(subject.canonical_role) if subject.canonical_role else None,
        subject.faculty_name,
    )
    return subject


async def get_current_subject(
    subject: Subject | None = Depends(_resolve_subject),
) -> Subject:
    """
    Get the authenticated subject.

    Raises:
        MissingCredential 401: No bearer token
        InvalidCredential / CredentialExpired 403: Bad token
        SubjectVanished / AccountNotActive 403: Token outlived its user
    """
    if subject is None:
        raise MissingCredential()
    return subject


async def get_current_subject_optional(
    subject: Subject | None = Depends(_resolve_subject),
) -> Subject | None:
    """Subject if a token was presented, None otherwise."""
    return subject


# ============================================================
# ROLE AND SCOPE
# ============================================================

def require_role(*roles: Role | str) -> Callable[..., Any]:
    """
    Allow-list on the caller's canonical role.

    Usage:
        @router.get("/reports", dependencies=[Depends(require_role(Role.PRL, Role.PROGRAM_LEADER))])
    """
    guard = RoleGuard(roles)

    async def role_dependency(subject: Subject = Depends(get_current_subject)) -> Subject:
        return guard.check(subject)

    return role_dependency


async def _requested_value(request: Request, name: str) -> str | None:
    """Look ``name`` up in path params, then the query string, then a JSON body."""
    value = request.path_params.get(name)
    if value is None:
        value = request.query_params.get(name)
    if value is None and request.method in ("POST", "PUT", "PATCH"):
        if "application/json" in request.headers.get("content-type", ""):
            try:
                body = await request.json()
            except (json.JSONDecodeError, UnicodeDecodeError):
                body = None
            if isinstance(body, dict):
                value = body.get(name)
    if value is None or value == "":
        return None
    return str(value)


def require_faculty_scope(param: str = "faculty_name") -> Callable[..., Any]:
    """Confine Lecturers and Students to their own faculty."""

    async def faculty_dependency(
        request: Request,
        subject: Subject = Depends(get_current_subject),
    ) -> Subject:
        return ScopeGuard.check_faculty(subject, await _requested_value(request, param))

    return faculty_dependency


def require_department_scope(param: str = "department") -> Callable[..., Any]:
    """Confine Lecturers and Students to their own department."""

    async def department_dependency(
        request: Request,
        subject: Subject = Depends(get_current_subject),
    ) -> Subject:
        return ScopeGuard.check_department(subject, await _requested_value(request, param))

    return department_dependency


# ============================================================
# OWNERSHIP
# ============================================================

def require_ownership(
    resource_type: ResourceType | str,
    id_param: str = "id",
    *,
    conceal: Optional[bool] = None,
) -> Callable[..., Any]:
    """
    Fetch the addressed resource and check the subject may act on it.

    The resource is returned and also left on ``request.state.resource``.
    ``conceal`` defaults to AUTH_CONCEAL_FORBIDDEN.
    """
    resource_type = ResourceType(resource_type)

    async def ownership_dependency(
        request: Request,
        subject: Subject = Depends(get_current_subject),
        db: AsyncSession = Depends(get_db),
    ) -> Any:
        raw_id = request.path_params.get(id_param)
        try:
            resource_id = int(raw_id)
        except (TypeError, ValueError):
            raise ResourceNotFound(resource_type.value)

        hide = get_settings().auth.conceal_forbidden if conceal is None else conceal
        resolver = OwnershipResolver(ResourceService(db))
        resource = await resolver.require(resource_type, resource_id, subject, conceal=hide)

        request.state.resource = resource
        return resource

    return ownership_dependency


# ============================================================
# RATE LIMIT
# ============================================================

async def rate_limited(
    request: Request,
    response: Response,
    subject: Subject | None = Depends(get_current_subject_optional),
) -> RateLimitDecision:
    """
    Count the request against the subject's window.

    Unauthenticated requests pass through uncounted.
    """
    limiter = getattr(request.app.state, "rate_limiter", None)
    if limiter is None or subject is None:
        return RateLimitDecision.uncounted()

    decision = await limiter.try_acquire(subject.id, subject.role)
    if not decision.allowed:
        raise RateLimitExceeded(decision.retry_after, decision.limit)

    response.headers["X-RateLimit-Limit"] = str(decision.limit)
    response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
    return decision


# ============================================================
# ACTIVITY LOG
# ============================================================

def with_activity_log(activity_type: str, description: Description = None) -> Callable[..., Any]:
    """
    Declare the activity row written once this route answers 2xx.

    ``description`` is a string or a callable taking an ActivityContext.
    The write happens in ActivityLogMiddleware, off the request path.
    """

    async def activity_dependency(
        request: Request,
        subject: Subject | None = Depends(get_current_subject_optional),
    ) -> None:
        request.state.pending_activity = PendingActivity(
            activity_type=activity_type,
            description=description,
            subject=subject,
            path_params=dict(request.path_params),
        )

    return activity_dependency


# ============================================================
# TYPE ALIASES FOR CLEAN SIGNATURES
# ============================================================

# Authenticated subject (required)
CurrentSubject = Annotated[Subject, Depends(get_current_subject)]

# Authenticated subject (optional)
OptionalSubject = Annotated[Optional[Subject], Depends(get_current_subject_optional)]

# PRL or Program Leader
ElevatedSubject = Annotated[Subject, Depends(require_role(Role.PRL, Role.PROGRAM_LEADER))]

# Any teaching staff
StaffSubject = Annotated[Subject, Depends(require_role(Role.LECTURER, Role.PRL, Role.PROGRAM_LEADER))]

# Counted against the per-role window
RateLimited = Annotated[RateLimitDecision, Depends(rate_limited)]

# Listing scope
Scope = Annotated[ScopeProvider, Depends(get_scope_provider)]
