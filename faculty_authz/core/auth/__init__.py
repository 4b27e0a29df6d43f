"""
Authorization module - role and ownership checks for the reporting API.

Usage Levels:
=============

Level 1: Authenticated Caller
-----------------------------
    from faculty_authz.core.auth import CurrentSubject

    @router.get("/me")
    async def handler(subject: CurrentSubject):  # 401/403 on bad credentials
        ...

Level 2: Role Allow-List
------------------------
    from faculty_authz.core.auth import Role, require_role

    @router.get("/reports", dependencies=[Depends(require_role(Role.PRL, Role.PROGRAM_LEADER))])
    async def handler():
        ...

Level 3: Faculty Scope
----------------------
    @router.get("/faculty/{faculty_name}/courses", dependencies=[Depends(require_faculty_scope())])

Level 4: Ownership
------------------
    @router.get("/classes/{class_id}")
    async def handler(cls: Annotated[ClassSession, Depends(require_ownership("class", "class_id"))]):
        ...

Level 5: Rate Limit and Activity Trail
--------------------------------------
    @router.patch("/classes/{class_id}/status", dependencies=[Depends(with_activity_log("status_updated"))])
    async def handler(cls: ..., _: RateLimited):
        ...

Configuration:
==============

Environment variables (or in config):
- AUTH_SECRET_KEY / AUTH_ALGORITHM: bearer token verification
- AUTH_SCOPE_PROVIDER: "faculty" (default), "none"
- AUTH_CONCEAL_FORBIDDEN: false (default), true
- RATE_LIMIT_BACKEND: "memory" (default), "redis"
"""

from .roles import Role, normalize_role, is_elevated, role_rank
from .subject import Subject
from .errors import (
    AuthorizationError,
    MissingCredential,
    InvalidCredential,
    CredentialExpired,
    SubjectVanished,
    AccountNotActive,
    AuthenticationRequired,
    InsufficientRole,
    CrossFacultyAccessDenied,
    CrossDepartmentAccessDenied,
    ResourceNotFound,
    OwnershipDenied,
    RateLimitExceeded,
    AuthorizationCheckFailed,
    fail_closed,
)
from .credentials import CredentialValidator
from .guards import RoleGuard, ScopeGuard
from .ownership import OwnershipResolver, OwnershipResult, ResourceType
from .ratelimit import RateLimiter, RateLimitPolicy, RateLimitDecision
from .interfaces import DataScope, ScopeProvider
from .registry import AuthRegistry
from .activity import ActivityContext
from .dependencies import (
    # Dependencies
    get_current_subject,
    get_current_subject_optional,
    get_scope_provider,
    require_role,
    require_faculty_scope,
    require_department_scope,
    require_ownership,
    rate_limited,
    with_activity_log,
    # Type aliases
    CurrentSubject,
    OptionalSubject,
    ElevatedSubject,
    StaffSubject,
    RateLimited,
    Scope,
)

__all__ = [
    # Roles
    "Role",
    "normalize_role",
    "is_elevated",
    "role_rank",
    "Subject",
    # Errors
    "AuthorizationError",
    "MissingCredential",
    "InvalidCredential",
    "CredentialExpired",
    "SubjectVanished",
    "AccountNotActive",
    "AuthenticationRequired",
    "InsufficientRole",
    "CrossFacultyAccessDenied",
    "CrossDepartmentAccessDenied",
    "ResourceNotFound",
    "OwnershipDenied",
    "RateLimitExceeded",
    "AuthorizationCheckFailed",
    "fail_closed",
    # Components
    "CredentialValidator",
    "RoleGuard",
    "ScopeGuard",
    "OwnershipResolver",
    "OwnershipResult",
    "ResourceType",
    "RateLimiter",
    "RateLimitPolicy",
    "RateLimitDecision",
    "DataScope",
    "ScopeProvider",
    "AuthRegistry",
    "ActivityContext",
    # Dependencies
    "get_current_subject",
    "get_current_subject_optional",
    "get_scope_provider",
    "require_role",
    "require_faculty_scope",
    "require_department_scope",
    "require_ownership",
    "rate_limited",
    "with_activity_log",
    # Type aliases
    "CurrentSubject",
    "OptionalSubject",
    "ElevatedSubject",
    "StaffSubject",
    "RateLimited",
    "Scope",
]
