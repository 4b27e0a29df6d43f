"""
Bearer credential validation.

Turns a signed access token into a Subject:

1. No token                         -> MissingCredential (401)
2. Bad signature / malformed claims -> InvalidCredential (403)
3. Past ``exp``                     -> CredentialExpired (403)
4. Re-read the user row by id:
   missing row                      -> SubjectVanished (403)
   status other than Active         -> AccountNotActive (403, "Account is suspended")
5. Build the Subject. The role comes from the token claim (normalized);
   username, email, faculty, department and status come from the live row.
6. Schedule the best-effort last-activity touch.
"""

from typing import Any, Callable

import structlog
from jose import ExpiredSignatureError, JWTError, jwt

from faculty_authz.core.interfaces import UserStore

from .errors import (
    AccountNotActive,
    CredentialExpired,
    InvalidCredential,
    MissingCredential,
    SubjectVanished,
    fail_closed,
)
from .roles import normalize_role
from .subject import ACTIVE_STATUS, Subject

logger = structlog.get_logger()


LIVE_FIELDS = ("username", "email", "faculty_name", "department", "status")


class CredentialValidator:
    """
    Verify a bearer token and re-check its subject against the user store.

    Usage:
        validator = CredentialValidator(
            UserService(db),
            secret_key=settings.auth.secret_key,
            algorithm=settings.auth.algorithm,
            on_verified=toucher.schedule,
        )
        subject = await validator.validate(token)
    """

    def __init__(
        self,
        users: UserStore,
        *,
        secret_key: str,
        algorithm: str = "HS256",
        on_verified: Callable[[int], Any] | None = None,
    ):
        self.users = users
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.on_verified = on_verified

    def decode(self, token: str) -> dict[str, Any]:
        """Verify signature and expiry, returning the raw claims."""
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise CredentialExpired()
        except JWTError as exc:
            logger.info("Token verification failed", reason=str(exc))
            raise InvalidCredential()

    @staticmethod
    def identity_claims(payload: dict[str, Any]) -> dict[str, Any]:
        """
        Accept both token shapes:
            {"sub": "12", "role": "PRL", ...}
            {"user": {"id": 12, "role": "PRL", ...}, "exp": ...}
        """
        nested = payload.get("user")
        if isinstance(nested, dict):
            claims = dict(nested)
            claims.setdefault("id", payload.get("sub"))
            return claims

        claims = dict(payload)
        claims["id"] = payload.get("sub", payload.get("id"))
        return claims

    @staticmethod
    def subject_id(claims: dict[str, Any]) -> int:
        raw_id = claims.get("id")
        if raw_id is None or isinstance(raw_id, bool):
            raise InvalidCredential()
        if isinstance(raw_id, float) and not raw_id.is_integer():
            raise InvalidCredential()
        try:
            return int(raw_id)
        except (TypeError, ValueError):
            raise InvalidCredential()

    async def validate(self, token: str | None) -> Subject:
        """Resolve the Subject behind a token or raise a credential failure."""
        if not token:
            raise MissingCredential()

        claims = self.identity_claims(self.decode(token))
        subject_id = self.subject_id(claims)

        with fail_closed("credential", subject_id=subject_id):
            user = await self.users.get_by_id(subject_id)

        if user is None:
            logger.warning("Token subject no longer exists", subject_id=subject_id)
            raise SubjectVanished()

        account_status = getattr(user, "status", None)
        if (account_status or "").lower() != ACTIVE_STATUS.lower():
            logger.warning(
                "Inactive account presented a valid token",
                subject_id=subject_id,
                status=account_status,
            )
            raise AccountNotActive(account_status)

        merged = {field: claims.get(field) for field in LIVE_FIELDS}
        for field in LIVE_FIELDS:
            live_value = getattr(user, field, None)
            if live_value is not None:
                merged[field] = live_value

        role_claim = claims.get("role") or getattr(user, "role", None)

        subject = Subject(
            id=subject_id,
            role=normalize_role(role_claim),
            username=merged["username"],
            email=merged["email"],
            faculty_name=merged["faculty_name"],
            department=merged["department"],
            status=merged["status"] or ACTIVE_STATUS,
        )

        self._notify_verified(subject_id)
        return subject

    def _notify_verified(self, subject_id: int) -> None:
        """Fire the last-activity hook; its failures never reach the caller."""
        if self.on_verified is None:
            return
        try:
            self.on_verified(subject_id)
        except Exception:
            logger.warning("Could not schedule last-activity update", subject_id=subject_id, exc_info=True)
