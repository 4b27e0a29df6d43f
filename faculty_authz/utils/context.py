"""
Request Context Utilities.

Provides correlation IDs and request context for:
- Log correlation
- Activity log client info
- Debugging in production

Usage:
    # In middleware (automatic)
    app.add_middleware(RequestContextMiddleware)

    # Access anywhere in request lifecycle
    from faculty_authz.utils.context import get_correlation_id

    logger.info("Processing", correlation_id=get_correlation_id())
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
import structlog


# ============================================================
# CONTEXT VARIABLES
# ============================================================

# Request-scoped context using contextvars (async-safe)
_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
_request_context: ContextVar[Optional["RequestContext"]] = ContextVar("request_context", default=None)


# ============================================================
# REQUEST CONTEXT
# ============================================================

@dataclass
class RequestContext:
    """
    Context for the current request.

    Contains all request-scoped metadata useful for logging and the
    activity trail.
    """
    # IDs
    request_id: str  # Unique per request
    correlation_id: str  # Shared across service calls

    # Request info
    method: str = ""
    path: str = ""
    client_ip: str = ""
    user_agent: str = ""

    # Auth info (populated by get_current_subject)
    user_id: Optional[str] = None
    role: Optional[str] = None
    faculty_name: Optional[str] = None

    # Timing
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


# ============================================================
# CONTEXT ACCESSORS
# ============================================================

def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID. None outside of a request."""
    return _correlation_id.get()


def get_request_id() -> Optional[str]:
    """Get the current request ID."""
    return _request_id.get()


def get_request_context() -> Optional[RequestContext]:
    """Get the full request context."""
    return _request_context.get()


def set_context_user(user_id: str, role: Optional[str] = None, faculty_name: Optional[str] = None) -> None:
    """
    Set subject info in request context.

    Called once the bearer credential has been validated.
    """
    ctx = _request_context.get()
    if ctx:
        ctx.user_id = user_id
        ctx.role = role
        ctx.faculty_name = faculty_name


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, else the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


# ============================================================
# MIDDLEWARE
# ============================================================

class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware that creates request context for each request.

    Sets up:
    - request_id: Unique ID for this request
    - correlation_id: From X-Correlation-ID header or generated

    Usage:
        app.add_middleware(RequestContextMiddleware)
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        correlation_id = (
            request.headers.get("X-Correlation-ID") or
            request.headers.get("X-Request-ID") or
            str(uuid.uuid4())
        )

        ctx = RequestContext(
            request_id=request_id,
            correlation_id=correlation_id,
            method=request.method,
            path=request.url.path,
            client_ip=get_client_ip(request),
            user_agent=request.headers.get("User-Agent", ""),
        )

        correlation_token = _correlation_id.set(correlation_id)
        request_token = _request_id.set(request_id)
        context_token = _request_context.set(ctx)

        request.state.request_id = request_id
        request.state.correlation_id = correlation_id
        request.state.context = ctx

        try:
            response = await call_next(request)
        finally:
            _request_context.reset(context_token)
            _request_id.reset(request_token)
            _correlation_id.reset(correlation_token)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Correlation-ID"] = correlation_id

        return response


# ============================================================
# STRUCTLOG
# ============================================================

def add_request_context(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Structlog processor that adds request context to all logs."""
    correlation_id = get_correlation_id()
    request_id = get_request_id()

    if correlation_id:
        event_dict.setdefault("correlation_id", correlation_id)
    if request_id:
        event_dict.setdefault("request_id", request_id)

    ctx = get_request_context()
    if ctx and ctx.user_id:
        event_dict.setdefault("user_id", ctx.user_id)

    return event_dict


def configure_logging(level: str = "INFO", log_format: str = "json") -> None:
    """
    Configure structlog for the application.

    ``console`` renders coloured lines for local work; ``json`` emits one
    object per line for log shipping.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    renderers: list[Any]
    if log_format == "console":
        renderers = [structlog.dev.ConsoleRenderer()]
    else:
        renderers = [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_request_context,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            *renderers,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


# ============================================================
# BACKGROUND TASK CONTEXT
# ============================================================

def copy_context() -> dict[str, Any]:
    """Copy current context for use in background tasks."""
    return {
        "correlation_id": get_correlation_id(),
        "request_id": get_request_id(),
        "context": get_request_context(),
    }


def restore_context(ctx: dict[str, Any]) -> None:
    """Restore context in a background task."""
    if ctx.get("correlation_id"):
        _correlation_id.set(ctx["correlation_id"])
    if ctx.get("request_id"):
        _request_id.set(ctx["request_id"])
    if ctx.get("context"):
        _request_context.set(ctx["context"])
