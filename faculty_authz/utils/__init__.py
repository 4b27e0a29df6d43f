"""Utility functions."""

from faculty_authz.utils.background import BackgroundChannel
from faculty_authz.utils.context import (
    RequestContext,
    RequestContextMiddleware,
    add_request_context,
    configure_logging,
    get_client_ip,
    get_correlation_id,
    get_request_context,
    get_request_id,
    set_context_user,
)

__all__ = [
    "BackgroundChannel",
    "RequestContext",
    "RequestContextMiddleware",
    "add_request_context",
    "configure_logging",
    "get_client_ip",
    "get_correlation_id",
    "get_request_context",
    "get_request_id",
    "set_context_user",
]
