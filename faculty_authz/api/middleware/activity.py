"""
Activity log middleware.

Routes declare their activity with ``with_activity_log``. Once the
response is ready this middleware hands the declaration to the
ActivityRecorder, which renders and writes it in the background and only
for 2xx responses.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from faculty_authz.utils.context import get_client_ip


class ActivityLogMiddleware(BaseHTTPMiddleware):
    """Schedule the declared activity row after the handler has answered."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        pending = getattr(request.state, "pending_activity", None)
        recorder = getattr(request.app.state, "activity_recorder", None)
        if pending is None or recorder is None:
            return response

        recorder.record_outcome(
            response.status_code,
            pending,
            resource=getattr(request.state, "resource", None),
            ip_address=get_client_ip(request),
            user_agent=request.headers.get("User-Agent"),
        )
        return response
