"""
PlantDex Backend — Request ID Middleware
=========================================

What:  Tags each request with a short correlation id.
How:   Uses the client's X-Request-ID when present, otherwise a fresh
       8-char UUID prefix; stores it in a ContextVar for loggers and error
       handlers and echoes it in the response header.

The identification client reuses the same id in its log lines, so one
submission can be followed from access log to Plant.id call.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns X-Request-ID to every request and response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
