"""
Plateful Backend — Request ID Middleware
==========================================

What:  Assigns a short correlation id to each request and echoes it back.
Why:   Error bodies carry `requestId`, so a user report can be matched to
       the exact log lines of that request (vote conflicts in particular).
How:   Honours an incoming X-Request-ID header, otherwise generates one;
       stores it in a ContextVar for loggers and exception handlers.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Sets request_id_var and the X-Request-ID response header."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers["X-Request-ID"] = rid
        return response
