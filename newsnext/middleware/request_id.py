"""
NewsNext Backend — Request ID Middleware
=========================================

What:  Gives every request a short correlation id, exposed as the
       X-Request-ID response header, on request.state and in a ContextVar.
Why:   Access log lines and error bodies carry the same id, so a support
       report containing it leads straight to the matching log entries.

A client-supplied X-Request-ID is reused (the admin dashboard sends one
per user action); otherwise the first 8 hex chars of a UUID4 are used.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one thread each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

MAX_CLIENT_ID_LENGTH = 64


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = request.headers.get("X-Request-ID", "").strip()[:MAX_CLIENT_ID_LENGTH]
        if not rid:
            rid = uuid.uuid4().hex[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
