"""
NewsNext Backend — Access Log Middleware
=========================================

One line per request on the `newsnext.access` logger:

    GET /api/v1/ads 200 12.3ms [a1b2c3d4] from 10.0.0.7

with the same values attached as `extra` fields for JSON formatters.
Level follows the status: 5xx ERROR, 4xx WARNING, everything else INFO.

Not logged:
    /health (polled by the load balancer every few seconds) and the
    analytics relay (one call per page view). Request bodies and auth
    headers are never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from newsnext.middleware.request_id import request_id_var

logger = logging.getLogger("newsnext.access")

QUIET_PATHS = {"/health"}
QUIET_FRAGMENT = "/analytics/track"


def is_quiet(path: str) -> bool:
    return path in QUIET_PATHS or QUIET_FRAGMENT in path


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if is_quiet(path):
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            level = logging.ERROR
        elif status >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        logger.log(
            level,
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
