"""
NewsNext Backend — Cross-Origin Header Middleware
==================================================

Media and ads are embedded by other sites (partner portals, social
previews), so every response allows cross-origin embedding:

    Referrer-Policy: unsafe-url
    Cross-Origin-Resource-Policy: cross-origin

and the isolation headers that would block such embedding
(Cross-Origin-Embedder-Policy, Cross-Origin-Opener-Policy) are removed
if anything upstream set them.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

SET_HEADERS = {
    "Referrer-Policy": "unsafe-url",
    "Cross-Origin-Resource-Policy": "cross-origin",
}
REMOVED_HEADERS = ("Cross-Origin-Embedder-Policy", "Cross-Origin-Opener-Policy")


class CrossOriginHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        for name, value in SET_HEADERS.items():
            response.headers[name] = value
        for name in REMOVED_HEADERS:
            if name in response.headers:
                del response.headers[name]
        return response
