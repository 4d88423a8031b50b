"""Security headers middleware.

Learn: Every response gets the static headers below. Cache-Control:
no-store matters most for POST /tokens/authentication, whose body holds a
plaintext bearer token that no browser or proxy should keep.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Cache-Control": "no-store",
}

HSTS = "max-age=31536000; includeSubDomains"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Stamp security headers onto every response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        # HSTS over plain HTTP is ignored by browsers
        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = HSTS
        return response
