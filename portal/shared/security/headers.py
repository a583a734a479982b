"""
Secure HTTP headers middleware.

Every response gets the baseline browser-hardening headers. API
responses additionally get ``Cache-Control: no-store`` because they
carry balances and personal data, and HSTS is added when the session
cookie is HTTPS-only.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

SECURE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "default-src 'self'",
    "X-XSS-Protection": "1; mode=block",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}
HSTS_HEADER = "max-age=31536000; includeSubDomains"
API_PATH_PREFIX = "/api/"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds secure HTTP headers to every outgoing response.

    Args:
        app: The wrapped ASGI application.
        enable_hsts: Also send Strict-Transport-Security.
    """

    def __init__(self, app: ASGIApp, enable_hsts: bool = False) -> None:
        super().__init__(app)
        self._enable_hsts = enable_hsts

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)
        for header_name, header_value in SECURE_HEADERS.items():
            response.headers[header_name] = header_value
        if request.url.path.startswith(API_PATH_PREFIX):
            response.headers["Cache-Control"] = "no-store"
        if self._enable_hsts:
            response.headers["Strict-Transport-Security"] = HSTS_HEADER
        return response
