from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.config import Settings
from app.core.exceptions import PayloadTooLargeError
from app.core.responses import app_error_response

BASE_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds browser hardening headers; token-bearing auth responses are never cached."""

    def __init__(self, app, *, settings: Settings) -> None:
        super().__init__(app)
        self._headers = dict(BASE_SECURITY_HEADERS)
        if settings.security_enable_hsts:
            max_age = max(1, settings.security_hsts_max_age_seconds)
            self._headers["Strict-Transport-Security"] = f"max-age={max_age}; includeSubDomains"
        self._auth_prefix = f"{settings.api_prefix}/auth"

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        for name, value in self._headers.items():
            response.headers.setdefault(name, value)
        if request.url.path.startswith(self._auth_prefix):
            response.headers["Cache-Control"] = "no-store"
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Rejects bodies whose declared Content-Length exceeds the limit with the 413 error envelope."""

    def __init__(self, app, *, max_bytes: int) -> None:
        super().__init__(app)
        self._max_bytes = max(1, max_bytes)

    async def dispatch(self, request: Request, call_next) -> Response:
        declared = request.headers.get("content-length", "")
        # Non-numeric lengths are left to the server to reject.
        if declared.isdigit() and int(declared) > self._max_bytes:
            return app_error_response(PayloadTooLargeError(int(declared), self._max_bytes))
        return await call_next(request)
