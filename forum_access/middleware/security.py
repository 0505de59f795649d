"""
Response hardening headers.

Credential and permission responses are per-user and must not be stored
by browsers or intermediaries.
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from forum_access.core.config import settings

STATIC_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "API-Version": "v1",
}

NO_STORE_PREFIXES = ("/api/v1/credential", "/api/v1/admin/credential", "/api/v1/auth")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        # CORS preflight responses are left to CORSMiddleware
        if request.method == "OPTIONS":
            return await call_next(request)

        response = await call_next(request)
        response.headers.update(STATIC_HEADERS)

        if settings.ENVIRONMENT == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        if request.url.path.startswith(NO_STORE_PREFIXES):
            response.headers["Cache-Control"] = "no-store"
            response.headers["Pragma"] = "no-cache"

        return response
