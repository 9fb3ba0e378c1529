from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from app.core.config import settings


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add hardening headers to every response, including served uploads."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        if settings.ENVIRONMENT == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response
