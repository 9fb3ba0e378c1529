import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from app.core.logging import get_logger


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of every request."""

    def __init__(self, app, log=None):
        super().__init__(app)
        self.log = log or get_logger("http")

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        client = request.client.host if request.client else "-"
        try:
            response = await call_next(request)
        except Exception as e:
            elapsed = (time.perf_counter() - started) * 1000
            self.log.error(f"{request.method} {request.url.path} 500 {elapsed:.0f}ms from {client} - {e}")
            raise
        elapsed = (time.perf_counter() - started) * 1000
        message = f"{request.method} {request.url.path} {response.status_code} {elapsed:.0f}ms from {client}"
        if response.status_code >= 500:
            self.log.error(message)
        else:
            self.log.info(message)
        return response
