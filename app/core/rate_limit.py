from slowapi import Limiter
from slowapi.util import get_remote_address
from app.core.config import settings

# Shared limiter: default_limits apply per IP to every route through SlowAPIMiddleware,
# and auth routes add stricter limits with limiter.limit(...)
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    enabled=settings.RATE_LIMIT_ENABLED,
)
