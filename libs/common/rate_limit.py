"""Rate limiting for the market API.

Uses slowapi with in-process storage: the back office runs as a single
process, so limits do not need a shared backend.
"""

from functools import lru_cache
from typing import Callable

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from libs.common.config import get_settings
from libs.common.error_handler import error_body


def _get_client_ip(request: Request) -> str:
    """
    Get client IP from request, honouring X-Forwarded-For behind a proxy.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # First IP in the chain is the original client
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


@lru_cache
def get_limiter() -> Limiter:
    """Create and return the cached Limiter instance."""
    settings = get_settings()
    return Limiter(
        key_func=_get_client_ip,
        storage_uri="memory://",
        strategy="fixed-window",
        enabled=settings.RATE_LIMIT_ENABLED,
    )


limiter = get_limiter()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Render rate-limit rejections in the standard error envelope."""
    return JSONResponse(
        status_code=429,
        content=error_body(
            request, "RATE_LIMITED", f"Rate limit exceeded: {exc.detail}"
        ),
        headers={"Retry-After": "60"},
    )


def auth_limit(func: Callable) -> Callable:
    """Apply strict rate limit for authentication endpoints (10/minute)."""
    return limiter.limit("10/minute")(func)
