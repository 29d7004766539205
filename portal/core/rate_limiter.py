"""
Rate Limiting for the Project Portal API
========================================
Implements rate limiting using slowapi.

Only the credential endpoints are limited:
- /auth/login: 5 req/min (brute force protection)
- /auth/register: 3 req/min
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from portal.core.config import settings
from portal.core.logging_config import logger


def get_user_identifier(request: Request) -> str:
    """
    Get rate limit key: authenticated user ID when known, otherwise client IP.
    """
    user_id = getattr(request.state, 'user_id', None)
    if user_id:
        return f"user:{user_id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_user_identifier,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Return a JSON 429 with a Retry-After header"""
    logger.warning(f"[RateLimit] Exceeded for {get_user_identifier(request)}: {exc.detail}")

    return JSONResponse(
        status_code=429,
        content={
            "error": "Too many requests. Please slow down.",
            "code": "RATE_LIMITED",
            "details": str(exc.detail),
        },
        headers={"Retry-After": "60"},
    )


def auth_rate_limit():
    """Rate limit for login (5/min)"""
    return limiter.limit("5/minute")


def strict_rate_limit():
    """Very strict rate limit for account creation (3/min)"""
    return limiter.limit("3/minute")
