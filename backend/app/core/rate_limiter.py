"""
Rate Limiting for the College Management API
============================================
Implements rate limiting using slowapi. Storage defaults to process memory;
point RATE_LIMIT_STORAGE_URI at redis:// to share counters between workers.

- Every endpoint: RATE_LIMIT_PER_MINUTE per caller
- /auth/login: LOGIN_RATE_LIMIT (brute force protection)
"""

from typing import Optional

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.exceptions import AuthenticationError
from app.core.logging_config import logger
from app.core.security import decode_token


def _bearer_account_id(request: Request) -> Optional[str]:
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    try:
        return decode_token(token.strip()).get("sub")
    except AuthenticationError:
        return None


def get_user_identifier(request: Request) -> str:
    """
    Get rate limit key.

    Priority:
    1. Account ID from a valid bearer token (the middleware runs before
       any route dependency, so the token is decoded here)
    2. IP address (anonymous callers, bad or expired tokens)
    """
    account_id = getattr(request.state, 'account_id', None) or _bearer_account_id(request)
    if account_id:
        return f"account:{account_id}"

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
    logger.warning(
        f"[RateLimit] Exceeded for {get_user_identifier(request)}: {exc.detail}"
    )

    return JSONResponse(
        status_code=429,
        content={
            "message": "Too many requests. Please slow down.",
            "code": "RATE_LIMITED",
        },
        headers={"Retry-After": "60"},
    )


def auth_rate_limit():
    """Rate limit for credential checks"""
    return limiter.limit(settings.LOGIN_RATE_LIMIT, key_func=get_remote_address)
