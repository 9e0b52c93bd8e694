from fastapi import Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from app.core.config import settings
import logging

logger = logging.getLogger(__name__)

def get_rate_limit_key(request: Request) -> str:
    """
    Generate rate limit key: the authenticated user id when the request
    carried a valid session, the client IP address otherwise.
    """
    user_id = getattr(request.state, "user_id", None)
    if user_id:
        return f"user:{user_id}"
    return get_remote_address(request)

# In-memory fixed windows; limits are enforced per process, not across instances
limiter = Limiter(
    key_func=get_rate_limit_key,
    default_limits=[settings.DEFAULT_RATE_LIMIT],
    enabled=settings.RATE_LIMIT_ENABLED
)

# One strict window shared by every billable route
billable_rate_limit = limiter.shared_limit(
    settings.EXTRACTION_RATE_LIMIT,
    scope="billable",
    override_defaults=False
)

def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Custom handler for rate limit exceeded errors.
    Rate limiting is an expected outcome, so it is logged as a warning only.
    """
    retry_after = getattr(exc, "retry_after", None) or 60
    logger.warning(
        f"Rate limit exceeded for {get_rate_limit_key(request)}, "
        f"Path: {request.url.path}, "
        f"Method: {request.method}, "
        f"Limit: {exc.detail}"
    )

    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "error": "Too many requests. Please try again later.",
            "retry_after": retry_after
        },
        headers={"Retry-After": str(retry_after)}
    )

def create_rate_limit_middleware():
    """
    Create and configure the SlowAPI middleware.
    Only adds middleware if rate limiting is enabled in settings.
    """
    if not settings.RATE_LIMIT_ENABLED:
        logger.info("Rate limiting is disabled in settings")
        return None

    logger.info(
        f"Rate limiting enabled: {settings.DEFAULT_RATE_LIMIT} general, "
        f"{settings.EXTRACTION_RATE_LIMIT} on extraction endpoints"
    )
    return SlowAPIMiddleware
