"""
Rate limiting for the ledger API.

Posting endpoints write journal entries and stock movements, so they get a
tighter limit than reads. Limits are keyed by client IP and can be switched
off with RATE_LIMIT_ENABLED=false.

Usage:
    from salonbooks.utils.rate_limiter import limiter, RateLimits

    @router.post("/sales-invoices")
    @limiter.limit(RateLimits.POSTING)
    def post_sales_invoice(request: Request, ...):
        ...

Note: The `request: Request` parameter is REQUIRED for rate-limited endpoints.
"""
import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from salonbooks.config import settings

logger = logging.getLogger(__name__)


def get_client_ip(request: Request) -> str:
    """
    Get the client IP address from the request.
    Handles cases where the app is behind a proxy/load balancer.
    """
    # X-Forwarded-For can contain multiple IPs, take the first one
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    # nginx
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return get_remote_address(request)


limiter = Limiter(key_func=get_client_ip, enabled=settings.rate_limit_enabled)


class RateLimits:
    """Rate limit configurations for different endpoint types"""

    POSTING = settings.posting_rate_limit      # Documents and manual entries
    GENERAL = settings.general_rate_limit      # Reads and catalog changes
    REPAIR = "5/minute"                        # Balance rebuilds


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """
    Custom handler for rate limit exceeded errors.
    Returns a JSON response with details about the rate limit.
    """
    limit_info = str(exc.detail) if hasattr(exc, 'detail') else "Rate limit exceeded"

    client_ip = get_client_ip(request)
    logger.warning(f"Rate limit exceeded for IP {client_ip} on {request.url.path}: {limit_info}")

    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "detail": "Too many requests. Please try again later.",
            "limit_info": limit_info,
            "retry_after": "60 seconds"
        },
        headers={
            "Retry-After": "60",
            "X-RateLimit-Limit": limit_info
        }
    )
