"""Rate limiting configuration using slowapi."""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from linkpulse.core.config import get_settings

settings = get_settings()


def get_client_ip(request: Request) -> str | None:
    """Get the real client IP address, handling proxies.

    Checks X-Forwarded-For and X-Real-IP headers before falling back
    to the direct client address. Returns None when there is none.
    """
    # X-Forwarded-For can contain multiple IPs: client, proxy1, proxy2
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    # Check X-Real-IP header (common in nginx setups)
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    if request.client:
        return request.client.host

    return None


def get_real_client_ip(request: Request) -> str:
    """Rate limit key: the client IP, or slowapi's default address."""
    return get_client_ip(request) or get_remote_address(request)


limiter = Limiter(
    key_func=get_real_client_ip,
    default_limits=["1000/hour"],
    storage_uri=settings.redis_url,  # Use Redis for distributed rate limiting
    strategy="fixed-window",
    enabled=settings.rate_limit_enabled,
)

# Redirect is the hot path
RATE_LIMIT_REDIRECT = "1000/minute"

# Link creation - prevent spam/abuse
RATE_LIMIT_CREATE_LINK = "60/hour"

# Analytics reports scan raw clicks
RATE_LIMIT_ANALYTICS = "60/minute"

# General API endpoints
RATE_LIMIT_API = "100/minute"
