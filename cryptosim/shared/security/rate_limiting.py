"""
Rate limiting for credential endpoints.

slowapi counts requests per ``request.client.host``. That address is the
socket peer unless the peer is a configured trusted proxy, in which case
``ProxyHeadersMiddleware`` has already replaced it with the forwarded
client. Login, register and refresh carry the stricter
``rate_limit_auth`` limit; everything else the default.
"""

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from cryptosim.core.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default],
    enabled=settings.rate_limit_enabled,
)


async def rate_limit_exceeded_handler(
    _request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Answer 429 in the API's error shape."""
    return JSONResponse(
        status_code=429,
        content={"error": "Too many requests", "detail": str(exc.detail)},
    )
