"""Rate limiting using SlowAPI."""

import logging

from fastapi import Depends, Request
from limits import parse
from slowapi import Limiter
from slowapi.util import get_remote_address

from diary_api.config import Settings, get_settings
from diary_api.errors import RateLimitError

logger = logging.getLogger(__name__)

API_SCOPE = "api"

# Owns the counter storage; the check itself runs as a router dependency
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=get_settings().rate_limit_storage_uri,
    strategy="fixed-window",
)


async def enforce_rate_limit(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Count the request against the shared per-IP window for `/api` routes.

    Runs before authentication, so rejected credentials still count.
    """
    if not settings.rate_limit_enabled:
        return

    client = get_remote_address(request)
    if not limiter.limiter.hit(parse(settings.rate_limit), API_SCOPE, client):
        logger.warning(f"Rate limit exceeded for {client} on {request.method} {request.url.path}")
        raise RateLimitError("Too many requests from this IP, please try again later.")
