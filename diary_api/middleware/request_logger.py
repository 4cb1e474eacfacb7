"""Access logging middleware."""

import logging
import time

from fastapi import Request

logger = logging.getLogger("diary_api.access")


async def log_requests(request: Request, call_next):
    """Log method, path, status and duration of every request."""
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = int((time.perf_counter() - start) * 1000)

    logger.info(
        f"{request.method} {request.url.path} - {response.status_code} ({duration_ms}ms)"
    )
    return response
