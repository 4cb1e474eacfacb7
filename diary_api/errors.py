"""API error types and the handlers that render them as response envelopes."""

import logging

from fastapi import Request, status
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from diary_api.config import get_settings

logger = logging.getLogger(__name__)


class ApiError(HTTPException):
    """Base class for errors reported to the caller as an error envelope."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(status_code=self.status_code, detail=message)


class ValidationError(ApiError):
    """Missing or malformed input."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(ApiError):
    """Missing, invalid or inactive credential."""

    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(ApiError):
    """Insufficient rank, not a member, or not the owner."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ApiError):
    """The addressed resource does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class RateLimitError(ApiError):
    """Too many requests from one client within the configured window."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class InternalError(ApiError):
    """Store failure, malformed stored data or any unexpected error."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def error_envelope(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render API errors and routing errors in the response envelope."""
    if isinstance(exc, ApiError):
        return error_envelope(exc.status_code, exc.detail)

    # A known path with the wrong method is still an unmatched route
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        return error_envelope(
            status.HTTP_404_NOT_FOUND, f"Route not found: {request.method} {request.url.path}"
        )

    return error_envelope(exc.status_code, str(exc.detail))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Body/query validation failures are client errors, reported as 400."""
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))

    logger.info(f"Rejected request {request.method} {request.url.path}: {problems}")
    return error_envelope(
        status.HTTP_400_BAD_REQUEST, "Invalid request: " + "; ".join(problems)
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions."""
    logger.exception(f"Unhandled exception: {exc}")
    settings = get_settings()
    return error_envelope(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        str(exc) if settings.debug else "Internal server error",
    )
