"""Message of the day routes."""

import logging

from fastapi import APIRouter, Depends

from diary_api.auth.authorize import require_admin
from diary_api.auth.security import require_auth
from diary_api.config import Settings, get_settings
from diary_api.db.session import Database, get_db
from diary_api.errors import InternalError, ValidationError
from diary_api.middleware.rate_limit import enforce_rate_limit
from diary_api.schemas.schemas import ApiResponse, MotdUpdate
from diary_api.services.motd_service import UNKNOWN_USER, motd_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/motd",
    tags=["Message of the Day"],
    dependencies=[Depends(enforce_rate_limit)],
)


@router.get(
    "/",
    response_model=ApiResponse[str],
    response_model_exclude_none=True,
    include_in_schema=False,
    dependencies=[Depends(require_auth)],
)
@router.get(
    "",
    response_model=ApiResponse[str],
    response_model_exclude_none=True,
    summary="Get the message of the day",
    dependencies=[Depends(require_auth)],
)
async def get_motd(db: Database = Depends(get_db)):
    """Get the message of the day. Empty string if none has been set."""
    try:
        motd = await motd_service.get_motd(db)
    except Exception:
        logger.exception("Error fetching MOTD")
        raise InternalError("Failed to fetch message of the day")

    return ApiResponse(data=motd)


@router.api_route(
    "/",
    methods=["POST", "PUT"],
    response_model=ApiResponse[str],
    response_model_exclude_none=True,
    include_in_schema=False,
    dependencies=[Depends(require_admin)],
)
@router.api_route(
    "",
    methods=["POST", "PUT"],
    response_model=ApiResponse[str],
    response_model_exclude_none=True,
    summary="Set the message of the day",
    description="Replace the message of the day. Requires admin rank.",
    dependencies=[Depends(require_admin)],
)
async def set_motd(
    request: MotdUpdate,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Set the message of the day.

    - **motd**: new message, at most 500 characters (may be empty)
    - **rsn**: clan member making the change
    """
    if "motd" not in request.model_fields_set:
        raise ValidationError("MOTD text is required in request body")

    motd_text = request.motd or ""
    if len(motd_text) > settings.motd_max_length:
        raise ValidationError(
            f"MOTD must be {settings.motd_max_length} characters or less"
        )

    try:
        motd = await motd_service.set_motd(db, motd_text, request.rsn or UNKNOWN_USER)
    except Exception:
        logger.exception("Error setting MOTD")
        raise InternalError("Failed to update message of the day")

    logger.info(f"MOTD updated by {request.rsn or UNKNOWN_USER}")
    return ApiResponse(data=motd, message="Message of the day updated successfully")
