"""Health check route."""

from datetime import datetime, timezone

from fastapi import APIRouter

from diary_api.schemas.schemas import ApiResponse, HealthInfo

router = APIRouter(tags=["System"])


@router.get(
    "/health",
    response_model=ApiResponse[HealthInfo],
    response_model_exclude_none=True,
    summary="Health check",
    description="Liveness check. Does not touch the database and is not rate limited.",
)
def health_check():
    """Report that the service is up."""
    return ApiResponse(
        message="Clan Diary API is running",
        data=HealthInfo(timestamp=datetime.now(timezone.utc).isoformat()),
    )
