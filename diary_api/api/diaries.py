"""Diary management API routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from diary_api.auth.authorize import require_admin
from diary_api.auth.security import require_auth
from diary_api.db.models import ClanMember
from diary_api.db.session import Database, get_db
from diary_api.errors import InternalError, NotFoundError, ValidationError
from diary_api.middleware.rate_limit import enforce_rate_limit
from diary_api.schemas.schemas import ApiResponse, DiaryCreate, DiaryResponse, DiaryUpdate
from diary_api.services.diary_service import diary_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/diaries",
    tags=["Diaries"],
    dependencies=[Depends(enforce_rate_limit)],
)

REQUIRED_CREATE_FIELDS = {
    "name": "name",
    "category": "category",
    "created_by": "createdBy",
}


async def _get_existing(db: Database, diary_id: str, failure_message: str):
    try:
        diary = await diary_service.get_diary(db, diary_id)
    except Exception:
        logger.exception(f"Error looking up diary {diary_id}")
        raise InternalError(failure_message)

    if diary is None:
        raise NotFoundError("Diary not found")
    return diary


@router.get(
    "/",
    response_model=ApiResponse[list[DiaryResponse]],
    response_model_exclude_none=True,
    include_in_schema=False,
    dependencies=[Depends(require_auth)],
)
@router.get(
    "",
    response_model=ApiResponse[list[DiaryResponse]],
    response_model_exclude_none=True,
    summary="List diaries",
    description="List all diaries, newest first, optionally filtered by category or active flag.",
    dependencies=[Depends(require_auth)],
)
async def list_diaries(
    category: Optional[str] = Query(None, description="Exact category to match"),
    active: Optional[str] = Query(
        None, description='"true" for active diaries, anything else for inactive ones'
    ),
    db: Database = Depends(get_db),
):
    """List diaries with their tiers."""
    active_filter = None if active is None else active == "true"

    try:
        diaries = await diary_service.list_diaries(db, category, active_filter)
        data = [diary_service.diary_to_response(d) for d in diaries]
    except Exception:
        logger.exception("Error fetching diaries")
        raise InternalError("Failed to fetch diaries")

    return ApiResponse(data=data)


@router.get(
    "/categories",
    response_model=ApiResponse[list[str]],
    response_model_exclude_none=True,
    summary="List categories",
    description="Get every distinct diary category, alphabetically.",
    dependencies=[Depends(require_auth)],
)
async def list_categories(db: Database = Depends(get_db)):
    """Get all unique categories."""
    try:
        categories = await diary_service.list_categories(db)
    except Exception:
        logger.exception("Error fetching categories")
        raise InternalError("Failed to fetch categories")

    return ApiResponse(data=categories)


@router.get(
    "/{diary_id}",
    response_model=ApiResponse[DiaryResponse],
    response_model_exclude_none=True,
    summary="Get a diary",
    dependencies=[Depends(require_auth)],
)
async def get_diary(diary_id: str, db: Database = Depends(get_db)):
    """Get a single diary including all tiers and tasks."""
    diary = await _get_existing(db, diary_id, "Failed to fetch diary")

    try:
        data = diary_service.diary_to_response(diary)
    except Exception:
        logger.exception(f"Error decoding diary {diary_id}")
        raise InternalError("Failed to fetch diary")

    return ApiResponse(data=data)


@router.post(
    "/",
    response_model=ApiResponse[DiaryResponse],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    include_in_schema=False,
    dependencies=[Depends(require_admin)],
)
@router.post(
    "",
    response_model=ApiResponse[DiaryResponse],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create a diary",
    description="Create a new, empty diary. Requires admin rank.",
    dependencies=[Depends(require_admin)],
)
async def create_diary(request: DiaryCreate, db: Database = Depends(get_db)):
    """
    Create a new diary.

    - **name**, **category**, **createdBy**: required
    - **description**: optional
    - **rsn**: clan member performing the action
    """
    missing = [
        alias for field, alias in REQUIRED_CREATE_FIELDS.items()
        if not getattr(request, field)
    ]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    try:
        diary = await diary_service.create_diary(db, request)
        data = diary_service.diary_to_response(diary)
    except Exception:
        logger.exception("Error creating diary")
        raise InternalError("Failed to create diary")

    logger.info(f"Diary {diary.id} created by {request.created_by}")
    return ApiResponse(data=data, message="Diary created successfully")


@router.put(
    "/{diary_id}",
    response_model=ApiResponse[DiaryResponse],
    response_model_exclude_none=True,
    summary="Update a diary",
    description="Change only the fields present in the body. Requires admin rank.",
)
async def update_diary(
    diary_id: str,
    request: DiaryUpdate,
    db: Database = Depends(get_db),
    member: ClanMember = Depends(require_admin),
):
    """
    Update an existing diary.

    Fields missing from the body are left unchanged; **tiers**, when given,
    replace all existing tiers.
    """
    diary = await _get_existing(db, diary_id, "Failed to update diary")
    modified_by = request.last_modified_by or request.rsn or member.rsn

    try:
        updated = await diary_service.update_diary(db, diary, request, modified_by)
    except ValueError as e:
        raise ValidationError(str(e))
    except Exception:
        logger.exception(f"Error updating diary {diary_id}")
        raise InternalError("Failed to update diary")

    # Deleted by someone else between the write and the re-read
    if updated is None:
        raise NotFoundError("Diary not found")

    try:
        data = diary_service.diary_to_response(updated)
    except Exception:
        logger.exception(f"Error decoding diary {diary_id}")
        raise InternalError("Failed to update diary")

    logger.info(f"Diary {diary_id} updated by {modified_by}")
    return ApiResponse(data=data, message="Diary updated successfully")


@router.delete(
    "/{diary_id}",
    response_model=ApiResponse[None],
    response_model_exclude_none=True,
    summary="Delete a diary",
    description="Permanently delete a diary and its progress records. Requires admin rank.",
    dependencies=[Depends(require_admin)],
)
async def delete_diary(diary_id: str, db: Database = Depends(get_db)):
    """Delete a diary."""
    await _get_existing(db, diary_id, "Failed to delete diary")

    try:
        await diary_service.delete_diary(db, diary_id)
    except Exception:
        logger.exception(f"Error deleting diary {diary_id}")
        raise InternalError("Failed to delete diary")

    logger.info(f"Diary {diary_id} deleted")
    return ApiResponse(message="Diary deleted successfully")
