"""
Clan rank authorization.

The API key only identifies who made the call. Rank checks are made against a
username (RSN) supplied by the caller in the request, looked up in the clan
roster. Every guard depends on ``require_auth`` so authentication always runs
first.
"""

import logging
from typing import Any, Optional

from fastapi import Depends, Request
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from diary_api.auth.security import require_auth
from diary_api.config import Settings, get_settings
from diary_api.db.models import ApiKey, ClanMember
from diary_api.db.session import Database, get_db
from diary_api.errors import AuthorizationError, InternalError, ValidationError

logger = logging.getLogger(__name__)


async def _json_body(request: Request) -> dict[str, Any]:
    """Parsed JSON object body, or an empty dict for empty/non-object bodies."""
    if not await request.body():
        return {}
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _first_present(*candidates: Any) -> Optional[str]:
    for candidate in candidates:
        if candidate:
            return str(candidate)
    return None


async def get_admin_rsn(request: Request) -> Optional[str]:
    """RSN for admin/owner checks: body rsn, query rsn, createdBy, lastModifiedBy."""
    body = await _json_body(request)
    return _first_present(
        body.get("rsn"),
        request.query_params.get("rsn"),
        body.get("createdBy"),
        body.get("lastModifiedBy"),
    )


async def get_member_rsn(request: Request) -> Optional[str]:
    """RSN for membership checks: body rsn, query rsn, then the path parameter."""
    body = await _json_body(request)
    return _first_present(
        body.get("rsn"),
        request.query_params.get("rsn"),
        request.path_params.get("rsn"),
    )


async def find_clan_member(db: Database, rsn: str) -> Optional[ClanMember]:
    """Case-insensitive roster lookup."""
    return await db.fetch_one(
        select(ClanMember).where(func.lower(ClanMember.rsn) == rsn.lower())
    )


async def _lookup(db: Database, rsn: str, failure_message: str) -> Optional[ClanMember]:
    try:
        return await find_clan_member(db, rsn)
    except SQLAlchemyError:
        logger.exception(f"Clan member lookup failed for {rsn!r}")
        raise InternalError(failure_message)


async def require_admin(
    request: Request,
    api_key: ApiKey = Depends(require_auth),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ClanMember:
    """Require a clan member with at least the configured admin rank."""
    rsn = await get_admin_rsn(request)
    if not rsn:
        raise ValidationError(
            'RSN (RuneScape Name) is required for admin actions. '
            'Include "rsn" in request body or query params.'
        )

    member = await _lookup(db, rsn, "Authorization check failed")
    if member is None:
        raise AuthorizationError(
            f'User "{rsn}" is not registered in the clan members table. '
            "Contact an administrator."
        )

    if member.rank < settings.min_admin_rank:
        raise AuthorizationError(
            f'Insufficient permissions. User "{rsn}" has rank {member.rank}, '
            f"but requires rank {settings.min_admin_rank} or higher for admin actions."
        )

    request.state.member = member
    return member


async def require_owner(
    request: Request,
    api_key: ApiKey = Depends(require_auth),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ClanMember:
    """Require the clan owner."""
    rsn = await get_admin_rsn(request)
    if not rsn:
        raise ValidationError("RSN is required for owner-only actions")

    member = await _lookup(db, rsn, "Authorization check failed")
    if member is None or member.rank != settings.owner_rank:
        raise AuthorizationError("This action requires clan owner permissions")

    request.state.member = member
    return member


async def require_clan_member(
    request: Request,
    api_key: ApiKey = Depends(require_auth),
    db: Database = Depends(get_db),
) -> ClanMember:
    """Require any registered clan member, whatever the rank."""
    rsn = await get_member_rsn(request)
    if not rsn:
        raise ValidationError("RSN is required")

    member = await _lookup(db, rsn, "Membership check failed")
    if member is None:
        raise AuthorizationError(f'User "{rsn}" is not a registered clan member')

    request.state.member = member
    return member
