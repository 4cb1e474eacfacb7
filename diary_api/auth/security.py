"""API key authentication."""

import logging
import secrets
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from diary_api.db.models import ApiKey
from diary_api.db.session import Database, get_db
from diary_api.errors import ApiError, AuthenticationError, InternalError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def generate_api_key() -> str:
    """
    Generate a new API key.
    Format: cdk_XXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXX (32 random hex chars after prefix)
    """
    return f"cdk_{secrets.token_hex(16)}"


async def get_api_key_from_db(db: Database, token: str) -> Optional[ApiKey]:
    """Look up an active API key by its token."""
    return await db.fetch_one(
        select(ApiKey).where(
            ApiKey.key == token,
            ApiKey.active == True,  # noqa: E712
        )
    )


async def touch_api_key(db: Database, api_key: ApiKey) -> None:
    """Record that the key was just used. Failures are logged, never raised."""
    try:
        await db.execute(
            update(ApiKey).where(ApiKey.id == api_key.id).values(last_used=func.now())
        )
    except SQLAlchemyError as e:
        logger.warning(f"Could not update last_used for API key {api_key.id}: {e}")


class AuthenticatedApiKey:
    """
    Dependency for an authenticated API key.

    With ``optional=True`` any failure (missing header, unknown token, store
    error) lets the request through anonymously and the dependency yields None.
    """

    def __init__(self, optional: bool = False):
        self.optional = optional

    async def __call__(
        self,
        request: Request,
        authorization: Optional[str] = Header(None),
        db: Database = Depends(get_db),
    ) -> Optional[ApiKey]:
        """Extract and validate the API key from the Authorization header."""
        try:
            api_key = await self._authenticate(db, authorization)
        except ApiError:
            if self.optional:
                return None
            raise

        # Store in request state for later use
        request.state.api_key = api_key
        request.state.created_by = api_key.created_by
        return api_key

    async def _authenticate(self, db: Database, authorization: Optional[str]) -> ApiKey:
        if not authorization or not authorization.startswith(BEARER_PREFIX):
            raise AuthenticationError(
                "Missing or invalid authorization header. Expected: Authorization: Bearer <api-key>"
            )

        token = authorization[len(BEARER_PREFIX):].strip()
        if not token:
            raise AuthenticationError("API key is empty")

        try:
            api_key = await get_api_key_from_db(db, token)
        except SQLAlchemyError:
            logger.exception("Authentication error")
            raise InternalError("Authentication failed")

        # Unknown and revoked keys get the same answer
        if api_key is None:
            raise AuthenticationError("Invalid or inactive API key")

        await touch_api_key(db, api_key)
        return api_key


# Convenience dependency instances
require_auth = AuthenticatedApiKey()
optional_auth = AuthenticatedApiKey(optional=True)


async def create_api_key(
    db: Database,
    description: str,
    created_by: str,
    key: Optional[str] = None,
) -> tuple[ApiKey, str]:
    """
    Create a new API key.
    Returns: (ApiKey model, full_key_string)
    """
    full_key = key or generate_api_key()

    await db.execute(
        insert(ApiKey).values(
            key=full_key,
            description=description,
            created_by=created_by,
            active=True,
        )
    )
    api_key = await db.fetch_one(select(ApiKey).where(ApiKey.key == full_key))

    return api_key, full_key
