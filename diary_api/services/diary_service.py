"""Diary management service."""

import time
from typing import Any, Optional
from uuid import uuid4

from sqlalchemy import delete, insert, select, update
from sqlalchemy.orm import InstrumentedAttribute

from diary_api.db.models import Diary
from diary_api.db.session import Database
from diary_api.schemas.schemas import (
    DiaryCreate,
    DiaryResponse,
    DiaryUpdate,
    deserialize_tiers,
    serialize_tiers,
)

INITIAL_VERSION = "1.0"

# Request field -> column for fields a partial update may change
UPDATABLE_FIELDS: dict[str, InstrumentedAttribute] = {
    "name": Diary.name,
    "description": Diary.description,
    "category": Diary.category,
    "version": Diary.version,
    "tiers": Diary.tiers_json,
    "active": Diary.active,
}

NULLABLE_FIELDS = {"description"}


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def build_update_values(changes: DiaryUpdate) -> list[tuple[InstrumentedAttribute, Any]]:
    """
    Collect (column, value) pairs for the fields present in a partial update.

    Fields left out of the request are not touched. Empty strings and False
    are real values and are applied.

    Raises:
        ValueError: if a non-nullable field is explicitly set to null
    """
    values = []
    null_fields = []

    for field, column in UPDATABLE_FIELDS.items():
        if field not in changes.model_fields_set:
            continue

        value = getattr(changes, field)
        if value is None and field not in NULLABLE_FIELDS:
            null_fields.append(field)
            continue

        if field == "tiers":
            value = serialize_tiers(value)
        values.append((column, value))

    if null_fields:
        raise ValueError(f"Field(s) cannot be null: {', '.join(null_fields)}")

    return values


class DiaryService:
    """Service for managing diaries."""

    async def list_diaries(
        self,
        db: Database,
        category: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> list[Diary]:
        """
        List diaries, newest first.

        Args:
            db: Database adapter
            category: Exact category to match
            active: Only active (True) or only inactive (False) diaries

        Returns:
            Matching diaries
        """
        query = select(Diary)

        if category:
            query = query.where(Diary.category == category)
        if active is not None:
            query = query.where(Diary.active == active)

        query = query.order_by(Diary.created_date.desc())
        return await db.fetch_many(query)

    async def get_diary(self, db: Database, diary_id: str) -> Optional[Diary]:
        """Get a diary by ID."""
        return await db.fetch_one(select(Diary).where(Diary.id == diary_id))

    async def create_diary(self, db: Database, request: DiaryCreate) -> Diary:
        """
        Create a new diary with no tiers.

        The caller must have checked that name, category and created_by are set.
        """
        now = now_ms()
        values = {
            "id": str(uuid4()),
            "name": request.name,
            "description": request.description or "",
            "category": request.category,
            "version": INITIAL_VERSION,
            "created_date": now,
            "created_by": request.created_by,
            "last_modified": now,
            "last_modified_by": request.created_by,
            "active": True,
            "tiers_json": serialize_tiers([]),
        }

        await db.execute(insert(Diary).values(**values))
        return Diary(**values)

    async def update_diary(
        self,
        db: Database,
        diary: Diary,
        changes: DiaryUpdate,
        modified_by: str,
    ) -> Optional[Diary]:
        """
        Apply a partial update and return the diary as stored afterwards.

        last_modified and last_modified_by are always refreshed. last_modified
        is kept strictly increasing even when two writes land in the same
        millisecond.
        """
        values = build_update_values(changes)
        values.append((Diary.last_modified, max(now_ms(), diary.last_modified + 1)))
        values.append((Diary.last_modified_by, modified_by))

        await db.execute(
            update(Diary)
            .where(Diary.id == diary.id)
            .values({column: value for column, value in values})
        )

        return await self.get_diary(db, diary.id)

    async def delete_diary(self, db: Database, diary_id: str) -> None:
        """Hard delete a diary. Progress rows go with it (ON DELETE CASCADE)."""
        await db.execute(delete(Diary).where(Diary.id == diary_id))

    async def list_categories(self, db: Database) -> list[str]:
        """Distinct categories across all diaries, alphabetically."""
        return await db.fetch_many(
            select(Diary.category).distinct().order_by(Diary.category)
        )

    def diary_to_response(self, diary: Diary) -> DiaryResponse:
        """Convert Diary model to response schema, decoding its tiers."""
        return DiaryResponse(
            id=diary.id,
            name=diary.name,
            description=diary.description,
            category=diary.category,
            version=diary.version,
            created_date=diary.created_date,
            created_by=diary.created_by,
            last_modified=diary.last_modified,
            last_modified_by=diary.last_modified_by,
            tiers=deserialize_tiers(diary.tiers_json),
            active=diary.active,
        )


# Singleton instance
diary_service = DiaryService()
