"""Pydantic schemas for request/response validation."""

import enum
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Models exchanged as camelCase JSON, also accepted by field name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============== Envelope ==============


class ApiResponse(BaseModel, Generic[T]):
    """Uniform wrapper for every response body."""

    success: bool = True
    data: Optional[T] = None
    error: Optional[str] = None
    message: Optional[str] = None


# ============== Diary Structure ==============


class TaskType(str, enum.Enum):
    """Kinds of diary tasks. Requirements are interpreted per type."""

    KILL = "KILL"
    SKILL = "SKILL"
    QUEST = "QUEST"
    ITEM = "ITEM"
    LOCATION = "LOCATION"
    BOSS = "BOSS"
    MINIGAME = "MINIGAME"
    CUSTOM = "CUSTOM"


class DiaryTask(CamelModel):
    """Single task inside a tier."""

    id: str
    description: str
    type: TaskType
    # Free-form, e.g. {"npc": "Chicken", "count": "10"} for KILL
    requirements: dict[str, str] = Field(default_factory=dict)
    hint: str = ""
    order: int = 0


class DiaryTier(CamelModel):
    """Named, ordered group of tasks."""

    tier_name: str
    tier_color: str = ""
    tasks: list[DiaryTask] = Field(default_factory=list)
    reward_description: str = ""
    order: int = 0


tiers_adapter = TypeAdapter(list[DiaryTier])


def serialize_tiers(tiers: list[DiaryTier]) -> str:
    """Encode tiers as the JSON text stored in ``diaries.tiers_json``."""
    return tiers_adapter.dump_json(tiers, by_alias=True).decode("utf-8")


def deserialize_tiers(tiers_json: str) -> list[DiaryTier]:
    """Decode stored tiers; raises pydantic.ValidationError on malformed data."""
    return tiers_adapter.validate_json(tiers_json)


# ============== Diary Schemas ==============


class DiaryCreate(CamelModel):
    """
    Request to create a diary.

    Required fields are checked by the route so that every missing one can be
    reported at once.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    created_by: Optional[str] = None
    rsn: Optional[str] = None


class DiaryUpdate(CamelModel):
    """Partial update. Only fields present in the request body are applied."""

    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    version: Optional[str] = None
    tiers: Optional[list[DiaryTier]] = None
    active: Optional[bool] = None
    last_modified_by: Optional[str] = None
    rsn: Optional[str] = None


class DiaryResponse(CamelModel):
    """Full diary including its deserialized tiers."""

    id: str
    name: str
    description: Optional[str] = None
    category: str
    version: str
    created_date: int
    created_by: str
    last_modified: int
    last_modified_by: str
    tiers: list[DiaryTier]
    active: bool


# ============== MOTD Schemas ==============


class MotdUpdate(CamelModel):
    """Request to set the message of the day."""

    motd: Optional[str] = None
    rsn: Optional[str] = None


# ============== Health ==============


class HealthInfo(BaseModel):
    timestamp: str
