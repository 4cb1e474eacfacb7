"""Development seed data: a test key, a small roster, a sample diary and MOTD."""

import logging
from uuid import uuid4

from sqlalchemy import insert

from diary_api.db.models import ApiKey, ClanMember, ConfigEntry, Diary
from diary_api.db.session import Database
from diary_api.schemas.schemas import DiaryTask, DiaryTier, TaskType, serialize_tiers
from diary_api.services.diary_service import INITIAL_VERSION, now_ms
from diary_api.services.motd_service import MOTD_KEY

logger = logging.getLogger(__name__)

TEST_API_KEY = "test-api-key-12345"

TEST_MEMBERS = {
    "TestAdmin": 100,
    "TestUser": 10,
    "ClanOwner": 127,
}

SAMPLE_MOTD = "Welcome to the clan! Check out our new diary challenges!"


def sample_tiers() -> list[DiaryTier]:
    return [
        DiaryTier(
            tier_name="Easy",
            tier_color="#00ff00",
            order=1,
            reward_description="10k GP",
            tasks=[
                DiaryTask(
                    id=str(uuid4()),
                    description="Kill 10 Chickens",
                    type=TaskType.KILL,
                    requirements={"npc": "Chicken", "count": "10"},
                    hint="Chickens can be found near Lumbridge",
                    order=1,
                ),
                DiaryTask(
                    id=str(uuid4()),
                    description="Reach 20 Attack",
                    type=TaskType.SKILL,
                    requirements={"skill": "Attack", "level": "20"},
                    hint="Train on low-level monsters",
                    order=2,
                ),
            ],
        )
    ]


def _replace(model):
    """INSERT OR REPLACE so seeding can be run repeatedly (SQLite only)."""
    return insert(model).prefix_with("OR REPLACE")


async def seed(db: Database) -> str:
    """
    Insert development data, replacing rows with the same keys.

    Returns:
        ID of the sample diary
    """
    await db.execute(
        _replace(ApiKey).values(
            key=TEST_API_KEY,
            description="Test API key for development",
            created_by="system",
            active=True,
        )
    )
    logger.info(f"API key: {TEST_API_KEY}")

    now = now_ms()
    for rsn, rank in TEST_MEMBERS.items():
        await db.execute(
            _replace(ClanMember).values(rsn=rsn, rank=rank, joined_date=now, last_seen=now)
        )
        logger.info(f"Clan member: {rsn} (rank {rank})")

    diary_id = str(uuid4())
    await db.execute(
        _replace(Diary).values(
            id=diary_id,
            name="Beginner Combat Diary",
            description="Complete basic combat challenges",
            category="PvM",
            version=INITIAL_VERSION,
            created_date=now,
            created_by="TestAdmin",
            last_modified=now,
            last_modified_by="TestAdmin",
            active=True,
            tiers_json=serialize_tiers(sample_tiers()),
        )
    )
    logger.info(f"Sample diary: Beginner Combat Diary (ID: {diary_id})")

    await db.execute(
        _replace(ConfigEntry).values(key=MOTD_KEY, value=SAMPLE_MOTD, updated_by="TestAdmin")
    )
    logger.info("Sample MOTD created")

    return diary_id
