"""Message of the day, stored in the generic config table."""

from sqlalchemy import func, insert, select, update

from diary_api.db.models import ConfigEntry
from diary_api.db.session import Database

MOTD_KEY = "motd"
UNKNOWN_USER = "unknown"


class MotdService:
    """Get and set the clan-wide message of the day."""

    async def get_motd(self, db: Database) -> str:
        """Current message, or an empty string if none was ever set."""
        entry = await db.fetch_one(select(ConfigEntry).where(ConfigEntry.key == MOTD_KEY))
        if entry is None or entry.value is None:
            return ""
        return entry.value

    async def set_motd(self, db: Database, text: str, updated_by: str = UNKNOWN_USER) -> str:
        """Update the message if the row exists, insert it otherwise."""
        existing = await db.fetch_one(
            select(ConfigEntry.key).where(ConfigEntry.key == MOTD_KEY)
        )

        if existing:
            await db.execute(
                update(ConfigEntry)
                .where(ConfigEntry.key == MOTD_KEY)
                .values(value=text, updated_by=updated_by, updated_at=func.now())
            )
        else:
            await db.execute(
                insert(ConfigEntry).values(key=MOTD_KEY, value=text, updated_by=updated_by)
            )

        return text


motd_service = MotdService()
