"""Script to load development seed data."""

import asyncio
import logging
import sys

sys.path.insert(0, ".")

from diary_api.config import get_settings
from diary_api.db.seed import TEST_API_KEY, TEST_MEMBERS, seed
from diary_api.db.session import init_db


async def main():
    """Create the schema and insert seed data."""
    settings = get_settings()

    print("Initializing database...")
    db = await init_db(settings.database_url, settings.database_path)

    print("Seeding...")
    try:
        diary_id = await seed(db)
    finally:
        await db.close()

    print("\n" + "=" * 60)
    print("SEED COMPLETED")
    print("=" * 60)
    print(f"\nAPI Key:       {TEST_API_KEY}")
    for rsn, rank in TEST_MEMBERS.items():
        print(f"Member:        {rsn} (rank {rank})")
    print(f"Sample diary:  {diary_id}")
    print(
        f'\ncurl -H "Authorization: Bearer {TEST_API_KEY}" '
        f"http://localhost:{settings.port}/api/diaries"
    )
    print("=" * 60)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")
    asyncio.run(main())
