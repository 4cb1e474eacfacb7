"""Script to create an API key."""

import argparse
import asyncio
import sys

sys.path.insert(0, ".")

from diary_api.auth.security import create_api_key
from diary_api.config import get_settings
from diary_api.db.session import init_db


async def main(description: str, created_by: str):
    """Create an API key and print it."""
    settings = get_settings()

    print("Initializing database...")
    db = await init_db(settings.database_url, settings.database_path)

    print("Creating API key...")
    try:
        api_key, full_key = await create_api_key(
            db,
            description=description,
            created_by=created_by,
        )
    finally:
        await db.close()

    print("\n" + "=" * 60)
    print("API KEY CREATED SUCCESSFULLY")
    print("=" * 60)
    print(f"\nAPI Key:     {full_key}")
    print(f"Key ID:      {api_key.id}")
    print(f"Created by:  {api_key.created_by}")
    print("=" * 60)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--description", default="Clan plugin key")
    parser.add_argument("--created-by", default="admin")
    args = parser.parse_args()

    asyncio.run(main(args.description, args.created_by))
