"""Pytest configuration and fixtures."""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert

from diary_api.db.models import ClanMember
from diary_api.db.session import Database, get_db
from diary_api.main import app
from diary_api.middleware.rate_limit import limiter
from diary_api.services.diary_service import now_ms

ADMIN_RSN = "TestAdmin"
USER_RSN = "TestUser"
OWNER_RSN = "ClanOwner"
GUEST_RSN = "TestGuest"


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Rate limit counters are process-global; start every test from zero."""
    limiter.reset()
    yield
    limiter.reset()


@pytest_asyncio.fixture
async def db(tmp_path) -> AsyncGenerator[Database, None]:
    """Fresh SQLite database per test."""
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await database.create_schema()

    yield database

    await database.close()


@pytest_asyncio.fixture
async def client(db: Database) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""
    app.dependency_overrides[get_db] = lambda: db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def api_key(db: Database) -> tuple[int, str]:
    """Create a test API key."""
    from diary_api.auth.security import create_api_key

    api_key_model, full_key = await create_api_key(
        db,
        description="Test Key",
        created_by="test",
    )

    return api_key_model.id, full_key


@pytest_asyncio.fixture
async def auth_headers(api_key: tuple[int, str]) -> dict:
    """Get auth headers with test API key."""
    _, full_key = api_key
    return {"Authorization": f"Bearer {full_key}"}


@pytest_asyncio.fixture
async def clan_members(db: Database) -> dict[str, int]:
    """Roster with an admin, a recruit, the owner and a guest."""
    members = {ADMIN_RSN: 100, USER_RSN: 10, OWNER_RSN: 127, GUEST_RSN: -1}
    now = now_ms()
    for rsn, rank in members.items():
        await db.execute(
            insert(ClanMember).values(rsn=rsn, rank=rank, joined_date=now, last_seen=now)
        )
    return members


@pytest_asyncio.fixture
async def created_diary(client: AsyncClient, auth_headers: dict, clan_members) -> dict:
    """A diary created through the API by the admin."""
    response = await client.post(
        "/api/diaries",
        headers=auth_headers,
        json={
            "name": "Wilderness Diary",
            "description": "Survive the wild",
            "category": "PvP",
            "createdBy": ADMIN_RSN,
            "rsn": ADMIN_RSN,
        },
    )
    assert response.status_code == 201
    return response.json()["data"]
