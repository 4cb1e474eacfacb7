"""Tests for the optional auth variant and the rank guards."""

from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from fastapi import Depends, FastAPI, Request
from httpx import ASGITransport, AsyncClient
from starlette.exceptions import HTTPException as StarletteHTTPException

from diary_api.auth.authorize import require_clan_member, require_owner
from diary_api.auth.security import optional_auth
from diary_api.config import Settings, get_settings
from diary_api.db.models import ApiKey, ClanMember
from diary_api.db.session import Database, get_db
from diary_api.errors import http_exception_handler
from diary_api.main import app

ADMIN_RSN = "TestAdmin"
USER_RSN = "TestUser"
OWNER_RSN = "ClanOwner"
GUEST_RSN = "TestGuest"

guarded_app = FastAPI()
guarded_app.add_exception_handler(StarletteHTTPException, http_exception_handler)


@guarded_app.get("/whoami")
async def whoami(request: Request, api_key: Optional[ApiKey] = Depends(optional_auth)):
    return {
        "authenticated": api_key is not None,
        "created_by": getattr(request.state, "created_by", None),
    }


@guarded_app.post("/owner-only")
async def owner_only(member: ClanMember = Depends(require_owner)):
    return {"rsn": member.rsn}


@guarded_app.get("/members/{rsn}")
async def member_only(member: ClanMember = Depends(require_clan_member)):
    return {"rsn": member.rsn, "rank": member.rank}


@pytest_asyncio.fixture
async def guarded_client(db: Database) -> AsyncGenerator[AsyncClient, None]:
    guarded_app.dependency_overrides[get_db] = lambda: db

    async with AsyncClient(
        transport=ASGITransport(app=guarded_app),
        base_url="http://test",
    ) as ac:
        yield ac

    guarded_app.dependency_overrides.clear()


# ============== Optional auth ==============


@pytest.mark.asyncio
async def test_optional_auth_without_header(guarded_client: AsyncClient):
    response = await guarded_client.get("/whoami")
    assert response.status_code == 200
    assert response.json() == {"authenticated": False, "created_by": None}


@pytest.mark.asyncio
async def test_optional_auth_with_invalid_key(guarded_client: AsyncClient):
    response = await guarded_client.get(
        "/whoami", headers={"Authorization": "Bearer bogus"}
    )
    assert response.status_code == 200
    assert response.json()["authenticated"] is False


@pytest.mark.asyncio
async def test_optional_auth_with_valid_key(guarded_client: AsyncClient, auth_headers: dict):
    response = await guarded_client.get("/whoami", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"authenticated": True, "created_by": "test"}


# ============== Admin ==============


@pytest.mark.asyncio
async def test_admin_requires_rsn(client: AsyncClient, auth_headers: dict, clan_members):
    response = await client.post("/api/motd", headers=auth_headers, json={"motd": "hi"})
    assert response.status_code == 400
    assert "RSN" in response.json()["error"]


@pytest.mark.asyncio
async def test_admin_unknown_member(client: AsyncClient, auth_headers: dict, clan_members):
    response = await client.post(
        "/api/motd", headers=auth_headers, json={"motd": "hi", "rsn": "Stranger"}
    )
    assert response.status_code == 403
    assert '"Stranger"' in response.json()["error"]


@pytest.mark.asyncio
async def test_admin_rank_below_minimum(client: AsyncClient, auth_headers: dict, clan_members):
    """Default minimum is 0, so a guest (-1) is refused."""
    response = await client.post(
        "/api/motd", headers=auth_headers, json={"motd": "hi", "rsn": GUEST_RSN}
    )
    assert response.status_code == 403
    error = response.json()["error"]
    assert "rank -1" in error
    assert "requires rank 0" in error


@pytest.mark.asyncio
async def test_admin_rank_threshold_is_configurable(
    client: AsyncClient, auth_headers: dict, clan_members
):
    app.dependency_overrides[get_settings] = lambda: Settings(min_admin_rank=50)

    refused = await client.post(
        "/api/motd", headers=auth_headers, json={"motd": "hi", "rsn": USER_RSN}
    )
    allowed = await client.post(
        "/api/motd", headers=auth_headers, json={"motd": "hi", "rsn": ADMIN_RSN}
    )

    assert refused.status_code == 403
    assert "requires rank 50" in refused.json()["error"]
    assert allowed.status_code == 200


@pytest.mark.asyncio
async def test_admin_lookup_is_case_insensitive(
    client: AsyncClient, auth_headers: dict, clan_members
):
    response = await client.post(
        "/api/motd", headers=auth_headers, json={"motd": "hi", "rsn": "testadmin"}
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_admin_rsn_from_query(client: AsyncClient, auth_headers: dict, created_diary: dict):
    response = await client.delete(
        f"/api/diaries/{created_diary['id']}", headers=auth_headers, params={"rsn": GUEST_RSN}
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_auth_runs_before_rank_check(client: AsyncClient, clan_members):
    response = await client.post("/api/motd", json={"motd": "hi", "rsn": ADMIN_RSN})
    assert response.status_code == 401


# ============== Owner ==============


@pytest.mark.asyncio
async def test_owner_allowed(guarded_client: AsyncClient, auth_headers: dict, clan_members):
    response = await guarded_client.post(
        "/owner-only", headers=auth_headers, json={"rsn": OWNER_RSN}
    )
    assert response.status_code == 200
    assert response.json() == {"rsn": OWNER_RSN}


@pytest.mark.asyncio
@pytest.mark.parametrize("rsn", [ADMIN_RSN, "Stranger"])
async def test_owner_refused(
    guarded_client: AsyncClient, auth_headers: dict, clan_members, rsn: str
):
    response = await guarded_client.post(
        "/owner-only", headers=auth_headers, json={"rsn": rsn}
    )
    assert response.status_code == 403
    assert response.json()["error"] == "This action requires clan owner permissions"


@pytest.mark.asyncio
async def test_owner_requires_rsn(guarded_client: AsyncClient, auth_headers: dict):
    response = await guarded_client.post("/owner-only", headers=auth_headers, json={})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_owner_requires_auth(guarded_client: AsyncClient, clan_members):
    response = await guarded_client.post("/owner-only", json={"rsn": OWNER_RSN})
    assert response.status_code == 401


# ============== Membership ==============


@pytest.mark.asyncio
async def test_member_from_path(guarded_client: AsyncClient, auth_headers: dict, clan_members):
    """Any rank will do, even a guest."""
    response = await guarded_client.get(f"/members/{GUEST_RSN}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"rsn": GUEST_RSN, "rank": -1}


@pytest.mark.asyncio
async def test_member_query_takes_precedence_over_path(
    guarded_client: AsyncClient, auth_headers: dict, clan_members
):
    response = await guarded_client.get(
        "/members/Stranger", headers=auth_headers, params={"rsn": USER_RSN}
    )
    assert response.status_code == 200
    assert response.json()["rsn"] == USER_RSN


@pytest.mark.asyncio
async def test_non_member_refused(guarded_client: AsyncClient, auth_headers: dict, clan_members):
    response = await guarded_client.get("/members/Stranger", headers=auth_headers)
    assert response.status_code == 403
    assert response.json()["error"] == 'User "Stranger" is not a registered clan member'
