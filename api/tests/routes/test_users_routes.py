"""Tests for users_routes.

Covers registration, profile lookup, earned badges and the badge catalog.
"""

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tests.factories import BadgeFactory, StreakFactory, UserFactory, create_async

pytestmark = pytest.mark.integration


def unique_username(prefix: str = "user") -> str:
    """Generate a unique username for test isolation."""
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


class TestCreateUser:
    """Tests for POST /api/users."""

    async def test_registers_user(self, client: AsyncClient):
        username = unique_username()
        response = await client.post(
            "/api/users",
            json={"username": username, "display_name": "Asha", "target": "CAT"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["username"] == username
        assert data["display_name"] == "Asha"
        assert data["target"] == "CAT"
        assert data["id"]

    async def test_username_is_lowercased(self, client: AsyncClient):
        response = await client.post("/api/users", json={"username": "  Asha_K  "})

        assert response.status_code == 201
        assert response.json()["username"] == "asha_k"

    async def test_duplicate_username_returns_409(self, client: AsyncClient):
        username = unique_username()
        await client.post("/api/users", json={"username": username})

        response = await client.post(
            "/api/users", json={"username": username.upper()}
        )

        assert response.status_code == 409

    @pytest.mark.parametrize("username", ["ab", "has space", "emoji🔥", ""])
    async def test_invalid_username_returns_422(self, client: AsyncClient, username):
        response = await client.post("/api/users", json={"username": username})
        assert response.status_code == 422


class TestGetUser:
    """Tests for GET /api/users/{user_id}."""

    async def test_returns_profile(self, client: AsyncClient, db_session: AsyncSession):
        user = await create_async(UserFactory, db_session)
        await db_session.commit()

        response = await client.get(f"/api/users/{user.id}")

        assert response.status_code == 200
        assert response.json()["username"] == user.username

    async def test_unknown_user_returns_404(self, client: AsyncClient):
        response = await client.get(f"/api/users/{uuid.uuid4()}")
        assert response.status_code == 404


class TestUserBadges:
    """Tests for GET /api/users/{user_id}/badges."""

    async def test_lists_earned_badges(
        self, client: AsyncClient, db_session: AsyncSession, base_time
    ):
        user = await create_async(UserFactory, db_session)
        streak = await create_async(StreakFactory, db_session, user_id=user.id)
        await create_async(
            BadgeFactory,
            db_session,
            user_id=user.id,
            streak_id=streak.id,
            earned_at=base_time,
        )
        await db_session.commit()

        response = await client.get(f"/api/users/{user.id}/badges")

        assert response.status_code == 200
        badges = response.json()
        assert len(badges) == 1
        assert badges[0]["label"] == "RECRUIT"
        assert badges[0]["streak_id"] == streak.id

    async def test_no_badges_yet(self, client: AsyncClient, db_session: AsyncSession):
        user = await create_async(UserFactory, db_session)
        await db_session.commit()

        response = await client.get(f"/api/users/{user.id}/badges")

        assert response.status_code == 200
        assert response.json() == []

    async def test_unknown_user_returns_404(self, client: AsyncClient):
        response = await client.get(f"/api/users/{uuid.uuid4()}/badges")
        assert response.status_code == 404


class TestBadgeCatalog:
    async def test_catalog(self, client: AsyncClient):
        response = await client.get("/api/badges/catalog")

        assert response.status_code == 200
        catalog = response.json()
        assert len(catalog) == 11
        assert catalog[0] == {
            "milestone": 7,
            "label": "RECRUIT",
            "num": "#001",
            "how_to": "Complete 7 days without a break",
        }
