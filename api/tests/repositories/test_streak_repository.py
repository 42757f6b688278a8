"""Tests for StreakRepository against SQLite."""

from datetime import timedelta

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from models import StreakStatus
from repositories.streak_repository import StreakRepository
from tests.factories import (
    BadgeFactory,
    BrokenStreakFactory,
    StreakFactory,
    StreakLogFactory,
    UserFactory,
    create_async,
)

pytestmark = pytest.mark.integration

DAY = timedelta(days=1)


@pytest.fixture
async def user(db_session):
    return await create_async(UserFactory, db_session)


@pytest.fixture
def repo(db_session) -> StreakRepository:
    return StreakRepository(db_session)


class TestStreakLookups:
    async def test_get_by_id(self, db_session, repo, user):
        streak = await create_async(StreakFactory, db_session, user_id=user.id)

        assert (await repo.get_by_id(streak.id)).id == streak.id
        assert await repo.get_by_id("missing") is None

    async def test_get_for_user_checks_ownership(self, db_session, repo, user):
        other = await create_async(UserFactory, db_session)
        streak = await create_async(StreakFactory, db_session, user_id=other.id)

        assert await repo.get_for_user(user.id, streak.id) is None
        assert (await repo.get_for_user(other.id, streak.id)).id == streak.id

    async def test_read_streaks_oldest_first(self, db_session, repo, user, base_time):
        newer = await create_async(
            StreakFactory, db_session, user_id=user.id, created_at=base_time
        )
        older = await create_async(
            StreakFactory, db_session, user_id=user.id, created_at=base_time - DAY
        )

        streaks = await repo.read_streaks_for_user(user.id)

        assert [s.id for s in streaks] == [older.id, newer.id]

    async def test_count_active_for_user(self, db_session, repo, user):
        await create_async(StreakFactory, db_session, user_id=user.id)
        await create_async(StreakFactory, db_session, user_id=user.id)
        await create_async(BrokenStreakFactory, db_session, user_id=user.id)

        assert await repo.count_active_for_user(user.id) == 2

    async def test_user_ids_with_active_streaks(self, db_session, repo):
        first = await create_async(UserFactory, db_session)
        second = await create_async(UserFactory, db_session)
        idle = await create_async(UserFactory, db_session)
        await create_async(StreakFactory, db_session, user_id=first.id)
        await create_async(StreakFactory, db_session, user_id=first.id)
        await create_async(StreakFactory, db_session, user_id=second.id)
        await create_async(BrokenStreakFactory, db_session, user_id=idle.id)

        user_ids = await repo.get_user_ids_with_active_streaks()

        assert user_ids == sorted([first.id, second.id])


class TestStreakWrites:
    async def test_write_streak_persists_changes(self, db_session, repo, user):
        streak = await create_async(StreakFactory, db_session, user_id=user.id)

        streak.status = StreakStatus.BROKEN
        streak.current_streak_count = 0
        await repo.write_streak(streak)
        await db_session.refresh(streak)

        assert streak.status == StreakStatus.BROKEN

    async def test_status_is_stored_as_its_value(self, db_session, repo, user):
        streak = await create_async(
            StreakFactory, db_session, user_id=user.id, status=StreakStatus.CONQUERED
        )

        result = await db_session.execute(
            text("SELECT status FROM streaks WHERE id = :id"), {"id": streak.id}
        )
        assert result.scalar_one() == "CONQUERED"


class TestStreakLogs:
    async def test_logs_in_chronological_order(
        self, db_session, repo, user, base_time
    ):
        streak = await create_async(StreakFactory, db_session, user_id=user.id)
        for offset in (2, 0, 1):
            await repo.append_log(
                StreakLogFactory.build(
                    streak_id=streak.id,
                    completed_at=base_time + offset * DAY,
                    note=f"day {offset}",
                )
            )

        logs = await repo.read_logs_for_streak(streak.id)

        assert [log.note for log in logs] == ["day 0", "day 1", "day 2"]

    async def test_logs_are_scoped_to_streak(self, db_session, repo, user):
        streak = await create_async(StreakFactory, db_session, user_id=user.id)
        other = await create_async(StreakFactory, db_session, user_id=user.id)
        await repo.append_log(StreakLogFactory.build(streak_id=other.id))

        assert await repo.read_logs_for_streak(streak.id) == []


class TestBadges:
    async def test_has_badge(self, db_session, repo, user):
        streak = await create_async(StreakFactory, db_session, user_id=user.id)
        await repo.append_badge(
            BadgeFactory.build(user_id=user.id, streak_id=streak.id, milestone=7)
        )

        assert await repo.has_badge(streak.id, 7, "RECRUIT") is True
        assert await repo.has_badge(streak.id, 7, "CONTRACT_FULFILLED") is False
        assert await repo.has_badge(streak.id, 15, "RECRUIT") is False

    async def test_duplicate_badge_is_rejected(self, db_session, repo, user):
        streak = await create_async(StreakFactory, db_session, user_id=user.id)
        await repo.append_badge(
            BadgeFactory.build(user_id=user.id, streak_id=streak.id)
        )

        with pytest.raises(IntegrityError):
            await repo.append_badge(
                BadgeFactory.build(user_id=user.id, streak_id=streak.id)
            )

    async def test_badges_for_user_most_recent_first(
        self, db_session, repo, user, base_time
    ):
        streak = await create_async(StreakFactory, db_session, user_id=user.id)
        await repo.append_badge(
            BadgeFactory.build(
                user_id=user.id,
                streak_id=streak.id,
                milestone=7,
                label="RECRUIT",
                earned_at=base_time,
            )
        )
        await repo.append_badge(
            BadgeFactory.build(
                user_id=user.id,
                streak_id=streak.id,
                milestone=15,
                label="AWAKENED",
                earned_at=base_time + 8 * DAY,
            )
        )

        badges = await repo.get_badges_for_user(user.id)

        assert [b.label for b in badges] == ["AWAKENED", "RECRUIT"]
