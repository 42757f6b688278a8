"""Repository for streaks, their completion logs and badges."""

from collections.abc import Sequence
from typing import Protocol

from sqlalchemy import exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models import Badge, Streak, StreakLog, StreakStatus
from repositories.utils import log_slow_query


class StreakStore(Protocol):
    """Storage capability the streak engine depends on.

    Each write is applied atomically per record; the caller owns the
    surrounding transaction.
    """

    async def read_streaks_for_user(self, user_id: str) -> Sequence[Streak]: ...

    async def read_logs_for_streak(self, streak_id: str) -> Sequence[StreakLog]: ...

    async def write_streak(self, streak: Streak) -> None: ...

    async def append_log(self, log: StreakLog) -> None: ...

    async def has_badge(self, streak_id: str, milestone: int, label: str) -> bool: ...

    async def append_badge(self, badge: Badge) -> None: ...


class StreakRepository:
    """SQLAlchemy implementation of StreakStore plus lookup helpers."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_by_id(self, streak_id: str) -> Streak | None:
        """Get a streak by its ID."""
        result = await self.db.execute(select(Streak).where(Streak.id == streak_id))
        return result.scalar_one_or_none()

    async def get_for_user(self, user_id: str, streak_id: str) -> Streak | None:
        """Get a streak only if it belongs to ``user_id``."""
        result = await self.db.execute(
            select(Streak).where(Streak.id == streak_id, Streak.user_id == user_id)
        )
        return result.scalar_one_or_none()

    @log_slow_query("read_streaks_for_user")
    async def read_streaks_for_user(self, user_id: str) -> Sequence[Streak]:
        """Get all streaks of a user, oldest contract first."""
        result = await self.db.execute(
            select(Streak)
            .where(Streak.user_id == user_id)
            .order_by(Streak.created_at.asc(), Streak.id.asc())
        )
        return result.scalars().all()

    async def count_active_for_user(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count(Streak.id)).where(
                Streak.user_id == user_id,
                Streak.status == StreakStatus.ACTIVE,
            )
        )
        return result.scalar_one()

    @log_slow_query("get_user_ids_with_active_streaks")
    async def get_user_ids_with_active_streaks(self) -> list[str]:
        """Distinct owners of at least one ACTIVE streak."""
        result = await self.db.execute(
            select(func.distinct(Streak.user_id))
            .where(Streak.status == StreakStatus.ACTIVE)
            .order_by(Streak.user_id)
        )
        return [row[0] for row in result.all()]

    async def create(self, streak: Streak) -> Streak:
        self.db.add(streak)
        await self.db.flush()
        return streak

    async def write_streak(self, streak: Streak) -> None:
        self.db.add(streak)
        await self.db.flush()

    @log_slow_query("read_logs_for_streak")
    async def read_logs_for_streak(self, streak_id: str) -> Sequence[StreakLog]:
        """Get completion logs for a streak in chronological order."""
        result = await self.db.execute(
            select(StreakLog)
            .where(StreakLog.streak_id == streak_id)
            .order_by(StreakLog.completed_at.asc(), StreakLog.id.asc())
        )
        return result.scalars().all()

    async def append_log(self, log: StreakLog) -> None:
        self.db.add(log)
        await self.db.flush()

    async def has_badge(self, streak_id: str, milestone: int, label: str) -> bool:
        stmt = exists().where(
            Badge.streak_id == streak_id,
            Badge.milestone == milestone,
            Badge.label == label,
        )
        result = await self.db.execute(select(stmt))
        return result.scalar_one()

    async def append_badge(self, badge: Badge) -> None:
        self.db.add(badge)
        await self.db.flush()

    async def get_badges_for_user(self, user_id: str) -> Sequence[Badge]:
        """Get earned badges for a user, most recent first."""
        result = await self.db.execute(
            select(Badge)
            .where(Badge.user_id == user_id)
            .order_by(Badge.earned_at.desc(), Badge.milestone.desc())
        )
        return result.scalars().all()
