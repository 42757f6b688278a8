"""Lapse detection sweeps.

validate_user_streaks() re-checks every streak of one user and breaks the
ones that silently missed a day. It runs on every streak listing, before
every completion, and from the background sweeper, so it must stay
idempotent: once a streak is BROKEN (or still validly ACTIVE) another
pass changes nothing.
"""

import asyncio
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core import get_logger
from models import Streak, StreakStatus, utcnow
from repositories.streak_repository import StreakRepository, StreakStore
from services.day_boundary import DayBoundary
from services.streak_engine import StreakStateMachine

logger = get_logger(__name__)


async def validate_user_streaks(
    store: StreakStore,
    user_id: str,
    now: datetime,
    day_boundary: DayBoundary | None = None,
) -> list[Streak]:
    """Apply pending lapses to a user's streaks.

    Returns:
        All of the user's streaks, refreshed after validation
    """
    machine = StreakStateMachine(store, day_boundary or DayBoundary.from_settings())

    lapsed = 0
    for streak in await store.read_streaks_for_user(user_id):
        if streak.status != StreakStatus.ACTIVE:
            continue
        await machine.evaluate_lapse(streak, now)
        if streak.status == StreakStatus.BROKEN:
            lapsed += 1

    if lapsed:
        logger.info("lapse.validation.applied", user_id=user_id, lapsed=lapsed)

    return list(await store.read_streaks_for_user(user_id))


async def sweep_all_users(
    session_maker: async_sessionmaker[AsyncSession],
    now: datetime | None = None,
) -> int:
    """Validate every user that owns an ACTIVE streak.

    Each user is handled in its own transaction so one failure does not
    roll back the others.

    Returns:
        Number of streaks broken by this sweep
    """
    now = now or utcnow()
    day_boundary = DayBoundary.from_settings()

    async with session_maker() as session:
        user_ids = await StreakRepository(session).get_user_ids_with_active_streaks()

    broken = 0
    for user_id in user_ids:
        async with session_maker() as session:
            try:
                repo = StreakRepository(session)
                before = await repo.count_active_for_user(user_id)
                await validate_user_streaks(repo, user_id, now, day_boundary)
                after = await repo.count_active_for_user(user_id)
                await session.commit()
            except Exception:
                await session.rollback()
                logger.exception("lapse.sweep.user_failed", user_id=user_id)
                continue
        broken += before - after

    logger.info("lapse.sweep.finished", users=len(user_ids), broken=broken)
    return broken


async def run_lapse_sweeper(
    session_maker: async_sessionmaker[AsyncSession],
    interval_seconds: float,
    clock: Callable[[], datetime] = utcnow,
) -> None:
    """Sweep forever on a fixed interval. Cancel the task to stop it."""
    logger.info("lapse.sweeper.started", interval_seconds=interval_seconds)
    try:
        while True:
            try:
                await sweep_all_users(session_maker, clock())
            except Exception:
                logger.exception("lapse.sweep.failed")
            await asyncio.sleep(interval_seconds)
    finally:
        logger.info("lapse.sweeper.stopped")
