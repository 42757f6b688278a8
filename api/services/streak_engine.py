"""Streak lifecycle state machine.

States:
- ACTIVE: initial, the only state that accepts completions
- BROKEN: a day was missed; terminal until the owner restarts the epoch
- CONQUERED: current_streak_count reached target_days; terminal

Transitions are ACTIVE -> BROKEN (evaluate_lapse) and ACTIVE -> CONQUERED
(complete_today). Restarting a BROKEN streak is a new epoch handled by
streaks_service, not a transition.

Callers must run evaluate_lapse() with the same ``now`` right before
complete_today() on a streak. complete_today() does not re-check for a
lapse itself.
"""

from dataclasses import dataclass, field
from datetime import date, datetime

from core import get_logger
from models import Badge, Streak, StreakLog, StreakStatus, new_id, to_utc
from repositories.streak_repository import StreakStore
from services.badges_service import award_badges, derive_milestones
from services.day_boundary import DayBoundary

logger = get_logger(__name__)


class StreakError(Exception):
    """Base class for recoverable streak errors."""

    pass


class StreakUnavailableError(StreakError):
    """Raised when completing a streak that is not ACTIVE."""

    def __init__(self, streak_id: str, status: StreakStatus):
        self.streak_id = streak_id
        self.status = status
        super().__init__(
            f"Cannot complete, protocol inactive (streak {streak_id} is {status.value})"
        )


class AlreadyCompletedTodayError(StreakError):
    """Raised when a streak was already credited for the current day key."""

    def __init__(self, streak_id: str, day_key: date):
        self.streak_id = streak_id
        self.day_key = day_key
        super().__init__(f"Streak {streak_id} already completed for {day_key}")


@dataclass
class CompletionResult:
    """Outcome of a credited completion."""

    streak: Streak
    log: StreakLog
    badges: list[Badge] = field(default_factory=list)


def last_activity(streak: Streak) -> datetime:
    """Most recent completion, or the epoch start if there is none yet."""
    return streak.last_completed_date or streak.created_at


class StreakStateMachine:
    """Applies lapse and completion transitions through a StreakStore."""

    def __init__(self, store: StreakStore, day_boundary: DayBoundary) -> None:
        self.store = store
        self.day_boundary = day_boundary

    def lapse_gap(self, streak: Streak, now: datetime) -> int:
        """Whole days between the last activity's day key and today's."""
        return self.day_boundary.days_between(
            self.day_boundary.day_key(last_activity(streak)),
            self.day_boundary.day_key(now),
        )

    async def evaluate_lapse(self, streak: Streak, now: datetime) -> Streak:
        """Break an ACTIVE streak whose last activity is more than a day old.

        A gap of exactly one day means "due today" and is not a lapse.
        Non-ACTIVE streaks are returned untouched, so repeated calls are safe.
        """
        if streak.status != StreakStatus.ACTIVE:
            return streak

        gap = self.lapse_gap(streak, now)
        if gap <= 1:
            return streak

        streak.status = StreakStatus.BROKEN
        streak.current_streak_count = 0
        await self.store.write_streak(streak)

        logger.info(
            "streak.lapsed",
            streak_id=streak.id,
            user_id=streak.user_id,
            gap_days=gap,
        )
        return streak

    async def complete_today(
        self,
        streak: Streak,
        now: datetime,
        note: str | None = None,
    ) -> Streak:
        """Credit ``now``'s day to the streak.

        Raises:
            StreakUnavailableError: If the streak is not ACTIVE
            AlreadyCompletedTodayError: If today's day key was already credited
        """
        result = await self.record_completion(streak, now, note)
        return result.streak

    async def record_completion(
        self,
        streak: Streak,
        now: datetime,
        note: str | None = None,
    ) -> CompletionResult:
        """Same as complete_today(), also reporting the log and new badges."""
        now = to_utc(now)
        if streak.status != StreakStatus.ACTIVE:
            raise StreakUnavailableError(streak.id, streak.status)

        today = self.day_boundary.day_key(now)
        if (
            streak.last_completed_date is not None
            and self.day_boundary.day_key(streak.last_completed_date) == today
        ):
            raise AlreadyCompletedTodayError(streak.id, today)

        previous_count = streak.current_streak_count

        streak.current_streak_count = previous_count + 1
        if streak.current_streak_count > streak.longest_streak:
            streak.longest_streak = streak.current_streak_count
        streak.last_completed_date = now
        if streak.current_streak_count >= streak.target_days:
            streak.status = StreakStatus.CONQUERED

        log = StreakLog(
            id=new_id(),
            streak_id=streak.id,
            completed_at=now,
            note=note,
        )
        await self.store.append_log(log)

        badges = await award_badges(
            self.store, derive_milestones(streak, previous_count, earned_at=now)
        )
        await self.store.write_streak(streak)

        logger.info(
            "streak.completed",
            streak_id=streak.id,
            user_id=streak.user_id,
            count=streak.current_streak_count,
            target_days=streak.target_days,
            status=streak.status.value,
        )
        return CompletionResult(streak=streak, log=log, badges=badges)
