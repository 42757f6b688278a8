"""Streak service: contract creation, completion, restart and views.

This module is the application layer around the streak engine:
- Validates new contracts (minimum duration, active streak capacity)
- Runs lapse validation before anything is shown or credited
- Restarts BROKEN streaks as a fresh epoch

Routes should use this service for all streak business logic.
"""

from datetime import datetime
from numbers import Real

from sqlalchemy.ext.asyncio import AsyncSession

from core import get_logger
from core.config import get_settings
from models import Streak, StreakStatus, new_id, to_utc, utcnow
from repositories.streak_repository import StreakRepository
from schemas import (
    BadgeResponse,
    StreakCompletionResponse,
    StreakDetailResponse,
    StreakListResponse,
    StreakLogResponse,
    StreakResponse,
    StreakStats,
)
from services.day_boundary import DayBoundary
from services.lapse_validator import validate_user_streaks
from services.streak_engine import (
    AlreadyCompletedTodayError,
    StreakError,
    StreakStateMachine,
)
from services.users_service import ensure_user_exists

logger = get_logger(__name__)


class InvalidDurationError(StreakError):
    """Raised when target_days is not an integer within the allowed range."""

    def __init__(self, target_days: object, minimum: int, maximum: int):
        self.target_days = target_days
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(
            f"Duration must be an integer between {minimum} and {maximum}"
        )


class CapacityExceededError(StreakError):
    """Raised when the user already has the maximum number of ACTIVE streaks."""

    def __init__(self, user_id: str, limit: int):
        self.user_id = user_id
        self.limit = limit
        super().__init__(f"Max {limit} active protocols reached")


class StreakNotFoundError(StreakError):
    """Raised when a streak does not exist or belongs to another user."""

    def __init__(self, streak_id: str):
        self.streak_id = streak_id
        super().__init__(f"Streak not found: {streak_id}")


class StreakNotRestartableError(StreakError):
    """Raised when restarting a streak that is not BROKEN."""

    def __init__(self, streak_id: str, status: StreakStatus):
        self.streak_id = streak_id
        self.status = status
        super().__init__(f"Only broken streaks can restart (streak is {status.value})")


def validate_target_days(target_days: object) -> int:
    """Return target_days as an int, or raise InvalidDurationError."""
    settings = get_settings()
    minimum, maximum = settings.min_target_days, settings.max_target_days
    if isinstance(target_days, bool) or not isinstance(target_days, Real):
        raise InvalidDurationError(target_days, minimum, maximum)
    if isinstance(target_days, float) and not target_days.is_integer():
        raise InvalidDurationError(target_days, minimum, maximum)
    if not minimum <= target_days <= maximum:
        raise InvalidDurationError(target_days, minimum, maximum)
    return int(target_days)


async def _get_owned_streak(
    repo: StreakRepository, user_id: str, streak_id: str
) -> Streak:
    streak = await repo.get_for_user(user_id, streak_id)
    if streak is None:
        raise StreakNotFoundError(streak_id)
    return streak


async def _ensure_capacity(repo: StreakRepository, user_id: str) -> None:
    limit = get_settings().max_active_streaks
    if await repo.count_active_for_user(user_id) >= limit:
        raise CapacityExceededError(user_id, limit)


async def list_streaks(
    db: AsyncSession,
    user_id: str,
    now: datetime | None = None,
) -> StreakListResponse:
    """Validate and return all of a user's streaks with the lapse countdown."""
    now = to_utc(now) if now else utcnow()
    await ensure_user_exists(db, user_id)

    day_boundary = DayBoundary.from_settings()
    streaks = await validate_user_streaks(
        StreakRepository(db), user_id, now, day_boundary
    )

    return StreakListResponse(
        streaks=[StreakResponse.model_validate(s) for s in streaks],
        active_count=sum(1 for s in streaks if s.status == StreakStatus.ACTIVE),
        seconds_until_lapse=day_boundary.seconds_until_next_boundary(now),
        next_day_boundary=day_boundary.next_boundary(now),
    )


async def create_streak(
    db: AsyncSession,
    user_id: str,
    name: str,
    target_days: object,
    task: str = "",
    now: datetime | None = None,
) -> StreakResponse:
    """Start a new ACTIVE streak contract.

    Raises:
        UserNotFoundError: If the user does not exist
        InvalidDurationError: If target_days is not an integer in range
        CapacityExceededError: If the user is at the ACTIVE streak limit
    """
    now = to_utc(now) if now else utcnow()
    await ensure_user_exists(db, user_id)
    days = validate_target_days(target_days)

    repo = StreakRepository(db)
    # Lapsed streaks must not count against capacity
    await validate_user_streaks(repo, user_id, now)
    await _ensure_capacity(repo, user_id)

    streak = await repo.create(
        Streak(
            id=new_id(),
            user_id=user_id,
            name=name.strip(),
            task=task.strip(),
            target_days=days,
            current_streak_count=0,
            longest_streak=0,
            last_completed_date=None,
            status=StreakStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )
    )
    logger.info(
        "streak.created", user_id=user_id, streak_id=streak.id, target_days=days
    )
    return StreakResponse.model_validate(streak)


async def complete_streak(
    db: AsyncSession,
    user_id: str,
    streak_id: str,
    note: str | None = None,
    now: datetime | None = None,
) -> StreakCompletionResponse:
    """Credit today's completion after applying any pending lapse.

    A second completion on the same day is reported as a no-op
    (already_completed=True) rather than an error.

    A lapse applied here is left on the session when StreakUnavailableError
    is raised; callers commit it before reporting the error.

    Raises:
        UserNotFoundError: If the user does not exist
        StreakNotFoundError: If the streak does not exist for this user
        StreakUnavailableError: If the streak is BROKEN or CONQUERED
    """
    now = to_utc(now) if now else utcnow()
    await ensure_user_exists(db, user_id)

    repo = StreakRepository(db)
    streak = await _get_owned_streak(repo, user_id, streak_id)

    machine = StreakStateMachine(repo, DayBoundary.from_settings())
    await machine.evaluate_lapse(streak, now)

    try:
        result = await machine.record_completion(streak, now, note)
    except AlreadyCompletedTodayError:
        logger.info("streak.completion.duplicate", streak_id=streak_id)
        return StreakCompletionResponse(
            streak=StreakResponse.model_validate(streak),
            already_completed=True,
        )

    return StreakCompletionResponse(
        streak=StreakResponse.model_validate(result.streak),
        badges_earned=[BadgeResponse.model_validate(b) for b in result.badges],
    )


async def restart_streak(
    db: AsyncSession,
    user_id: str,
    streak_id: str,
    now: datetime | None = None,
) -> StreakResponse:
    """Begin a new epoch for a BROKEN streak.

    The epoch restarts at ``now`` with a zero count; longest_streak and the
    completion history are kept.

    Raises:
        StreakNotFoundError: If the streak does not exist for this user
        StreakNotRestartableError: If the streak is not BROKEN
        CapacityExceededError: If the user is at the ACTIVE streak limit
    """
    now = to_utc(now) if now else utcnow()
    await ensure_user_exists(db, user_id)

    repo = StreakRepository(db)
    await validate_user_streaks(repo, user_id, now)
    streak = await _get_owned_streak(repo, user_id, streak_id)

    if streak.status != StreakStatus.BROKEN:
        raise StreakNotRestartableError(streak_id, streak.status)
    await _ensure_capacity(repo, user_id)

    streak.status = StreakStatus.ACTIVE
    streak.current_streak_count = 0
    streak.last_completed_date = None
    streak.created_at = now
    await repo.write_streak(streak)

    logger.info("streak.restarted", user_id=user_id, streak_id=streak_id)
    return StreakResponse.model_validate(streak)


async def get_streak_detail(
    db: AsyncSession,
    user_id: str,
    streak_id: str,
    now: datetime | None = None,
) -> StreakDetailResponse:
    """Streak with its full completion history and summary stats."""
    now = to_utc(now) if now else utcnow()
    await ensure_user_exists(db, user_id)

    repo = StreakRepository(db)
    await validate_user_streaks(repo, user_id, now)
    streak = await _get_owned_streak(repo, user_id, streak_id)
    logs = await repo.read_logs_for_streak(streak_id)

    return StreakDetailResponse(
        streak=StreakResponse.model_validate(streak),
        logs=[StreakLogResponse.model_validate(log) for log in logs],
        stats=StreakStats(
            total_active_days=len(logs),
            peak_chain=streak.longest_streak,
            current_chain=streak.current_streak_count,
            days_remaining=max(streak.target_days - streak.current_streak_count, 0),
        ),
    )
