"""Streak contract endpoints: listing, creation, completion and restart."""

from typing import Annotated

from fastapi import APIRouter, HTTPException, Path, Request

from core import get_logger
from core.database import DbSession
from core.ratelimit import READ_LIMIT, WRITE_LIMIT, limiter
from schemas import (
    StreakCompleteRequest,
    StreakCompletionResponse,
    StreakCreateRequest,
    StreakDetailResponse,
    StreakListResponse,
    StreakResponse,
)
from services.streak_engine import StreakUnavailableError
from services.streaks_service import (
    CapacityExceededError,
    InvalidDurationError,
    StreakNotFoundError,
    StreakNotRestartableError,
    complete_streak,
    create_streak,
    get_streak_detail,
    list_streaks,
    restart_streak,
)
from services.users_service import UserNotFoundError

logger = get_logger(__name__)

router = APIRouter(prefix="/api/users/{user_id}/streaks", tags=["streaks"])

UserIdPath = Annotated[str, Path(max_length=36)]
StreakIdPath = Annotated[str, Path(max_length=36)]


@router.get(
    "",
    response_model=StreakListResponse,
    responses={404: {"description": "User not found"}},
)
@limiter.limit(READ_LIMIT)
async def list_streaks_endpoint(
    request: Request,
    user_id: UserIdPath,
    db: DbSession,
) -> StreakListResponse:
    """List the user's streaks after applying any missed-day lapses."""
    try:
        return await list_streaks(db, user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post(
    "",
    response_model=StreakResponse,
    status_code=201,
    responses={
        404: {"description": "User not found"},
        409: {"description": "Too many active streaks"},
        422: {"description": "Invalid duration"},
    },
)
@limiter.limit(WRITE_LIMIT)
async def create_streak_endpoint(
    request: Request,
    body: StreakCreateRequest,
    user_id: UserIdPath,
    db: DbSession,
) -> StreakResponse:
    """Start a new streak contract."""
    try:
        return await create_streak(
            db,
            user_id,
            name=body.name,
            task=body.task,
            target_days=body.target_days,
        )
    except UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidDurationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except CapacityExceededError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get(
    "/{streak_id}",
    response_model=StreakDetailResponse,
    responses={404: {"description": "User or streak not found"}},
)
@limiter.limit(READ_LIMIT)
async def get_streak_detail_endpoint(
    request: Request,
    user_id: UserIdPath,
    streak_id: StreakIdPath,
    db: DbSession,
) -> StreakDetailResponse:
    """Get a streak with its completion history."""
    try:
        return await get_streak_detail(db, user_id, streak_id)
    except (UserNotFoundError, StreakNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post(
    "/{streak_id}/complete",
    response_model=StreakCompletionResponse,
    responses={
        404: {"description": "User or streak not found"},
        409: {"description": "Streak is not active"},
    },
)
@limiter.limit(WRITE_LIMIT)
async def complete_streak_endpoint(
    request: Request,
    user_id: UserIdPath,
    streak_id: StreakIdPath,
    db: DbSession,
    body: StreakCompleteRequest | None = None,
) -> StreakCompletionResponse:
    """Mark today as done for a streak.

    Completing twice on the same day returns 200 with already_completed=true.
    """
    note = body.note if body else None
    try:
        return await complete_streak(db, user_id, streak_id, note=note)
    except (UserNotFoundError, StreakNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StreakUnavailableError as e:
        # Persist a lapse found by this request before reporting the 409
        await db.commit()
        raise HTTPException(status_code=409, detail=str(e))


@router.post(
    "/{streak_id}/restart",
    response_model=StreakResponse,
    responses={
        404: {"description": "User or streak not found"},
        409: {"description": "Streak is not broken or too many active streaks"},
    },
)
@limiter.limit(WRITE_LIMIT)
async def restart_streak_endpoint(
    request: Request,
    user_id: UserIdPath,
    streak_id: StreakIdPath,
    db: DbSession,
) -> StreakResponse:
    """Restart a broken streak from day zero."""
    try:
        return await restart_streak(db, user_id, streak_id)
    except (UserNotFoundError, StreakNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (StreakNotRestartableError, CapacityExceededError) as e:
        raise HTTPException(status_code=409, detail=str(e))
