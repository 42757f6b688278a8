"""User registration and badge endpoints."""

from typing import Annotated

from fastapi import APIRouter, HTTPException, Path, Request

from core.database import DbSession
from core.ratelimit import READ_LIMIT, WRITE_LIMIT, limiter
from schemas import BadgeCatalogItem, BadgeResponse, UserCreateRequest, UserResponse
from services.badges_service import get_badge_catalog, get_user_badges
from services.users_service import (
    UsernameTakenError,
    UserNotFoundError,
    create_user,
    ensure_user_exists,
    get_user_profile,
)

router = APIRouter(prefix="/api", tags=["users"])

UserIdPath = Annotated[str, Path(max_length=36)]


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=201,
    responses={409: {"description": "Username unavailable"}},
)
@limiter.limit(WRITE_LIMIT)
async def create_user_endpoint(
    request: Request,
    body: UserCreateRequest,
    db: DbSession,
) -> UserResponse:
    """Register a streak owner."""
    try:
        return await create_user(
            db,
            body.username,
            display_name=body.display_name,
            target=body.target,
        )
    except UsernameTakenError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get(
    "/users/{user_id}",
    response_model=UserResponse,
    responses={404: {"description": "User not found"}},
)
@limiter.limit(READ_LIMIT)
async def get_user_endpoint(
    request: Request,
    user_id: UserIdPath,
    db: DbSession,
) -> UserResponse:
    try:
        return await get_user_profile(db, user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get(
    "/users/{user_id}/badges",
    response_model=list[BadgeResponse],
    responses={404: {"description": "User not found"}},
)
@limiter.limit(READ_LIMIT)
async def get_user_badges_endpoint(
    request: Request,
    user_id: UserIdPath,
    db: DbSession,
) -> list[BadgeResponse]:
    """Badges the user has earned, most recent first."""
    try:
        await ensure_user_exists(db, user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    badges = await get_user_badges(db, user_id)
    return [BadgeResponse.model_validate(b) for b in badges]


@router.get("/badges/catalog", response_model=list[BadgeCatalogItem])
async def get_badge_catalog_endpoint() -> list[BadgeCatalogItem]:
    """All milestone badges in threshold order."""
    return get_badge_catalog()
