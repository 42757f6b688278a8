"""User service for registering and resolving streak owners."""

from sqlalchemy.ext.asyncio import AsyncSession

from core import get_logger
from models import User, new_id
from repositories.user_repository import UserRepository
from schemas import UserResponse
from services.streak_engine import StreakError

logger = get_logger(__name__)


class UserNotFoundError(StreakError):
    """Raised when a referenced user does not exist."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


class UsernameTakenError(StreakError):
    """Raised when registering a username that is already in use."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Username unavailable: {username}")


def _to_user_response(user: User) -> UserResponse:
    return UserResponse.model_validate(user)


async def get_user(db: AsyncSession, user_id: str) -> User:
    """Load a user or raise UserNotFoundError."""
    user = await UserRepository(db).get_by_id(user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return user


async def ensure_user_exists(db: AsyncSession, user_id: str) -> None:
    await get_user(db, user_id)


async def create_user(
    db: AsyncSession,
    username: str,
    display_name: str | None = None,
    target: str | None = None,
) -> UserResponse:
    """Register a new user.

    Raises:
        UsernameTakenError: If the (lowercased) username already exists
    """
    username = username.strip().lower()
    user_repo = UserRepository(db)
    if await user_repo.get_by_username(username) is not None:
        raise UsernameTakenError(username)

    user = await user_repo.create(
        user_id=new_id(),
        username=username,
        display_name=display_name,
        target=target,
    )
    logger.info("user.created", user_id=user.id)
    return _to_user_response(user)


async def get_user_profile(db: AsyncSession, user_id: str) -> UserResponse:
    return _to_user_response(await get_user(db, user_id))
