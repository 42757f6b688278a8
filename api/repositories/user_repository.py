"""User repository for database operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models import User


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: str) -> User | None:
        """Get a user by their ID."""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> User | None:
        """Get a user by username.

        Expects username to be pre-normalized (lowercase) by service layer.
        """
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def create(
        self,
        user_id: str,
        username: str,
        display_name: str | None = None,
        target: str | None = None,
    ) -> User:
        user = User(
            id=user_id,
            username=username,
            display_name=display_name,
            target=target,
        )
        self.db.add(user)
        await self.db.flush()
        return user
