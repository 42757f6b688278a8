"""Factory Boy factories for generating test data.

Factories provide a clean way to create test objects with sensible defaults.
Override specific fields as needed in tests.

Usage:
    # In-memory only (engine tests with InMemoryStreakStore)
    streak = StreakFactory.build(target_days=7, created_at=start)

    # Persisted
    user = await create_async(UserFactory, db_session)
    streak = await create_async(StreakFactory, db_session, user_id=user.id)
"""

from datetime import UTC, datetime

import factory
from faker import Faker
from sqlalchemy.ext.asyncio import AsyncSession

from models import Badge, Streak, StreakLog, StreakStatus, User, new_id

fake = Faker()


# =============================================================================
# Async Factory Helpers
# =============================================================================


async def create_async(
    factory_class: type[factory.Factory], db: AsyncSession, **kwargs
):
    """Create an instance using a factory and persist to database.

    Usage:
        user = await create_async(UserFactory, db_session, username="ravi")
    """
    instance = factory_class.build(**kwargs)
    db.add(instance)
    await db.flush()
    await db.refresh(instance)
    return instance


# =============================================================================
# User Factory
# =============================================================================


class UserFactory(factory.Factory):
    """Factory for creating User instances."""

    class Meta:
        model = User

    id = factory.LazyFunction(new_id)
    username = factory.Sequence(lambda n: f"{fake.user_name().lower()[:40]}{n}")
    display_name = factory.LazyAttribute(lambda _: fake.name())
    target = factory.LazyAttribute(lambda _: fake.sentence(nb_words=3))
    created_at = factory.LazyFunction(lambda: datetime.now(UTC))
    updated_at = factory.LazyFunction(lambda: datetime.now(UTC))


# =============================================================================
# Streak Factories
# =============================================================================


class StreakFactory(factory.Factory):
    """Factory for a fresh ACTIVE streak (no completions yet)."""

    class Meta:
        model = Streak

    id = factory.LazyFunction(new_id)
    user_id = factory.LazyFunction(new_id)
    name = factory.LazyAttribute(lambda _: fake.catch_phrase()[:60])
    task = factory.LazyAttribute(lambda _: fake.sentence(nb_words=6))
    target_days = 30
    current_streak_count = 0
    longest_streak = 0
    last_completed_date = None
    status = StreakStatus.ACTIVE
    created_at = factory.LazyFunction(lambda: datetime.now(UTC))
    updated_at = factory.LazyAttribute(lambda obj: obj.created_at)


class BrokenStreakFactory(StreakFactory):
    """Factory for a streak that lapsed after a short run."""

    status = StreakStatus.BROKEN
    longest_streak = 4


class StreakLogFactory(factory.Factory):
    """Factory for creating StreakLog instances."""

    class Meta:
        model = StreakLog

    id = factory.LazyFunction(new_id)
    streak_id = factory.LazyFunction(new_id)
    completed_at = factory.LazyFunction(lambda: datetime.now(UTC))
    note = None


class BadgeFactory(factory.Factory):
    """Factory for creating Badge instances."""

    class Meta:
        model = Badge

    id = factory.LazyFunction(new_id)
    user_id = factory.LazyFunction(new_id)
    streak_id = None
    milestone = 7
    label = "RECRUIT"
    earned_at = factory.LazyFunction(lambda: datetime.now(UTC))
