"""Repository layer for database operations.

Repositories encapsulate all database queries, keeping routes thin and focused
on HTTP handling. This separation provides:
- Single source of truth for database operations
- Easier testing (the streak engine only sees the StreakStore protocol)
- Cleaner route code focused on request/response handling
"""

from repositories.streak_repository import StreakRepository, StreakStore
from repositories.user_repository import UserRepository
from repositories.utils import log_slow_query

__all__ = [
    "StreakRepository",
    "StreakStore",
    "UserRepository",
    "log_slow_query",
]
