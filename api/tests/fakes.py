"""In-memory StreakStore for engine tests.

Mirrors StreakRepository's ordering so engine behavior can be checked
without a database.
"""

from collections.abc import Sequence

from models import Badge, Streak, StreakLog


class InMemoryStreakStore:
    """Dict-backed StreakStore that also counts writes."""

    def __init__(self) -> None:
        self.streaks: dict[str, Streak] = {}
        self.logs: list[StreakLog] = []
        self.badges: list[Badge] = []
        self.write_count = 0

    def add(self, *streaks: Streak) -> None:
        for streak in streaks:
            self.streaks[streak.id] = streak

    async def read_streaks_for_user(self, user_id: str) -> Sequence[Streak]:
        owned = [s for s in self.streaks.values() if s.user_id == user_id]
        return sorted(owned, key=lambda s: (s.created_at, s.id))

    async def read_logs_for_streak(self, streak_id: str) -> Sequence[StreakLog]:
        owned = [log for log in self.logs if log.streak_id == streak_id]
        return sorted(owned, key=lambda log: (log.completed_at, log.id))

    async def write_streak(self, streak: Streak) -> None:
        self.streaks[streak.id] = streak
        self.write_count += 1

    async def append_log(self, log: StreakLog) -> None:
        self.logs.append(log)

    async def has_badge(self, streak_id: str, milestone: int, label: str) -> bool:
        return any(
            b.streak_id == streak_id and b.milestone == milestone and b.label == label
            for b in self.badges
        )

    async def append_badge(self, badge: Badge) -> None:
        self.badges.append(badge)
