"""Milestone badges for streak contracts.

Badges are derived from a streak's state right after a completion:
- Milestone badges: the count hit one of the fixed thresholds exactly
  (a badge for 7 days is earned on day 7, never on day 8)
- Contract fulfillment: the completion conquered the streak, keyed by
  its target_days

Derivation is pure. Persisting goes through award_badges(), which skips
badges the streak already holds so re-deriving never duplicates one.
"""

from collections.abc import Iterable
from datetime import datetime
from typing import TypedDict

from sqlalchemy.ext.asyncio import AsyncSession

from core import get_logger
from models import Badge, Streak, StreakStatus, new_id, utcnow
from repositories.streak_repository import StreakRepository, StreakStore
from schemas import BadgeCatalogItem

logger = get_logger(__name__)

CONTRACT_FULFILLED_LABEL = "CONTRACT_FULFILLED"


class MilestoneInfo(TypedDict):
    """Milestone badge configuration."""

    milestone: int
    label: str


MILESTONE_BADGES: list[MilestoneInfo] = [
    {"milestone": 7, "label": "RECRUIT"},
    {"milestone": 15, "label": "AWAKENED"},
    {"milestone": 30, "label": "LOCKED IN"},
    {"milestone": 50, "label": "SERIOUS"},
    {"milestone": 100, "label": "IDENTITY"},
    {"milestone": 150, "label": "UNSTOPPABLE"},
    {"milestone": 200, "label": "ELITE"},
    {"milestone": 250, "label": "MONOLITH"},
    {"milestone": 300, "label": "IMMORTAL"},
    {"milestone": 350, "label": "TITAN"},
    {"milestone": 365, "label": "LEGENDARY"},
]

_LABEL_BY_MILESTONE = {m["milestone"]: m["label"] for m in MILESTONE_BADGES}


def get_badge_catalog() -> list[BadgeCatalogItem]:
    """Every milestone badge in threshold order."""
    return [
        BadgeCatalogItem(
            milestone=info["milestone"],
            label=info["label"],
            num=f"#{index:03d}",
            how_to=f"Complete {info['milestone']} days without a break",
        )
        for index, info in enumerate(MILESTONE_BADGES, start=1)
    ]


def _badge(streak: Streak, milestone: int, label: str, earned_at: datetime) -> Badge:
    return Badge(
        id=new_id(),
        user_id=streak.user_id,
        streak_id=streak.id,
        milestone=milestone,
        label=label,
        earned_at=earned_at,
    )


def derive_milestones(
    streak: Streak,
    previous_count: int,
    earned_at: datetime | None = None,
) -> list[Badge]:
    """Compute the badges earned by moving from ``previous_count`` to now.

    Args:
        streak: The streak after the completion was applied
        previous_count: current_streak_count before the completion
        earned_at: Timestamp for the badges (defaults to last_completed_date)

    Returns:
        Unsaved Badge objects, threshold badge first
    """
    count = streak.current_streak_count
    if count == previous_count:
        return []

    if earned_at is None:
        earned_at = streak.last_completed_date or utcnow()

    badges: list[Badge] = []

    label = _LABEL_BY_MILESTONE.get(count)
    if label is not None:
        badges.append(_badge(streak, count, label, earned_at))

    if (
        streak.status == StreakStatus.CONQUERED
        and count == streak.target_days
        and previous_count < streak.target_days
    ):
        badges.append(
            _badge(streak, streak.target_days, CONTRACT_FULFILLED_LABEL, earned_at)
        )

    return badges


async def award_badges(store: StreakStore, badges: Iterable[Badge]) -> list[Badge]:
    """Persist badges the streak does not hold yet.

    Returns:
        The badges that were actually appended
    """
    awarded: list[Badge] = []
    for badge in badges:
        if badge.streak_id is not None and await store.has_badge(
            badge.streak_id, badge.milestone, badge.label
        ):
            continue
        await store.append_badge(badge)
        awarded.append(badge)
        logger.info(
            "badge.awarded",
            user_id=badge.user_id,
            streak_id=badge.streak_id,
            milestone=badge.milestone,
            label=badge.label,
        )
    return awarded


async def get_user_badges(db: AsyncSession, user_id: str) -> list[Badge]:
    """Earned badges for a user, most recent first."""
    return list(await StreakRepository(db).get_badges_for_user(user_id))
