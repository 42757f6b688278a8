"""Pydantic schemas for API request/response validation."""

import re
from datetime import datetime

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    field_validator,
)

from models import StreakStatus

_USERNAME_PATTERN = re.compile(r"^[a-z0-9_.-]{3,64}$")


class UserCreateRequest(BaseModel):
    """Request to register a streak owner."""

    username: str = Field(max_length=64)
    display_name: str | None = Field(default=None, max_length=255)
    target: str | None = Field(default=None, max_length=255)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip().lower()
        if not _USERNAME_PATTERN.match(v):
            raise ValueError(
                "Username must be 3-64 characters of letters, digits, '_', '.' or '-'"
            )
        return v


class UserResponse(BaseModel):
    """User response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    display_name: str | None = None
    target: str | None = None
    created_at: datetime


class StreakCreateRequest(BaseModel):
    """Request to start a new streak contract.

    Only JSON numbers are accepted here. The range and whole-number checks
    happen in the service so every invalid duration is reported the same way.
    """

    name: str = Field(min_length=1, max_length=255)
    task: str = Field(default="", max_length=2000)
    target_days: StrictInt | StrictFloat


class StreakCompleteRequest(BaseModel):
    """Request to credit today's completion."""

    note: str | None = Field(default=None, max_length=2000)

    @field_validator("note")
    @classmethod
    def strip_note(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class StreakResponse(BaseModel):
    """A streak as shown on the dashboard."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    name: str
    task: str
    target_days: int
    current_streak_count: int
    longest_streak: int
    last_completed_date: datetime | None = None
    created_at: datetime
    status: StreakStatus


class StreakListResponse(BaseModel):
    """All of a user's streaks after lapse validation."""

    streaks: list[StreakResponse]
    active_count: int
    seconds_until_lapse: int
    next_day_boundary: datetime


class StreakLogResponse(BaseModel):
    """One credited completion."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    streak_id: str
    completed_at: datetime
    note: str | None = None


class StreakStats(BaseModel):
    """Summary numbers for a streak detail view."""

    total_active_days: int
    peak_chain: int
    current_chain: int
    days_remaining: int


class StreakDetailResponse(BaseModel):
    """Streak with its completion history."""

    streak: StreakResponse
    logs: list[StreakLogResponse]
    stats: StreakStats


class StreakCompletionResponse(BaseModel):
    """Result of a completion attempt.

    A duplicate attempt on the same day is not an error: it comes back with
    already_completed=True and no new badges.
    """

    streak: StreakResponse
    already_completed: bool = False
    badges_earned: list["BadgeResponse"] = Field(default_factory=list)


class BadgeResponse(BaseModel):
    """An earned badge."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    streak_id: str | None = None
    milestone: int
    label: str
    earned_at: datetime


class BadgeCatalogItem(BaseModel):
    """A badge that can be earned."""

    milestone: int
    label: str
    num: str
    how_to: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str


class PoolStatusResponse(BaseModel):
    """Connection pool status."""

    pool_size: int
    checked_out: int
    overflow: int
    checked_in: int


class DetailedHealthResponse(BaseModel):
    """Detailed health check response with component status."""

    status: str
    service: str
    database: bool
    pool: PoolStatusResponse | None = None


StreakCompletionResponse.model_rebuild()
