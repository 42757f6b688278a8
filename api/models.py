"""SQLAlchemy models for DayZero streak tracking."""

import uuid
from datetime import UTC, datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, declared_attr, mapped_column, relationship

from core.database import Base


def utcnow() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(UTC)


def to_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC.

    SQLite stores the wall-clock digits of whatever offset it is given, so
    instants must be in UTC before they reach a DateTime column.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def new_id() -> str:
    """Return a new opaque record identifier."""
    return str(uuid.uuid4())


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamp columns.

    Use this for any model that needs audit timestamps.
    """

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(DateTime(timezone=True), default=utcnow)

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class User(TimestampMixin, Base):
    """Owner of streaks and badges. Credentials live elsewhere."""

    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("username", name="uq_users_username"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    username: Mapped[str] = mapped_column(String(64), nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # What the user is working towards (e.g. an exam)
    target: Mapped[str | None] = mapped_column(String(255), nullable=True)

    streaks: Mapped[list["Streak"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
    )


class StreakStatus(str, PyEnum):
    """Lifecycle status of a streak contract.

    ACTIVE is the only non-terminal state. BROKEN ends an epoch until the
    owner restarts it; CONQUERED is final.
    """

    ACTIVE = "ACTIVE"
    BROKEN = "BROKEN"
    CONQUERED = "CONQUERED"


class Streak(TimestampMixin, Base):
    """One habit contract.

    ``created_at`` anchors the current epoch: it is the last activity
    until the first completion, and a restart moves it forward.
    """

    __tablename__ = "streaks"
    __table_args__ = (Index("ix_streaks_user_status", "user_id", "status"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    task: Mapped[str] = mapped_column(Text, nullable=False, default="")
    target_days: Mapped[int] = mapped_column(Integer, nullable=False)
    current_streak_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_completed_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    status: Mapped[StreakStatus] = mapped_column(
        Enum(
            StreakStatus,
            name="streak_status",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=StreakStatus.ACTIVE,
    )

    user: Mapped["User"] = relationship(back_populates="streaks")


class StreakLog(Base):
    """Append-only record of one credited completion."""

    __tablename__ = "streak_logs"
    __table_args__ = (
        Index("ix_streak_logs_streak_completed", "streak_id", "completed_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    streak_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("streaks.id", ondelete="CASCADE"),
        nullable=False,
    )
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    note: Mapped[str | None] = mapped_column(Text, nullable=True)


class Badge(Base):
    """Append-only achievement record.

    A streak holds at most one badge per (milestone, label): the threshold
    badge and the contract fulfillment badge may share a milestone value.
    """

    __tablename__ = "badges"
    __table_args__ = (
        UniqueConstraint(
            "streak_id", "milestone", "label", name="uq_badges_streak_milestone"
        ),
        Index("ix_badges_user_earned", "user_id", "earned_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    streak_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("streaks.id", ondelete="SET NULL"),
        nullable=True,
    )
    milestone: Mapped[int] = mapped_column(Integer, nullable=False)
    label: Mapped[str] = mapped_column(String(64), nullable=False)
    earned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
