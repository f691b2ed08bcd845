"""ORM models for users, events, achievements and their link tables.

A participation lives in exactly one row of ``event_participations``; the
event's participant list and the user's participation history are both read
from it.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portal.db.base import Base, BigIntId


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------------

ROLES = ("student", "admin")

DEPARTMENTS = (
    "Civil Engineering",
    "Mechanical Engineering",
    "Information Science Engineering",
    "Computer Science Engineering",
    "Electronics and Communication Engineering",
    "Electricals and Electronics Engineering",
)
ALL_DEPARTMENTS = "All Departments"

YEARS = ("1st Year", "2nd Year", "3rd Year", "4th Year")

EVENT_TYPES = ("academic", "sports", "extracurricular")
EVENT_STATUSES = ("upcoming", "ongoing", "completed", "cancelled")

ACHIEVEMENT_CATEGORIES = ("academic", "sports", "extracurricular", "special")
RARITIES = ("common", "rare", "epic", "legendary")
RARE_RARITIES = ("rare", "epic", "legendary")
REQUIREMENT_KINDS = ("points", "events", "streak", "custom")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """A student or administrator account."""

    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_department_points", "department", "total_points"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="student")
    student_id: Mapped[str | None] = mapped_column(String(20), unique=True, nullable=True)
    department: Mapped[str | None] = mapped_column(String(64), nullable=True)
    year: Mapped[str | None] = mapped_column(String(16), nullable=True)

    total_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class Event(Base):
    """A campus event students can take part in for points."""

    __tablename__ = "events"
    __table_args__ = (
        Index("idx_events_date_status", "date", "status"),
        Index("idx_events_department_type", "department", "type"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    department: Mapped[str] = mapped_column(String(64), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="upcoming")
    max_participants: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_by: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id"), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class EventParticipation(Base):
    """One user's participation in one event, with the points it was worth."""

    __tablename__ = "event_participations"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_participations_event_user"),
        Index("idx_event_participations_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("events.id"), nullable=False)
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id"), nullable=False)
    points_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    participated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    event: Mapped[Event] = relationship("Event", lazy="joined")
    user: Mapped[User] = relationship("User", lazy="joined")


# ---------------------------------------------------------------------------
# Achievements
# ---------------------------------------------------------------------------


class Achievement(Base):
    """An unlockable achievement with a typed requirement."""

    __tablename__ = "achievements"
    __table_args__ = (
        Index("idx_achievements_category_rarity", "category", "rarity"),
        Index("idx_achievements_active", "is_active"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    rarity: Mapped[str] = mapped_column(String(16), nullable=False, default="common")
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    requirement_type: Mapped[str] = mapped_column(String(16), nullable=False)
    requirement_value: Mapped[int | None] = mapped_column(Integer, nullable=True)
    requirement_description: Mapped[str | None] = mapped_column(String(200), nullable=True)
    icon: Mapped[str] = mapped_column(String(64), nullable=False, default="trophy")
    created_by: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id"), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class UserAchievement(Base):
    """An achievement earned by a user."""

    __tablename__ = "user_achievements"
    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id", name="uq_user_achievements_user_achievement"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id"), nullable=False)
    achievement_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("achievements.id"), nullable=False)
    points_awarded: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    earned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    achievement: Mapped[Achievement] = relationship("Achievement", lazy="joined")
