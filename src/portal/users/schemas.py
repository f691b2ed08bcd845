"""Request/response schemas for user endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from portal.auth.schemas import UserResponse
from portal.db.models import DEPARTMENTS, YEARS
from portal.schemas import check_choice


class AdminUserUpdateRequest(BaseModel):
    """Fields an administrator may change on any account."""

    name: str | None = Field(None, min_length=2, max_length=50)
    department: str | None = None
    year: str | None = None
    is_active: bool | None = None

    @field_validator("department")
    @classmethod
    def check_department(cls, v: str | None) -> str | None:
        return check_choice(v, DEPARTMENTS, "department")

    @field_validator("year")
    @classmethod
    def check_year(cls, v: str | None) -> str | None:
        return check_choice(v, YEARS, "year")


class LeaderboardEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rank: int = 0
    id: int
    name: str
    student_id: str | None = None
    department: str | None = None
    year: str | None = None
    total_points: int
    level: int


class LevelProgress(BaseModel):
    level: int
    points_into_level: int
    points_for_level: int
    next_level: int


class EarnedAchievement(BaseModel):
    achievement_id: int
    title: str
    description: str
    category: str
    rarity: str
    icon: str
    points_awarded: int
    earned_at: datetime


class ParticipatedEvent(BaseModel):
    event_id: int
    title: str
    type: str
    department: str
    date: datetime
    status: str
    points_earned: int
    participated_at: datetime


class UserProfile(UserResponse):
    """Full profile with populated achievements and event history."""

    level_progress: LevelProgress
    achievements: list[EarnedAchievement] = []
    events_participated: list[ParticipatedEvent] = []


class CountBucket(BaseModel):
    key: str | None
    count: int


class UserStatsResponse(BaseModel):
    total_users: int
    active_users: int
    students: int
    admins: int
    department_stats: list[CountBucket]
    year_stats: list[CountBucket]
