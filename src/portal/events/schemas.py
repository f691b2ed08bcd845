"""Request/response schemas for event endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from portal.db.models import ALL_DEPARTMENTS, DEPARTMENTS, EVENT_STATUSES, EVENT_TYPES
from portal.schemas import check_choice

EVENT_DEPARTMENTS = (*DEPARTMENTS, ALL_DEPARTMENTS)


class _EventFields(BaseModel):
    @field_validator("title", "description", mode="before", check_fields=False)
    @classmethod
    def strip_text(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("type", check_fields=False)
    @classmethod
    def check_type(cls, v: str | None) -> str | None:
        return check_choice(v, EVENT_TYPES, "event type")

    @field_validator("department", check_fields=False)
    @classmethod
    def check_department(cls, v: str | None) -> str | None:
        return check_choice(v, EVENT_DEPARTMENTS, "department")


class EventCreateRequest(_EventFields):
    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=500)
    type: str
    points: int = Field(..., ge=1, le=1000)
    department: str
    date: datetime
    max_participants: int | None = Field(None, ge=1)


class EventUpdateRequest(_EventFields):
    """Partial update; omitted fields are left unchanged.

    Only ``max_participants`` accepts an explicit null, which removes the cap.
    """

    title: str | None = Field(None, min_length=3, max_length=100)
    description: str | None = Field(None, min_length=10, max_length=500)
    type: str | None = None
    points: int | None = Field(None, ge=1, le=1000)
    department: str | None = None
    date: datetime | None = None
    status: str | None = None
    max_participants: int | None = Field(None, ge=1)

    @field_validator("status")
    @classmethod
    def check_status(cls, v: str | None) -> str | None:
        return check_choice(v, EVENT_STATUSES, "status")

    @field_validator("title", "description", "type", "points", "department", "date", "status")
    @classmethod
    def reject_null(cls, v: object) -> object:
        if v is None:
            msg = "Field cannot be null"
            raise ValueError(msg)
        return v


class AwardPointsRequest(BaseModel):
    user_id: int
    points: int = Field(..., ge=1, le=1000)


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    type: str
    points: int
    department: str
    date: datetime
    status: str
    max_participants: int | None = None
    participant_count: int = 0
    created_by: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ParticipantResponse(BaseModel):
    user_id: int
    name: str
    student_id: str | None = None
    department: str | None = None
    points_earned: int
    participated_at: datetime


class EventDetail(EventResponse):
    participants: list[ParticipantResponse] = []


class ParticipateResponse(BaseModel):
    success: bool = True
    message: str
    points_earned: int


class LeaveResponse(BaseModel):
    success: bool = True
    message: str
    points_removed: int


class AwardedAchievement(BaseModel):
    id: int
    title: str
    description: str
    points: int


class AwardPointsResponse(BaseModel):
    success: bool = True
    message: str
    points_awarded: int
    new_level: int
    new_achievements: list[AwardedAchievement] = []
