"""Request/response schemas for achievement endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from portal.db.models import ACHIEVEMENT_CATEGORIES, RARITIES, REQUIREMENT_KINDS, Achievement
from portal.schemas import check_choice


class RequirementSchema(BaseModel):
    """Tagged requirement: ``points`` and ``events`` need a value, ``custom`` a description."""

    type: str
    value: int | None = None
    description: str | None = Field(None, min_length=5, max_length=100)

    @field_validator("type")
    @classmethod
    def check_type(cls, v: str) -> str:
        return check_choice(v, REQUIREMENT_KINDS, "requirement type")  # type: ignore[return-value]

    @model_validator(mode="after")
    def check_shape(self) -> RequirementSchema:
        if self.type == "custom":
            if not self.description:
                msg = "Custom requirements need a description"
                raise ValueError(msg)
            return self
        if self.value is None:
            msg = f"A {self.type} requirement needs a value"
            raise ValueError(msg)
        minimum = 0 if self.type == "points" else 1
        if self.value < minimum:
            msg = f"Requirement value must be at least {minimum}"
            raise ValueError(msg)
        return self


class RequirementResponse(BaseModel):
    type: str
    value: int | None = None
    description: str | None = None


class _AchievementFields(BaseModel):
    @field_validator("title", "description", "icon", mode="before", check_fields=False)
    @classmethod
    def strip_text(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("category", check_fields=False)
    @classmethod
    def check_category(cls, v: str | None) -> str | None:
        return check_choice(v, ACHIEVEMENT_CATEGORIES, "category")

    @field_validator("rarity", check_fields=False)
    @classmethod
    def check_rarity(cls, v: str | None) -> str | None:
        return check_choice(v, RARITIES, "rarity")


class AchievementCreateRequest(_AchievementFields):
    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=200)
    category: str
    rarity: str = "common"
    points: int = Field(..., ge=10, le=1000)
    requirements: RequirementSchema
    icon: str = Field("trophy", min_length=1, max_length=50)


class AchievementUpdateRequest(_AchievementFields):
    """Partial update; omitted fields are left unchanged."""

    title: str | None = Field(None, min_length=3, max_length=100)
    description: str | None = Field(None, min_length=10, max_length=200)
    category: str | None = None
    rarity: str | None = None
    points: int | None = Field(None, ge=10, le=1000)
    requirements: RequirementSchema | None = None
    icon: str | None = Field(None, min_length=1, max_length=50)
    is_active: bool | None = None


class AchievementResponse(BaseModel):
    id: int
    title: str
    description: str
    category: str
    rarity: str
    points: int
    requirements: RequirementResponse
    icon: str
    created_by: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, achievement: Achievement) -> AchievementResponse:
        return cls(
            id=achievement.id,
            title=achievement.title,
            description=achievement.description,
            category=achievement.category,
            rarity=achievement.rarity,
            points=achievement.points,
            requirements=RequirementResponse(
                type=achievement.requirement_type,
                value=achievement.requirement_value,
                description=achievement.requirement_description,
            ),
            icon=achievement.icon,
            created_by=achievement.created_by,
            is_active=achievement.is_active,
            created_at=achievement.created_at,
            updated_at=achievement.updated_at,
        )


class EarnedAchievementResponse(BaseModel):
    achievement: AchievementResponse
    points_awarded: int
    earned_at: datetime


class NewAchievement(BaseModel):
    achievement: AchievementResponse
    points: int


class CheckAchievementsResponse(BaseModel):
    success: bool = True
    message: str
    new_achievements: list[NewAchievement] = []
