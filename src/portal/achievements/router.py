"""Achievement router: catalogue, admin CRUD and the self-service check."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from portal.achievements.schemas import (
    AchievementCreateRequest,
    AchievementResponse,
    AchievementUpdateRequest,
    CheckAchievementsResponse,
    EarnedAchievementResponse,
    NewAchievement,
)
from portal.achievements.service import (
    achievements_query,
    create_achievement,
    deactivate_achievement,
    get_achievement,
    get_rare_achievements,
    list_achievements,
    update_achievement,
)
from portal.auth.dependencies import get_current_user, require_admin
from portal.database import get_session
from portal.db.models import ACHIEVEMENT_CATEGORIES, RARITIES, User
from portal.events.participation import check_achievements
from portal.pagination import PageParams, page_params, paginate
from portal.schemas import DataResponse, ListResponse, MessageResponse, PageResponse
from portal.users.service import get_active_user, get_user_achievements

router = APIRouter(prefix="/api/v1/achievements", tags=["Achievements"])

_CATEGORY_PATTERN = f"^({'|'.join(ACHIEVEMENT_CATEGORIES)})$"
_RARITY_PATTERN = f"^({'|'.join(RARITIES)})$"


@router.get("", response_model=PageResponse[AchievementResponse])
async def list_all(
    category: str | None = Query(None, pattern=_CATEGORY_PATTERN),
    rarity: str | None = Query(None, pattern=_RARITY_PATTERN),
    params: PageParams = Depends(page_params),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict:
    """Paginated active achievements, highest points first."""
    page = await paginate(db, achievements_query(category=category, rarity=rarity), params)
    return page.envelope([AchievementResponse.from_model(a) for a in page.items])


@router.get("/category/{category}", response_model=ListResponse[AchievementResponse])
async def by_category(
    category: str,
    rarity: str | None = Query(None, pattern=_RARITY_PATTERN),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ListResponse[AchievementResponse]:
    achievements = await list_achievements(db, category=category, rarity=rarity)
    data = [AchievementResponse.from_model(a) for a in achievements]
    return ListResponse[AchievementResponse](count=len(data), data=data)


@router.get("/rare", response_model=ListResponse[AchievementResponse])
async def rare(
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ListResponse[AchievementResponse]:
    """Rare, epic and legendary achievements."""
    data = [AchievementResponse.from_model(a) for a in await get_rare_achievements(db)]
    return ListResponse[AchievementResponse](count=len(data), data=data)


@router.get("/user/{user_id}", response_model=ListResponse[EarnedAchievementResponse])
async def for_user(
    user_id: int,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ListResponse[EarnedAchievementResponse]:
    """Achievements a user has earned, oldest first."""
    target = await get_active_user(db, user_id)
    data = [
        EarnedAchievementResponse(
            achievement=AchievementResponse.from_model(ua.achievement),
            points_awarded=ua.points_awarded,
            earned_at=ua.earned_at,
        )
        for ua in await get_user_achievements(db, target.id)
    ]
    return ListResponse[EarnedAchievementResponse](count=len(data), data=data)


@router.post("/check", response_model=CheckAchievementsResponse)
async def check(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> CheckAchievementsResponse:
    """Award every achievement the caller newly qualifies for."""
    awarded = await check_achievements(db, user.id)
    return CheckAchievementsResponse(
        message=f"Found {len(awarded)} new achievements",
        new_achievements=[
            NewAchievement(achievement=AchievementResponse.from_model(a), points=a.points) for a in awarded
        ],
    )


@router.get("/{achievement_id}", response_model=DataResponse[AchievementResponse])
async def get_one(
    achievement_id: int,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> DataResponse[AchievementResponse]:
    achievement = await get_achievement(db, achievement_id)
    return DataResponse[AchievementResponse](data=AchievementResponse.from_model(achievement))


@router.post("", response_model=DataResponse[AchievementResponse], status_code=201)
async def create(
    body: AchievementCreateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> DataResponse[AchievementResponse]:
    achievement = await create_achievement(db, created_by=admin.id, **body.model_dump())
    await db.commit()
    return DataResponse[AchievementResponse](
        message="Achievement created successfully",
        data=AchievementResponse.from_model(achievement),
    )


@router.put("/{achievement_id}", response_model=DataResponse[AchievementResponse])
async def update(
    achievement_id: int,
    body: AchievementUpdateRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> DataResponse[AchievementResponse]:
    achievement = await update_achievement(db, achievement_id, body.model_dump(exclude_unset=True, exclude_none=True))
    await db.commit()
    return DataResponse[AchievementResponse](
        message="Achievement updated successfully",
        data=AchievementResponse.from_model(achievement),
    )


@router.delete("/{achievement_id}", response_model=MessageResponse)
async def delete(
    achievement_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await deactivate_achievement(db, achievement_id)
    await db.commit()
    return MessageResponse(message="Achievement deleted successfully")
