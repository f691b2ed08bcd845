"""User router: admin listing, leaderboard, statistics, public profiles."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from portal.auth.dependencies import get_current_user, require_admin
from portal.auth.schemas import UserResponse
from portal.database import get_session
from portal.db.models import ROLES, User
from portal.gamification.ledger import level_progress
from portal.pagination import MAX_LIMIT, PageParams, page_params, paginate
from portal.schemas import DataResponse, ListResponse, MessageResponse, PageResponse
from portal.users.schemas import (
    AdminUserUpdateRequest,
    EarnedAchievement,
    LeaderboardEntry,
    ParticipatedEvent,
    UserProfile,
    UserStatsResponse,
)
from portal.users.service import (
    admin_update_user,
    deactivate_user,
    get_active_user,
    get_leaderboard,
    get_user_achievements,
    get_user_participations,
    get_user_stats,
    users_query,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.get("", response_model=PageResponse[UserResponse])
async def list_users(
    department: str | None = Query(None),
    role: str | None = Query(None, pattern=f"^({'|'.join(ROLES)})$"),
    params: PageParams = Depends(page_params),
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> dict:
    """Paginated list of all accounts, newest first."""
    page = await paginate(db, users_query(department=department, role=role), params)
    return page.envelope([UserResponse.model_validate(u) for u in page.items])


@router.get("/leaderboard", response_model=ListResponse[LeaderboardEntry])
async def leaderboard(
    department: str | None = Query(None),
    limit: int = Query(10, ge=1, le=MAX_LIMIT),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ListResponse[LeaderboardEntry]:
    """Top active users by total points."""
    users = await get_leaderboard(db, department=department, limit=limit)
    entries = [
        LeaderboardEntry.model_validate(u).model_copy(update={"rank": rank})
        for rank, u in enumerate(users, start=1)
    ]
    return ListResponse[LeaderboardEntry](count=len(entries), data=entries)


@router.get("/stats", response_model=DataResponse[UserStatsResponse])
async def user_stats(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> DataResponse[UserStatsResponse]:
    """Aggregate account statistics."""
    stats = await get_user_stats(db)
    return DataResponse[UserStatsResponse](data=UserStatsResponse.model_validate(stats))


@router.get("/profile/{user_id}", response_model=DataResponse[UserProfile])
async def user_profile(
    user_id: int,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> DataResponse[UserProfile]:
    """Profile of an active user with earned achievements and event history."""
    target = await get_active_user(db, user_id)
    earned = await get_user_achievements(db, target.id)
    participations = await get_user_participations(db, target.id)

    profile = UserProfile(
        **UserResponse.model_validate(target).model_dump(),
        level_progress=level_progress(target.total_points),
        achievements=[
            EarnedAchievement(
                achievement_id=ua.achievement_id,
                title=ua.achievement.title,
                description=ua.achievement.description,
                category=ua.achievement.category,
                rarity=ua.achievement.rarity,
                icon=ua.achievement.icon,
                points_awarded=ua.points_awarded,
                earned_at=ua.earned_at,
            )
            for ua in earned
        ],
        events_participated=[
            ParticipatedEvent(
                event_id=p.event_id,
                title=p.event.title,
                type=p.event.type,
                department=p.event.department,
                date=p.event.date,
                status=p.event.status,
                points_earned=p.points_earned,
                participated_at=p.participated_at,
            )
            for p in participations
        ],
    )
    return DataResponse[UserProfile](data=profile)


@router.put("/{user_id}", response_model=DataResponse[UserResponse])
async def update_user(
    user_id: int,
    body: AdminUserUpdateRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> DataResponse[UserResponse]:
    """Edit another user's name, department, year or active flag."""
    user = await admin_update_user(
        db,
        user_id,
        name=body.name,
        department=body.department,
        year=body.year,
        is_active=body.is_active,
    )
    await db.commit()
    return DataResponse[UserResponse](message="User updated successfully", data=UserResponse.model_validate(user))


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Soft delete: the account is deactivated, its history is kept."""
    await deactivate_user(db, user_id)
    await db.commit()
    logger.info("user_deleted", user_id=user_id, by=admin.id)
    return MessageResponse(message="User deactivated successfully")
