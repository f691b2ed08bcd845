"""Achievement sweep tests."""

from __future__ import annotations

import pytest
from sqlalchemy import select

from portal.database import get_session
from portal.db.models import UserAchievement
from portal.errors import NotFoundError
from portal.events.participation import check_achievements, join_event
from portal.gamification.sweep import held_achievement_ids, sweep_achievements


class TestSweep:
    @pytest.mark.asyncio
    async def test_points_threshold_awards_and_adds_reward(self, db_session, make_user, make_achievement):
        student = await make_user(total_points=2850)
        achievement = await make_achievement(requirement_type="points", requirement_value=2000, points=500)

        awarded = await sweep_achievements(db_session, student)
        await db_session.commit()

        assert [a.id for a in awarded] == [achievement.id]
        assert student.total_points == 3350
        assert student.level == 17

        row = (await db_session.execute(select(UserAchievement))).scalars().unique().one()
        assert row.points_awarded == 500

    @pytest.mark.asyncio
    async def test_repeat_sweep_awards_nothing(self, db_session, make_user, make_achievement):
        student = await make_user(total_points=2850)
        await make_achievement()

        await sweep_achievements(db_session, student)
        await db_session.commit()
        second = await sweep_achievements(db_session, student)

        assert second == []
        assert student.total_points == 3350

    @pytest.mark.asyncio
    async def test_rewards_cascade_within_one_sweep(self, db_session, make_user, make_achievement):
        student = await make_user(total_points=100)
        first = await make_achievement(
            title="Century", requirement_type="points", requirement_value=100, points=100,
        )
        second = await make_achievement(
            title="Double Century", requirement_type="points", requirement_value=200, points=50,
        )

        awarded = await sweep_achievements(db_session, student)

        assert [a.id for a in awarded] == [first.id, second.id]
        assert student.total_points == 250
        assert student.level == 2

    @pytest.mark.asyncio
    async def test_unsupported_and_inactive_are_skipped(self, db_session, make_user, make_achievement):
        student = await make_user(total_points=10_000)
        await make_achievement(
            title="Weekly Regular", requirement_type="streak", requirement_value=1, points=200,
        )
        await make_achievement(
            title="Campus Ambassador",
            requirement_type="custom",
            requirement_value=None,
            requirement_description="Faculty nomination",
            points=400,
        )
        await make_achievement(title="Retired", requirement_value=0, is_active=False)

        assert await sweep_achievements(db_session, student) == []
        assert student.total_points == 10_000

    @pytest.mark.asyncio
    async def test_already_held_is_never_reawarded(self, db_session, make_user, make_achievement):
        student = await make_user(total_points=5000)
        achievement = await make_achievement()
        db_session.add(UserAchievement(user_id=student.id, achievement_id=achievement.id, points_awarded=500))
        await db_session.commit()

        assert await sweep_achievements(db_session, student) == []
        assert await held_achievement_ids(db_session, student.id) == {achievement.id}

    @pytest.mark.asyncio
    async def test_events_requirement_counts_participations(
        self, db_session, make_user, make_event, make_achievement,
    ):
        student = await make_user()
        await make_achievement(
            title="First Steps",
            description="Participate in your first event",
            requirement_type="events",
            requirement_value=1,
            points=50,
        )
        assert await sweep_achievements(db_session, student) == []

        event = await make_event(points=20)
        await join_event(db_session, event.id, student)
        awarded = await sweep_achievements(db_session, student)

        assert [a.title for a in awarded] == ["First Steps"]
        assert student.total_points == 70


class TestCheckAchievements:
    @pytest.mark.asyncio
    async def test_keeps_points_committed_by_another_session(
        self, db_session, make_user, make_event, make_achievement,
    ):
        student = await make_user(total_points=100)
        event = await make_event(points=200)
        await make_achievement(
            title="Century", requirement_type="points", requirement_value=100, points=50,
        )
        # db_session still holds the user at 100 points.
        assert student.total_points == 100

        sessions = get_session()
        other = await anext(sessions)
        try:
            await join_event(other, event.id, student)
        finally:
            await sessions.aclose()

        awarded = await check_achievements(db_session, student.id)

        assert [a.title for a in awarded] == ["Century"]
        await db_session.refresh(student)
        assert student.total_points == 350
        assert student.level == 2

    @pytest.mark.asyncio
    async def test_unknown_user(self, db_session):
        with pytest.raises(NotFoundError, match="User not found"):
            await check_achievements(db_session, 9999)
