"""Eligibility evaluator tests: pure requirement checks, no database."""

from types import SimpleNamespace

import pytest

from portal.gamification.eligibility import (
    Requirement,
    UserStats,
    achievement_is_eligible,
    is_eligible,
)


def _stats(points: int = 0, events: int = 0) -> UserStats:
    return UserStats(total_points=points, events_participated=events)


class TestPointsRequirement:
    def test_met_exactly(self):
        assert is_eligible(_stats(points=2000), Requirement("points", 2000)) is True

    def test_exceeded(self):
        assert is_eligible(_stats(points=2850), Requirement("points", 2000)) is True

    def test_not_met(self):
        assert is_eligible(_stats(points=1999), Requirement("points", 2000)) is False

    def test_zero_threshold_always_met(self):
        assert is_eligible(_stats(), Requirement("points", 0)) is True


class TestEventsRequirement:
    def test_met(self):
        assert is_eligible(_stats(events=3), Requirement("events", 3)) is True

    def test_not_met(self):
        assert is_eligible(_stats(events=2, points=10_000), Requirement("events", 3)) is False


class TestUnsupportedKinds:
    @pytest.mark.parametrize("requirement", [
        Requirement("streak", 1),
        Requirement("custom", description="Faculty nomination"),
        Requirement("attendance", 1),
    ])
    def test_never_eligible(self, requirement):
        assert is_eligible(_stats(points=100_000, events=100), requirement) is False

    def test_missing_value_is_not_eligible(self):
        assert is_eligible(_stats(points=100), Requirement("points", None)) is False


class TestInactive:
    def test_inactive_never_eligible(self):
        assert is_eligible(_stats(points=5000), Requirement("points", 10), active=False) is False


class TestAchievementWrapper:
    def test_reads_requirement_columns(self):
        achievement = SimpleNamespace(
            requirement_type="events",
            requirement_value=1,
            requirement_description=None,
            is_active=True,
        )
        assert achievement_is_eligible(_stats(events=1), achievement) is True

    def test_inactive_achievement(self):
        achievement = SimpleNamespace(
            requirement_type="points",
            requirement_value=0,
            requirement_description=None,
            is_active=False,
        )
        assert achievement_is_eligible(_stats(points=10), achievement) is False

    def test_inputs_are_not_mutated(self):
        stats = _stats(points=300, events=2)
        requirement = Requirement("points", 200)
        is_eligible(stats, requirement)
        assert stats == _stats(points=300, events=2)
        assert requirement == Requirement("points", 200)
