"""Participation rule tests: lazy completion and join preconditions."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from portal.events.participation import as_utc, can_participate, refresh_status

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def _event(**overrides):
    fields = {
        "is_active": True,
        "status": "upcoming",
        "max_participants": None,
        "date": NOW + timedelta(days=3),
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


class TestRefreshStatus:
    def test_past_upcoming_event_completes(self):
        event = _event(date=NOW - timedelta(minutes=1))
        assert refresh_status(event, NOW) is True
        assert event.status == "completed"

    def test_event_at_exactly_now_completes(self):
        event = _event(date=NOW)
        refresh_status(event, NOW)
        assert event.status == "completed"

    def test_future_event_unchanged(self):
        event = _event()
        assert refresh_status(event, NOW) is False
        assert event.status == "upcoming"

    def test_only_upcoming_transitions(self):
        event = _event(status="ongoing", date=NOW - timedelta(days=1))
        refresh_status(event, NOW)
        assert event.status == "ongoing"

    def test_naive_dates_treated_as_utc(self):
        event = _event(date=(NOW - timedelta(hours=1)).replace(tzinfo=None))
        refresh_status(event, NOW)
        assert event.status == "completed"


class TestCanParticipate:
    def test_open_event(self):
        assert can_participate(_event(), set(), user_id=1) is True

    def test_ongoing_event(self):
        assert can_participate(_event(status="ongoing"), set(), user_id=1) is True

    def test_completed_event(self):
        assert can_participate(_event(status="completed"), set(), user_id=1) is False

    def test_cancelled_event(self):
        assert can_participate(_event(status="cancelled"), set(), user_id=1) is False

    def test_inactive_event(self):
        assert can_participate(_event(is_active=False), set(), user_id=1) is False

    def test_already_participating(self):
        assert can_participate(_event(), {1, 2}, user_id=1) is False

    def test_full_event(self):
        assert can_participate(_event(max_participants=2), {2, 3}, user_id=1) is False

    def test_one_seat_left(self):
        assert can_participate(_event(max_participants=3), {2, 3}, user_id=1) is True


def test_as_utc_keeps_aware_values():
    aware = datetime(2026, 1, 1, tzinfo=timezone(timedelta(hours=5)))
    assert as_utc(aware) is aware
