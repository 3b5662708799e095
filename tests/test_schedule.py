"""
Tests for the schedule resolver and calendar-day helpers
"""
from datetime import date, timedelta

import pytest

from pimx.models.entities import Goal, Habit
from pimx.tracking.dates import (
    date_range,
    js_weekday,
    local_noon_iso,
    shift_days,
    to_iso_date,
    window,
)
from pimx.tracking.schedule import (
    GoalState,
    applicable,
    completed_on,
    goal_state,
    is_goal_visible,
    matches,
)

D = "2024-03-10"  # a Sunday


def _goal(goal_type, scheduled_for=D, completed_on_day=None, **extra):
    return Goal(
        id="g1",
        text="Goal",
        type=goal_type,
        completed=completed_on_day is not None,
        created_at=local_noon_iso("2024-03-01"),
        scheduled_for=scheduled_for,
        completed_at=local_noon_iso(completed_on_day) if completed_on_day else None,
        **extra,
    )


class TestDates:
    def test_weekday_numbering_starts_on_sunday(self):
        """0 is Sunday and 6 is Saturday"""
        assert js_weekday("2024-03-10") == 0
        assert js_weekday("2024-03-11") == 1
        assert js_weekday("2024-03-16") == 6

    def test_to_iso_date_accepts_days_and_timestamps(self):
        assert to_iso_date("2024-03-10") == "2024-03-10"
        assert to_iso_date(date(2024, 3, 10)) == "2024-03-10"
        assert to_iso_date(local_noon_iso("2024-03-10")) == "2024-03-10"

    @pytest.mark.parametrize("bad", [None, "", "yesterday", "2024-13-40"])
    def test_to_iso_date_rejects_garbage(self, bad):
        assert to_iso_date(bad) is None

    def test_date_range_is_inclusive_in_either_order(self):
        assert date_range("2024-02-28", "2024-03-01") == ["2024-02-28", "2024-02-29", "2024-03-01"]
        assert date_range("2024-03-01", "2024-02-28") == ["2024-02-28", "2024-02-29", "2024-03-01"]

    def test_window_is_oldest_first(self):
        assert window("2024-03-10", 3) == ["2024-03-08", "2024-03-09", "2024-03-10"]
        assert window("2024-03-10", 0) == []


class TestHabitSchedule:
    """Recurring membership by weekday"""

    def test_membership_across_a_year(self):
        """A habit matches exactly the days whose weekday is in its set"""
        habit = Habit(id="h", title="Gym", schedule_days=[1, 3, 5])
        start = date(2024, 1, 1)
        for offset in range(366):
            day = start + timedelta(days=offset)
            expected = ((day.weekday() + 1) % 7) in {1, 3, 5}
            assert matches(habit, day.isoformat()) is expected

    def test_empty_schedule_matches_every_day(self):
        habit = Habit(id="h", title="Daily")
        assert all(matches(habit, shift_days(D, n)) for n in range(7))

    def test_null_schedule_from_older_documents(self):
        """scheduleDays stored as null behaves like every day"""
        habit = Habit.model_validate({"id": "h", "title": "Old", "scheduleDays": None})
        assert habit.schedule_days == []
        assert matches(habit, D)

    def test_applicable_filters_by_weekday(self):
        habits = [
            Habit(id="every", title="a"),
            Habit(id="sunday", title="b", schedule_days=[0]),
            Habit(id="monday", title="c", schedule_days=[1]),
        ]
        assert [h.id for h in applicable(habits, D)] == ["every", "sunday"]


class TestGoalVisibility:
    def test_long_term_goal_until_completion_day(self):
        """Visible from its schedule day through the day it was completed"""
        goal = _goal("long-term", completed_on_day=shift_days(D, 2))
        assert is_goal_visible(goal, D)
        assert is_goal_visible(goal, shift_days(D, 1))
        assert is_goal_visible(goal, shift_days(D, 2))
        assert not is_goal_visible(goal, shift_days(D, 3))

    def test_goal_hidden_before_schedule_day(self):
        goal = _goal("short-term")
        assert not is_goal_visible(goal, shift_days(D, -1))

    def test_open_long_term_goal_stays_visible(self):
        goal = _goal("long-term")
        assert is_goal_visible(goal, shift_days(D, 100))

    def test_daily_goal_only_on_its_day(self):
        goal = _goal("daily")
        assert is_goal_visible(goal, D)
        assert not is_goal_visible(goal, shift_days(D, -1))
        assert not is_goal_visible(goal, shift_days(D, 1))

    def test_created_at_is_the_fallback_schedule(self):
        """Goals without scheduledFor surface on their creation day"""
        goal = _goal("daily", scheduled_for=None)
        assert is_goal_visible(goal, "2024-03-01")
        assert not is_goal_visible(goal, D)

    def test_goal_states(self):
        goal = _goal("long-term", completed_on_day=D)
        assert goal_state(goal, shift_days(D, -1)) is GoalState.NOT_YET_SCHEDULED
        assert goal_state(goal, D) is GoalState.COMPLETED_TODAY
        assert goal_state(goal, shift_days(D, 1)) is GoalState.COMPLETED_BEFORE
        assert goal_state(_goal("long-term"), D) is GoalState.PENDING

    def test_completed_on_archive(self):
        goal = _goal("short-term", completed_on_day=shift_days(D, 1))
        assert completed_on(goal, shift_days(D, 1))
        assert not completed_on(goal, D)
