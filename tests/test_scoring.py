"""
Tests for the score engine
"""
import pytest

from pimx.models.entities import AdHocTask, DailyPlan, Goal, Habit, VideoLog
from pimx.tracking import scoring
from pimx.tracking.dates import local_noon_iso, shift_days

D = "2024-03-10"


def _plan(day=D, habits=(), tasks=()):
    return DailyPlan(
        date=day,
        habits=[Habit(id=f"h{i}", title="h", completed=done) for i, done in enumerate(habits)],
        tasks=[
            AdHocTask(id=f"t{i}", title="t", impact_score=impact, completed=done)
            for i, (impact, done) in enumerate(tasks)
        ],
    )


class TestScorePlan:
    """Weighted completion of one day"""

    def test_missing_plan_scores_zero(self):
        assert scoring.score_plan(None).percent == 0

    def test_empty_plan_scores_zero(self):
        """No habits and no tasks means 0, not a division error"""
        assert scoring.score_plan(_plan()).percent == 0

    def test_single_completed_habit_is_100(self):
        score = scoring.score_plan(_plan(habits=[True]))
        assert score.percent == 100
        assert score.total_score == score.earned_score == scoring.HABIT_WEIGHT

    def test_habits_and_tasks_are_weighted(self):
        """A completed habit against an open 10-point task is 5/15"""
        score = scoring.score_plan(_plan(habits=[True], tasks=[(10, False)]))
        assert score.earned_score == 5
        assert score.total_score == 15
        assert score.percent == 33

    def test_half_rounds_up(self):
        """Percentages round half up"""
        assert scoring.score_plan(_plan(habits=[True, False])).percent == 50
        assert scoring.round_half_up(2.5) == 3
        assert scoring.round_half_up(66.5) == 67

    def test_breakdown_counts(self):
        score = scoring.score_plan(_plan(habits=[True, False], tasks=[(3, True), (7, False)]))
        assert score.to_dict() == {
            "percent": 40,
            "total_score": 20,
            "earned_score": 8,
            "total_habits": 2,
            "completed_habits": 1,
            "total_tasks": 2,
            "completed_tasks": 1,
        }


class TestWindows:
    def test_window_average_counts_missing_days_as_zero(self):
        plans = {D: _plan(habits=[True]), shift_days(D, -1): _plan(shift_days(D, -1), habits=[False])}
        assert scoring.window_percent(plans, D, 2) == 50
        assert scoring.window_percent(plans, D, 4) == 25

    def test_window_of_zero_days(self):
        assert scoring.window_percent({}, D, 0) == 0

    def test_history_is_oldest_first(self):
        plans = {D: _plan(habits=[True])}
        rows = scoring.history(plans, D, 3)
        assert [r["date"] for r in rows] == [shift_days(D, -2), shift_days(D, -1), D]
        assert rows[-1] == {"date": D, "percent": 100, "points": 5}

    def test_range_progress_windows(self):
        """Each window reports the mean daily percent"""
        values = {D: 90.0, shift_days(D, -1): 30.0, shift_days(D, -2): 60.0}
        result = scoring.range_progress(lambda day: values.get(day, 0.0), D)
        assert set(result) == set(scoring.RANGE_WINDOWS)
        assert result["3d"] == 60.0
        assert result["1w"] == round(180 / 7, 2)

    def test_range_progress_compare_is_clamped(self):
        values = {D: 100.0}
        result = scoring.range_progress(lambda day: values.get(day, 0.0), D, compare=True)
        assert result["3d"] == round(100 / 3, 2)
        assert all(-100 <= v <= 100 for v in result.values())


class TestGrowth:
    @pytest.mark.parametrize(
        "current, previous, expected",
        [
            (0, 0, 0),
            (5, 0, 100),
            (3, 5, 0),
            (5, 5, 0),
            (6, 4, 50),
            (9, 3, 200),
        ],
    )
    def test_growth(self, current, previous, expected):
        """Growth is never negative and has no upper cap"""
        assert scoring.growth(current, previous) == expected

    def test_future_days_have_no_growth(self):
        assert scoring.growth(10, 1, future=True) == 0

    @pytest.mark.parametrize(
        "current, previous, expected",
        [(0, 0, 0), (4, 0, 100), (40, 80, -50), (60, 40, 50)],
    )
    def test_signed_delta(self, current, previous, expected):
        assert scoring.signed_delta(current, previous) == expected

    def test_completion_rate(self):
        assert scoring.completion_rate(0, 0) == 0
        assert scoring.completion_rate(1, 3) == 33
        assert scoring.completion_rate(2, 3) == 67


class TestActivityCounters:
    def _goal(self, day):
        return Goal(
            id=day,
            text="g",
            type="short-term",
            completed=True,
            created_at=local_noon_iso(day),
            completed_at=local_noon_iso(day),
        )

    def test_goal_completion_counts(self):
        goals = [self._goal(D), self._goal(D), self._goal(shift_days(D, -1))]
        assert scoring.goal_completion_counts(goals) == {D: 2, shift_days(D, -1): 1}

    def test_activity_growth(self):
        """Videos and goals are compared with the previous day"""
        logs = [
            VideoLog(id="1", date=D, subject="ریاضی", count=3),
            VideoLog(id="2", date=shift_days(D, -1), subject="ریاضی", count=2),
        ]
        goals = [self._goal(D)]
        result = scoring.activity_growth(logs, goals, D, today=D)
        assert result == {"video_count": 3, "goal_count": 1, "video_percent": 50, "goal_percent": 100}

    def test_summary_blocks(self):
        plans = {D: _plan(habits=[True]), shift_days(D, -1): _plan(shift_days(D, -1), habits=[True, False])}
        summary = scoring.summarize_progress(plans, [self._goal(D)], D)
        assert summary["productivity_daily"] == {"current": 100, "previous": 50, "delta": 100}
        assert summary["goals_daily"] == {"current": 1, "previous": 0, "delta": 100}
        assert summary["momentum"]["current"] == 50

    def test_daily_activity_counts(self):
        logs = [VideoLog(id="1", date=D, subject="فیزیک", count=2)]
        goals = [self._goal(shift_days(D, 1))]
        assert scoring.daily_activity_counts(logs, goals) == {
            D: {"videos": 2, "goals": 0},
            shift_days(D, 1): {"videos": 0, "goals": 1},
        }
