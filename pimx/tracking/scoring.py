"""
Score engine
Weighted completion percentages, window averages and growth/delta metrics.

Every function here is pure: callers pass in the plans, goals and logs they
read from the cache.
"""

import math
from dataclasses import asdict, dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from pimx.models.entities import DailyPlan, Goal, VideoLog

from .dates import DayLike, iso_day, shift_days, window
from .schedule import completed_date

# Weight of one habit, in the same units as a task's impact score
HABIT_WEIGHT = 5


def round_half_up(value: float) -> int:
    """Round .5 upwards, as the dashboard client does"""
    return int(math.floor(value + 0.5))


def _finite(value) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


@dataclass
class DayScore:
    """Productivity breakdown for one plan"""

    percent: int = 0
    total_score: float = 0
    earned_score: float = 0
    total_habits: int = 0
    completed_habits: int = 0
    total_tasks: int = 0
    completed_tasks: int = 0

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def score_plan(plan: Optional[DailyPlan]) -> DayScore:
    """Score a plan; a missing or empty plan scores 0"""
    if plan is None:
        return DayScore()

    total_habits = len(plan.habits)
    completed_habits = sum(1 for h in plan.habits if h.completed)
    total_impact = sum(_finite(t.impact_score) for t in plan.tasks)
    completed_impact = sum(_finite(t.impact_score) for t in plan.tasks if t.completed)

    total_score = total_habits * HABIT_WEIGHT + total_impact
    earned_score = completed_habits * HABIT_WEIGHT + completed_impact
    percent = round_half_up(earned_score / total_score * 100) if total_score > 0 else 0

    return DayScore(
        percent=percent,
        total_score=total_score,
        earned_score=earned_score,
        total_habits=total_habits,
        completed_habits=completed_habits,
        total_tasks=len(plan.tasks),
        completed_tasks=sum(1 for t in plan.tasks if t.completed),
    )


def plan_percent(plans: Mapping[str, DailyPlan], day: str) -> int:
    return score_plan(plans.get(day)).percent


def window_percent(plans: Mapping[str, DailyPlan], end: DayLike, days: int) -> int:
    """Rounded mean of daily percents over the `days` days ending at `end`

    Days without a plan count as 0.
    """
    if days <= 0:
        return 0
    total = sum(plan_percent(plans, day) for day in window(end, days))
    return round_half_up(total / days)


def growth(current: float, previous: float, future: bool = False) -> int:
    """Day-over-day growth that is never reported negative

    Returns 0 for future days and for any decrease or standstill.
    """
    if future:
        return 0
    if previous <= 0:
        return 100 if current > 0 else 0
    if current <= previous:
        return 0
    return round_half_up((current - previous) / previous * 100)


def signed_delta(current: float, previous: float) -> int:
    """Window-over-window change in percent, negative on regression"""
    if previous == 0:
        return 0 if current == 0 else 100
    return round_half_up((current - previous) / previous * 100)


def completion_rate(completed: int, total: int) -> int:
    if total == 0:
        return 0
    return round_half_up(completed / total * 100)


# ==================== Range windows ====================

RANGE_WINDOWS: Dict[str, int] = {
    "3d": 3,
    "1w": 7,
    "2w": 14,
    "1m": 30,
    "3m": 90,
    "6m": 180,
    "1y": 365,
}


def clamp_range_percent(value: float) -> float:
    return max(-100.0, min(100.0, value))


def _mean(getter: Callable[[str], float], end: str, days: int) -> float:
    span = max(days, 1)
    return sum(getter(day) for day in window(end, span)) / span


def range_progress(
    getter: Callable[[str], float], end: DayLike, compare: bool = False
) -> Dict[str, float]:
    """Per-window figures for RANGE_WINDOWS

    Without compare each value is the window's mean; with compare it is the
    mean minus the mean of the window just before it. Both are clamped to ±100.
    """
    last = iso_day(end)
    result = {}
    for key, days in RANGE_WINDOWS.items():
        value = _mean(getter, last, days)
        if compare:
            value -= _mean(getter, shift_days(last, -days), days)
        result[key] = round(clamp_range_percent(value), 2)
    return result


# ==================== Goal & activity counters ====================


def goal_completion_counts(goals: Sequence[Goal]) -> Dict[str, int]:
    """Number of goals completed on each day"""
    counts: Dict[str, int] = {}
    for goal in goals:
        day = completed_date(goal) if goal.completed else None
        if day:
            counts[day] = counts.get(day, 0) + 1
    return counts


def video_counts(logs: Sequence[VideoLog]) -> Dict[str, int]:
    """Number of lessons watched on each day"""
    counts: Dict[str, int] = {}
    for log in logs:
        counts[log.date] = counts.get(log.date, 0) + int(_finite(log.count))
    return counts


def _sum_window(counts: Mapping[str, int], end: str, days: int) -> int:
    return sum(counts.get(day, 0) for day in window(end, days))


def summarize_progress(
    plans: Mapping[str, DailyPlan], goals: Sequence[Goal], today: DayLike
) -> Dict[str, Dict[str, int]]:
    """Today/week/month productivity and goal completion with their deltas"""
    day = iso_day(today)
    yesterday = shift_days(day, -1)
    goal_counts = goal_completion_counts(goals)

    def block(current: int, previous: int) -> Dict[str, int]:
        return {"current": current, "previous": previous, "delta": signed_delta(current, previous)}

    return {
        "productivity_daily": block(plan_percent(plans, day), plan_percent(plans, yesterday)),
        "productivity_weekly": block(
            window_percent(plans, day, 7), window_percent(plans, shift_days(day, -7), 7)
        ),
        "productivity_monthly": block(
            window_percent(plans, day, 30), window_percent(plans, shift_days(day, -30), 30)
        ),
        "momentum": {"current": window_percent(plans, day, 3)},
        "goals_daily": block(goal_counts.get(day, 0), goal_counts.get(yesterday, 0)),
        "goals_weekly": block(
            _sum_window(goal_counts, day, 7), _sum_window(goal_counts, shift_days(day, -7), 7)
        ),
        "goals_monthly": block(
            _sum_window(goal_counts, day, 30), _sum_window(goal_counts, shift_days(day, -30), 30)
        ),
    }


def daily_activity_counts(
    logs: Sequence[VideoLog], goals: Sequence[Goal]
) -> Dict[str, Dict[str, int]]:
    """Per-day {videos, goals} for every day with any activity"""
    counts: Dict[str, Dict[str, int]] = {}
    for day, n in video_counts(logs).items():
        counts.setdefault(day, {"videos": 0, "goals": 0})["videos"] = n
    for day, n in goal_completion_counts(goals).items():
        counts.setdefault(day, {"videos": 0, "goals": 0})["goals"] = n
    return counts


def activity_growth(
    logs: Sequence[VideoLog], goals: Sequence[Goal], day: DayLike, today: DayLike
) -> Dict[str, int]:
    """Calendar counters: videos watched and goals completed versus the day before"""
    d = iso_day(day)
    previous = shift_days(d, -1)
    future = d > iso_day(today)
    counts = daily_activity_counts(logs, goals)
    empty = {"videos": 0, "goals": 0}
    current, before = counts.get(d, empty), counts.get(previous, empty)
    return {
        "video_count": current["videos"],
        "goal_count": current["goals"],
        "video_percent": growth(current["videos"], before["videos"], future),
        "goal_percent": growth(current["goals"], before["goals"], future),
    }


def history(plans: Mapping[str, DailyPlan], end: DayLike, days: int) -> List[Dict[str, float]]:
    """Per-day percent and earned points, oldest first"""
    rows = []
    for day in window(end, days):
        score = score_plan(plans.get(day))
        rows.append({"date": day, "percent": score.percent, "points": score.earned_score})
    return rows
