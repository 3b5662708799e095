"""
Schedule resolver
Answers "does this recurring item apply on day D?" and "is this goal visible on day D?"
"""

from enum import Enum
from typing import Iterable, List, Optional, Protocol

from pimx.models.entities import Goal, GoalType

from .dates import DayLike, iso_day, js_weekday, to_iso_date


class Scheduled(Protocol):
    schedule_days: List[int]


class GoalState(str, Enum):
    """Where a goal stands relative to a viewing day"""

    PENDING = "pending"
    COMPLETED_TODAY = "completed-today"
    COMPLETED_BEFORE = "completed-before"
    NOT_YET_SCHEDULED = "not-yet-scheduled"


def matches(item: Scheduled, day: DayLike) -> bool:
    """True when the item's weekday set is empty or contains the day's weekday"""
    days = item.schedule_days or []
    return not days or js_weekday(day) in days


def applicable(items: Iterable[Scheduled], day: DayLike) -> list:
    return [item for item in items if matches(item, day)]


def schedule_date(goal: Goal) -> Optional[str]:
    """Day the goal surfaces: scheduled_for, falling back to created_at"""
    if goal.scheduled_for:
        return to_iso_date(goal.scheduled_for)
    return to_iso_date(goal.created_at)


def completed_date(goal: Goal) -> Optional[str]:
    return to_iso_date(goal.completed_at) if goal.completed_at else None


def goal_state(goal: Goal, day: DayLike) -> GoalState:
    d = iso_day(day)
    completed = completed_date(goal)
    if goal.completed and completed is not None:
        if completed < d:
            return GoalState.COMPLETED_BEFORE
        if completed == d:
            return GoalState.COMPLETED_TODAY

    scheduled = schedule_date(goal)
    if scheduled is None or scheduled > d:
        return GoalState.NOT_YET_SCHEDULED
    return GoalState.PENDING


def is_goal_visible(goal: Goal, day: DayLike) -> bool:
    """Visibility rule for the goals list

    Goals completed before the day are hidden. Daily goals show only on their
    schedule day; short- and long-term goals show from their schedule day on.
    """
    d = iso_day(day)
    if goal_state(goal, d) is GoalState.COMPLETED_BEFORE:
        return False
    scheduled = schedule_date(goal)
    if scheduled is None:
        return False
    if goal.type == GoalType.DAILY:
        return scheduled == d
    return scheduled <= d


def completed_on(goal: Goal, day: DayLike) -> bool:
    """Archive query: goal was completed on exactly this day"""
    return goal.completed and completed_date(goal) == iso_day(day)
