"""
Goal Manager

Goals carry a type (daily, short-term, long-term), the day they surface and,
once done, the day they were completed. Visibility per day is decided by the
schedule resolver.
"""

import uuid
from typing import Dict, List, Optional, Union

from pimx.core.logger import get_logger
from pimx.core.protocols import CacheProtocol
from pimx.models.base import dump_list, invalid_entries, load_list
from pimx.models.entities import Goal, GoalType

from . import scoring
from .dates import DayLike, iso_day, local_noon_iso, now_iso, shift_days
from .schedule import completed_on, is_goal_visible, schedule_date

logger = get_logger(__name__)

REMINDER_HORIZON_DAYS = 30


class GoalManager:
    """Goal manager"""

    def __init__(self, cache: CacheProtocol):
        self.cache = cache
        self.keys = cache.keys

    def get_goals(self) -> List[Goal]:
        return load_list(Goal, self.cache.get(self.keys.goals, []))

    def save_goals(self, goals: List[Goal]) -> None:
        stored = self.cache.get(self.keys.goals, [])
        self.cache.set(self.keys.goals, dump_list(goals, keep=invalid_entries(Goal, stored)))

    def add_goal(self, text: str, goal_type: Union[GoalType, str], day: DayLike) -> Goal:
        """Create a goal that surfaces on `day`"""
        text = text.strip()
        if not text:
            raise ValueError("Goal text must not be empty")

        goal = Goal(
            id=uuid.uuid4().hex,
            text=text,
            type=GoalType(goal_type),
            completed=False,
            created_at=now_iso(),
            scheduled_for=iso_day(day),
        )
        goals = self.get_goals()
        goals.append(goal)
        self.save_goals(goals)
        return goal

    def toggle_goal(self, goal_id: str, day: DayLike) -> Optional[Goal]:
        """Flip completion; completing stamps noon of `day`, reopening clears the stamp"""
        goals = self.get_goals()
        target = next((g for g in goals if g.id == goal_id), None)
        if target is None:
            logger.debug(f"Goal not found: {goal_id}")
            return None

        target.completed = not target.completed
        target.completed_at = local_noon_iso(day) if target.completed else None
        self.save_goals(goals)
        return target

    def delete_goal(self, goal_id: str) -> bool:
        goals = self.get_goals()
        remaining = [g for g in goals if g.id != goal_id]
        if len(remaining) == len(goals):
            return False
        self.save_goals(remaining)
        return True

    def visible_goals(
        self, day: DayLike, goal_type: Optional[Union[GoalType, str]] = None
    ) -> List[Goal]:
        wanted = GoalType(goal_type).value if goal_type is not None else None
        return [
            g
            for g in self.get_goals()
            if is_goal_visible(g, day) and (wanted is None or g.type == wanted)
        ]

    def completed_archive(self, day: DayLike) -> List[Goal]:
        """Goals completed on exactly `day`"""
        return [g for g in self.get_goals() if completed_on(g, day)]

    def reminders(self, today: DayLike, horizon: int = REMINDER_HORIZON_DAYS) -> Dict[str, List[Goal]]:
        """Open goals scheduled after today and within the horizon, grouped by day"""
        start = iso_day(today)
        limit = shift_days(start, horizon)
        upcoming = sorted(
            (g for g in self.get_goals() if not g.completed),
            key=lambda g: schedule_date(g) or "",
        )

        grouped: Dict[str, List[Goal]] = {}
        for goal in upcoming:
            scheduled = schedule_date(goal)
            if scheduled and start < scheduled <= limit:
                grouped.setdefault(scheduled, []).append(goal)
        return grouped

    def completions_by_date(self) -> Dict[str, int]:
        return scoring.goal_completion_counts(self.get_goals())

    def completion_rate(self) -> int:
        goals = self.get_goals()
        return scoring.completion_rate(sum(1 for g in goals if g.completed), len(goals))
