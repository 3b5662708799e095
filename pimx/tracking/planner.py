"""
Planner Manager

Handles the daily planner, including:
- Global habit set (seeded with defaults on first use)
- Plan materialization: a per-day snapshot of the habits scheduled that day
- Plan reconciliation when the habit set changes
- Ad-hoc tasks and per-day scoring
"""

import math
import uuid
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from pimx.core.logger import get_logger
from pimx.core.protocols import CacheProtocol
from pimx.models.base import dump_list, invalid_entries, load_list
from pimx.models.entities import AdHocTask, DailyPlan, Habit

from . import scoring
from .dates import DayLike, iso_day
from .schedule import applicable

logger = get_logger(__name__)

DEFAULT_HABITS: Tuple[Tuple[str, str], ...] = (
    ("h1", "Morning warm-up"),
    ("h2", "Review today's lessons"),
    ("h3", "Short meditation"),
    ("h4", "15 minutes of light exercise"),
    ("h5", "Plan tomorrow"),
    ("h6", "30 minutes of deep study"),
    ("h7", "Short break without the phone"),
)


def default_habits() -> List[Habit]:
    return [
        Habit(id=habit_id, title=title, completed=False, is_custom=False, schedule_days=[])
        for habit_id, title in DEFAULT_HABITS
    ]


def materialize_plan(day: DayLike, habits: Sequence[Habit]) -> DailyPlan:
    """Snapshot the habits scheduled on `day`, all uncompleted, with no tasks"""
    return DailyPlan(
        date=iso_day(day),
        habits=[h.model_copy(update={"completed": False}) for h in applicable(habits, day)],
        tasks=[],
    )


def _signature(habits: Iterable[Habit]) -> List[Tuple[str, Tuple[int, ...], bool]]:
    # Order-insensitive view used to detect real changes
    return sorted((h.id, tuple(sorted(set(h.schedule_days))), bool(h.completed)) for h in habits)


def reconcile_plan(plan: DailyPlan, habits: Sequence[Habit]) -> Tuple[DailyPlan, bool]:
    """Bring a plan's habit snapshot in line with the global habit set

    Newly matching habits are appended uncompleted, habits that no longer
    match are dropped, and retained habits keep their completed flag.

    Returns:
        (plan, changed); the input plan is returned untouched when nothing changed
    """
    existing = {h.id: h for h in plan.habits}
    merged = [
        h.model_copy(update={"completed": existing[h.id].completed if h.id in existing else False})
        for h in applicable(habits, plan.date)
    ]
    if _signature(merged) == _signature(plan.habits):
        return plan, False
    return plan.model_copy(update={"habits": merged}), True


class UnreadablePlanError(ValueError):
    """Raised when editing a day whose stored plan fails validation"""


def _new_id() -> str:
    return uuid.uuid4().hex


class PlannerManager:
    """Planner manager

    All reads and writes go through the local cache; plans are stored as one
    date -> DailyPlan document.
    """

    def __init__(self, cache: CacheProtocol):
        self.cache = cache
        self.keys = cache.keys

    # ==================== Habits ====================

    def get_habits(self) -> List[Habit]:
        """Global habit set; seeds the defaults when none was ever stored"""
        raw = self.cache.get(self.keys.global_habits)
        if raw is None:
            habits = default_habits()
            self.save_habits(habits)
            logger.info("Seeded default habits")
            return habits
        return load_list(Habit, raw)

    def save_habits(self, habits: Sequence[Habit]) -> None:
        stored = self.cache.get(self.keys.global_habits, [])
        self.cache.set(self.keys.global_habits, dump_list(habits, keep=invalid_entries(Habit, stored)))

    def add_habit(
        self,
        title: str,
        day: DayLike,
        custom: bool = True,
        schedule_days: Optional[Sequence[int]] = None,
    ) -> Habit:
        """Add a habit to the global set and reconcile plans from `day` on"""
        title = title.strip()
        if not title:
            raise ValueError("Habit title must not be empty")

        habit = Habit(
            id=_new_id(),
            title=title,
            completed=False,
            is_custom=custom,
            schedule_days=_clean_days(schedule_days or []),
        )
        habits = self.get_habits()
        habits.append(habit)
        self.save_habits(habits)
        self.reconcile_plans(from_day=day)
        return habit

    def delete_habit(self, habit_id: str) -> int:
        """Remove a habit globally and from every stored plan

        Returns:
            Number of plans that contained the habit
        """
        habits = self.get_habits()
        self.save_habits([h for h in habits if h.id != habit_id])

        raw = self._raw_plans()
        touched = 0
        for date, plan in self._parse_plans(raw).items():
            if any(h.id == habit_id for h in plan.habits):
                plan.habits = [h for h in plan.habits if h.id != habit_id]
                raw[date] = plan.to_document()
                touched += 1
        if touched:
            self.cache.set(self.keys.daily_plans, raw)
        return touched

    def set_habit_schedule(
        self, habit_id: str, days: Sequence[int], from_day: DayLike
    ) -> Optional[Habit]:
        """Replace a habit's weekday set (sorted, unique) and reconcile plans from `from_day` on"""
        habits = self.get_habits()
        target = next((h for h in habits if h.id == habit_id), None)
        if target is None:
            logger.debug(f"Habit not found: {habit_id}")
            return None

        target.schedule_days = _clean_days(days)
        self.save_habits(habits)
        self.reconcile_plans(from_day=from_day)
        return target

    # ==================== Plans ====================

    def _raw_plans(self) -> Dict[str, Any]:
        raw = self.cache.get(self.keys.daily_plans, {})
        return raw if isinstance(raw, dict) else {}

    @staticmethod
    def _parse_plan(date: str, doc: Any) -> Optional[DailyPlan]:
        if not isinstance(doc, dict):
            logger.warning(f"Ignoring unreadable plan for {date}: not an object")
            return None
        try:
            return DailyPlan.model_validate({"date": date, **doc})
        except ValueError as e:
            logger.warning(f"Ignoring unreadable plan for {date}: {e}")
            return None

    @classmethod
    def _parse_plans(cls, raw: Dict[str, Any]) -> Dict[str, DailyPlan]:
        plans = {}
        for date, doc in raw.items():
            plan = cls._parse_plan(date, doc)
            if plan is not None:
                plans[date] = plan
        return plans

    def plans(self) -> Dict[str, DailyPlan]:
        """Every readable stored plan keyed by date"""
        return self._parse_plans(self._raw_plans())

    def save_plan(self, plan: DailyPlan) -> DailyPlan:
        raw = self._raw_plans()
        raw[plan.date] = plan.to_document()
        self.cache.set(self.keys.daily_plans, raw)
        return plan

    def get_plan(self, day: DayLike) -> DailyPlan:
        """Plan for a day, materialized on first view and reconciled afterwards

        A stored entry that cannot be read is left untouched; the returned
        plan is then a fresh snapshot that is not saved.
        """
        date = iso_day(day)
        habits = self.get_habits()
        raw = self._raw_plans()

        if date not in raw:
            plan = materialize_plan(date, habits)
            logger.debug(f"Materialized plan for {date} with {len(plan.habits)} habits")
            return self.save_plan(plan)

        stored = self._parse_plan(date, raw[date])
        if stored is None:
            return materialize_plan(date, habits)

        plan, changed = reconcile_plan(stored, habits)
        if changed:
            self.save_plan(plan)
        return plan

    def _plan_for_update(self, day: DayLike) -> DailyPlan:
        date = iso_day(day)
        raw = self._raw_plans()
        if date in raw and self._parse_plan(date, raw[date]) is None:
            raise UnreadablePlanError(f"Stored plan for {date} cannot be read; not overwriting it")
        return self.get_plan(date)

    def reconcile_plans(self, from_day: Optional[DayLike] = None) -> List[str]:
        """Reconcile stored plans dated on or after `from_day` (all when None)

        Earlier plans are left as recorded history.

        Returns:
            Dates whose plan changed
        """
        start = iso_day(from_day) if from_day is not None else None
        habits = self.get_habits()
        raw = self._raw_plans()
        changed_dates = []

        for date, plan in self._parse_plans(raw).items():
            if start is not None and date < start:
                continue
            updated, changed = reconcile_plan(plan, habits)
            if changed:
                raw[date] = updated.to_document()
                changed_dates.append(date)

        if changed_dates:
            self.cache.set(self.keys.daily_plans, raw)
            logger.info(f"Reconciled {len(changed_dates)} plans")
        return sorted(changed_dates)

    def toggle_habit(self, day: DayLike, habit_id: str) -> DailyPlan:
        plan = self._plan_for_update(day)
        for habit in plan.habits:
            if habit.id == habit_id:
                habit.completed = not habit.completed
                return self.save_plan(plan)
        logger.debug(f"Habit {habit_id} is not in the plan for {plan.date}")
        return plan

    # ==================== Tasks ====================

    def add_task(self, day: DayLike, title: str, impact_score: float = 10) -> AdHocTask:
        title = title.strip()
        if not title:
            raise ValueError("Task title must not be empty")
        if not math.isfinite(impact_score) or impact_score <= 0:
            raise ValueError("Task impact score must be a positive number")

        plan = self._plan_for_update(day)
        task = AdHocTask(id=_new_id(), title=title, impact_score=impact_score, completed=False)
        plan.tasks.append(task)
        self.save_plan(plan)
        return task

    def toggle_task(self, day: DayLike, task_id: str) -> DailyPlan:
        plan = self._plan_for_update(day)
        for task in plan.tasks:
            if task.id == task_id:
                task.completed = not task.completed
                return self.save_plan(plan)
        logger.debug(f"Task {task_id} is not in the plan for {plan.date}")
        return plan

    def remove_task(self, day: DayLike, task_id: str) -> DailyPlan:
        plan = self._plan_for_update(day)
        remaining = [t for t in plan.tasks if t.id != task_id]
        if len(remaining) != len(plan.tasks):
            plan.tasks = remaining
            self.save_plan(plan)
        return plan

    # ==================== Scores ====================

    def day_score(self, day: DayLike) -> scoring.DayScore:
        """Score of the stored plan; days never viewed score 0"""
        return scoring.score_plan(self.plans().get(iso_day(day)))

    def history(self, end: DayLike, days: int = 7) -> List[Dict[str, float]]:
        return scoring.history(self.plans(), end, days)

    def range_progress(self, end: DayLike) -> Dict[str, float]:
        plans = self.plans()
        return scoring.range_progress(lambda d: scoring.plan_percent(plans, d), end)


def _clean_days(days: Iterable[int]) -> List[int]:
    cleaned = sorted(set(int(d) for d in days))
    if any(d < 0 or d > 6 for d in cleaned):
        raise ValueError("Weekdays must be between 0 (Sunday) and 6 (Saturday)")
    return cleaned
