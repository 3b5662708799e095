"""
Reset / purge engine

Deletes a section's data either for a set of days or entirely, and reports
which dashboard sections must refresh. One strategy per stored collection;
the progress and calendar sections delegate to several of them.

Purges are not transactional: when a cascade fails part-way, collections
already written stay written.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, Type

from pimx.core.logger import get_logger
from pimx.core.protocols import CacheProtocol

from .dates import to_iso_date

logger = get_logger(__name__)


class Section(str, Enum):
    PLANNER = "planner"
    VIDEO = "video"
    GRADES = "grades"
    GOALS = "goals"
    PROGRESS = "progress"
    CALENDAR = "calendar"
    CHAT = "chat"


@dataclass
class PurgeSummary:
    """Counts of removed items; clear-all reports the count before purging"""

    cleared_all: bool
    plans: Optional[int] = None
    logs: Optional[int] = None
    grades: Optional[int] = None
    goals: Optional[int] = None
    chats: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"clearedAll": self.cleared_all}
        for name in ("plans", "logs", "grades", "goals", "chats"):
            value = getattr(self, name)
            if value is not None:
                result[name] = value
        return result


@dataclass
class PurgeReport:
    section: Section
    affected_sections: List[Section]
    summary: PurgeSummary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "section": self.section.value,
            "affectedSections": [s.value for s in self.affected_sections],
            "summary": self.summary.to_dict(),
        }


class PurgeStrategy(ABC):
    """Removes one collection's data for a set of days or entirely"""

    # Summary field this strategy reports into
    counter: str = ""

    def __init__(self, cache: CacheProtocol):
        self.cache = cache
        self.keys = cache.keys

    def apply(self, dates: Set[str], clear_all: bool, summary: PurgeSummary) -> int:
        if clear_all:
            removed = self.clear()
        elif not dates:
            removed = 0
        else:
            removed = self.remove_dates(dates)
        setattr(summary, self.counter, removed)
        return removed

    @abstractmethod
    def clear(self) -> int:
        """Drop every item; returns the count held before"""

    @abstractmethod
    def remove_dates(self, dates: Set[str]) -> int:
        """Drop items dated in `dates`; returns how many were removed"""

    def _list(self, key: str) -> List[Any]:
        value = self.cache.get(key, [])
        return value if isinstance(value, list) else []


class PlansPurge(PurgeStrategy):
    counter = "plans"

    def clear(self) -> int:
        plans = self.cache.get(self.keys.daily_plans, {})
        count = len(plans) if isinstance(plans, dict) else 0
        self.cache.remove(self.keys.daily_plans)
        self.cache.remove(self.keys.global_habits)
        return count

    def remove_dates(self, dates: Set[str]) -> int:
        plans = self.cache.get(self.keys.daily_plans, {})
        if not isinstance(plans, dict):
            return 0
        kept = {day: plan for day, plan in plans.items() if day not in dates}
        removed = len(plans) - len(kept)
        if removed:
            self.cache.set(self.keys.daily_plans, kept)
        return removed


class VideoPurge(PurgeStrategy):
    counter = "logs"

    def clear(self) -> int:
        count = len(self._list(self.keys.video_logs))
        self.cache.remove(self.keys.video_logs)
        self.cache.remove(self.keys.video_config)
        return count

    def remove_dates(self, dates: Set[str]) -> int:
        logs = self._list(self.keys.video_logs)
        kept = [log for log in logs if not (isinstance(log, dict) and log.get("date") in dates)]
        removed = len(logs) - len(kept)
        if removed:
            self.cache.set(self.keys.video_logs, kept)
        return removed


class GradesPurge(PurgeStrategy):
    counter = "grades"

    def clear(self) -> int:
        count = len(self._list(self.keys.grades))
        self.cache.remove(self.keys.grades)
        return count

    def remove_dates(self, dates: Set[str]) -> int:
        grades = self._list(self.keys.grades)

        def hit(grade: Any) -> bool:
            raw = grade.get("date") if isinstance(grade, dict) else None
            return (to_iso_date(raw) or raw) in dates

        kept = [g for g in grades if not hit(g)]
        removed = len(grades) - len(kept)
        if removed:
            self.cache.set(self.keys.grades, kept)
        return removed


class GoalsPurge(PurgeStrategy):
    counter = "goals"

    def clear(self) -> int:
        count = len(self._list(self.keys.goals))
        self.cache.remove(self.keys.goals)
        return count

    def remove_dates(self, dates: Set[str]) -> int:
        goals = self._list(self.keys.goals)

        def hit(goal: Any) -> bool:
            if not isinstance(goal, dict):
                return False
            stamps = (goal.get("createdAt"), goal.get("scheduledFor"), goal.get("completedAt"))
            return any(to_iso_date(s) in dates for s in stamps if s)

        kept = [g for g in goals if not hit(g)]
        removed = len(goals) - len(kept)
        if removed:
            self.cache.set(self.keys.goals, kept)
        return removed


class ChatPurge(PurgeStrategy):
    """Removes messages by timestamp day; sessions left empty are dropped"""

    counter = "chats"

    def clear(self) -> int:
        count = len(self._list(self.keys.chat_sessions))
        self.cache.remove(self.keys.chat_sessions)
        self.cache.remove(self.keys.chat_history)
        return count

    def remove_dates(self, dates: Set[str]) -> int:
        sessions = self._list(self.keys.chat_sessions)
        kept_sessions = []
        removed = 0

        for session in sessions:
            if not isinstance(session, dict):
                continue
            messages = session.get("messages") or []
            remaining = [
                m
                for m in messages
                if not (isinstance(m, dict) and to_iso_date(m.get("timestamp")) in dates)
            ]
            removed += len(messages) - len(remaining)
            if remaining:
                kept_sessions.append(
                    {**session, "messages": remaining, "lastModified": remaining[-1].get("timestamp")}
                )

        if kept_sessions != sessions:
            self.cache.set(self.keys.chat_sessions, kept_sessions)
        return removed


# Strategies run for each section and the sections that must refresh afterwards
SECTION_PLAN: Dict[Section, Tuple[Tuple[Type[PurgeStrategy], ...], Tuple[Section, ...]]] = {
    Section.PLANNER: ((PlansPurge,), (Section.PROGRESS, Section.CALENDAR)),
    Section.VIDEO: ((VideoPurge,), (Section.CALENDAR,)),
    Section.GRADES: ((GradesPurge,), (Section.CALENDAR,)),
    Section.GOALS: ((GoalsPurge,), (Section.PROGRESS, Section.CALENDAR)),
    Section.PROGRESS: (
        (PlansPurge, GoalsPurge),
        (Section.PLANNER, Section.CALENDAR, Section.GOALS),
    ),
    Section.CALENDAR: (
        (PlansPurge, VideoPurge, GradesPurge, GoalsPurge),
        (Section.PLANNER, Section.VIDEO, Section.GRADES, Section.GOALS, Section.PROGRESS),
    ),
    Section.CHAT: ((ChatPurge,), ()),
}


def purge_section(
    cache: CacheProtocol, section: Section, dates: Iterable[str], clear_all: bool = False
) -> PurgeReport:
    """Purge a section for the given days (or entirely) and report what to refresh

    Args:
        cache: Local cache holding the collections
        section: Section the user reset
        dates: ISO days to purge; ignored when clear_all is set
        clear_all: Remove everything the section owns

    Returns:
        PurgeReport with the refreshed sections and per-collection counts
    """
    section = Section(section)
    date_set = set(dates)
    summary = PurgeSummary(cleared_all=clear_all)
    strategies, dependents = SECTION_PLAN[section]

    for strategy_cls in strategies:
        strategy_cls(cache).apply(date_set, clear_all, summary)

    affected = [section]
    for dependent in dependents:
        if dependent not in affected:
            affected.append(dependent)

    logger.info(
        f"Purged {section.value} ({'all' if clear_all else f'{len(date_set)} days'}): "
        f"{summary.to_dict()}"
    )
    return PurgeReport(section=section, affected_sections=affected, summary=summary)
