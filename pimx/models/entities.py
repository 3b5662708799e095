"""
Data entity model definitions
Documents stored under the dashboard's cache keys
"""

import math
from enum import Enum
from typing import List, Optional, Union

from pydantic import Field, field_validator

from .base import Document

Number = Union[int, float]


class GoalType(str, Enum):
    """Goal horizon"""

    DAILY = "daily"
    SHORT_TERM = "short-term"
    LONG_TERM = "long-term"


class NoteTargetType(str, Enum):
    """Kind of item a day note is attached to"""

    HABIT = "habit"
    TASK = "task"
    GOAL = "goal"


class VideoSubject(str, Enum):
    """Video lesson subjects (values are the stored labels)"""

    HESABAN = "حسابان"
    HENDESEH = "هندسه"
    GOSASTEH = "گسسته"
    SHIMI = "شیمی"
    FIZIK = "فیزیک"


class GradeSubject(str, Enum):
    """Graded subjects (values are the stored labels)"""

    HESABAN = "حسابان"
    HENDESEH = "هندسه"
    GOSASTEH = "گسسته"
    SHIMI = "شیمی"
    FIZIK = "فیزیک"
    HOVIYAT = "هویت اجتماعی"
    SALAMAT = "سلامت و بهداشت"
    FARSI = "فارسی"
    ARABI = "عربی"
    ENGLISH = "زبان انگلیسی"
    DINI = "دینی"
    MODIRIYAT = "مدیریت خانواده"


def _days_or_empty(value):
    # Older documents omit scheduleDays or store null
    return [] if value is None else value


def _finite_or_zero(value):
    # NaN impact scores reach storage as null
    if value is None:
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return value
    return value if math.isfinite(number) else 0


# ============ Planner ============


class Habit(Document):
    """Recurring item; empty schedule_days means every day (0=Sunday ... 6=Saturday)"""

    id: str
    title: str = ""
    completed: bool = False
    is_custom: bool = False
    schedule_days: List[int] = Field(default_factory=list)

    normalize_schedule_days = field_validator("schedule_days", mode="before")(_days_or_empty)


class AdHocTask(Document):
    """One-off task for a single day, weighted by impact_score"""

    id: str
    title: str = ""
    impact_score: Number = 0
    completed: bool = False

    normalize_impact_score = field_validator("impact_score", mode="before")(_finite_or_zero)


class DailyPlan(Document):
    """Per-date snapshot of applicable habits plus that day's tasks"""

    date: str
    habits: List[Habit] = Field(default_factory=list)
    tasks: List[AdHocTask] = Field(default_factory=list)

    @field_validator("habits", "tasks", mode="before")
    @classmethod
    def none_to_list(cls, value):
        return [] if value is None else value


# ============ Goals & notes ============


class Goal(Document):
    id: str
    text: str
    type: GoalType = GoalType.SHORT_TERM
    completed: bool = False
    created_at: str
    scheduled_for: Optional[str] = None
    completed_at: Optional[str] = None


class DayNote(Document):
    """Free-text note for one (date, target_type, target_id)"""

    id: str
    date: str
    target_id: str
    target_type: NoteTargetType
    target_title: str = ""
    text: str
    created_at: str


# ============ Video lessons & grades ============


class VideoConfig(Document):
    """Per-subject lesson counters; 0 <= remaining_videos <= total_videos"""

    subject: str
    total_videos: int = 0
    remaining_videos: int = 0
    schedule_days: List[int] = Field(default_factory=list)

    normalize_schedule_days = field_validator("schedule_days", mode="before")(_days_or_empty)


class VideoLog(Document):
    id: str
    date: str
    subject: str
    count: int


class GradeEntry(Document):
    id: str
    subject: str
    date: str
    score: Number = Field(ge=0, le=20)
