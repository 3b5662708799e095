"""
Data models shared by the API handlers and the tracking managers
"""

from .base import BaseModel, Document, dump_list, invalid_entries, load_list
from .entities import (
    AdHocTask,
    DailyPlan,
    DayNote,
    Goal,
    GoalType,
    GradeEntry,
    GradeSubject,
    Habit,
    NoteTargetType,
    VideoConfig,
    VideoLog,
    VideoSubject,
)
from .requests import PutValueRequest, StateBatchRequest

__all__ = [
    # Base
    "BaseModel",
    "Document",
    "load_list",
    "dump_list",
    "invalid_entries",
    # Entities
    "Habit",
    "AdHocTask",
    "DailyPlan",
    "Goal",
    "GoalType",
    "DayNote",
    "NoteTargetType",
    "VideoConfig",
    "VideoLog",
    "VideoSubject",
    "GradeEntry",
    "GradeSubject",
    # Requests
    "PutValueRequest",
    "StateBatchRequest",
]
