"""
Grade Manager
Exam scores on a 0-20 scale, kept sorted by date
"""

import math
import uuid
from typing import Dict, List, Union

from pimx.core.logger import get_logger
from pimx.core.protocols import CacheProtocol
from pimx.models.base import dump_list, invalid_entries, load_list
from pimx.models.entities import GradeEntry, GradeSubject

from .dates import DayLike, iso_day, to_iso_date
from .scoring import completion_rate

logger = get_logger(__name__)

MAX_SCORE = 20
PASS_SCORE = 10


class GradeManager:
    """Grade manager"""

    def __init__(self, cache: CacheProtocol):
        self.cache = cache
        self.keys = cache.keys

    def get_grades(self) -> List[GradeEntry]:
        return load_list(GradeEntry, self.cache.get(self.keys.grades, []))

    def _save(self, grades: List[GradeEntry]) -> None:
        stored = self.cache.get(self.keys.grades, [])
        self.cache.set(self.keys.grades, dump_list(grades, keep=invalid_entries(GradeEntry, stored)))

    def add_grade(self, subject: Union[GradeSubject, str], score: float, day: DayLike) -> GradeEntry:
        """Record a score for a subject on a day

        Raises:
            ValueError: score outside 0..20 or unknown subject
        """
        if not math.isfinite(score) or score < 0 or score > MAX_SCORE:
            raise ValueError(f"Score must be between 0 and {MAX_SCORE}")

        entry = GradeEntry(
            id=uuid.uuid4().hex,
            subject=GradeSubject(subject).value,
            date=iso_day(day),
            score=round(score, 2),
        )
        grades = self.get_grades()
        grades.append(entry)
        grades.sort(key=lambda g: to_iso_date(g.date) or g.date)
        self._save(grades)
        return entry

    def delete_grade(self, grade_id: str) -> bool:
        grades = self.get_grades()
        remaining = [g for g in grades if g.id != grade_id]
        if len(remaining) == len(grades):
            return False
        self._save(remaining)
        return True

    def grades_on(self, day: DayLike) -> List[GradeEntry]:
        date = iso_day(day)
        return [g for g in self.get_grades() if (to_iso_date(g.date) or g.date) == date]

    def subject_stats(self) -> List[Dict[str, float]]:
        """Average, count and best score per subject with entries, best average first"""
        by_subject: Dict[str, List[float]] = {}
        for grade in self.get_grades():
            by_subject.setdefault(grade.subject, []).append(grade.score)

        stats = [
            {
                "subject": subject,
                "avg": round(sum(scores) / len(scores), 2),
                "count": len(scores),
                "best": max(scores),
            }
            for subject, scores in by_subject.items()
        ]
        return sorted(stats, key=lambda s: s["avg"], reverse=True)

    def pass_rate(self) -> int:
        grades = self.get_grades()
        passed = sum(1 for g in grades if g.score >= PASS_SCORE)
        return completion_rate(passed, len(grades))
