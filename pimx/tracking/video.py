"""
Video Manager
Per-subject lesson counters, weekday schedules and the append-only watch log
"""

import uuid
from typing import Dict, List, Optional, Sequence, Union

from pimx.core.logger import get_logger
from pimx.core.protocols import CacheProtocol
from pimx.models.base import dump_list, invalid_entries, load_list
from pimx.models.entities import VideoConfig, VideoLog, VideoSubject

from . import scoring
from .dates import DayLike, iso_day, shift_days
from .schedule import matches

logger = get_logger(__name__)

STREAK_LOOKBACK_DAYS = 30

SubjectLike = Union[VideoSubject, str]


class VideoConfigMissingError(ValueError):
    """Raised when logging lessons for a subject with no schedule and no totals"""


def _subject(value: SubjectLike) -> str:
    return VideoSubject(value).value


class VideoManager:
    """Video lesson manager"""

    def __init__(self, cache: CacheProtocol):
        self.cache = cache
        self.keys = cache.keys

    # ==================== Configs ====================

    def get_configs(self) -> List[VideoConfig]:
        """One config per subject; subjects never configured get zeroed defaults"""
        stored = {c.subject: c for c in load_list(VideoConfig, self.cache.get(self.keys.video_config, []))}
        return [
            stored.get(s.value) or VideoConfig(subject=s.value, total_videos=0, remaining_videos=0, schedule_days=[])
            for s in VideoSubject
        ]

    def save_configs(self, configs: Sequence[VideoConfig]) -> None:
        stored = self.cache.get(self.keys.video_config, [])
        self.cache.set(self.keys.video_config, dump_list(configs, keep=invalid_entries(VideoConfig, stored)))

    def config_for(self, subject: SubjectLike) -> VideoConfig:
        name = _subject(subject)
        return next(c for c in self.get_configs() if c.subject == name)

    def _replace(self, config: VideoConfig) -> VideoConfig:
        configs = [config if c.subject == config.subject else c for c in self.get_configs()]
        self.save_configs(configs)
        return config

    def set_config(
        self,
        subject: SubjectLike,
        total_videos: int,
        remaining_videos: int,
        schedule_days: Optional[Sequence[int]] = None,
    ) -> VideoConfig:
        if total_videos < 0 or remaining_videos < 0 or remaining_videos > total_videos:
            raise ValueError("Remaining videos must be between 0 and the total")
        config = self.config_for(subject)
        config.total_videos = total_videos
        config.remaining_videos = remaining_videos
        if schedule_days is not None:
            config.schedule_days = sorted(set(schedule_days))
        return self._replace(config)

    def set_total_videos(self, subject: SubjectLike, total_videos: int) -> VideoConfig:
        """Change the total while keeping the watched count"""
        config = self.config_for(subject)
        watched = max(0, config.total_videos - config.remaining_videos)
        config.total_videos = max(0, total_videos)
        config.remaining_videos = max(0, config.total_videos - watched)
        return self._replace(config)

    def toggle_schedule_day(self, subject: SubjectLike, weekday: int) -> VideoConfig:
        if not 0 <= weekday <= 6:
            raise ValueError("Weekday must be between 0 (Sunday) and 6 (Saturday)")
        config = self.config_for(subject)
        if weekday in config.schedule_days:
            config.schedule_days = [d for d in config.schedule_days if d != weekday]
        else:
            config.schedule_days = sorted(config.schedule_days + [weekday])
        return self._replace(config)

    def is_scheduled(self, subject: SubjectLike, day: DayLike) -> bool:
        return matches(self.config_for(subject), day)

    # ==================== Logs ====================

    def get_logs(self) -> List[VideoLog]:
        return load_list(VideoLog, self.cache.get(self.keys.video_logs, []))

    def add_log(self, subject: SubjectLike, count: int, day: DayLike) -> VideoLog:
        """Record watched lessons and move them from remaining to watched

        Raises:
            ValueError: count is not positive
            VideoConfigMissingError: the subject has neither schedule days nor totals
        """
        if count <= 0:
            raise ValueError("Watched count must be positive")

        config = self.config_for(subject)
        has_schedule = bool(config.schedule_days)
        has_totals = config.total_videos > 0 or config.remaining_videos > 0
        if not has_schedule and not has_totals:
            raise VideoConfigMissingError(
                "Set the schedule days and video count for this subject in settings first"
            )

        log = VideoLog(id=uuid.uuid4().hex, date=iso_day(day), subject=config.subject, count=count)
        stored = self.cache.get(self.keys.video_logs, [])
        logs = load_list(VideoLog, stored)
        logs.append(log)
        self.cache.set(self.keys.video_logs, dump_list(logs, keep=invalid_entries(VideoLog, stored)))

        watched = max(0, config.total_videos - config.remaining_videos) + count
        config.remaining_videos = max(0, config.remaining_videos - count)
        config.total_videos = max(config.total_videos, watched + config.remaining_videos)
        self._replace(config)

        logger.debug(f"Logged {count} videos for {config.subject} on {log.date}")
        return log

    def watched_on(self, day: DayLike, subject: Optional[SubjectLike] = None) -> int:
        date = iso_day(day)
        name = _subject(subject) if subject is not None else None
        return sum(
            log.count
            for log in self.get_logs()
            if log.date == date and (name is None or log.subject == name)
        )

    def streak(self, today: DayLike, subject: SubjectLike) -> int:
        """Consecutive days with a log for the subject, counting back from today"""
        name = _subject(subject)
        days_logged = {log.date for log in self.get_logs() if log.subject == name}
        count = 0
        for offset in range(STREAK_LOOKBACK_DAYS):
            if shift_days(today, -offset) not in days_logged:
                break
            count += 1
        return count

    def daily_counts(self) -> Dict[str, int]:
        return scoring.video_counts(self.get_logs())
