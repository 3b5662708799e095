"""
Notes Manager
One free-text note per (date, target type, target id), stored as date -> list of notes
"""

from typing import Any, Dict, List, Optional, Union

from pimx.core.logger import get_logger
from pimx.core.protocols import CacheProtocol
from pimx.models.base import dump_list, invalid_entries, load_list
from pimx.models.entities import DayNote, NoteTargetType

from .dates import DayLike, iso_day, now_iso

logger = get_logger(__name__)


class NotesManager:
    """Notes manager"""

    def __init__(self, cache: CacheProtocol):
        self.cache = cache
        self.keys = cache.keys

    def _raw(self) -> Dict[str, Any]:
        raw = self.cache.get(self.keys.notes, {})
        return raw if isinstance(raw, dict) else {}

    def notes_for(self, day: DayLike) -> List[DayNote]:
        return load_list(DayNote, self._raw().get(iso_day(day), []))

    def get_note(
        self, day: DayLike, target_type: Union[NoteTargetType, str], target_id: str
    ) -> Optional[DayNote]:
        kind = NoteTargetType(target_type).value
        return next(
            (n for n in self.notes_for(day) if n.target_type == kind and n.target_id == target_id),
            None,
        )

    def save_note(
        self,
        day: DayLike,
        target_type: Union[NoteTargetType, str],
        target_id: str,
        target_title: str,
        text: str,
    ) -> Optional[DayNote]:
        """Create or replace the note for a target on a day

        Blank text deletes the note. An existing note keeps its id and creation time.

        Returns:
            The stored note, or None when it was deleted
        """
        date = iso_day(day)
        kind = NoteTargetType(target_type).value
        trimmed = text.strip()
        existing = self.get_note(date, kind, target_id)

        others = [
            n
            for n in self.notes_for(date)
            if not (n.target_type == kind and n.target_id == target_id)
        ]

        note = None
        if trimmed:
            note = DayNote(
                id=existing.id if existing else f"{kind}-{target_id}-{now_iso()}",
                date=date,
                target_id=target_id,
                target_type=kind,
                target_title=target_title,
                text=trimmed,
                created_at=existing.created_at if existing else now_iso(),
            )
            others.append(note)

        raw = self._raw()
        raw[date] = dump_list(others, keep=invalid_entries(DayNote, raw.get(date, [])))
        self.cache.set(self.keys.notes, raw)
        return note
