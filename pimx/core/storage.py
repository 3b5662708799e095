"""
Local cache
Synchronous key-value cache that every dashboard read and write goes through.
Writes land locally first and are then handed to the sync engine without waiting.
"""

import json
import sqlite3
import threading
from dataclasses import astuple, dataclass
from typing import Any, Dict, List, Optional, Tuple

from pimx.core.db import DatabaseManager
from pimx.core.json_codec import encode_value
from pimx.core.logger import get_logger
from pimx.core.protocols import CacheBackendProtocol, SyncSchedulerProtocol

logger = get_logger(__name__)


@dataclass(frozen=True)
class StorageKeys:
    """Fixed registry of logical keys shared by the client and the remote store"""

    video_config: str = "planner_video_config"
    video_logs: str = "planner_video_logs"
    daily_plans: str = "planner_daily_plans"
    grades: str = "planner_grades"
    goals: str = "planner_goals"
    global_habits: str = "planner_global_habits"
    notes: str = "planner_notes"
    chat_history: str = "planner_chat_history"
    chat_sessions: str = "planner_chat_sessions"

    def all(self) -> Tuple[str, ...]:
        return astuple(self)


DEFAULT_KEYS = StorageKeys()


class MemoryCacheBackend:
    """In-process backend, mainly for tests and one-shot CLI runs"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def read(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def write(self, key: str, text: str) -> None:
        with self._lock:
            self._data[key] = text

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return sorted(self._data)


class SQLiteCacheBackend:
    """File-backed backend so the cache survives between sessions"""

    def __init__(self, db: DatabaseManager):
        self.db = db

    def read(self, key: str) -> Optional[str]:
        row = self.db.get_kv(key)
        return row["value"] if row else None

    def write(self, key: str, text: str) -> None:
        self.db.upsert_kv(key, text)

    def delete(self, key: str) -> None:
        self.db.delete_kv(key)

    def keys(self) -> List[str]:
        return self.db.list_keys()


class LocalCache:
    """Typed JSON cache over a raw string backend

    Args:
        backend: Raw storage
        sync: Optional scheduler notified after every write or delete
        keys: Key registry, injected so tests can use their own namespace
    """

    def __init__(
        self,
        backend: CacheBackendProtocol,
        sync: Optional[SyncSchedulerProtocol] = None,
        keys: StorageKeys = DEFAULT_KEYS,
    ):
        self.backend = backend
        self.sync = sync
        self.keys = keys

    def get(self, key: str, default: Any = None) -> Any:
        """Read a value; missing, empty, malformed or unreadable entries yield default"""
        try:
            raw = self.backend.read(key)
        except (sqlite3.Error, OSError) as e:
            logger.warning(f"Cannot read cache entry {key}: {e}")
            return default
        if raw is None or raw == "":
            return default
        try:
            return json.loads(raw)
        except (ValueError, RecursionError):
            logger.debug(f"Malformed cache entry for {key}, using default")
            return default

    def set(self, key: str, value: Any) -> None:
        """Write a value locally, then schedule its upload

        The upload carries a copy decoded from the stored text, so later
        changes to `value` reach neither layer.
        """
        text = encode_value(value)
        self.backend.write(key, text)
        if self.sync is not None:
            self.sync.schedule_push(key, json.loads(text))

    def remove(self, key: str) -> None:
        """Delete a value locally, then schedule the remote delete"""
        self.backend.delete(key)
        if self.sync is not None:
            self.sync.schedule_remove(key)

    def hydrate(self, data: Dict[str, Any]) -> List[str]:
        """Write values pulled from the remote store without pushing them back

        None values are skipped so a missing remote key never clears local data.

        Returns:
            Keys that were written
        """
        written = []
        for key, value in data.items():
            if value is None:
                continue
            self.backend.write(key, encode_value(value))
            written.append(key)
        logger.debug(f"Hydrated {len(written)} cache keys")
        return written
