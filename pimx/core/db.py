"""
SQLite key-value store

One table of (key, JSON text, updated_at) rows. The remote store serves it
over HTTP and the local cache uses a second file with the same schema.
"""

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pimx.core.logger import get_logger
from pimx.core.sqls import queries, schema

logger = get_logger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class DatabaseManager:
    """Connection-per-call access to one SQLite file"""

    def __init__(self, db_path: Optional[str] = None):
        if db_path is None:
            from pimx.core.paths import get_db_path

            db_path = str(get_db_path())

        self.db_path = db_path
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info(f"Opened key-value store at {self.db_path}")

    def _ensure_schema(self):
        with self.get_connection() as conn:
            for statement in (*schema.ALL_TABLES, *schema.ALL_INDEXES):
                conn.execute(statement)
            conn.commit()

    @contextmanager
    def get_connection(self):
        """Yield a connection whose rows index by column name"""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def execute_query(self, query: str, params: Tuple = ()) -> List[Dict[str, Any]]:
        with self.get_connection() as conn:
            return [dict(row) for row in conn.execute(query, params).fetchall()]

    def execute_write(self, query: str, params: Tuple = ()) -> int:
        """Run one statement in its own transaction and return the affected row count"""
        with self.get_connection() as conn:
            cursor = conn.execute(query, params)
            conn.commit()
            return cursor.rowcount

    # Key-value methods
    def get_kv(self, key: str) -> Optional[Dict[str, Any]]:
        """Get a single row as {key, value, updated_at}, or None"""
        rows = self.execute_query(queries.SELECT_KV_BY_KEY, (key,))
        return rows[0] if rows else None

    def upsert_kv(self, key: str, value: str) -> int:
        """Insert or overwrite a value and refresh its timestamp"""
        return self.execute_write(queries.UPSERT_KV, (key, value, _utc_now()))

    def upsert_many(self, items: Iterable[Tuple[str, str]]) -> int:
        """Upsert several values in one transaction

        Either every row is written or, on error, none is.

        Returns:
            Number of rows written
        """
        updated_at = _utc_now()
        rows = [(key, value, updated_at) for key, value in items]
        with self.get_connection() as conn:
            try:
                conn.executemany(queries.UPSERT_KV, rows)
                conn.commit()
            except sqlite3.Error:
                conn.rollback()
                raise
        return len(rows)

    def delete_kv(self, key: str) -> int:
        """Delete a key; deleting a missing key is not an error"""
        return self.execute_write(queries.DELETE_KV, (key,))

    def get_state(self, keys: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        """Get rows for the given keys, or every row when keys is None"""
        if keys is None:
            return self.execute_query(queries.SELECT_ALL_KV)
        if not keys:
            return []
        placeholders = ", ".join("?" for _ in keys)
        return self.execute_query(
            queries.SELECT_KV_BY_KEYS.format(placeholders=placeholders), tuple(keys)
        )

    def list_keys(self) -> List[str]:
        """List every stored key"""
        return [row["key"] for row in self.execute_query(queries.SELECT_KV_KEYS)]

    def count_kv(self) -> int:
        """Count stored keys"""
        rows = self.execute_query(queries.COUNT_KV)
        return int(rows[0]["total"]) if rows else 0


db_manager: Optional[DatabaseManager] = None


def get_db() -> DatabaseManager:
    """Store database, opened on first use at database.path or ~/.config/pimx/pimx.db"""
    global db_manager
    if db_manager is None:
        from pimx.config.loader import get_config
        from pimx.core.paths import get_db_path

        configured = str(get_config().get("database.path", "") or "").strip()
        db_manager = DatabaseManager(configured or str(get_db_path()))

    return db_manager


def switch_database(new_db_path: str) -> bool:
    """Point the store at another file; returns False when it cannot be opened"""
    global db_manager

    if db_manager is not None and Path(db_manager.db_path).resolve() == Path(new_db_path).resolve():
        return True

    try:
        db_manager = DatabaseManager(new_db_path)
    except (OSError, sqlite3.Error) as e:
        logger.error(f"Cannot switch store to {new_db_path}: {e}", exc_info=True)
        return False

    logger.info(f"✓ Store switched to {new_db_path}")
    return True
