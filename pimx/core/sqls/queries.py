"""
Database query SQL statements
Contains all SELECT, INSERT, UPDATE, DELETE statements
"""

SELECT_KV_BY_KEY = """
    SELECT key, value, updated_at FROM kv
    WHERE key = ?
"""

SELECT_ALL_KV = """
    SELECT key, value, updated_at FROM kv
    ORDER BY key
"""

# Formatted with one "?" placeholder per requested key
SELECT_KV_BY_KEYS = """
    SELECT key, value, updated_at FROM kv
    WHERE key IN ({placeholders})
"""

SELECT_KV_KEYS = """
    SELECT key FROM kv
    ORDER BY key
"""

UPSERT_KV = """
    INSERT INTO kv (key, value, updated_at)
    VALUES (?, ?, ?)
    ON CONFLICT(key) DO UPDATE SET
        value = excluded.value,
        updated_at = excluded.updated_at
"""

DELETE_KV = """
    DELETE FROM kv
    WHERE key = ?
"""

COUNT_KV = """
    SELECT COUNT(*) AS total FROM kv
"""
