"""
Database schema definitions
Contains all CREATE TABLE and CREATE INDEX statements
"""

# Values are canonical JSON text; updated_at is an ISO-8601 UTC timestamp
CREATE_KV_TABLE = """
    CREATE TABLE IF NOT EXISTS kv (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
"""

CREATE_KV_UPDATED_INDEX = """
    CREATE INDEX IF NOT EXISTS idx_kv_updated
    ON kv(updated_at DESC)
"""

ALL_TABLES = [
    CREATE_KV_TABLE,
]

ALL_INDEXES = [
    CREATE_KV_UPDATED_INDEX,
]
