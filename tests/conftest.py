"""
Pytest configuration and fixtures

Every test runs against temporary config, log and database locations.
Nothing touches ~/.config/pimx.
"""
import os
import tempfile
from pathlib import Path

import pytest

# Config must point at a scratch directory before any pimx module is imported,
# because the logger reads [logging] on first use.
_SCRATCH = Path(tempfile.mkdtemp(prefix="pimx-tests-"))
_CONFIG_FILE = _SCRATCH / "config.toml"
_CONFIG_FILE.write_text(
    f"""
[server]
host = "127.0.0.1"
port = 8787
debug = false

[database]
path = '{_SCRATCH / "store.db"}'

[cache]
path = '{_SCRATCH / "cache.db"}'

[sync]
enabled = false
base_url = "http://testserver/api"
timeout = 2.0

[auth]
passcode = "PIMX963"

[logging]
level = "DEBUG"
logs_dir = '{_SCRATCH / "logs"}'
max_file_size = "1MB"
backup_count = 1
""",
    encoding="utf-8",
)
os.environ["PIMX_CONFIG"] = str(_CONFIG_FILE)

from fastapi.testclient import TestClient  # noqa: E402

from pimx.app import create_app  # noqa: E402
from pimx.core import db as db_module  # noqa: E402
from pimx.core.db import DatabaseManager, switch_database  # noqa: E402
from pimx.core.storage import LocalCache, MemoryCacheBackend, SQLiteCacheBackend  # noqa: E402


class RecordingSync:
    """Stands in for the sync engine and records what would have been sent"""

    def __init__(self):
        self.pushed = []
        self.removed = []

    def schedule_push(self, key, value):
        self.pushed.append((key, value))

    def schedule_remove(self, key):
        self.removed.append(key)


@pytest.fixture
def store_db(tmp_path):
    """Remote store database in a fresh file for each test"""
    path = tmp_path / "store.db"
    assert switch_database(str(path))
    yield db_module.get_db()
    db_module.db_manager = None


@pytest.fixture
def client(store_db):
    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture
def recording_sync():
    return RecordingSync()


@pytest.fixture
def cache(recording_sync):
    """In-memory local cache wired to a recording sync scheduler"""
    return LocalCache(MemoryCacheBackend(), sync=recording_sync)


@pytest.fixture
def sqlite_cache(tmp_path, recording_sync):
    backend = SQLiteCacheBackend(DatabaseManager(str(tmp_path / "cache.db")))
    return LocalCache(backend, sync=recording_sync)
