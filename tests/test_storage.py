"""
Tests for the local cache

Covers round-trips, defaults on missing or corrupt entries, push scheduling
and hydration.
"""
import sqlite3

import pytest

from pimx.core.json_codec import InvalidDocumentError
from pimx.core.storage import DEFAULT_KEYS, LocalCache, MemoryCacheBackend, StorageKeys


class TestLocalCacheRoundTrip:
    """Values read back equal the values written"""

    @pytest.mark.parametrize(
        "value",
        [
            {"2024-03-10": {"habits": [], "tasks": []}},
            [{"id": "g1", "text": "متن فارسی", "completed": False}],
            "plain text",
            42,
            0,
            False,
        ],
    )
    def test_get_returns_what_set_wrote(self, cache, value):
        """set then get yields an equal value"""
        cache.set("k", value)
        assert cache.get("k") == value

    def test_sqlite_backend_round_trip(self, sqlite_cache):
        """The file-backed cache behaves like the in-memory one"""
        sqlite_cache.set(DEFAULT_KEYS.goals, [{"id": "g1"}])
        assert sqlite_cache.get(DEFAULT_KEYS.goals) == [{"id": "g1"}]
        assert sqlite_cache.backend.keys() == [DEFAULT_KEYS.goals]
        sqlite_cache.remove(DEFAULT_KEYS.goals)
        assert sqlite_cache.get(DEFAULT_KEYS.goals, []) == []

    def test_non_finite_number_is_rejected(self, cache, recording_sync):
        """NaN is not valid JSON and is never written or pushed"""
        with pytest.raises(InvalidDocumentError):
            cache.set("k", {"score": float("nan")})
        assert cache.get("k") is None
        assert recording_sync.pushed == []


class TestLocalCacheDefaults:
    """get never raises"""

    def test_missing_key_returns_default(self, cache):
        """An absent key yields the supplied default"""
        assert cache.get("missing", []) == []

    def test_empty_string_returns_default(self):
        """An empty stored string counts as absent"""
        cache = LocalCache(MemoryCacheBackend({"k": ""}))
        assert cache.get("k", {"fallback": True}) == {"fallback": True}

    def test_corrupt_entry_returns_default(self):
        """Malformed JSON yields the default instead of raising"""
        cache = LocalCache(MemoryCacheBackend({"k": "{not json"}))
        assert cache.get("k", "default") == "default"

    def test_backend_error_returns_default(self):
        """A failing backend read is reported as absent"""

        class BrokenBackend(MemoryCacheBackend):
            def read(self, key):
                raise sqlite3.OperationalError("database is locked")

        cache = LocalCache(BrokenBackend())
        assert cache.get("k", []) == []

    def test_deeply_nested_entry_returns_default(self):
        depth = 100_000
        cache = LocalCache(MemoryCacheBackend({"k": "[" * depth + "]" * depth}))
        assert cache.get("k", "default") == "default"


class TestLocalCacheSync:
    """Writes are handed to the sync scheduler after landing locally"""

    def test_set_schedules_push(self, cache, recording_sync):
        """Every set schedules exactly one push with the written value"""
        cache.set("k", {"a": 1})
        assert recording_sync.pushed == [("k", {"a": 1})]

    def test_remove_schedules_remote_delete(self, cache, recording_sync):
        """remove deletes locally and schedules the remote delete"""
        cache.set("k", 1)
        cache.remove("k")
        assert cache.get("k") is None
        assert recording_sync.removed == ["k"]

    def test_hydrate_does_not_push(self, cache, recording_sync):
        """Hydrated values are written without being pushed back"""
        written = cache.hydrate({"a": [1], "b": {"x": 2}})
        assert sorted(written) == ["a", "b"]
        assert cache.get("a") == [1]
        assert recording_sync.pushed == []

    def test_hydrate_skips_none(self, cache):
        """A null remote value never clears local data"""
        cache.set("a", "local")
        written = cache.hydrate({"a": None})
        assert written == []
        assert cache.get("a") == "local"

    def test_cache_without_sync(self):
        """A cache with no scheduler still reads and writes"""
        cache = LocalCache(MemoryCacheBackend())
        cache.set("k", [1, 2])
        assert cache.get("k") == [1, 2]


class TestStorageKeys:
    def test_default_keys_are_the_planner_namespace(self):
        """The fixed registry lists every logical key once"""
        keys = DEFAULT_KEYS.all()
        assert len(keys) == len(set(keys)) == 9
        assert all(k.startswith("planner_") for k in keys)
        assert "planner_daily_plans" in keys

    def test_custom_registry_is_injectable(self):
        """Managers pick keys from the registry the cache carries"""
        keys = StorageKeys(goals="test_goals")
        cache = LocalCache(MemoryCacheBackend(), keys=keys)
        assert cache.keys.goals == "test_goals"
