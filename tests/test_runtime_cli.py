"""
Tests for runtime wiring and the command line interface
"""
import asyncio
import json

import httpx
import pytest
from typer.testing import CliRunner

from pimx.app import create_app
from pimx.cli import create_cli
from pimx.config.loader import get_config
from pimx.system.runtime import get_runtime, start_runtime, stop_runtime

D = "2024-03-10"


def _write_config(tmp_path, sync_enabled=False):
    path = tmp_path / "config.toml"
    path.write_text(
        f"""
[cache]
path = '{tmp_path / "cache.db"}'

[sync]
enabled = {"true" if sync_enabled else "false"}
base_url = "http://store/api"
timeout = 2.0

[auth]
passcode = "PIMX963"

[logging]
logs_dir = '{tmp_path / "logs"}'
""",
        encoding="utf-8",
    )
    return str(path)


@pytest.fixture
def restore_config():
    """Put the session config back after a test loads its own"""
    original = get_config().config_file
    yield
    asyncio.run(stop_runtime(quiet=True))
    get_config(original)


class TestRuntime:
    def test_start_and_stop(self, tmp_path, restore_config):
        runtime = asyncio.run(start_runtime(_write_config(tmp_path)))
        assert get_runtime() is runtime
        assert asyncio.run(start_runtime()) is runtime

        plan = runtime.planner.get_plan(D)
        assert plan.date == D
        assert runtime.cache.get(runtime.cache.keys.daily_plans)[D]["date"] == D

        asyncio.run(stop_runtime())
        assert get_runtime() is None

    def test_hydrates_from_store(self, tmp_path, client, restore_config):
        """Values already in the remote store land in the fresh cache"""
        client.put("/api/kv/planner_goals", json={"value": [{"id": "g1", "text": "Synced",
                                                             "type": "daily", "createdAt": D,
                                                             "scheduledFor": D}]})
        transport = httpx.ASGITransport(app=create_app())
        runtime = asyncio.run(
            start_runtime(_write_config(tmp_path, sync_enabled=True), transport=transport)
        )
        assert [g.text for g in runtime.goals.visible_goals(D)] == ["Synced"]

    def test_passcode_comes_from_config(self, tmp_path, restore_config):
        runtime = asyncio.run(start_runtime(_write_config(tmp_path)))
        runtime.gate.unlock("PIMX963")
        assert runtime.gate.is_unlocked


class TestCli:
    runner = CliRunner()

    def _invoke(self, config_file, *args):
        return self.runner.invoke(
            create_cli(), [*args, "--passcode", "PIMX963", "--config-file", config_file]
        )

    def test_today_shows_plan_and_score(self, tmp_path, restore_config):
        result = self._invoke(_write_config(tmp_path), "today", "--date", D)
        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["date"] == D
        assert payload["score"]["percent"] == 0
        assert len(payload["habits"]) == 7

    def test_wrong_passcode_exits_1(self, tmp_path, restore_config):
        result = self.runner.invoke(
            create_cli(),
            ["progress", "--passcode", "nope", "--config-file", _write_config(tmp_path)],
        )
        assert result.exit_code == 1
        assert get_runtime() is None

    def test_reset_needs_range_or_all(self, tmp_path, restore_config):
        result = self._invoke(_write_config(tmp_path), "reset", "grades")
        assert result.exit_code == 2

    def test_reset_all(self, tmp_path, restore_config):
        config_file = _write_config(tmp_path)
        self._invoke(config_file, "today", "--date", D)
        result = self._invoke(config_file, "reset", "planner", "--all")
        assert result.exit_code == 0, result.output
        report = json.loads(result.stdout)
        assert report["summary"] == {"clearedAll": True, "plans": 1}
        assert report["affectedSections"] == ["planner", "progress", "calendar"]

    def test_reset_range(self, tmp_path, restore_config):
        config_file = _write_config(tmp_path)
        self._invoke(config_file, "today", "--date", D)
        result = self._invoke(
            config_file, "reset", "planner", "--start", "2024-03-09", "--end", D
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["summary"]["plans"] == 1
