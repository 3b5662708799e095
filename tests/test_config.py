"""
Tests for config loading and the logging setup it drives
"""
from pimx.config.loader import ConfigLoader, expand_env
from pimx.core.logger import parse_size


class TestConfigLoader:
    def test_missing_file_is_seeded_with_defaults(self, tmp_path):
        path = tmp_path / "nested" / "config.toml"
        loader = ConfigLoader(str(path))
        loader.load()

        assert path.exists()
        assert loader.get("server.port") == 8787
        assert loader.get("cache.path") == f"{tmp_path.as_posix()}/nested/cache.db"
        assert loader.get("sync.enabled") is True

    def test_env_placeholders(self, monkeypatch):
        monkeypatch.setenv("PIMX_TEST_HOST", "example")
        monkeypatch.delenv("PIMX_TEST_MISSING", raising=False)
        text = "a=${PIMX_TEST_HOST} b=${PIMX_TEST_MISSING:fallback} c=${PIMX_TEST_MISSING}"
        assert expand_env(text) == "a=example b=fallback c="

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("sync:\n  enabled: false\n  timeout: 3\n", encoding="utf-8")
        loader = ConfigLoader(str(path))
        loader.load()
        assert loader.get("sync.timeout") == 3

    def test_missing_keys_return_default(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("[auth]\npasscode = 'x'\n", encoding="utf-8")
        loader = ConfigLoader(str(path))
        loader.load()
        assert loader.get("auth.passcode") == "x"
        assert loader.get("auth.passcode.deeper", "d") == "d"
        assert loader.get("nope.nothing", 5) == 5


class TestParseSize:
    def test_units(self):
        assert parse_size(4096) == 4096
        assert parse_size("512KB") == 512 * 1024
        assert parse_size(" 10mb ") == 10 * 1024 * 1024
        assert parse_size("1GB") == 1024**3
        assert parse_size("100") == 100
