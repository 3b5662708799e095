"""
Configuration loading

Reads a TOML (or YAML) file, expanding ${VAR} and ${VAR:default}
placeholders from the environment before parsing. A missing file is seeded
from DEFAULT_CONFIG_TEMPLATE so a first run always has working settings.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import toml
import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PIMX_CONFIG"

_PLACEHOLDER = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")

# {dir} is filled with the config file's directory; ${...} stays for load time
DEFAULT_CONFIG_TEMPLATE = """# PIMX planner configuration file

[server]
host = "0.0.0.0"
port = 8787
debug = false

[database]
# Remote store (server side)
path = '{dir}/pimx.db'

[cache]
# Local cache (client side)
path = '{dir}/cache.db'

[sync]
enabled = true
base_url = "${{PIMX_API_BASE:http://127.0.0.1:8787/api}}"
timeout = 10.0

[auth]
passcode = "${{PIMX_PASSCODE:PIMX963}}"

[logging]
level = "INFO"
logs_dir = '{dir}/logs'
max_file_size = "10MB"
backup_count = 5
"""


def default_config_file() -> str:
    """$PIMX_CONFIG when set, else ~/.config/pimx/config.toml"""
    from_env = os.getenv(CONFIG_ENV_VAR)
    if from_env:
        return from_env
    return str(Path.home() / ".config" / "pimx" / "config.toml")


def expand_env(text: str) -> str:
    """Substitute ${VAR} / ${VAR:default} placeholders"""
    return _PLACEHOLDER.sub(lambda m: os.getenv(m.group(1), m.group(2) or ""), text)


class ConfigLoader:
    """Parsed settings with dotted-key lookup"""

    def __init__(self, config_file: Optional[str] = None):
        self.config_file = config_file or default_config_file()
        self._config: Dict[str, Any] = {}

    def load(self) -> Dict[str, Any]:
        path = Path(self.config_file)
        if not path.exists():
            self._write_default(path)

        try:
            text = expand_env(path.read_text(encoding="utf-8"))
            if path.suffix == ".toml":
                self._config = toml.loads(text)
            else:
                self._config = yaml.safe_load(text) or {}
        except (yaml.YAMLError, toml.TomlDecodeError) as e:
            logger.error(f"Cannot parse config {path}: {e}")
            raise
        except OSError as e:
            logger.error(f"Cannot read config {path}: {e}")
            raise

        logger.info(f"✓ Loaded config {path}")
        return self._config

    def _write_default(self, path: Path) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(
                DEFAULT_CONFIG_TEMPLATE.format(dir=path.parent.as_posix()), encoding="utf-8"
            )
        except OSError as e:
            logger.error(f"Cannot create default config {path}: {e}")
            raise
        logger.info(f"✓ Wrote default config {path}")

    def get(self, key: str, default: Any = None) -> Any:
        """Look up "section.name" style keys, returning default when any part is missing"""
        node: Any = self._config
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node


def load_config(config_file: Optional[str] = None) -> Dict[str, Any]:
    """Load (or reuse) the global config and return its raw mapping"""
    loader = get_config(config_file)
    return loader._config or loader.load()


_config_instance: Optional[ConfigLoader] = None


def get_config(config_file: Optional[str] = None) -> ConfigLoader:
    """Global config; passing a file replaces it"""
    global _config_instance
    if config_file is not None or _config_instance is None:
        _config_instance = ConfigLoader(config_file)
        _config_instance.load()
    return _config_instance
