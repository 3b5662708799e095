"""
Default file locations

Both SQLite files live under ~/.config/pimx unless the config names a path.
"""

from pathlib import Path

from pimx.core.logger import get_logger

logger = get_logger(__name__)

APP_DIR_NAME = "pimx"


def data_home() -> Path:
    """~/.config/pimx, created on first use"""
    home = Path.home() / ".config" / APP_DIR_NAME
    if not home.is_dir():
        home.mkdir(parents=True, exist_ok=True)
        logger.info(f"Created data directory {home}")
    return home


def get_db_path(db_name: str = "pimx.db") -> Path:
    """Where the remote store keeps its documents"""
    return data_home() / db_name


def get_cache_path(cache_name: str = "cache.db") -> Path:
    """Where the local cache persists between runs"""
    return data_home() / cache_name
