"""
Logging setup for the planner and the store

Every module asks for a logger through get_logger(); the first call wires the
root logger from the [logging] config section: one console stream, a rotating
pimx.log with everything and a rotating error.log with ERROR and above.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Union

from pimx.config.loader import get_config

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
)

_SIZE_UNITS = {"KB": 1024, "MB": 1024**2, "GB": 1024**3}

# Libraries that log each request at INFO
_QUIET_LOGGERS = ("httpx", "httpcore")


def parse_size(size: Union[str, int]) -> int:
    """Turn "512KB" / "10MB" / 4096 into a byte count"""
    if isinstance(size, int):
        return size
    text = size.strip().upper()
    for suffix, factor in _SIZE_UNITS.items():
        if text.endswith(suffix):
            return int(text[: -len(suffix)]) * factor
    return int(text)


def _rotating_handler(
    path: Path, level: int, max_bytes: int, backup_count: int
) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def configure_logging() -> None:
    """Replace the root logger's handlers with the configured ones"""
    config = get_config()
    level_name = str(config.get("logging.level", "INFO")).upper()
    logs_dir = Path(config.get("logging.logs_dir", "./logs"))
    max_bytes = parse_size(config.get("logging.max_file_size", "10MB"))
    backup_count = int(config.get("logging.backup_count", 5))

    logs_dir.mkdir(parents=True, exist_ok=True)

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(getattr(logging, level_name, logging.INFO))
    root.addHandler(console)
    root.addHandler(_rotating_handler(logs_dir / "pimx.log", logging.DEBUG, max_bytes, backup_count))
    root.addHandler(_rotating_handler(logs_dir / "error.log", logging.ERROR, max_bytes, backup_count))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


# Set on first use so importing this module never reads config
_configured = False


def get_logger(name: str) -> logging.Logger:
    """Return a named logger, configuring the root logger on the first call"""
    global _configured

    if not _configured:
        configure_logging()
        _configured = True

    return logging.getLogger(name)
