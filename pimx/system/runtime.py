"""Client runtime control utility

Builds the local cache, sync engine and managers from configuration,
hydrates the cache from the remote store, and tears everything down again.
Shared by the CLI and by embedding applications.
"""

from __future__ import annotations

import atexit
from dataclasses import dataclass
from typing import Iterable, Optional

import httpx

from pimx.config.loader import get_config
from pimx.core.auth import DEFAULT_PASSCODE, PasscodeGate
from pimx.core.db import DatabaseManager
from pimx.core.logger import get_logger
from pimx.core.paths import get_cache_path
from pimx.core.storage import LocalCache, SQLiteCacheBackend
from pimx.core.sync import SyncEngine
from pimx.tracking.goals import GoalManager
from pimx.tracking.grades import GradeManager
from pimx.tracking.notes import NotesManager
from pimx.tracking.planner import PlannerManager
from pimx.tracking.purge import PurgeReport, Section, purge_section
from pimx.tracking.video import VideoManager

logger = get_logger(__name__)

# Global flag to prevent duplicate cleanup
_exit_handlers_registered = False


@dataclass
class Runtime:
    """Everything a dashboard session needs, wired to one cache"""

    cache: LocalCache
    sync: SyncEngine
    gate: PasscodeGate
    planner: PlannerManager
    goals: GoalManager
    notes: NotesManager
    video: VideoManager
    grades: GradeManager

    @classmethod
    def build(cls, cache: LocalCache, sync: SyncEngine, gate: PasscodeGate) -> "Runtime":
        return cls(
            cache=cache,
            sync=sync,
            gate=gate,
            planner=PlannerManager(cache),
            goals=GoalManager(cache),
            notes=NotesManager(cache),
            video=VideoManager(cache),
            grades=GradeManager(cache),
        )

    def purge(
        self, section: Section, dates: Iterable[str], clear_all: bool = False
    ) -> PurgeReport:
        return purge_section(self.cache, section, dates, clear_all)


_runtime: Optional[Runtime] = None


def get_runtime() -> Optional[Runtime]:
    return _runtime


def _cleanup_on_exit():
    """Flush pending uploads on process exit"""
    if _runtime is None:
        return
    logger.debug("Executing exit cleanup...")
    _runtime.sync.close()


def _register_exit_handlers():
    global _exit_handlers_registered

    if _exit_handlers_registered:
        return
    atexit.register(_cleanup_on_exit)
    _exit_handlers_registered = True
    logger.debug("atexit cleanup registered")


def build_sync_engine(transport: Optional[httpx.AsyncBaseTransport] = None) -> SyncEngine:
    config = get_config()
    return SyncEngine(
        base_url=config.get("sync.base_url", "http://127.0.0.1:8787/api"),
        enabled=bool(config.get("sync.enabled", True)),
        timeout=float(config.get("sync.timeout", 10.0)),
        transport=transport,
    )


def build_cache(sync: SyncEngine) -> LocalCache:
    config = get_config()
    configured_path = config.get("cache.path", "")
    cache_path = str(configured_path).strip() if configured_path else ""
    backend = SQLiteCacheBackend(DatabaseManager(cache_path or str(get_cache_path())))
    return LocalCache(backend, sync=sync)


async def start_runtime(
    config_file: Optional[str] = None,
    hydrate: bool = True,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Runtime:
    """Start the client runtime, returning the running one when already started"""
    global _runtime

    if _runtime is not None:
        logger.info("Runtime already running")
        return _runtime

    config_loader = get_config(config_file)
    logger.info(f"✓ Configuration file: {config_loader.config_file}")

    sync = build_sync_engine(transport)
    cache = build_cache(sync)
    gate = PasscodeGate(str(config_loader.get("auth.passcode", DEFAULT_PASSCODE)))

    if hydrate:
        written = await sync.hydrate(cache, cache.keys.all())
        if not written:
            logger.info("Remote store had nothing to hydrate, using local cache as is")

    _runtime = Runtime.build(cache, sync, gate)
    _register_exit_handlers()
    logger.info("✓ Runtime started")
    return _runtime


async def stop_runtime(*, quiet: bool = False) -> None:
    """Wait for pending uploads and release the sync engine"""
    global _runtime

    if _runtime is None:
        if not quiet:
            logger.info("Runtime is not running")
        return

    await _runtime.sync.drain()
    _runtime.sync.close()
    _runtime = None
    if not quiet:
        logger.info("Runtime stopped")
