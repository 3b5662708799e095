"""
Sync engine
Mirrors local cache writes to the remote key-value store over HTTP.

Uploads and deletes are fire-and-forget: callers never wait for them, failures
are logged and dropped, and nothing is retried. Pulls run once at startup to
hydrate the cache.
"""

import asyncio
import concurrent.futures
import threading
from typing import Any, Dict, List, Optional, Sequence, Set, Union
from urllib.parse import quote

import httpx

from pimx.core.logger import get_logger
from pimx.core.protocols import CacheProtocol

logger = get_logger(__name__)

Pending = Union["asyncio.Task[Any]", "concurrent.futures.Future[Any]"]


class SyncEngine:
    """HTTP bridge between the local cache and the remote store

    Args:
        base_url: API root, e.g. http://127.0.0.1:8787/api
        enabled: When False every operation is a no-op
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests use MockTransport/ASGITransport)
    """

    def __init__(
        self,
        base_url: str,
        enabled: bool = True,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.enabled = enabled
        self.timeout = timeout
        self.transport = transport

        self._lock = threading.Lock()
        self._pending: Set[Pending] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            transport=self.transport,
        )

    @staticmethod
    def _kv_path(key: str) -> str:
        return f"/kv/{quote(key, safe='')}"

    # ==================== Remote operations ====================

    async def push(self, key: str, value: Any) -> bool:
        """Upload one value; returns False on any failure"""
        if not self.enabled:
            return False
        try:
            async with self._client() as client:
                response = await client.put(self._kv_path(key), json={"value": value})
                response.raise_for_status()
            logger.debug(f"Pushed {key}")
            return True
        except httpx.HTTPError as e:
            logger.warning(f"Failed to push {key}: {e}")
            return False

    async def remove(self, key: str) -> bool:
        """Delete one remote value; returns False on any failure"""
        if not self.enabled:
            return False
        try:
            async with self._client() as client:
                response = await client.delete(self._kv_path(key))
                response.raise_for_status()
            logger.debug(f"Removed remote {key}")
            return True
        except httpx.HTTPError as e:
            logger.warning(f"Failed to remove {key}: {e}")
            return False

    async def pull(self, keys: Optional[Sequence[str]] = None) -> Optional[Dict[str, Any]]:
        """Fetch values for keys (all keys when omitted)

        Returns:
            Mapping of key to value, or None when the remote store is unreachable
        """
        if not self.enabled:
            return None
        params = {"keys": ",".join(keys)} if keys else None
        try:
            async with self._client() as client:
                response = await client.get("/state", params=params)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Failed to pull state: {e}")
            return None

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            logger.warning("Pulled state has no data object, ignoring")
            return None
        return data

    async def hydrate(self, cache: CacheProtocol, keys: Optional[Sequence[str]] = None) -> List[str]:
        """Pull keys and write them into the cache without re-pushing"""
        data = await self.pull(keys)
        if data is None:
            return []
        written = list(cache.hydrate(data))
        logger.info(f"✓ Cache hydrated from remote store ({len(written)} keys)")
        return written

    def hydrate_blocking(
        self,
        cache: CacheProtocol,
        keys: Optional[Sequence[str]] = None,
        timeout: Optional[float] = None,
    ) -> List[str]:
        """Synchronous hydrate for callers outside an event loop"""
        future = asyncio.run_coroutine_threadsafe(
            self.hydrate(cache, keys), self._ensure_loop()
        )
        return future.result(timeout=timeout)

    # ==================== Fire-and-forget scheduling ====================

    def schedule_push(self, key: str, value: Any) -> None:
        """Queue an upload without waiting for it"""
        if self.enabled:
            self._schedule(self.push(key, value))

    def schedule_remove(self, key: str) -> None:
        """Queue a remote delete without waiting for it"""
        if self.enabled:
            self._schedule(self.remove(key))

    def _schedule(self, coro) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        pending: Pending
        if running is not None and running is not self._loop:
            pending = running.create_task(coro)
        else:
            pending = asyncio.run_coroutine_threadsafe(coro, self._ensure_loop())

        with self._lock:
            self._pending.add(pending)
        pending.add_done_callback(self._discard)

    def _discard(self, pending: Pending) -> None:
        with self._lock:
            self._pending.discard(pending)

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._loop is None:
                self._loop = asyncio.new_event_loop()
                self._thread = threading.Thread(
                    target=self._loop.run_forever, name="pimx-sync", daemon=True
                )
                self._thread.start()
                logger.debug("Sync background loop started")
            return self._loop

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until work scheduled on the background loop finishes

        Returns:
            True when nothing is left pending
        """
        with self._lock:
            futures = [
                p for p in self._pending if isinstance(p, concurrent.futures.Future)
            ]
        if futures:
            concurrent.futures.wait(futures, timeout=timeout)
        return self.pending_count == 0

    async def drain(self) -> None:
        """Await every outstanding scheduled call"""
        with self._lock:
            pending = list(self._pending)
        waiters = [
            asyncio.wrap_future(p) if isinstance(p, concurrent.futures.Future) else p
            for p in pending
        ]
        if waiters:
            await asyncio.gather(*waiters, return_exceptions=True)

    def close(self, timeout: float = 5.0) -> None:
        """Wait briefly for pending uploads, then stop the background loop"""
        if not self.wait_idle(timeout):
            logger.warning(f"Closing sync engine with {self.pending_count} pending calls")

        with self._lock:
            loop, thread = self._loop, self._thread
            self._loop = None
            self._thread = None

        if loop is not None:
            loop.call_soon_threadsafe(loop.stop)
            if thread is not None:
                thread.join(timeout)
            loop.close()
            logger.debug("Sync background loop stopped")
