"""
Type protocols for cache storage and synchronization

Using Protocols lets the cache, sync engine and managers depend on interfaces
rather than on each other's concrete classes.
"""

from typing import Any, Iterable, List, Optional, Protocol


class CacheBackendProtocol(Protocol):
    """Protocol for raw string storage behind the local cache"""

    def read(self, key: str) -> Optional[str]:
        """Return stored text or None"""
        ...

    def write(self, key: str, text: str) -> None:
        """Overwrite stored text"""
        ...

    def delete(self, key: str) -> None:
        """Delete a key; missing keys are ignored"""
        ...

    def keys(self) -> List[str]:
        """List stored keys"""
        ...


class SyncSchedulerProtocol(Protocol):
    """Protocol for the non-blocking side of the sync engine"""

    def schedule_push(self, key: str, value: Any) -> None:
        """Queue a remote upsert without waiting for it"""
        ...

    def schedule_remove(self, key: str) -> None:
        """Queue a remote delete without waiting for it"""
        ...


class CacheProtocol(Protocol):
    """Protocol for the typed cache used by managers and the purge engine"""

    # StorageKeys registry
    keys: Any

    def get(self, key: str, default: Any = None) -> Any:
        """Read a value, falling back to default"""
        ...

    def set(self, key: str, value: Any) -> None:
        """Write a value and schedule its upload"""
        ...

    def remove(self, key: str) -> None:
        """Delete a value and schedule its remote deletion"""
        ...

    def hydrate(self, data: dict) -> Iterable[str]:
        """Write pulled values without scheduling uploads"""
        ...
