# Path: kpi_dash/core/cache.py
"""
Key-Value Cache

Cache abstraction handed to the composition root (dashboard service).
The computation engine itself never caches; callers memoize around it.

Implementations:
- InMemoryCache: dict-backed, optional time-to-live
- NullCache: stores nothing (caching disabled)
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple


class KeyValueCache(ABC):
    """Minimal get/set/clear cache interface."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when absent or expired."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store a value under key."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every entry."""


class InMemoryCache(KeyValueCache):
    """
    Process-local cache with optional expiry.

    Example:
        cache = InMemoryCache(ttl_seconds=3600)
        cache.set('daily:b1:2025:3:12', values)
        cache.get('daily:b1:2025:3:12')
    """

    def __init__(self, ttl_seconds: Optional[float] = None, clock=time.monotonic):
        """
        Args:
            ttl_seconds: Entry lifetime; None keeps entries until clear()
            clock: Monotonic time source (injectable for tests)
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self.ttl_seconds is not None and self._clock() - stored_at > self.ttl_seconds:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (self._clock(), value)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class NullCache(KeyValueCache):
    """Cache that never stores anything."""

    def get(self, key: str) -> Optional[Any]:
        return None

    def set(self, key: str, value: Any) -> None:
        pass

    def clear(self) -> None:
        pass


def build_cache(config) -> KeyValueCache:
    """
    Build the cache described by configuration.

    Args:
        config: ConfigLoader (or any object with get())

    Returns:
        InMemoryCache when caching is enabled, else NullCache
    """
    if not config.get('enable_caching', True):
        return NullCache()
    ttl_hours = config.get('cache_ttl_hours')
    ttl_seconds = float(ttl_hours) * 3600 if ttl_hours else None
    return InMemoryCache(ttl_seconds=ttl_seconds)


__all__ = ['KeyValueCache', 'InMemoryCache', 'NullCache', 'build_cache']
