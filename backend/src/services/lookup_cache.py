"""Memoization stores for upstream lookups (drug resolution, geocoding).

Resolvers receive a store instead of reaching for module globals, so the
unbounded process-lifetime store can be swapped for a TTL-bounded one
through configuration.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Protocol

from cachetools import TTLCache

logger = logging.getLogger(__name__)


def normalize_key(text: str) -> str:
    return text.strip().lower()


class LookupCache(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def __len__(self) -> int: ...


class InMemoryLookupCache:
    """Process-lifetime store with no eviction.

    Writes are idempotent per key, so concurrent population of the same key
    is harmless. The lock only guards the dict itself.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._entries: dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            value = self._entries.get(key)
        logger.debug(
            "Cache %s %s: %r", self.name, "hit" if value is not None else "miss", key
        )
        return value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = value

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class TTLLookupCache:
    """Bounded store that expires entries after ``ttl`` seconds."""

    def __init__(self, name: str, ttl: int, maxsize: int) -> None:
        self.name = name
        self._entries: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            value = self._entries.get(key)
        logger.debug(
            "Cache %s %s: %r", self.name, "hit" if value is not None else "miss", key
        )
        return value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = value

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def make_lookup_cache(
    name: str, ttl_seconds: int = 0, max_entries: int = 1024
) -> LookupCache:
    """Return a TTL-bounded store when ``ttl_seconds`` > 0, else an unbounded one."""
    if ttl_seconds > 0:
        logger.info(
            "Lookup cache %r: ttl=%ds maxsize=%d", name, ttl_seconds, max_entries
        )
        return TTLLookupCache(name, ttl=ttl_seconds, maxsize=max_entries)
    return InMemoryLookupCache(name)
