"""
Request cache with time-based expiry.

Entries are keyed by endpoint plus the parameter set sorted by name, so two
requests that differ only in parameter order share an entry. An entry is valid
while ``now - timestamp < ttl``; expired entries are treated as absent. There is
no capacity bound, and the cache lives as long as the process.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def build_cache_key(endpoint: str, params: Mapping[str, Any]) -> str:
    """
    Build a canonical cache key for an endpoint and its query parameters.

    Example:
        >>> build_cache_key("/x", {"b": 2, "a": 1})
        '/x|{"a":1,"b":2}'
    """
    ordered = {key: params[key] for key in sorted(params)}
    return f"{endpoint}|{json.dumps(ordered, separators=(',', ':'), default=str)}"


@dataclass(frozen=True)
class CacheEntry:
    timestamp: float
    payload: Any


class TTLCache:
    """
    Process-scoped payload cache.

    Args:
        ttl_seconds: Lifetime of an entry
        clock: Monotonic time source, injectable for tests
    """

    def __init__(self, ttl_seconds: float, clock: Clock = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self._lookup(key) is not None

    def _lookup(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.timestamp < self.ttl_seconds:
            return entry
        return None

    def get(self, key: str, default: Any = None) -> Any:
        """Return the live payload for ``key`` or ``default``."""
        entry = self._lookup(key)
        return entry.payload if entry is not None else default

    def set(self, key: str, payload: Any) -> None:
        self._entries[key] = CacheEntry(timestamp=self._clock(), payload=payload)

    def clear(self) -> None:
        self._entries.clear()
        self._locks.clear()

    async def get_or_fetch(self, key: str, fetch: Callable[[], Awaitable[Any]]) -> Any:
        """
        Return a live entry, or run ``fetch`` once and store its result.

        Lookup, fetch and store run under a per-key lock so concurrent callers
        with the same key share one upstream request. Exceptions from ``fetch``
        propagate and nothing is stored.
        """
        entry = self._lookup(key)
        if entry is not None:
            logger.debug(f"Cache hit: {key}")
            return entry.payload

        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            entry = self._lookup(key)
            if entry is not None:
                logger.debug(f"Cache hit after wait: {key}")
                return entry.payload

            payload = await fetch()
            self.set(key, payload)
            return payload
