"""In-process cache for search results.

Entries are keyed by the normalized ``(query, location, category)`` triple and
expire after a TTL. When the table is full, the least-accessed entries are
evicted first (oldest touch breaks ties), so queries that stay popular
survive a burst of one-off searches.
"""

import asyncio
import math
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from pydantic import TypeAdapter

from store_locator.utils.logging import get_logger

DEFAULT_TTL_SECONDS = 24 * 60 * 60
DEFAULT_MAX_ENTRIES = 1000
EVICTION_FRACTION = 0.2
ENTRY_OVERHEAD_BYTES = 100

CacheKey = tuple[str, str, str]

_payload_adapter = TypeAdapter(Any)


def _normalize(value: Optional[str]) -> str:
    return (value or "").lower().strip()


def make_cache_key(
    query: Optional[str], location: Optional[str], category: Optional[str] = None
) -> CacheKey:
    """Lower-cased, trimmed key; a missing category is the empty string."""
    return (_normalize(query), _normalize(location), _normalize(category))


@dataclass
class CacheEntry:
    payload: Any
    created_at: float
    expires_at: float
    access_count: int = 1

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class ResultCache:
    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.time,
    ):
        if default_ttl <= 0:
            raise ValueError("default_ttl must be positive")
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._lock = threading.RLock()

    def get(self, query: str, location: str, category: Optional[str] = None) -> Any:
        """Cached payload, or None on a miss.

        A hit bumps the entry's access count and refreshes its timestamp;
        an expired entry is dropped on the spot and counted as a miss.
        """
        key = make_cache_key(query, location, category)
        with self._lock:
            entry = self._entries.get(key)
            now = self._clock()
            if entry is None:
                self._misses += 1
                return None
            if entry.is_expired(now):
                self._entries.pop(key, None)
                self._misses += 1
                return None

            entry.access_count += 1
            entry.created_at = now
            self._hits += 1
            return entry.payload

    def set(
        self,
        query: str,
        location: str,
        payload: Any,
        category: Optional[str] = None,
        ttl: Optional[float] = None,
    ) -> None:
        key = make_cache_key(query, location, category)
        ttl = self.default_ttl if ttl is None else ttl
        if ttl <= 0:
            raise ValueError("ttl must be positive")

        with self._lock:
            now = self._clock()
            if key not in self._entries and len(self._entries) >= self.max_entries:
                self._purge_expired(now)
                if len(self._entries) >= self.max_entries:
                    self._evict_least_used()

            self._entries[key] = CacheEntry(
                payload=payload, created_at=now, expires_at=now + ttl
            )

    def has(self, query: str, location: str, category: Optional[str] = None) -> bool:
        key = make_cache_key(query, location, category)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if entry.is_expired(self._clock()):
                self._entries.pop(key, None)
                return False
            return True

    def delete(self, query: str, location: str, category: Optional[str] = None) -> bool:
        key = make_cache_key(query, location, category)
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def cleanup(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        with self._lock:
            return self._purge_expired(self._clock())

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def is_empty(self) -> bool:
        return self.size() == 0

    def get_stats(self) -> dict:
        with self._lock:
            total = self._hits + self._misses
            hit_rate = (self._hits / total) * 100 if total else 0.0
            return {
                "total_entries": len(self._entries),
                "total_hits": self._hits,
                "total_misses": self._misses,
                "hit_rate": round(hit_rate, 2),
                "memory_usage": self._estimate_memory_usage(),
            }

    def get_popular_searches(self, limit: int = 10) -> list[dict]:
        with self._lock:
            now = self._clock()
            live = [
                (key, entry)
                for key, entry in self._entries.items()
                if not entry.is_expired(now)
            ]
        live.sort(key=lambda item: item[1].access_count, reverse=True)
        return [
            {
                "query": query,
                "location": location,
                "category": category or None,
                "count": entry.access_count,
            }
            for (query, location, category), entry in live[: max(limit, 0)]
        ]

    def _purge_expired(self, now: float) -> int:
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            self._entries.pop(key, None)
        return len(expired)

    def _evict_least_used(self) -> None:
        ranked = sorted(
            self._entries.items(),
            key=lambda item: (item[1].access_count, item[1].created_at),
        )
        to_remove = math.ceil(len(ranked) * EVICTION_FRACTION)
        for key, _ in ranked[:to_remove]:
            self._entries.pop(key, None)
        get_logger().debug(
            f"Result cache full ({len(ranked)} entries): evicted {to_remove}"
        )

    def _estimate_memory_usage(self) -> int:
        total = 0
        for key, entry in self._entries.items():
            total += sum(len(part) for part in key) * 2
            total += len(_payload_adapter.dump_json(entry.payload)) * 2
            total += ENTRY_OVERHEAD_BYTES
        return total


async def run_periodic_cleanup(cache: ResultCache, interval_seconds: float) -> None:
    """Sweep expired entries every ``interval_seconds`` until cancelled."""
    logger = get_logger()
    while True:
        await asyncio.sleep(interval_seconds)
        removed = cache.cleanup()
        if removed:
            logger.info(f"Result cache cleanup removed {removed} expired entries")
