"""
CacheManager - Region-partitioned async cache with TTL, LRU eviction and
write invalidation.

Features:
- One independently bounded region per read operation
- Absolute TTL per entry, checked on every read
- LRU eviction once a region reaches max_size
- get_or_compute() with a per-call bypass flag that still refreshes the cache
- Concurrent misses for the same key share one computation
- invalidate_all() clears every region in a single locked step; results of
  computations started before the invalidation are discarded
"""

import asyncio
from collections import OrderedDict
from collections.abc import Sized
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, TypeVar

from loguru import logger

from employee_api.services.deduplicator import RequestDeduplicator

T = TypeVar("T")


class CacheRegion(str, Enum):
    """Cache regions, one per read operation."""

    EMPLOYEES = "employees"
    SEARCH = "employee_search"
    BY_ID = "employee_by_id"
    HIGHEST_SALARY = "highest_salary"
    TOP_TEN = "top_ten_names"


@dataclass
class CacheEntry(Generic[T]):
    """A single cache entry with metadata."""

    data: T
    timestamp: datetime
    ttl: timedelta
    last_access: datetime
    access_count: int = 0

    def is_expired(self, now: datetime) -> bool:
        """Check if entry is past its TTL."""
        return now >= self.timestamp + self.ttl


@dataclass
class CacheResult(Generic[T]):
    """Result from cache lookup."""

    data: T
    region: str
    access_count: int


def is_cacheable(value: Any) -> bool:
    """None and empty collections are never stored."""
    if value is None:
        return False
    if isinstance(value, Sized) and not isinstance(value, str) and len(value) == 0:
        return False
    return True


class CacheManager:
    """
    Async cache manager with named regions.

    Usage:
        cache = CacheManager(max_size=1000, default_ttl=timedelta(seconds=60))

        employee = await cache.get_or_compute(
            CacheRegion.BY_ID,
            employee_id,
            bypass=False,
            compute=lambda: fetch_employee(employee_id),
        )

        # After any write
        await cache.invalidate_all()
    """

    def __init__(
        self,
        max_size: int = 1000,
        default_ttl: timedelta = timedelta(seconds=60),
        regions: tuple[str, ...] = tuple(r.value for r in CacheRegion),
        clock: Callable[[], datetime] = datetime.now,
        debug: bool = False,
    ):
        self._regions: dict[str, OrderedDict[str, CacheEntry[Any]]] = {
            region: OrderedDict() for region in regions
        }
        self._max_size = max_size
        self._default_ttl = default_ttl
        self._clock = clock
        self._debug = debug
        self._lock = asyncio.Lock()
        self._generation = 0
        self._deduplicator = RequestDeduplicator(debug=debug)
        self._stats = CacheStats()

    @staticmethod
    def canonical_key(key: Any) -> str:
        """Canonical string form of a cache key. None is the singleton key."""
        if key is None:
            return ""
        return str(key)

    @property
    def generation(self) -> int:
        """Incremented on every invalidate_all()."""
        return self._generation

    def _region(self, region: str) -> OrderedDict[str, CacheEntry[Any]]:
        name = _region_name(region)
        if name not in self._regions:
            raise ValueError(f"Unknown cache region: {name}")
        return self._regions[name]

    async def get(self, region: str, key: Any) -> CacheResult[Any] | None:
        """
        Get a live value from a region.

        Returns CacheResult if found and not expired, None otherwise.
        """
        key = self.canonical_key(key)
        name = _region_name(region)

        async with self._lock:
            entries = self._region(region)
            entry = entries.get(key)

            if entry is None:
                self._stats.misses += 1
                self._log(f"MISS: {name}:{key[:50]}")
                return None

            now = self._clock()
            if entry.is_expired(now):
                del entries[key]
                self._stats.misses += 1
                self._stats.expirations += 1
                self._log(f"EXPIRED: {name}:{key[:50]}")
                return None

            entry.access_count += 1
            entry.last_access = now
            entries.move_to_end(key)
            self._stats.hits += 1
            self._log(f"HIT: {name}:{key[:50]}")

            return CacheResult(
                data=entry.data, region=name, access_count=entry.access_count
            )

    async def set(
        self,
        region: str,
        key: Any,
        data: Any,
        ttl: timedelta | None = None,
        generation: int | None = None,
    ) -> bool:
        """
        Store a value in a region.

        Args:
            region: Target region
            key: Cache key (canonicalized)
            data: Value to cache; None and empty collections are skipped
            ttl: Time to live (uses default if not specified)
            generation: Generation observed when the value was computed; the
                write is dropped if an invalidation happened since

        Returns:
            True if the value was stored
        """
        key = self.canonical_key(key)
        name = _region_name(region)

        if not is_cacheable(data):
            self._log(f"SKIP EMPTY: {name}:{key[:50]}")
            return False

        ttl = ttl or self._default_ttl

        async with self._lock:
            entries = self._region(region)

            if generation is not None and generation != self._generation:
                self._log(f"SKIP STALE: {name}:{key[:50]} (gen {generation})")
                return False

            now = self._clock()
            if key in entries:
                del entries[key]
            elif len(entries) >= self._max_size:
                self._evict_lru(name, entries)

            entries[key] = CacheEntry(
                data=data, timestamp=now, ttl=ttl, last_access=now
            )
            self._log(f"SET: {name}:{key[:50]} (TTL: {ttl.total_seconds()}s)")
            return True

    async def get_or_compute(
        self,
        region: str,
        key: Any,
        bypass: bool,
        compute: Callable[[], Awaitable[T]],
    ) -> T:
        """
        Return the cached value for region+key, computing it on a miss.

        Args:
            region: Cache region for this operation
            key: Operation argument (canonicalized)
            bypass: Skip the lookup and always compute; the fresh result is
                still stored
            compute: Coroutine factory producing the value

        Returns:
            The cached or freshly computed value
        """
        key = self.canonical_key(key)
        name = _region_name(region)

        if bypass:
            self._stats.bypasses += 1
            self._log(f"BYPASS: {name}:{key[:50]}")
            generation = self._generation
            value = await compute()
            await self.set(name, key, value, generation=generation)
            return value

        cached = await self.get(name, key)
        if cached is not None:
            return cached.data

        generation = self._generation

        async def compute_and_store() -> T:
            value = await compute()
            await self.set(name, key, value, generation=generation)
            return value

        return await self._deduplicator.dedupe(
            (generation, name, key), compute_and_store
        )

    async def invalidate_all(self) -> int:
        """
        Clear every region in one step.

        Returns:
            Number of entries removed
        """
        async with self._lock:
            self._generation += 1
            count = sum(len(entries) for entries in self._regions.values())
            for entries in self._regions.values():
                entries.clear()
            self._stats.invalidations += 1

        logger.info(
            f"Cache invalidated: {count} entries removed (generation {self._generation})"
        )
        return count

    async def close(self) -> None:
        """Cancel in-flight computations."""
        await self._deduplicator.cancel_all()

    def _evict_lru(self, name: str, entries: OrderedDict[str, CacheEntry[Any]]) -> None:
        """Evict the least recently used entry of a region."""
        if not entries:
            return
        evicted_key, _ = entries.popitem(last=False)
        self._stats.evictions += 1
        self._log(f"EVICT: {name}:{evicted_key[:50]}")

    def size(self, region: str | None = None) -> int:
        """Number of entries in one region, or across all regions."""
        if region is not None:
            return len(self._region(region))
        return sum(len(entries) for entries in self._regions.values())

    def get_stats(self) -> "CacheStats":
        """Get cache statistics."""
        self._stats.size = self.size()
        self._stats.max_size = self._max_size
        self._stats.regions = {
            name: len(entries) for name, entries in self._regions.items()
        }
        self._stats.in_flight = self._deduplicator.get_in_flight_count()
        return self._stats

    def _log(self, message: str) -> None:
        """Log debug message if debug mode is enabled."""
        if self._debug:
            logger.debug(f"[CacheManager] {message}")


def _region_name(region: str) -> str:
    return region.value if isinstance(region, CacheRegion) else region


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    bypasses: int = 0
    evictions: int = 0
    expirations: int = 0
    invalidations: int = 0
    size: int = 0
    max_size: int = 0
    in_flight: int = 0
    regions: dict[str, int] | None = None

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "bypasses": self.bypasses,
            "evictions": self.evictions,
            "expirations": self.expirations,
            "invalidations": self.invalidations,
            "size": self.size,
            "max_size": self.max_size,
            "in_flight": self.in_flight,
            "regions": self.regions or {},
            "hit_rate": f"{self.hit_rate:.2%}",
        }
