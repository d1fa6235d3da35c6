"""
Bounded TTL cache for expensive fused computations.

Entries expire `ttl` seconds after they were stored. When the cache is
full, the entry with the oldest store time is evicted; this approximates
LRU by insertion recency only, not by access recency.

The whole cache is one critical section guarded by a single lock.
"""
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Optional, TypeVar

from screenfuse.core.errors import InvalidCacheKey
from screenfuse.core.logging import get_logger

logger = get_logger("cache.score_cache")

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 24 * 60 * 60
DEFAULT_CAPACITY = 1000


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A cached value and the time it was stored."""
    value: T
    stored_at: float


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of cache size and hit accounting."""
    size: int
    hits: int
    requests: int
    
    @property
    def hit_rate(self) -> float:
        return self.hits / self.requests if self.requests > 0 else 0.0
    
    def to_dict(self) -> Dict[str, float]:
        return {
            "size": self.size,
            "hits": self.hits,
            "requests": self.requests,
            "hit_rate": round(self.hit_rate, 4),
        }


class ScoreCache(Generic[T]):
    """
    Generic TTL + capacity-bounded cache.
    
    Args:
        ttl: Seconds after which an entry is stale.
        capacity: Maximum number of entries held.
        clock: Monotonic time source (injectable for tests).
    """
    
    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        capacity: int = DEFAULT_CAPACITY,
        clock: Callable[[], float] = time.monotonic
    ):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.ttl = ttl
        self.capacity = capacity
        self._clock = clock
        self._entries: Dict[str, CacheEntry[T]] = {}
        self._hits = 0
        self._requests = 0
        self._lock = threading.RLock()
    
    def get(self, key: str) -> Optional[T]:
        """Return the cached value, or None on a miss or expired entry."""
        self._check_key(key)
        with self._lock:
            self._requests += 1
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.stored_at >= self.ttl:
                del self._entries[key]
                return None
            self._hits += 1
            return entry.value
    
    def put(self, key: str, value: T) -> None:
        """Store a value, evicting the oldest entry if at capacity."""
        self._check_key(key)
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.capacity:
                self._evict_oldest()
            self._entries[key] = CacheEntry(value=value, stored_at=self._clock())
    
    def get_or_compute(self, key: str, compute: Callable[[], T]) -> T:
        """
        Return the cached value or compute, store, and return it.
        
        The lock is held across lookup and store so concurrent callers for
        the same key compute once.
        """
        with self._lock:
            cached = self.get(key)
            if cached is not None:
                return cached
            value = compute()
            self.put(key, value)
            return value
    
    def clear_expired(self) -> int:
        """Drop every stale entry. Returns the number removed."""
        with self._lock:
            now = self._clock()
            stale = [k for k, e in self._entries.items() if now - e.stored_at >= self.ttl]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.debug(f"Cleared {len(stale)} expired cache entries")
        return len(stale)
    
    def clear(self) -> None:
        """Remove all entries and reset hit accounting."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._requests = 0
    
    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(size=len(self._entries), hits=self._hits, requests=self._requests)
    
    @property
    def hit_rate(self) -> float:
        return self.stats().hit_rate
    
    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
    
    def __contains__(self, key: str) -> bool:
        # Presence check only; does not touch hit accounting or expiry
        with self._lock:
            return key in self._entries
    
    def _evict_oldest(self) -> None:
        oldest_key = min(self._entries, key=lambda k: self._entries[k].stored_at)
        del self._entries[oldest_key]
        logger.debug(f"Evicted oldest cache entry: {oldest_key}")
    
    @staticmethod
    def _check_key(key: str) -> None:
        if not isinstance(key, str) or not key.strip():
            raise InvalidCacheKey("Cache keys must be non-empty strings")
