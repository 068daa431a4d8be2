"""
Time-to-live cache for current-condition reads.

Entries are keyed by ``(lat, lng, data_type)`` with coordinates rounded to the
grid sampler precision, and expire a fixed time after they were fetched.
Expired entries are evicted when read, and every write sweeps out all
expired entries, including keys that are never read again. A stored value
that is not a valid ``CacheEntry`` (for example when the backing store is
shared or persisted and has been tampered with) is treated as a miss and
evicted on read, but counted and logged separately from ordinary misses.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, MutableMapping, Optional, Tuple

from .grid import COORD_PRECISION

logger = logging.getLogger(__name__)

CACHE_TTL_S = 10 * 60.0

CacheKey = Tuple[float, float, str]


@dataclass(frozen=True)
class CacheEntry:
    """A cached provider payload and the clock reading when it was fetched."""

    payload: Mapping[str, Any]
    fetched_at: float


@dataclass
class CacheStats:
    """Read outcome counters."""

    hits: int = 0
    misses: int = 0
    expired: int = 0
    corrupt: int = 0


def _is_valid(entry: Any) -> bool:
    return (
        isinstance(entry, CacheEntry)
        and isinstance(entry.payload, Mapping)
        and not isinstance(entry.fetched_at, bool)
        and isinstance(entry.fetched_at, (int, float))
    )


class ReadingCache:
    """
    TTL cache for provider ``current`` blocks.

    Args:
        ttl_s: Entry lifetime in seconds
        clock: Monotonic clock returning seconds
        store: Optional backing mapping (defaults to a private dict)
    """

    def __init__(
        self,
        ttl_s: float = CACHE_TTL_S,
        clock: Callable[[], float] = time.monotonic,
        store: Optional[MutableMapping[CacheKey, Any]] = None,
    ):
        if ttl_s <= 0:
            raise ValueError(f"ttl_s must be positive, got {ttl_s!r}")
        self.ttl_s = ttl_s
        self._clock = clock
        self._store: MutableMapping[CacheKey, Any] = store if store is not None else {}
        self.stats = CacheStats()

    @staticmethod
    def make_key(lat: float, lng: float, data_type: str) -> CacheKey:
        return (round(lat, COORD_PRECISION), round(lng, COORD_PRECISION), data_type)

    def get(self, lat: float, lng: float, data_type: str) -> Optional[Mapping[str, Any]]:
        """Return the cached payload, or None on miss, expiry or corruption."""
        key = self.make_key(lat, lng, data_type)
        entry = self._store.get(key)

        if entry is None:
            self.stats.misses += 1
            logger.debug(f"Cache miss for {key}")
            return None

        if not _is_valid(entry):
            self.stats.corrupt += 1
            logger.warning(
                f"Discarding corrupt cache entry for {key}: {type(entry).__name__}"
            )
            self._store.pop(key, None)
            return None

        age = self._clock() - entry.fetched_at
        if age >= self.ttl_s:
            self.stats.expired += 1
            logger.debug(f"Cache entry for {key} expired ({age:.0f}s old)")
            self._store.pop(key, None)
            return None

        self.stats.hits += 1
        return entry.payload

    def put(
        self, lat: float, lng: float, data_type: str, payload: Mapping[str, Any]
    ) -> None:
        """Store a payload, first dropping every expired entry."""
        self._sweep()
        key = self.make_key(lat, lng, data_type)
        self._store[key] = CacheEntry(payload=dict(payload), fetched_at=self._clock())

    def _sweep(self) -> None:
        now = self._clock()
        stale = [
            key
            for key, entry in self._store.items()
            if _is_valid(entry) and now - entry.fetched_at >= self.ttl_s
        ]
        for key in stale:
            del self._store[key]
        if stale:
            logger.debug(f"Swept {len(stale)} expired cache entries")

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)

    def snapshot(self) -> Dict[str, int]:
        """Counters as a plain dict, for logging."""
        return {
            "hits": self.stats.hits,
            "misses": self.stats.misses,
            "expired": self.stats.expired,
            "corrupt": self.stats.corrupt,
        }
