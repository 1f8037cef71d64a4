"""Aggregation Cache

In-memory cache of serialised aggregation results, so that repeated tool
calls over the same snapshot do not re-scan every record.

Design:
- LRU cache with configurable max size
- Thread-safe for concurrent access
- Keyed by snapshot fingerprint + tool name + normalised parameters, so a
  reload with different records can never serve a stale result
- Tracks cache hit/miss rates for monitoring
- Size configurable via ACTIVITY_AUDIT_CACHE_SIZE (0 disables caching)
"""

import hashlib
import json
import os
import threading
from collections import OrderedDict
from typing import Any, Callable

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_CACHE_SIZE = 256


class AggregationCache:
    """LRU cache for aggregation results.

    Values are the JSON-ready dictionaries returned by tools. Aggregations
    are pure functions of (records, parameters, reference hour), so a hit
    is indistinguishable from recomputation.
    """

    def __init__(self, max_size: int = DEFAULT_CACHE_SIZE):
        """Initialize aggregation cache.

        Args:
            max_size: Maximum number of cached results (0 disables caching)
        """
        if max_size < 0:
            raise ValueError(f"max_size cannot be negative, got {max_size}")
        self._cache: OrderedDict[str, Any] = OrderedDict()
        self._lock = threading.Lock()
        self.max_size = max_size

        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @property
    def enabled(self) -> bool:
        return self.max_size > 0

    def get(self, fingerprint: str, tool: str, params: dict[str, Any]) -> Any | None:
        """Get a cached result.

        Args:
            fingerprint: Content hash of the snapshot the result was computed from
            tool: Tool name
            params: Normalised tool parameters

        Returns:
            Cached result or None if not found
        """
        if not self.enabled:
            return None

        cache_key = self._make_key(fingerprint, tool, params)
        with self._lock:
            if cache_key not in self._cache:
                self._misses += 1
                logger.debug("cache_miss", tool=tool, query_hash=cache_key[:16])
                return None

            # Move to end (LRU)
            self._cache.move_to_end(cache_key)
            self._hits += 1
            logger.debug(
                "cache_hit",
                tool=tool,
                query_hash=cache_key[:16],
                hit_rate=self._hit_rate(),
            )
            return self._cache[cache_key]

    def set(
        self, fingerprint: str, tool: str, params: dict[str, Any], result: Any
    ) -> None:
        """Store a result, evicting the least recently used entry when full."""
        if not self.enabled:
            return

        cache_key = self._make_key(fingerprint, tool, params)
        with self._lock:
            self._cache[cache_key] = result
            self._cache.move_to_end(cache_key)

            if len(self._cache) > self.max_size:
                oldest_key = next(iter(self._cache))
                del self._cache[oldest_key]
                self._evictions += 1
                logger.debug("cache_eviction", total_evictions=self._evictions)

            logger.debug(
                "cache_set",
                tool=tool,
                query_hash=cache_key[:16],
                cache_size=len(self._cache),
            )

    def get_or_compute(
        self,
        fingerprint: str,
        tool: str,
        params: dict[str, Any],
        compute: Callable[[], Any],
    ) -> Any:
        """Return the cached result or compute, store and return it."""
        cached = self.get(fingerprint, tool, params)
        if cached is not None:
            return cached
        result = compute()
        self.set(fingerprint, tool, params, result)
        return result

    def clear(self) -> None:
        """Clear all cache entries."""
        with self._lock:
            entries_cleared = len(self._cache)
            self._cache.clear()
            logger.info("cache_cleared", entries_cleared=entries_cleared)

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dict with hits, misses, hit_rate, size, max_size, evictions
        """
        with self._lock:
            return {
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": self._hit_rate(),
                "size": len(self._cache),
                "max_size": self.max_size,
                "evictions": self._evictions,
            }

    def _hit_rate(self) -> float:
        total = self._hits + self._misses
        return self._hits / total if total > 0 else 0.0

    def _make_key(self, fingerprint: str, tool: str, params: dict[str, Any]) -> str:
        """Create a SHA-256 cache key.

        Parameters are serialised with sorted keys so that argument order
        does not matter; dates and datetimes are rendered with ``str``.
        """
        key_input = json.dumps(
            [fingerprint, tool, params], sort_keys=True, default=str
        )
        return hashlib.sha256(key_input.encode()).hexdigest()


# Global cache instance (singleton) with thread-safe initialization
_global_cache: AggregationCache | None = None
_cache_lock = threading.Lock()


def get_aggregation_cache() -> AggregationCache:
    """Get global aggregation cache instance with thread-safe initialization.

    Uses double-checked locking pattern to ensure thread-safe singleton initialization.

    Returns:
        Global AggregationCache singleton
    """
    global _global_cache

    if _global_cache is None:
        with _cache_lock:
            if _global_cache is None:
                max_size = int(
                    os.getenv("ACTIVITY_AUDIT_CACHE_SIZE", str(DEFAULT_CACHE_SIZE))
                )
                _global_cache = AggregationCache(max_size=max_size)
                logger.info("aggregation_cache_initialized", max_size=max_size)

    return _global_cache
