"""Recommendation cache: short-lived bundles keyed by user and 5-minute bucket."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import config

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    value: Any
    stored_at: datetime


@dataclass
class CacheStats:
    size: int
    hits: int
    misses: int
    hit_rate: float


def cache_key(category: str, user_id: str, moment: datetime, bucket_seconds: int) -> str:
    """``"{category}_{user_id}_{bucket}"`` where bucket is ``floor(epoch / bucket_seconds)``."""
    return f"{category}_{user_id}_{int(moment.timestamp() // bucket_seconds)}"


class RecommendationCache:
    """Thread-safe TTL map for computed recommendation bundles.

    Keys bucket time into *bucket_seconds* windows, so repeated requests
    within the same window reuse one bundle.  Entries older than
    *max_age_seconds* are never returned: :meth:`get` checks age on read,
    and :meth:`sweep` (or the background sweep loop) removes them.

    All public methods are thread-safe.

    Args:
        bucket_seconds: Width of a key bucket.  Defaults to 300.
        max_age_seconds: Maximum entry age.  Defaults to 3600.
        sweep_interval_seconds: How often the background thread sweeps.
    """

    def __init__(
        self,
        bucket_seconds: int = config.CACHE_BUCKET_SECONDS,
        max_age_seconds: int = config.CACHE_MAX_AGE_SECONDS,
        sweep_interval_seconds: int = config.CACHE_SWEEP_INTERVAL_SECONDS,
    ) -> None:
        self._bucket_seconds = bucket_seconds
        self._max_age_seconds = max_age_seconds
        self._sweep_interval = sweep_interval_seconds
        self._lock = threading.RLock()
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._sweep_thread: threading.Thread | None = None

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def key_for(self, category: str, user_id: str, now: datetime | None = None) -> str:
        return cache_key(category, user_id, now or _utcnow(), self._bucket_seconds)

    def put(self, key: str, value: Any, stored_at: datetime | None = None) -> None:
        """Store *value* under *key*, stamped with *stored_at* (default now)."""
        with self._lock:
            self._entries[key] = CacheEntry(value=value, stored_at=stored_at or _utcnow())

    def get(self, key: str, now: datetime | None = None) -> Any | None:
        """Return the cached value for *key*, or ``None`` on a miss or stale entry.

        Stale entries found on read are evicted immediately.
        """
        now = now or _utcnow()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._is_stale(entry, now):
                del self._entries[key]
                entry = None
            if entry is None:
                self._misses += 1
                return None
            self._hits += 1
            return entry.value

    def sweep(self, now: datetime | None = None) -> int:
        """Remove every entry older than the maximum age.

        Returns:
            Number of entries removed.
        """
        now = now or _utcnow()
        with self._lock:
            stale = [k for k, e in self._entries.items() if self._is_stale(e, now)]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.debug("Cache sweep evicted %d entries.", len(stale))
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def start_sweep_loop(self) -> None:
        """Start a background daemon thread that periodically calls :meth:`sweep`.

        Safe to call multiple times; only one sweep thread is started.
        """
        if self._sweep_thread is not None and self._sweep_thread.is_alive():
            return
        self._sweep_thread = threading.Thread(
            target=self._sweep_loop,
            name="cache-sweep",
            daemon=True,
        )
        self._sweep_thread.start()
        logger.debug("Cache sweep loop started (interval=%ds).", self._sweep_interval)

    def stats(self) -> CacheStats:
        with self._lock:
            lookups = self._hits + self._misses
            return CacheStats(
                size=len(self._entries),
                hits=self._hits,
                misses=self._misses,
                hit_rate=self._hits / lookups if lookups else 0.0,
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _is_stale(self, entry: CacheEntry, now: datetime) -> bool:
        return (now - entry.stored_at).total_seconds() > self._max_age_seconds

    def _sweep_loop(self) -> None:
        """Periodically evict stale entries. Runs in a daemon thread."""
        while True:
            time.sleep(self._sweep_interval)
            try:
                self.sweep()
            except Exception:
                logger.exception("Cache sweep failed.")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)
