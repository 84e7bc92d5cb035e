"""Tests for wellness.cache."""

from datetime import datetime, timedelta, timezone

from wellness.cache import RecommendationCache, cache_key

TS = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class TestCacheKey:
    def test_format(self) -> None:
        expected = int(TS.timestamp()) // 300
        assert cache_key("contextual", "u1", TS, 300) == f"contextual_u1_{expected}"

    def test_same_bucket_within_five_minutes(self) -> None:
        cache = RecommendationCache(bucket_seconds=300)
        assert cache.key_for("c", "u1", TS) == cache.key_for("c", "u1", TS + timedelta(minutes=4))

    def test_next_bucket(self) -> None:
        cache = RecommendationCache(bucket_seconds=300)
        assert cache.key_for("c", "u1", TS) != cache.key_for("c", "u1", TS + timedelta(minutes=5))


class TestSweep:
    def test_old_entry_removed_recent_entry_survives(self) -> None:
        cache = RecommendationCache(max_age_seconds=3600)
        cache.put("old", "bundle-a", stored_at=TS - timedelta(hours=2))
        cache.put("fresh", "bundle-b", stored_at=TS - timedelta(minutes=10))

        assert cache.sweep(now=TS) == 1
        assert "old" not in cache
        assert "fresh" in cache
        assert len(cache) == 1

    def test_nothing_to_sweep(self) -> None:
        cache = RecommendationCache()
        cache.put("k", 1, stored_at=TS)
        assert cache.sweep(now=TS) == 0


class TestGet:
    def test_hit(self) -> None:
        cache = RecommendationCache()
        cache.put("k", {"v": 1}, stored_at=TS)
        assert cache.get("k", now=TS + timedelta(minutes=1)) == {"v": 1}

    def test_miss(self) -> None:
        assert RecommendationCache().get("missing", now=TS) is None

    def test_stale_entry_never_served(self) -> None:
        cache = RecommendationCache(max_age_seconds=3600)
        cache.put("k", "stale", stored_at=TS - timedelta(hours=1, seconds=1))
        assert cache.get("k", now=TS) is None
        assert "k" not in cache

    def test_stats(self) -> None:
        cache = RecommendationCache()
        cache.put("k", 1, stored_at=TS)
        cache.get("k", now=TS)
        cache.get("other", now=TS)
        stats = cache.stats()
        assert stats.size == 1
        assert stats.hits == 1
        assert stats.misses == 1
        assert stats.hit_rate == 0.5

    def test_clear(self) -> None:
        cache = RecommendationCache()
        cache.put("k", 1, stored_at=TS)
        cache.clear()
        assert len(cache) == 0


class TestSweepLoop:
    def test_starts_single_daemon_thread(self) -> None:
        cache = RecommendationCache(sweep_interval_seconds=3600)
        cache.start_sweep_loop()
        first = cache._sweep_thread
        cache.start_sweep_loop()
        assert cache._sweep_thread is first
        assert first.daemon
        assert first.name == "cache-sweep"
