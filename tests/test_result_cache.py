from conftest import FakeClock
from tradejournal.infrastructure.cache.result_cache import InMemoryResultCache, NullResultCache


class TestInMemoryResultCache:
    def test_hit_until_ttl_elapses(self):
        clock = FakeClock()
        cache = InMemoryResultCache(clock=clock)
        cache.set("k", {"v": 1}, ttl_seconds=60)

        clock.now = 60
        assert cache.get("k") == {"v": 1}

        clock.now = 60.5
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_miss(self):
        assert InMemoryResultCache().get("missing") is None

    def test_set_overwrites_and_restarts_ttl(self):
        clock = FakeClock()
        cache = InMemoryResultCache(clock=clock)
        cache.set("k", 1, 10)
        clock.now = 8
        cache.set("k", 2, 10)
        clock.now = 15
        assert cache.get("k") == 2

    def test_invalidate_by_prefix(self):
        cache = InMemoryResultCache()
        cache.set("whatif-alice-{}", 1, 100)
        cache.set("whatif-bob-{}", 2, 100)
        cache.set("portfolio-alice-{}", 3, 100)
        assert cache.invalidate("whatif-alice-") == 1
        assert cache.get("whatif-bob-{}") == 2
        assert cache.invalidate() == 2
        assert len(cache) == 0


class TestNullResultCache:
    def test_never_stores(self):
        cache = NullResultCache()
        cache.set("k", 1, 100)
        assert cache.get("k") is None
