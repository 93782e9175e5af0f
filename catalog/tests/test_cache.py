"""Test ProductCache freshness, refresh gate and publish policy."""

import threading

from catalog.cache import ProductCache
from catalog.models import Product


def _products(n: int, prefix: str = "p"):
    return [Product(id=f"{prefix}{i}", title=f"Item {i}", provider_id=39) for i in range(n)]


class TestFreshness:

    def test_empty_cache_is_never_fresh(self, clock):
        cache = ProductCache(clock=clock)
        assert not cache.is_fresh(300)

    def test_fresh_within_window(self, clock):
        cache = ProductCache(clock=clock)
        cache.publish(_products(3))
        clock.advance(299)
        assert cache.is_fresh(300)

    def test_stale_at_window(self, clock):
        cache = ProductCache(clock=clock)
        cache.publish(_products(3))
        clock.advance(300)
        assert not cache.is_fresh(300)

    def test_explicit_now(self, clock):
        cache = ProductCache(clock=clock)
        cache.publish(_products(1), fetched_at=1000.0)
        assert cache.is_fresh(60, now=1059.0)
        assert not cache.is_fresh(60, now=1060.0)


class TestRefreshGate:

    def test_claim_and_release(self):
        cache = ProductCache()
        assert cache.begin_refresh() is True
        assert cache.snapshot().refreshing is True
        assert cache.begin_refresh() is False
        cache.end_refresh()
        assert cache.snapshot().refreshing is False
        assert cache.begin_refresh() is True

    def test_only_one_concurrent_claim(self):
        cache = ProductCache()
        barrier = threading.Barrier(16)
        results = []
        lock = threading.Lock()

        def claim():
            barrier.wait()
            won = cache.begin_refresh()
            with lock:
                results.append(won)

        threads = [threading.Thread(target=claim) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1

    def test_snapshot_does_not_block_during_refresh(self):
        cache = ProductCache()
        cache.publish(_products(2))
        cache.begin_refresh()
        assert len(cache.snapshot().products) == 2


class TestPublish:

    def test_first_publish_always_accepted(self, clock):
        cache = ProductCache(clock=clock)
        assert cache.publish([]) is True
        assert cache.publish(_products(1)) is True
        assert cache.snapshot().fetched_at == clock.now

    def test_non_shrinking(self, clock):
        cache = ProductCache(clock=clock)
        cache.publish(_products(10, "old"))
        old = cache.snapshot()
        clock.advance(60)

        assert cache.publish(_products(4, "new")) is False

        assert cache.snapshot() is old
        assert cache.snapshot().fetched_at == old.fetched_at

    def test_equal_or_larger_replaces(self, clock):
        cache = ProductCache(clock=clock)
        cache.publish(_products(10, "old"))
        clock.advance(60)

        assert cache.publish(_products(10, "new")) is True
        assert cache.snapshot().products[0].id == "new0"
        assert cache.snapshot().fetched_at == clock.now

    def test_publish_swaps_whole_snapshot(self):
        cache = ProductCache()
        cache.publish(_products(2))
        before = cache.snapshot()
        cache.publish(_products(3))
        after = cache.snapshot()

        assert before is not after
        assert len(before.products) == 2
        assert len(after.products) == 3

    def test_publish_keeps_refresh_flag(self):
        cache = ProductCache()
        cache.begin_refresh()
        cache.publish(_products(2))
        assert cache.snapshot().refreshing is True
