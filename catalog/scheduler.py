"""Per-request refresh decisions for the product cache.

Each incoming request calls RefreshScheduler.ensure() before reading:

- fresh cache: served as is
- cold cache: a quick fill runs inline, then a full refresh is queued
- stale cache (or a forced refresh): served as is while a full refresh
  runs in the background, unless one is already running

Only the first request against a cold cache waits on the upstream API.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Callable, Dict, Union

from catalog.aggregation import ProductAggregator
from catalog.cache import ProductCache
from catalog.config import CACHE_MAX_AGE, REFRESH_WORKERS
from catalog.errors import RefreshPassFailed
from catalog.logging_config import get_logger
from catalog.models import CacheSnapshot

__all__ = ["RefreshScheduler", "RefreshOutcome"]

logger = get_logger("scheduler")


@dataclass(frozen=True)
class RefreshOutcome:
    """What a request should read, and whether it was fresh."""

    snapshot: CacheSnapshot
    served_fresh: bool


class RefreshScheduler:
    """Decides, per request, whether to serve, fill, or refresh in background."""

    def __init__(
        self,
        aggregator: ProductAggregator,
        max_age: float = CACHE_MAX_AGE,
        workers: int = REFRESH_WORKERS,
        clock: Callable[[], float] = time.time,
    ):
        self.aggregator = aggregator
        self.max_age = max_age
        self._clock = clock
        self._executor = ThreadPoolExecutor(max_workers=max(1, workers), thread_name_prefix="catalog-refresh")
        self._caches: Dict[str, ProductCache] = {}
        self._caches_lock = threading.Lock()

    def get_cache(self, shop_id: Union[str, int]) -> ProductCache:
        key = str(shop_id)
        with self._caches_lock:
            cache = self._caches.get(key)
            if cache is None:
                cache = ProductCache(name=key, clock=self._clock)
                self._caches[key] = cache
            return cache

    def ensure(self, shop_id: Union[str, int], force: bool = False) -> RefreshOutcome:
        """Run the refresh decision for one request.

        Raises:
            RefreshPassFailed: Only when the cache is cold and the quick fill
                produced nothing usable
        """
        cache = self.get_cache(shop_id)
        snap = cache.snapshot()

        if snap.is_empty:
            return self._cold_fill(shop_id, cache)

        if not force and cache.is_fresh(self.max_age):
            return RefreshOutcome(snapshot=snap, served_fresh=True)

        if cache.begin_refresh():
            self._submit_full_refresh(shop_id, cache)
            snap = replace(snap, refreshing=True)
        else:
            logger.debug(f"Refresh already running for shop {shop_id}, serving stale cache")
        return RefreshOutcome(snapshot=snap, served_fresh=False)

    def _cold_fill(self, shop_id: Union[str, int], cache: ProductCache) -> RefreshOutcome:
        if not cache.begin_refresh():
            # Another request is filling this cache; do not wait on it.
            return RefreshOutcome(snapshot=cache.snapshot(), served_fresh=False)

        try:
            products = self.aggregator.quick_fill(shop_id)
            cache.publish(products, self._clock())
        finally:
            cache.end_refresh()

        claimed = cache.begin_refresh()
        served = cache.snapshot()
        if claimed:
            self._submit_full_refresh(shop_id, cache)
        return RefreshOutcome(snapshot=served, served_fresh=True)

    def _submit_full_refresh(self, shop_id: Union[str, int], cache: ProductCache) -> None:
        """Queue a background full refresh. The gate must already be claimed."""
        try:
            self._executor.submit(self._run_full_refresh, shop_id, cache)
        except RuntimeError:
            # Executor already shut down
            cache.end_refresh()
            logger.warning(f"Refresh pool is shut down; skipping refresh for shop {shop_id}")

    def _run_full_refresh(self, shop_id: Union[str, int], cache: ProductCache) -> None:
        try:
            products = self.aggregator.full_refresh(shop_id)
            cache.publish(products, self._clock())
        except RefreshPassFailed as e:
            logger.warning(f"Background refresh failed, keeping current cache: {e}")
        except Exception:
            logger.exception(f"Unexpected error in background refresh for shop {shop_id}")
        finally:
            cache.end_refresh()

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting refreshes; with wait=True, let running ones finish."""
        self._executor.shutdown(wait=wait)
