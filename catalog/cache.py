"""Thread-safe holder of one shop's product snapshot."""

import threading
import time
from dataclasses import replace
from typing import Callable, Iterable, Optional

from catalog.aggregation import should_replace
from catalog.logging_config import log_catalog_event
from catalog.models import CacheSnapshot, Product

__all__ = ["ProductCache"]


class ProductCache:
    """Holds the current CacheSnapshot and the refresh gate.

    Snapshots are immutable; every change swaps in a new one under the lock,
    so readers never see a half-written product set and never wait on a
    refresh in progress.
    """

    def __init__(self, name: str = "default", clock: Callable[[], float] = time.time):
        self.name = name
        self._clock = clock
        self._lock = threading.Lock()
        self._snapshot = CacheSnapshot()

    def snapshot(self) -> CacheSnapshot:
        with self._lock:
            return self._snapshot

    def is_fresh(self, max_age: float, now: Optional[float] = None) -> bool:
        """True if the cache holds products fetched less than max_age seconds ago."""
        snap = self.snapshot()
        if snap.is_empty:
            return False
        if now is None:
            now = self._clock()
        return snap.age(now) < max_age

    def begin_refresh(self) -> bool:
        """Claim the refresh gate. Returns False at once if it is already held."""
        with self._lock:
            if self._snapshot.refreshing:
                return False
            self._snapshot = replace(self._snapshot, refreshing=True)
            return True

    def end_refresh(self) -> None:
        with self._lock:
            self._snapshot = replace(self._snapshot, refreshing=False)

    def publish(self, products: Iterable[Product], fetched_at: Optional[float] = None) -> bool:
        """Swap in a new product set if the publish policy accepts it.

        Returns:
            True if the snapshot was replaced
        """
        new_products = tuple(products)
        if fetched_at is None:
            fetched_at = self._clock()

        with self._lock:
            current = self._snapshot
            accepted = should_replace(len(current.products), len(new_products))
            if accepted:
                self._snapshot = CacheSnapshot(
                    products=new_products,
                    fetched_at=fetched_at,
                    refreshing=current.refreshing,
                )

        log_catalog_event(
            "cache_published" if accepted else "cache_kept",
            {
                "message": (
                    f"Cache '{self.name}' now holds {len(new_products)} products"
                    if accepted
                    else f"Cache '{self.name}' kept {len(current.products)} products over a smaller result of {len(new_products)}"
                ),
                "cache": self.name,
                "previous": len(current.products),
                "offered": len(new_products),
            },
        )
        return accepted
