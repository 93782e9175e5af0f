"""Multi-page aggregation of upstream results, filtered to one provider.

Two pass shapes are provided:

- quick_fill: a few pages fetched one after another, stopping as soon as
  enough matching products are in hand. Used to answer the first request
  against a cold cache.
- full_refresh: up to MAX_PAGES pages fetched concurrently. Used to
  repopulate a warm cache in the background.

Neither pass touches the cache; callers publish the result.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from catalog.client import CatalogClient
from catalog.config import (
    FETCH_WORKERS,
    MAX_PAGES,
    PAGE_SIZE,
    QUICK_FILL_PAGES,
    QUICK_FILL_THRESHOLD,
    TARGET_PROVIDER_ID,
)
from catalog.errors import FetchFailed, RefreshPassFailed
from catalog.logging_config import get_logger, log_catalog_event
from catalog.models import Product

__all__ = [
    "ProductAggregator",
    "filter_and_project",
    "should_replace",
]

logger = get_logger("aggregation")

RawPage = List[Dict[str, Any]]


def filter_and_project(raw_products: Iterable[Mapping[str, Any]], provider_id: int) -> List[Product]:
    """Keep only the target provider's products, projected to Product.

    Records from any other provider are dropped here, before anything
    reaches the cache.
    """
    kept: List[Product] = []
    for raw in raw_products:
        product = Product.from_raw(raw)
        if product is not None and product.provider_id == provider_id:
            kept.append(product)
    return kept


def should_replace(current_count: int, new_count: int) -> bool:
    """Publish policy: a pass may replace the cache unless it would shrink it.

    An empty cache accepts anything. Otherwise a result smaller than what
    is already cached is treated as a degraded upstream read and dropped.
    """
    if current_count == 0:
        return True
    return new_count >= current_count


class ProductAggregator:
    """Drives paginated fetches for one target provider."""

    def __init__(
        self,
        client: CatalogClient,
        provider_id: int = TARGET_PROVIDER_ID,
        page_size: int = PAGE_SIZE,
        max_pages: int = MAX_PAGES,
        fetch_workers: int = FETCH_WORKERS,
        quick_fill_pages: int = QUICK_FILL_PAGES,
        quick_fill_threshold: int = QUICK_FILL_THRESHOLD,
    ):
        if page_size < 1 or max_pages < 1 or quick_fill_pages < 1:
            raise ValueError("page_size, max_pages and quick_fill_pages must be positive")
        self.client = client
        self.provider_id = provider_id
        self.page_size = page_size
        self.max_pages = max_pages
        self.fetch_workers = max(1, fetch_workers)
        self.quick_fill_pages = quick_fill_pages
        self.quick_fill_threshold = quick_fill_threshold

    def _fetch(self, shop_id: Union[str, int], page: int) -> Tuple[int, Optional[RawPage]]:
        """Fetch one page; a failure is logged and reported as None."""
        try:
            return page, self.client.fetch_page(shop_id, page, self.page_size)
        except FetchFailed as e:
            log_catalog_event(
                "page_failed",
                {
                    "message": f"Page {page} failed for shop {shop_id}: {e}",
                    "shop_id": str(shop_id),
                    "page": page,
                    "status_code": e.status_code,
                },
                level=logging.WARNING,
            )
            return page, None

    def quick_fill(self, shop_id: Union[str, int]) -> List[Product]:
        """Sequential, early-exiting first fill of a cold cache.

        Raises:
            RefreshPassFailed: If every attempted page failed
        """
        started = time.monotonic()
        matched: List[Product] = []
        attempted = 0
        failed = 0

        for page in range(1, self.quick_fill_pages + 1):
            attempted += 1
            _, raw = self._fetch(shop_id, page)
            if raw is None:
                failed += 1
                continue
            if not raw:
                break
            matched.extend(filter_and_project(raw, self.provider_id))
            if len(matched) >= self.quick_fill_threshold:
                break

        if failed == attempted:
            log_catalog_event(
                "refresh_failed",
                {"message": f"Quick fill failed for shop {shop_id}", "shop_id": str(shop_id), "mode": "quick_fill"},
                level=logging.ERROR,
            )
            raise RefreshPassFailed(f"All {attempted} quick-fill pages failed for shop {shop_id}")

        log_catalog_event(
            "refresh_completed",
            {
                "message": f"Quick fill kept {len(matched)} products from {attempted} pages",
                "shop_id": str(shop_id),
                "mode": "quick_fill",
                "pages": attempted,
                "failed_pages": failed,
                "products": len(matched),
                "seconds": round(time.monotonic() - started, 3),
            },
        )
        return matched

    def full_refresh(self, shop_id: Union[str, int]) -> List[Product]:
        """Concurrent sweep of up to max_pages pages.

        Pages are issued in waves of fetch_workers. No further wave is issued
        once a short page shows the catalog is exhausted.

        Raises:
            RefreshPassFailed: If every page failed
        """
        started = time.monotonic()
        log_catalog_event(
            "refresh_started",
            {"message": f"Full refresh started for shop {shop_id}", "shop_id": str(shop_id), "mode": "full"},
        )

        raw_products: RawPage = []
        attempted = 0
        failed = 0
        exhausted = False
        next_page = 1

        with ThreadPoolExecutor(max_workers=self.fetch_workers, thread_name_prefix="catalog-fetch") as pool:
            while next_page <= self.max_pages and not exhausted:
                wave = range(next_page, min(next_page + self.fetch_workers, self.max_pages + 1))
                next_page = wave.stop
                results = pool.map(lambda p: self._fetch(shop_id, p), wave)

                for page, raw in sorted(results, key=lambda r: r[0]):
                    attempted += 1
                    if raw is None:
                        failed += 1
                        continue
                    if exhausted:
                        continue
                    raw_products.extend(raw)
                    if len(raw) < self.page_size:
                        exhausted = True

        if failed == attempted:
            log_catalog_event(
                "refresh_failed",
                {"message": f"Full refresh failed for shop {shop_id}", "shop_id": str(shop_id), "mode": "full"},
                level=logging.ERROR,
            )
            raise RefreshPassFailed(f"All {attempted} pages failed for shop {shop_id}")

        products = filter_and_project(raw_products, self.provider_id)
        log_catalog_event(
            "refresh_completed",
            {
                "message": f"Full refresh kept {len(products)} of {len(raw_products)} products",
                "shop_id": str(shop_id),
                "mode": "full",
                "pages": attempted,
                "failed_pages": failed,
                "raw_products": len(raw_products),
                "products": len(products),
                "seconds": round(time.monotonic() - started, 3),
            },
        )
        return products
