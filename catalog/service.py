"""Catalog service: the object request handlers talk to.

Constructed once at process start and handed to the web app, so tests can
build a fresh instance around a stub client.
"""

import time
from typing import Any, Callable, Dict, List, Optional, Union

from catalog.aggregation import ProductAggregator
from catalog.client import CatalogClient
from catalog.config import (
    CACHE_MAX_AGE,
    FETCH_WORKERS,
    MAX_PAGES,
    PAGE_SIZE,
    QUICK_FILL_PAGES,
    QUICK_FILL_THRESHOLD,
    REFRESH_WORKERS,
    TARGET_PROVIDER_ID,
)
from catalog.errors import ConfigurationMissing
from catalog.query import ALL_CATEGORY, build_envelope, filter_products, get_categories, paginate
from catalog.scheduler import RefreshScheduler

__all__ = ["CatalogService"]


class CatalogService:
    """Provider-filtered product listings backed by an in-process cache."""

    def __init__(
        self,
        client: Optional[CatalogClient] = None,
        provider_id: int = TARGET_PROVIDER_ID,
        max_age: float = CACHE_MAX_AGE,
        page_size: int = PAGE_SIZE,
        max_pages: int = MAX_PAGES,
        fetch_workers: int = FETCH_WORKERS,
        quick_fill_pages: int = QUICK_FILL_PAGES,
        quick_fill_threshold: int = QUICK_FILL_THRESHOLD,
        refresh_workers: int = REFRESH_WORKERS,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client if client is not None else CatalogClient()
        self.aggregator = ProductAggregator(
            self.client,
            provider_id=provider_id,
            page_size=page_size,
            max_pages=max_pages,
            fetch_workers=fetch_workers,
            quick_fill_pages=quick_fill_pages,
            quick_fill_threshold=quick_fill_threshold,
        )
        self.scheduler = RefreshScheduler(
            self.aggregator,
            max_age=max_age,
            workers=refresh_workers,
            clock=clock,
        )

    def check_configured(self) -> None:
        """Raises ConfigurationMissing if the API token is not set."""
        if not getattr(self.client, "is_configured", True):
            raise ConfigurationMissing("PRINTIFY_TOKEN is not configured")

    def list_products(
        self,
        shop_id: Union[str, int],
        page: int = 1,
        limit: int = 20,
        search: str = "",
        category: str = ALL_CATEGORY,
        force_refresh: bool = False,
    ) -> Dict[str, Any]:
        """One page of the shop's provider-filtered products.

        Raises:
            ConfigurationMissing: If the API token is not set
            UnknownCategory: If the category key is not registered
            RefreshPassFailed: If the cache is cold and could not be filled
        """
        self.check_configured()
        # Validate the category before touching the cache
        filter_products((), search, category)

        outcome = self.scheduler.ensure(shop_id, force=force_refresh)
        matched = filter_products(outcome.snapshot.products, search, category)
        return build_envelope(paginate(matched, page, limit), outcome.snapshot, outcome.served_fresh)

    def list_categories(self) -> List[Dict[str, Any]]:
        return get_categories()

    def get_product(self, shop_id: Union[str, int], product_id: str) -> Dict[str, Any]:
        self.check_configured()
        return self.client.fetch_product(shop_id, product_id)

    def list_shops(self) -> List[Dict[str, Any]]:
        self.check_configured()
        return self.client.fetch_shops()

    def close(self) -> None:
        """Drain background refreshes, then release the HTTP session they share."""
        self.scheduler.shutdown(wait=True)
        close = getattr(self.client, "close", None)
        if close is not None:
            close()
