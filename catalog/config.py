"""Configuration and constants for the catalog cache."""

import os
from typing import Dict, Optional

__all__ = [
    "API_BASE",
    "API_TOKEN",
    "HEADERS",
    "REQUEST_TIMEOUT",
    "TARGET_PROVIDER_ID",
    "DEFAULT_SHOP_ID",
    "PAGE_SIZE",
    "MAX_PAGES",
    "FETCH_WORKERS",
    "QUICK_FILL_PAGES",
    "QUICK_FILL_THRESHOLD",
    "CACHE_MAX_AGE",
    "REFRESH_WORKERS",
]

API_BASE = os.getenv("PRINTIFY_API_BASE", "https://api.printify.com/v1")

# Bearer token for the catalog API. Requests fail fast when this is unset.
API_TOKEN: Optional[str] = os.getenv("PRINTIFY_TOKEN") or None

HEADERS: Dict[str, str] = {
    "Content-Type": "application/json",
    "User-Agent": "printshop-storefront/0.1",
}

# Per-request timeout (seconds). Short enough that a quick-fill of a few
# pages still fits inside one user-facing request.
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "8"))

# Swift Pod
TARGET_PROVIDER_ID = int(os.getenv("TARGET_PROVIDER_ID", "39"))

DEFAULT_SHOP_ID: Optional[str] = os.getenv("DEFAULT_SHOP_ID") or None

# Pagination against the upstream API
PAGE_SIZE = int(os.getenv("UPSTREAM_PAGE_SIZE", "50"))
MAX_PAGES = int(os.getenv("MAX_PAGES", "8"))  # Safety limit per full refresh
FETCH_WORKERS = int(os.getenv("FETCH_WORKERS", str(MAX_PAGES)))

# Cold-start fill: stop once this many matching products are in hand
QUICK_FILL_PAGES = int(os.getenv("QUICK_FILL_PAGES", "3"))
QUICK_FILL_THRESHOLD = int(os.getenv("QUICK_FILL_THRESHOLD", "20"))

# Freshness window (seconds)
CACHE_MAX_AGE = float(os.getenv("CACHE_MAX_AGE", str(5 * 60)))

# Background refresh pool size. One is enough: the refresh gate allows a
# single pass per shop at a time.
REFRESH_WORKERS = int(os.getenv("REFRESH_WORKERS", "1"))
