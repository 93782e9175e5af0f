"""Provider-filtered product cache for the Printify catalog API."""

__version__ = "0.1.0"

# Re-export main components for convenient imports
from catalog.aggregation import ProductAggregator, filter_and_project, should_replace
from catalog.cache import ProductCache
from catalog.client import CatalogClient
from catalog.config import CACHE_MAX_AGE, DEFAULT_SHOP_ID, TARGET_PROVIDER_ID
from catalog.errors import (
    CatalogError,
    ConfigurationMissing,
    FetchFailed,
    RefreshPassFailed,
    UnknownCategory,
)
from catalog.models import CacheSnapshot, Product
from catalog.scheduler import RefreshOutcome, RefreshScheduler
from catalog.service import CatalogService

__all__ = [
    # Version
    "__version__",
    # Config
    "CACHE_MAX_AGE",
    "DEFAULT_SHOP_ID",
    "TARGET_PROVIDER_ID",
    # Models
    "Product",
    "CacheSnapshot",
    # Errors
    "CatalogError",
    "ConfigurationMissing",
    "FetchFailed",
    "RefreshPassFailed",
    "UnknownCategory",
    # Core
    "CatalogClient",
    "ProductAggregator",
    "ProductCache",
    "RefreshScheduler",
    "RefreshOutcome",
    "CatalogService",
    "filter_and_project",
    "should_replace",
]
