"""Exceptions raised by the catalog package."""

from typing import Optional

__all__ = [
    "CatalogError",
    "FetchFailed",
    "RefreshPassFailed",
    "ConfigurationMissing",
    "UnknownCategory",
]


class CatalogError(Exception):
    """Base class for catalog errors."""
    pass


class FetchFailed(CatalogError):
    """A single upstream request failed (timeout, connection error, non-2xx)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RefreshPassFailed(CatalogError):
    """Every page of an aggregation pass failed; nothing usable was fetched."""
    pass


class ConfigurationMissing(CatalogError):
    """A required setting (e.g. the API token) is not configured."""
    pass


class UnknownCategory(CatalogError):
    """Raised when a category key has no tag mapping."""
    pass
