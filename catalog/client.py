"""HTTP client for the Printify catalog API."""

from typing import Any, Dict, List, Optional, Union

import requests  # type: ignore[import-untyped]

from catalog.config import API_BASE, API_TOKEN, HEADERS, REQUEST_TIMEOUT
from catalog.errors import ConfigurationMissing, FetchFailed
from catalog.logging_config import get_logger

__all__ = ["CatalogClient", "create_session"]

logger = get_logger("client")


def create_session() -> requests.Session:
    """Create a requests Session with connection pooling and default headers."""
    session = requests.Session()
    session.headers.update(HEADERS)
    session.headers.setdefault("Accept-Encoding", "gzip, deflate")
    return session


class CatalogClient:
    """Thin, stateless wrapper around the catalog REST endpoints.

    Every call is a single GET with a bounded timeout. Failures of any kind
    surface as FetchFailed; retrying is left to the caller.
    """

    def __init__(
        self,
        token: Optional[str] = API_TOKEN,
        api_base: str = API_BASE,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.token = token
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._session = session

    @property
    def is_configured(self) -> bool:
        return bool(self.token)

    def _get_session(self) -> requests.Session:
        if self._session is None:
            self._session = create_session()
        return self._session

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        if not self.token:
            raise ConfigurationMissing("PRINTIFY_TOKEN is not configured")

        url = f"{self.api_base}{path}"
        try:
            resp = self._get_session().get(
                url,
                params=params,
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            return resp.json()
        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            raise FetchFailed(f"HTTP {status_code} from {url}", status_code=status_code) from e
        except requests.exceptions.Timeout as e:
            raise FetchFailed(f"Timeout after {self.timeout}s fetching {url}") from e
        except requests.exceptions.RequestException as e:
            raise FetchFailed(f"Request to {url} failed: {e}") from e
        except ValueError as e:
            # resp.json() on a body that is not JSON
            raise FetchFailed(f"Invalid JSON from {url}: {e}") from e

    def fetch_page(self, shop_id: Union[str, int], page: int, limit: int) -> List[Dict[str, Any]]:
        """Fetch one page of raw product records for a shop.

        Args:
            shop_id: Catalog shop identifier
            page: 1-based page number
            limit: Page size

        Returns:
            The page's raw records; an empty list once the catalog is exhausted.

        Raises:
            ValueError: If page or limit is not a positive integer
            FetchFailed: On timeout, connection error or non-2xx response
            ConfigurationMissing: If no API token is configured
        """
        if page < 1 or limit < 1:
            raise ValueError(f"page and limit must be positive, got page={page} limit={limit}")

        payload = self._get(
            f"/shops/{shop_id}/products.json",
            params={"page": page, "limit": limit},
        )
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            logger.debug(f"Page {page} for shop {shop_id} had no data array")
            return []
        return [item for item in data if isinstance(item, dict)]

    def fetch_product(self, shop_id: Union[str, int], product_id: str) -> Dict[str, Any]:
        """Fetch a single product with its full image and variant set."""
        payload = self._get(f"/shops/{shop_id}/products/{product_id}.json")
        if not isinstance(payload, dict):
            raise FetchFailed(f"Unexpected product payload for {product_id}")
        return payload

    def fetch_shops(self) -> List[Dict[str, Any]]:
        """List the shops visible to the configured token."""
        payload = self._get("/shops.json")
        if isinstance(payload, dict):
            payload = payload.get("data", [])
        return payload if isinstance(payload, list) else []

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
