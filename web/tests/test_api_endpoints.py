"""Test API endpoints."""

import base64
from unittest.mock import MagicMock

import pytest

from catalog.aggregation import filter_and_project
from catalog.errors import FetchFailed


class TestProductsEndpoint:
    """Test GET /api/products endpoint."""

    def test_returns_envelope(self, client):
        response = client.get("/api/products?shopId=shop&limit=2")
        assert response.status_code == 200

        data = response.json
        assert [p["id"] for p in data["data"]] == ["1", "2"]
        assert data["total"] == 4
        assert data["per_page"] == 2
        assert data["current_page"] == 1
        assert data["last_page"] == 2
        assert data["from"] == 1
        assert data["to"] == 2
        for key in ("prev_page_url", "next_page_url", "cached_at", "cache_hit", "refreshing"):
            assert key in data

    def test_only_target_provider(self, client):
        data = client.get("/api/products?shopId=shop&limit=100").json
        assert all(p["print_provider_id"] == 39 for p in data["data"])
        assert "3" not in [p["id"] for p in data["data"]]

    def test_product_shape(self, client):
        product = client.get("/api/products?shopId=shop").json["data"][0]
        assert set(product) >= {"id", "title", "tags", "image", "print_provider_id"}
        assert "description" not in product
        assert product["image"] == "https://images.printify.com/1.png"

    def test_cache_control_header(self, client):
        response = client.get("/api/products?shopId=shop")
        assert response.headers["Cache-Control"] == "public, s-maxage=60, stale-while-revalidate=300"

    def test_second_page(self, client):
        data = client.get("/api/products?shopId=shop&limit=3&page=2").json
        assert [p["id"] for p in data["data"]] == ["5"]
        assert data["from"] == 4
        assert data["to"] == 4

    def test_page_past_end_is_empty(self, client):
        data = client.get("/api/products?shopId=shop&page=9").json
        assert data["data"] == []
        assert data["total"] == 4

    def test_search(self, client):
        data = client.get("/api/products?shopId=shop&search=SHIRT").json
        assert [p["id"] for p in data["data"]] == ["1", "4"]

    @pytest.mark.parametrize(
        "category,expected",
        [("tshirts", ["4"]), ("stickers", ["2"]), ("hoodies", ["5"]), ("art", []), ("all", ["1", "2", "4", "5"])],
    )
    def test_category(self, client, category, expected):
        data = client.get(f"/api/products?shopId=shop&category={category}").json
        assert [p["id"] for p in data["data"]] == expected

    def test_unknown_category(self, client, stub_client):
        response = client.get("/api/products?shopId=shop&category=socks")
        assert response.status_code == 400
        assert "error" in response.json
        assert stub_client.calls == []

    def test_fresh_cache_served_without_fetching(self, client, stub_client, service, shop_pages, clock):
        service.scheduler.get_cache("shop").publish(filter_and_project(shop_pages[1], 39), clock.now)

        response = client.get("/api/products?shopId=shop")

        assert response.status_code == 200
        assert response.json["cache_hit"] is True
        assert response.json["total"] == 4
        assert stub_client.calls == []

    def test_forced_refresh(self, client, stub_client, service, shop_pages, clock):
        service.scheduler.get_cache("shop").publish(filter_and_project(shop_pages[1], 39), clock.now)

        response = client.get("/api/products?shopId=shop&refresh=true")
        service.scheduler.shutdown(wait=True)

        assert response.status_code == 200
        assert response.json["cache_hit"] is False
        assert response.json["refreshing"] is True
        assert stub_client.passes_started() == 1


class TestProductsValidation:
    """Test request validation on GET /api/products."""

    def test_missing_shop_id(self, client, monkeypatch):
        monkeypatch.setattr("web.api.DEFAULT_SHOP_ID", None)
        response = client.get("/api/products")
        assert response.status_code == 400
        assert response.json["error"] == "Shop ID is required"

    def test_default_shop_id(self, client, monkeypatch):
        monkeypatch.setattr("web.api.DEFAULT_SHOP_ID", "shop")
        response = client.get("/api/products")
        assert response.status_code == 200

    @pytest.mark.parametrize("query", ["page=0", "page=abc", "limit=0", "limit=-5", "limit=101"])
    def test_bad_pagination(self, client, stub_client, query):
        response = client.get(f"/api/products?shopId=shop&{query}")
        assert response.status_code == 400
        assert stub_client.calls == []

    def test_missing_token(self, client, stub_client):
        stub_client.is_configured = False
        response = client.get("/api/products?shopId=shop")
        assert response.status_code == 500
        assert "PRINTIFY_TOKEN" in response.json["error"]

    def test_missing_token_checked_before_shop_id(self, client, stub_client, monkeypatch):
        monkeypatch.setattr("web.api.DEFAULT_SHOP_ID", None)
        stub_client.is_configured = False
        assert client.get("/api/products").status_code == 500

    def test_cold_fill_failure(self, client, stub_client):
        stub_client.pages = {1: FetchFailed("HTTP 503", 503), 2: FetchFailed("HTTP 503", 503)}
        response = client.get("/api/products?shopId=shop")
        assert response.status_code == 500
        assert response.json["error"] == "Failed to fetch products"


class TestProductDetailEndpoint:
    """Test GET /api/products/<id> endpoint."""

    def test_returns_product(self, client):
        response = client.get("/api/products/abc?shopId=shop")
        assert response.status_code == 200
        assert response.json["id"] == "abc"

    def test_not_found(self, client, stub_client):
        stub_client.fetch_product = MagicMock(side_effect=FetchFailed("HTTP 404", 404))
        response = client.get("/api/products/missing?shopId=shop")
        assert response.status_code == 404
        assert response.json["error"] == "Product not found"

    def test_upstream_failure(self, client, stub_client):
        stub_client.fetch_product = MagicMock(side_effect=FetchFailed("timed out"))
        response = client.get("/api/products/abc?shopId=shop")
        assert response.status_code == 500


class TestShopsEndpoint:
    """Test GET /api/shops endpoint."""

    def test_lists_shops(self, client):
        response = client.get("/api/shops")
        assert response.status_code == 200
        assert response.json[0]["title"] == "Test shop"

    def test_upstream_failure(self, client, stub_client):
        stub_client.fetch_shops = MagicMock(side_effect=FetchFailed("HTTP 502", 502))
        assert client.get("/api/shops").status_code == 500


class TestCategoriesEndpoint:
    """Test GET /api/categories endpoint."""

    def test_categories_endpoint_returns_list(self, client):
        response = client.get("/api/categories")
        assert response.status_code == 200
        assert isinstance(response.json["categories"], list)

    def test_categories_have_required_fields(self, client):
        for cat in client.get("/api/categories").json["categories"]:
            assert isinstance(cat["key"], str)
            assert "display_name" in cat

    def test_all_comes_first(self, client):
        keys = [c["key"] for c in client.get("/api/categories").json["categories"]]
        assert keys[0] == "all"
        assert {"tshirts", "sweatshirts", "hoodies", "stickers", "art"} <= set(keys)


class TestBasicAuth:
    """Test optional HTTP basic auth."""

    @pytest.fixture
    def creds(self, monkeypatch):
        monkeypatch.setenv("DEMO_USER", "demo")
        monkeypatch.setenv("DEMO_PASS", "pass")

    @staticmethod
    def _header(user, password):
        token = base64.b64encode(f"{user}:{password}".encode()).decode()
        return {"Authorization": f"Basic {token}"}

    def test_disabled_without_creds(self, client):
        assert client.get("/api/categories").status_code == 200

    def test_rejects_missing_header(self, client, creds):
        response = client.get("/api/categories")
        assert response.status_code == 401
        assert "WWW-Authenticate" in response.headers

    def test_rejects_wrong_password(self, client, creds):
        assert client.get("/api/categories", headers=self._header("demo", "nope")).status_code == 401

    def test_accepts_valid_creds(self, client, creds):
        assert client.get("/api/categories", headers=self._header("demo", "pass")).status_code == 200

    def test_health_is_open(self, client, creds):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json == {"status": "ok"}
