"""Shared test fixtures for the web test suite."""

import os

import pytest

# Keep test runs from writing JSONL logs; must be set before web.config loads
os.environ.setdefault("LOG_TO_FILE", "False")
os.environ.pop("DEMO_USER", None)
os.environ.pop("DEMO_PASS", None)

from catalog.service import CatalogService  # noqa: E402
from catalog.tests.stubs import FakeClock, StubClient, make_raw  # noqa: E402


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def shop_pages():
    """One upstream page: four target-provider products and one foreign one."""
    return {
        1: [
            make_raw("1", title="Cool Shirt", tags=["Apparel"]),
            make_raw("2", title="Laptop Decal", tags=["Kiss-Cut Stickers"]),
            make_raw("3", provider_id=7, title="Other Shirt", tags=["T-shirts"]),
            make_raw("4", title="Graphic Tee", tags=["T-shirts"]),
            make_raw("5", title="Zip Hoodie", tags=["Hoodies"]),
        ],
    }


@pytest.fixture
def stub_client(shop_pages):
    return StubClient(shop_pages)


@pytest.fixture
def service(stub_client, clock):
    svc = CatalogService(
        client=stub_client,
        provider_id=39,
        max_age=300,
        page_size=10,
        max_pages=2,
        fetch_workers=2,
        quick_fill_pages=2,
        quick_fill_threshold=20,
        clock=clock,
    )
    yield svc
    svc.scheduler.shutdown(wait=True)


@pytest.fixture
def app(service):
    from web.app import create_app
    from web.image_proxy import ImageCache

    flask_app = create_app(service=service, image_cache=ImageCache())
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    """Create Flask test client."""
    with app.test_client() as test_client:
        yield test_client
