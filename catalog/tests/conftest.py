"""Shared fixtures for the catalog test suite."""

import pytest

from catalog.errors import FetchFailed
from catalog.tests.stubs import FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def failing():
    """A FetchFailed instance usable as a page entry."""
    return FetchFailed("HTTP 503", status_code=503)
