"""Pytest configuration and shared fixtures."""
import os

# Skip production settings checks before the app is imported
os.environ.setdefault("ENVIRONMENT", "test")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from app.services.catalog import ProductCatalog
from app.services.currency import CurrencyConverter, StaticRateTable
from tests.fakes import FIXED_NOW, FakeProductStore


@pytest.fixture
def rates():
    """Rates per one USD; 1 EUR buys 1.1 USD."""
    return {
        "USD": Decimal("1"),
        "EUR": Decimal(1) / Decimal("1.1"),
        "GBP": Decimal("0.5"),
    }


@pytest.fixture
def converter(rates):
    return CurrencyConverter(StaticRateTable(rates))


@pytest.fixture
def store():
    return FakeProductStore()


@pytest.fixture
def catalog(store, converter):
    """Catalog over the in-memory store with a fixed clock."""
    return ProductCatalog(store, converter, canonical_currency="USD", clock=lambda: FIXED_NOW)


@pytest.fixture
def test_client(store, converter):
    """FastAPI test client wired to the in-memory store."""
    # Import after the environment is set up
    from main import app
    from app.api.dependencies import get_converter, get_store

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_converter] = lambda: converter
    yield TestClient(app)
    app.dependency_overrides.clear()
