"""FastAPI dependencies wiring the catalog to its collaborators.

Tests replace ``get_store`` / ``get_converter`` through
``app.dependency_overrides``.
"""
from functools import lru_cache

from fastapi import Depends

from app.core.config import settings
from app.core.logging import get_logger
from app.infrastructure.mongo import MongoProductStore
from app.infrastructure.redis import CacheManager, get_redis_client
from app.infrastructure.store import ProductStore
from app.services.catalog import ProductCatalog
from app.services.currency import CurrencyConverter, RemoteRateSource, StaticRateTable

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_store() -> ProductStore:
    return MongoProductStore.from_settings()


@lru_cache(maxsize=1)
def get_converter() -> CurrencyConverter:
    """Build the converter for the configured rate source."""
    if settings.rate_source == "remote":
        cache = CacheManager(get_redis_client(), ttl_hours=settings.rate_cache_ttl_hours)
        source = RemoteRateSource(
            settings.exchange_rate_api_url,
            base_currency=settings.canonical_currency,
            cache=cache,
            ttl_hours=settings.rate_cache_ttl_hours,
            timeout=settings.exchange_rate_timeout,
        )
        logger.info(f"Using remote exchange rates from {settings.exchange_rate_api_url}")
    else:
        source = StaticRateTable(settings.exchange_rates)
        logger.info(f"Using static exchange rates for {len(settings.exchange_rates)} currencies")
    return CurrencyConverter(source, decimal_places=settings.price_decimal_places)


def get_catalog(
    store: ProductStore = Depends(get_store),
    converter: CurrencyConverter = Depends(get_converter),
) -> ProductCatalog:
    return ProductCatalog(
        store,
        converter,
        canonical_currency=settings.canonical_currency,
        search_limit=settings.search_result_limit,
    )
