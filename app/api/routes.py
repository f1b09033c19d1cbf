"""Async FastAPI routes for the product catalog and currency lookups.

Handlers only translate between HTTP and catalog calls; errors raised by
the catalog are turned into responses by the handlers in app.api.errors.
"""
from decimal import Decimal
from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from app.api.dependencies import get_catalog, get_converter
from app.core.config import settings
from app.core.errors import ConversionError, FieldError, ValidationError
from app.core.logging import get_logger, LogTimer
from app.domain.product import (
    ProductView,
    RelatedProductsRequest,
    ReorderRequest,
    SearchHit,
)
from app.services.catalog import ProductCatalog
from app.services.currency import CurrencyConverter, normalize_code
from app.services.validation import parse_patch

logger = get_logger(__name__)
router = APIRouter(prefix="/products", tags=["products"])
currency_router = APIRouter(prefix="/currency", tags=["currency"])


# -----------------
# PRODUCT ENDPOINTS
# -----------------

@router.get("", response_model=List[ProductView])
async def list_products(
    search: Optional[str] = None,
    currency: Optional[str] = None,
    catalog: ProductCatalog = Depends(get_catalog),
):
    """List products, featured first.

    Example:
        GET /api/products?search=mug&currency=EUR
    """
    with LogTimer(logger, "list_products"):
        return await catalog.list_products(search=search, currency=currency)


@router.get("/search", response_model=List[SearchHit])
async def search_products(
    query: Optional[str] = None,
    currency: Optional[str] = None,
    catalog: ProductCatalog = Depends(get_catalog),
):
    """Quick search (name, price, images, category), newest first."""
    with LogTimer(logger, "search_products"):
        return await catalog.search_products(query, currency=currency)


@router.put("/featured/reorder")
async def reorder_featured_products(
    req: ReorderRequest,
    catalog: ProductCatalog = Depends(get_catalog),
):
    """Assign manual ranks to featured products.

    Example:
        PUT /api/products/featured/reorder
        {"products": [{"id": "...", "order": 0}, {"id": "...", "order": 1}]}
    """
    with LogTimer(logger, "reorder_featured"):
        await catalog.reorder_featured(req.products)
    return {"message": "Featured products reordered successfully"}


@router.get("/{product_id}", response_model=ProductView)
async def get_product(
    product_id: str,
    currency: Optional[str] = None,
    catalog: ProductCatalog = Depends(get_catalog),
):
    with LogTimer(logger, "get_product"):
        return await catalog.get_product(product_id, currency=currency)


@router.post("", response_model=ProductView, status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: Any = Body(...),
    catalog: ProductCatalog = Depends(get_catalog),
):
    """Create a product.

    Example:
        POST /api/products
        {"name": "Mug", "price": 10, "currency": "EUR", "isFeatured": true}
    """
    with LogTimer(logger, "create_product"):
        return await catalog.create_product(payload)


@router.put("/{product_id}", response_model=ProductView)
async def update_product(
    product_id: str,
    payload: Any = Body(...),
    catalog: ProductCatalog = Depends(get_catalog),
):
    """Partially update a product; only fields present in the body change."""
    patch = parse_patch(payload)
    with LogTimer(logger, "update_product"):
        return await catalog.update_product(product_id, patch)


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    catalog: ProductCatalog = Depends(get_catalog),
):
    with LogTimer(logger, "delete_product"):
        await catalog.delete_product(product_id)
    return {"message": "Product deleted successfully"}


@router.put("/{product_id}/related", response_model=ProductView)
async def update_related_products(
    product_id: str,
    req: RelatedProductsRequest,
    catalog: ProductCatalog = Depends(get_catalog),
):
    """Replace a product's related-products set."""
    with LogTimer(logger, "set_related_products"):
        return await catalog.set_related_products(product_id, req.related_products)


# -----------------
# CURRENCY ENDPOINTS
# -----------------

@currency_router.get("/rates")
async def exchange_rates(converter: CurrencyConverter = Depends(get_converter)):
    """Current rates, as units per one unit of the canonical currency."""
    rates = await converter.rate_table()
    return {
        "base": normalize_code(settings.canonical_currency),
        "currencies": await converter.available_currencies(),
        "rates": {code: float(rate) for code, rate in sorted(rates.items())},
    }


@currency_router.get("/convert")
async def convert_amount(
    amount: Decimal,
    from_currency: str = Query(..., alias="from"),
    to_currency: str = Query(..., alias="to"),
    converter: CurrencyConverter = Depends(get_converter),
):
    """Convert an amount between two currencies.

    Example:
        GET /api/currency/convert?amount=10&from=EUR&to=USD
    """
    if abs(amount) > settings.max_price:
        message = f"amount must not exceed {settings.max_price}"
        raise ValidationError(message, [FieldError("amount", message)])
    try:
        result = await converter.convert(amount, from_currency, to_currency)
    except ConversionError as e:
        raise ValidationError(e.message, [FieldError("currency", e.message)]) from e
    return {
        "amount": float(amount),
        "from": normalize_code(from_currency),
        "to": normalize_code(to_currency),
        "result": float(result),
    }
