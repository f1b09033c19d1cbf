"""Domain models for catalog products.

Stored documents and API payloads use camelCase keys (``originalPrice``,
``isFeatured``); the models expose snake_case attributes and accept either.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from app.domain.user import UserSummary


class CatalogModel(BaseModel):
    """Base model with camelCase aliases."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class ReviewInput(CatalogModel):
    """Review as submitted: a user reference and the review text."""
    user: str
    content: str = ""


class ProductInput(CatalogModel):
    """Payload for creating a product.

    ``currency`` names the currency ``price`` and ``original_price`` are
    expressed in; it is never stored. ``images`` is left untyped here
    because the image handler owns its validation.
    """
    name: str
    description: str = ""
    category: str = ""
    price: Decimal
    original_price: Optional[Decimal] = None
    currency: Optional[str] = None
    images: Optional[List[Any]] = None
    is_featured: bool = False
    related_products: List[str] = Field(default_factory=list)
    reviews: List[ReviewInput] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Mug",
                "description": "Stoneware mug, 350ml",
                "category": "Kitchen",
                "price": 10,
                "currency": "EUR",
                "images": ["https://cdn.example.com/mug.png"],
                "isFeatured": True
            }
        }


class ProductPatch(CatalogModel):
    """Partial update: only fields explicitly present in the payload apply."""
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    price: Optional[Decimal] = None
    original_price: Optional[Decimal] = None
    currency: Optional[str] = None
    images: Optional[List[Any]] = None
    is_featured: Optional[bool] = None
    order: Optional[int] = None
    related_products: Optional[List[str]] = None
    reviews: Optional[List[ReviewInput]] = None


class RelatedProductView(CatalogModel):
    """Summary of a related product as embedded in a product response."""
    id: str
    name: str
    price: float
    original_price: Optional[float] = None
    images: List[str] = Field(default_factory=list)
    category: str = ""
    is_featured: bool = False


class ReviewView(CatalogModel):
    """Review with its author resolved (``None`` if the user is gone)."""
    user: Optional[UserSummary] = None
    content: str = ""


class ProductView(CatalogModel):
    """Product as returned to clients, prices in the requested currency."""
    id: str
    name: str
    description: str = ""
    category: str = ""
    price: float
    original_price: Optional[float] = None
    images: List[str] = Field(default_factory=list)
    is_featured: bool = False
    order: int = 0
    related_products: List[RelatedProductView] = Field(default_factory=list)
    reviews: List[ReviewView] = Field(default_factory=list)
    created_at: Optional[datetime] = None


class SearchHit(CatalogModel):
    """Reduced projection served by quick search."""
    id: str
    name: str
    price: float
    images: List[str] = Field(default_factory=list)
    category: str = ""


class OrderAssignment(CatalogModel):
    """One entry of a featured reorder batch."""
    id: str
    order: int


class ReorderRequest(CatalogModel):
    products: List[OrderAssignment]


class RelatedProductsRequest(CatalogModel):
    related_products: List[str] = Field(default_factory=list)
