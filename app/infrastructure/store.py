"""Persistence contract for the product catalog.

The catalog talks to its document store only through ``ProductStore``.
Documents cross this boundary as plain dicts with camelCase keys, a string
``id`` and string references in ``relatedProducts`` and ``reviews[].user``.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

ASCENDING = 1
DESCENDING = -1

# Fields matched by free-text search
TEXT_FIELDS = ("name", "description", "category")

# Catalog listing: featured first, then manual rank, newest first
LIST_SORT = (("isFeatured", DESCENDING), ("order", ASCENDING), ("createdAt", DESCENDING))

# Quick search: newest first only
SEARCH_SORT = (("createdAt", DESCENDING),)
SEARCH_FIELDS = ("name", "price", "images", "category")


@dataclass(frozen=True)
class ProductQuery:
    """Find parameters.

    Attributes:
        text: Case-insensitive literal substring matched against TEXT_FIELDS
        sort: (field, direction) pairs in priority order
        limit: Maximum number of documents, None for no limit
        fields: Projection; None returns whole documents (``id`` always included)
    """
    text: Optional[str] = None
    sort: Tuple[Tuple[str, int], ...] = ()
    limit: Optional[int] = None
    fields: Optional[Tuple[str, ...]] = None


class ProductStore(Protocol):
    """Document store holding products (and the users reviews refer to)."""

    async def find(self, query: ProductQuery) -> List[Dict[str, Any]]:
        ...

    async def get(self, product_id: str) -> Optional[Dict[str, Any]]:
        """Return the product, or None if absent or the ID is malformed."""
        ...

    async def get_many(self, product_ids: Sequence[str]) -> List[Dict[str, Any]]:
        """Return the existing products among ``product_ids``, in that order."""
        ...

    async def insert(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """Insert and return the stored document with its assigned ``id``."""
        ...

    async def update(self, product_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Atomically overwrite ``fields`` on one product.

        Returns the updated document, or None if the product does not exist.
        Never creates a document.
        """
        ...

    async def delete(self, product_id: str) -> bool:
        ...

    async def count_featured(self) -> int:
        ...

    async def get_users(self, user_ids: Sequence[str]) -> Dict[str, Dict[str, Any]]:
        """Resolve review authors to ``{id, name, email, image}`` keyed by ID."""
        ...

    async def ping(self) -> bool:
        ...
