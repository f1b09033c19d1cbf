"""Product catalog operations.

``ProductCatalog`` composes validation, image handling and currency
conversion over a ``ProductStore``:

- prices are stored in the canonical currency and converted only when a
  request names another currency;
- featured products get an append-to-end ``order`` on creation;
- reads populate related products and review authors.

Operations raise CatalogError subclasses and know nothing about HTTP.
Batch writes are issued concurrently with no cross-item atomicity.
"""
import asyncio
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from app.core.errors import NotFoundError
from app.core.logging import get_logger
from app.domain.product import (
    OrderAssignment,
    ProductPatch,
    ProductView,
    RelatedProductView,
    ReviewView,
    SearchHit,
)
from app.domain.user import UserSummary
from app.infrastructure.store import (
    LIST_SORT,
    SEARCH_FIELDS,
    SEARCH_SORT,
    ProductQuery,
    ProductStore,
)
from app.services.currency import CurrencyConverter, normalize_code
from app.services.images import handle_images
from app.services.validation import build_product_input
from app.utils.text import clean_line, clean_text

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _decimal(value: Any) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


class ProductCatalog:
    """Catalog operations over a product store.

    Args:
        store: Persistence collaborator
        converter: Currency converter used at the read/write boundary
        canonical_currency: Currency all prices are stored in
        search_limit: Maximum number of quick-search results
        clock: Source of creation timestamps
    """

    def __init__(
        self,
        store: ProductStore,
        converter: CurrencyConverter,
        canonical_currency: str = "USD",
        search_limit: int = 12,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.converter = converter
        self.canonical_currency = normalize_code(canonical_currency)
        self.search_limit = search_limit
        self.clock = clock

    # -----------------
    # READS
    # -----------------

    async def list_products(self, search: Optional[str] = None,
                            currency: Optional[str] = None) -> List[ProductView]:
        """List products, optionally filtered by a search term.

        Sorted featured first, then by manual ``order``, then newest first.
        """
        documents = await self.store.find(ProductQuery(text=search or None, sort=LIST_SORT))
        return await self._present_many(documents, self._currency(currency))

    async def get_product(self, product_id: str, currency: Optional[str] = None) -> ProductView:
        """Fetch one product.

        Raises:
            NotFoundError: If no product has this ID
        """
        document = await self.store.get(product_id)
        if document is None:
            raise NotFoundError()
        views = await self._present_many([document], self._currency(currency))
        return views[0]

    async def search_products(self, query: Optional[str],
                              currency: Optional[str] = None) -> List[SearchHit]:
        """Quick search returning a reduced projection, newest first.

        An empty query returns no results rather than everything.
        """
        if not query:
            return []

        target = self._currency(currency)
        documents = await self.store.find(ProductQuery(
            text=query,
            sort=SEARCH_SORT,
            limit=self.search_limit,
            fields=SEARCH_FIELDS,
        ))
        prices = await asyncio.gather(*(
            self._display_price(doc.get("price", 0), target) for doc in documents
        ))
        return [
            SearchHit(
                id=doc["id"],
                name=doc.get("name", ""),
                price=price,
                images=doc.get("images") or [],
                category=doc.get("category") or "",
            )
            for doc, price in zip(documents, prices)
        ]

    # -----------------
    # WRITES
    # -----------------

    async def create_product(self, payload: Mapping[str, Any]) -> ProductView:
        """Validate and store a new product.

        Prices are converted from ``payload["currency"]`` (default canonical)
        into the canonical currency. Featured products are appended to the
        end of the featured ranking.

        Raises:
            ValidationError: If required fields are missing or malformed
            InvalidImageError: If any image reference is rejected
            ConversionError: If the submitted currency is unknown
        """
        data = build_product_input(payload)
        images = handle_images(data.images)
        source = self._currency(data.currency)

        price = await self._to_canonical(data.price, source)
        original_price = None
        if data.original_price is not None:
            original_price = await self._to_canonical(data.original_price, source)

        order = await self.store.count_featured() if data.is_featured else 0

        document = {
            "name": clean_line(data.name),
            "description": clean_text(data.description),
            "category": clean_line(data.category),
            "price": price,
            "originalPrice": original_price,
            "images": images,
            "isFeatured": data.is_featured,
            "order": order,
            "relatedProducts": _unique(data.related_products),
            "reviews": [review.model_dump() for review in data.reviews],
            "createdAt": self.clock(),
        }
        stored = await self.store.insert(document)
        logger.info(
            f"Product created: {stored['id']}",
            extra={"product_id": stored["id"], "currency": source}
        )
        return (await self._present_many([stored], self.canonical_currency))[0]

    async def update_product(self, product_id: str, patch: ProductPatch) -> ProductView:
        """Apply a partial update.

        Only fields explicitly present in ``patch`` change. Prices are
        converted from the patch's own ``currency``; images are re-validated.
        The create-time required-field rules are not re-run.

        Raises:
            NotFoundError: If no product has this ID (nothing is created)
            InvalidImageError: If new images are rejected
            ConversionError: If the patch currency is unknown
        """
        present = patch.model_fields_set - {"currency"}
        source = self._currency(patch.currency)
        fields: Dict[str, Any] = {}

        if "name" in present:
            fields["name"] = clean_line(patch.name)
        if "description" in present:
            fields["description"] = clean_text(patch.description)
        if "category" in present:
            fields["category"] = clean_line(patch.category)
        if "price" in present:
            fields["price"] = await self._to_canonical(patch.price, source)
        if "original_price" in present:
            fields["originalPrice"] = (
                await self._to_canonical(patch.original_price, source)
                if patch.original_price is not None else None
            )
        if "images" in present:
            fields["images"] = handle_images(patch.images)
        if "is_featured" in present:
            fields["isFeatured"] = patch.is_featured
        if "order" in present:
            fields["order"] = patch.order
        if "related_products" in present:
            fields["relatedProducts"] = _unique(patch.related_products)
        if "reviews" in present:
            fields["reviews"] = [review.model_dump() for review in patch.reviews]

        document = await self.store.update(product_id, fields)
        if document is None:
            raise NotFoundError()
        logger.info(
            f"Product updated: {product_id}",
            extra={"product_id": product_id, "fields": sorted(fields)}
        )
        return (await self._present_many([document], self.canonical_currency))[0]

    async def delete_product(self, product_id: str) -> None:
        """Remove a product permanently.

        Raises:
            NotFoundError: If no product has this ID
        """
        if not await self.store.delete(product_id):
            raise NotFoundError()
        logger.info(f"Product deleted: {product_id}", extra={"product_id": product_id})

    async def set_related_products(self, product_id: str,
                                   related_ids: Sequence[str]) -> ProductView:
        """Replace the whole related-products set in one write.

        Raises:
            NotFoundError: If no product has this ID
        """
        document = await self.store.update(product_id, {"relatedProducts": _unique(related_ids)})
        if document is None:
            raise NotFoundError()
        return (await self._present_many([document], self.canonical_currency))[0]

    async def reorder_featured(self, assignments: Sequence[OrderAssignment]) -> None:
        """Assign manual ranks to products.

        Every assignment is written independently and concurrently. A missing
        ID does not stop or roll back the others; missing IDs are reported
        together once all writes have finished.

        Raises:
            NotFoundError: Listing the IDs that did not exist
        """
        results = await asyncio.gather(*(
            self.store.update(assignment.id, {"order": assignment.order})
            for assignment in assignments
        ))
        missing = [a.id for a, document in zip(assignments, results) if document is None]
        batch_logger = get_logger(__name__, {"operation": "reorder_featured"})
        batch_logger.info(
            f"Featured products reordered: {len(assignments) - len(missing)} applied, "
            f"{len(missing)} missing"
        )
        if missing:
            raise NotFoundError(f"Products not found: {', '.join(missing)}", ids=missing)

    # -----------------
    # HELPERS
    # -----------------

    def _currency(self, currency: Optional[str]) -> str:
        code = normalize_code(currency)
        return code or self.canonical_currency

    async def _to_canonical(self, amount: Any, source: str) -> float:
        converted = await self.converter.convert(_decimal(amount), source, self.canonical_currency)
        return float(converted)

    async def _display_price(self, amount: Any, target: str) -> float:
        if target == self.canonical_currency:
            return float(amount)
        return float(await self.converter.convert(_decimal(amount), self.canonical_currency, target))

    async def _display_optional(self, amount: Any, target: str) -> Optional[float]:
        if amount is None:
            return None
        return await self._display_price(amount, target)

    async def _present_many(self, documents: List[Dict[str, Any]], target: str) -> List[ProductView]:
        """Populate references and convert prices for a batch of documents.

        Related products and review authors are fetched once for the whole
        batch.
        """
        related_ids = _unique(ref for doc in documents for ref in doc.get("relatedProducts") or [])
        user_ids = _unique(
            review.get("user") for doc in documents for review in doc.get("reviews") or []
            if review.get("user")
        )

        related_docs, users = await asyncio.gather(
            self.store.get_many(related_ids),
            self.store.get_users(user_ids),
        )
        related_views = await asyncio.gather(*(self._related_view(doc, target) for doc in related_docs))
        related_by_id = {view.id: view for view in related_views}

        return list(await asyncio.gather(*(
            self._product_view(doc, target, related_by_id, users) for doc in documents
        )))

    async def _related_view(self, document: Dict[str, Any], target: str) -> RelatedProductView:
        price, original = await asyncio.gather(
            self._display_price(document.get("price", 0), target),
            self._display_optional(document.get("originalPrice"), target),
        )
        return RelatedProductView(
            id=document["id"],
            name=document.get("name", ""),
            price=price,
            original_price=original,
            images=document.get("images") or [],
            category=document.get("category") or "",
            is_featured=bool(document.get("isFeatured")),
        )

    async def _product_view(self, document: Dict[str, Any], target: str,
                            related: Dict[str, RelatedProductView],
                            users: Dict[str, Dict[str, Any]]) -> ProductView:
        price, original = await asyncio.gather(
            self._display_price(document.get("price", 0), target),
            self._display_optional(document.get("originalPrice"), target),
        )
        reviews = []
        for review in document.get("reviews") or []:
            author = users.get(review.get("user"))
            reviews.append(ReviewView(
                user=UserSummary(**author) if author else None,
                content=review.get("content", ""),
            ))
        return ProductView(
            id=document["id"],
            name=document.get("name", ""),
            description=document.get("description") or "",
            category=document.get("category") or "",
            price=price,
            original_price=original,
            images=document.get("images") or [],
            is_featured=bool(document.get("isFeatured")),
            order=document.get("order") or 0,
            related_products=[
                related[ref] for ref in document.get("relatedProducts") or [] if ref in related
            ],
            reviews=reviews,
            created_at=document.get("createdAt"),
        )


def _unique(values: Iterable[Any]) -> List[Any]:
    """Drop duplicates, keeping first occurrences in order."""
    return list(dict.fromkeys(values))
