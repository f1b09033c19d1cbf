"""In-memory stand-ins for the catalog's external collaborators."""
import copy
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from app.infrastructure.store import TEXT_FIELDS, ProductQuery

FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _sort_key(value: Any):
    # Missing values sort first, like MongoDB
    return (value is not None, value if value is not None else 0)


class FakeProductStore:
    """Dict-backed ProductStore.

    Search is a case-insensitive literal substring match over the same
    fields the Mongo store uses. Documents are deep-copied in and out so
    tests cannot mutate stored state by accident.
    """

    def __init__(self):
        self.products: Dict[str, Dict[str, Any]] = {}
        self.users: Dict[str, Dict[str, Any]] = {}
        self.update_calls: List[str] = []
        self.healthy = True

    # Test helpers

    def seed(self, **fields) -> Dict[str, Any]:
        """Insert a product synchronously, filling in stored defaults."""
        document = {
            "name": "Product",
            "description": "",
            "category": "",
            "price": 1.0,
            "originalPrice": None,
            "images": [],
            "isFeatured": False,
            "order": 0,
            "relatedProducts": [],
            "reviews": [],
            "createdAt": datetime(2024, 1, 1, tzinfo=timezone.utc),
        }
        document.update(fields)
        document["id"] = fields.get("id") or uuid.uuid4().hex[:24]
        self.products[document["id"]] = copy.deepcopy(document)
        return copy.deepcopy(document)

    def add_user(self, user_id: str, name: str, email: Optional[str] = None,
                 image: Optional[str] = None) -> None:
        self.users[user_id] = {"id": user_id, "name": name, "email": email, "image": image}

    # ProductStore

    async def find(self, query: ProductQuery) -> List[Dict[str, Any]]:
        documents = list(self.products.values())
        if query.text:
            needle = query.text.lower()
            documents = [
                doc for doc in documents
                if any(needle in str(doc.get(field) or "").lower() for field in TEXT_FIELDS)
            ]
        for field, direction in reversed(query.sort):
            documents.sort(key=lambda doc: _sort_key(doc.get(field)), reverse=direction < 0)
        if query.limit is not None:
            documents = documents[:query.limit]
        if query.fields is not None:
            keep = set(query.fields) | {"id"}
            documents = [{k: v for k, v in doc.items() if k in keep} for doc in documents]
        return copy.deepcopy(documents)

    async def get(self, product_id: str) -> Optional[Dict[str, Any]]:
        document = self.products.get(product_id)
        return copy.deepcopy(document) if document else None

    async def get_many(self, product_ids: Sequence[str]) -> List[Dict[str, Any]]:
        return [copy.deepcopy(self.products[pid]) for pid in product_ids if pid in self.products]

    async def insert(self, document: Dict[str, Any]) -> Dict[str, Any]:
        stored = copy.deepcopy(document)
        stored["id"] = uuid.uuid4().hex[:24]
        self.products[stored["id"]] = stored
        return copy.deepcopy(stored)

    async def update(self, product_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        self.update_calls.append(product_id)
        document = self.products.get(product_id)
        if document is None:
            return None
        document.update(copy.deepcopy(fields))
        return copy.deepcopy(document)

    async def delete(self, product_id: str) -> bool:
        return self.products.pop(product_id, None) is not None

    async def count_featured(self) -> int:
        return sum(1 for doc in self.products.values() if doc.get("isFeatured"))

    async def get_users(self, user_ids: Sequence[str]) -> Dict[str, Dict[str, Any]]:
        return {uid: dict(self.users[uid]) for uid in user_ids if uid in self.users}

    async def ping(self) -> bool:
        return self.healthy
