"""MongoDB implementation of the product store.

Uses pymongo's asyncio client. ObjectIds are translated to strings on the
way out and back on the way in; malformed IDs behave like missing ones.
Driver errors surface as InternalError so callers never see pymongo types.
"""
from functools import wraps
from typing import Any, Dict, List, Optional, Sequence

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import AsyncMongoClient, ReturnDocument
from pymongo.errors import PyMongoError

from app.core.config import settings
from app.core.errors import InternalError
from app.core.logging import get_logger
from app.infrastructure.store import TEXT_FIELDS, ProductQuery
from app.utils.text import literal_pattern

logger = get_logger(__name__)

# Shared client (lazy initialization)
_mongo_client: Optional[AsyncMongoClient] = None

USER_FIELDS = {"name": 1, "email": 1, "image": 1}


def get_mongo_client(uri: Optional[str] = None) -> AsyncMongoClient:
    """Get or create the process-wide MongoDB client.

    The client connects lazily, so creating it never blocks or fails on an
    unreachable server; the first operation does.
    """
    global _mongo_client
    if _mongo_client is None:
        logger.info("Initializing MongoDB client")
        _mongo_client = AsyncMongoClient(
            uri or settings.mongodb_uri,
            serverSelectionTimeoutMS=3000,
            tz_aware=True,
        )
    return _mongo_client


async def close_mongo_client() -> None:
    global _mongo_client
    if _mongo_client is not None:
        await _mongo_client.close()
        _mongo_client = None
        logger.info("MongoDB client closed")


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Parse a hex string ID, returning None when it is not a valid ObjectId."""
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str):
        return None
    try:
        return ObjectId(value)
    except InvalidId:
        return None


def _reference(value: Any) -> Any:
    oid = to_object_id(value)
    return oid if oid is not None else value


def _to_mongo(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Turn string references into ObjectIds for storage."""
    document = {key: value for key, value in fields.items() if key != "id"}
    if "relatedProducts" in document:
        document["relatedProducts"] = [_reference(ref) for ref in document["relatedProducts"] or []]
    if "reviews" in document:
        document["reviews"] = [
            {**review, "user": _reference(review.get("user"))}
            for review in document["reviews"] or []
        ]
    return document


def _from_mongo(document: Dict[str, Any]) -> Dict[str, Any]:
    """Turn a stored document into the plain-dict shape the catalog uses."""
    result = {key: value for key, value in document.items() if key != "_id"}
    result["id"] = str(document["_id"])
    if "relatedProducts" in result:
        result["relatedProducts"] = [str(ref) for ref in result["relatedProducts"] or []]
    if "reviews" in result:
        result["reviews"] = [
            {**review, "user": str(review["user"]) if review.get("user") is not None else None}
            for review in result["reviews"] or []
        ]
    return result


def _db_errors(func):
    """Translate driver failures into InternalError."""
    @wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            return await func(self, *args, **kwargs)
        except PyMongoError as e:
            logger.error(f"MongoDB {func.__name__} failed: {e}", exc_info=True)
            raise InternalError("Database operation failed") from e
    return wrapper


class MongoProductStore:
    """Product store over a MongoDB database."""

    def __init__(self, client: AsyncMongoClient, database: str,
                 products_collection: str = "products", users_collection: str = "users"):
        self.client = client
        db = client[database]
        self.products = db[products_collection]
        self.users = db[users_collection]

    @classmethod
    def from_settings(cls) -> "MongoProductStore":
        return cls(
            get_mongo_client(),
            settings.mongodb_db,
            products_collection=settings.products_collection,
            users_collection=settings.users_collection,
        )

    @_db_errors
    async def find(self, query: ProductQuery) -> List[Dict[str, Any]]:
        criteria: Dict[str, Any] = {}
        if query.text:
            pattern = literal_pattern(query.text)
            criteria = {"$or": [{field: {"$regex": pattern, "$options": "i"}} for field in TEXT_FIELDS]}

        projection = {field: 1 for field in query.fields} if query.fields else None
        cursor = self.products.find(criteria, projection)
        if query.sort:
            cursor = cursor.sort(list(query.sort))
        if query.limit:
            cursor = cursor.limit(query.limit)
        return [_from_mongo(doc) for doc in await cursor.to_list()]

    @_db_errors
    async def get(self, product_id: str) -> Optional[Dict[str, Any]]:
        oid = to_object_id(product_id)
        if oid is None:
            return None
        document = await self.products.find_one({"_id": oid})
        return _from_mongo(document) if document else None

    @_db_errors
    async def get_many(self, product_ids: Sequence[str]) -> List[Dict[str, Any]]:
        oids = [oid for oid in (to_object_id(pid) for pid in product_ids) if oid is not None]
        if not oids:
            return []
        found = {
            doc["_id"]: doc
            for doc in await self.products.find({"_id": {"$in": oids}}).to_list()
        }
        return [_from_mongo(found[oid]) for oid in oids if oid in found]

    @_db_errors
    async def insert(self, document: Dict[str, Any]) -> Dict[str, Any]:
        stored = _to_mongo(document)
        result = await self.products.insert_one(stored)
        stored["_id"] = result.inserted_id
        return _from_mongo(stored)

    @_db_errors
    async def update(self, product_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        oid = to_object_id(product_id)
        if oid is None:
            return None
        if not fields:
            document = await self.products.find_one({"_id": oid})
        else:
            document = await self.products.find_one_and_update(
                {"_id": oid},
                {"$set": _to_mongo(fields)},
                return_document=ReturnDocument.AFTER,
            )
        return _from_mongo(document) if document else None

    @_db_errors
    async def delete(self, product_id: str) -> bool:
        oid = to_object_id(product_id)
        if oid is None:
            return False
        result = await self.products.delete_one({"_id": oid})
        return result.deleted_count == 1

    @_db_errors
    async def count_featured(self) -> int:
        return await self.products.count_documents({"isFeatured": True})

    @_db_errors
    async def get_users(self, user_ids: Sequence[str]) -> Dict[str, Dict[str, Any]]:
        oids = list({oid for oid in (to_object_id(uid) for uid in user_ids) if oid is not None})
        if not oids:
            return {}
        users = await self.users.find({"_id": {"$in": oids}}, USER_FIELDS).to_list()
        return {
            str(user["_id"]): {
                "id": str(user["_id"]),
                "name": user.get("name", ""),
                "email": user.get("email"),
                "image": user.get("image"),
            }
            for user in users
        }

    async def ping(self) -> bool:
        try:
            await self.client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.warning(f"MongoDB ping failed: {e}")
            return False
